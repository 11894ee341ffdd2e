"""
WCAG coverage matrix.

Projects automated findings, semi-automated answers and manual assertions
onto the success-criteria catalog, giving one CriterionStatus per criterion
and covered/total counts per conformance level.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

from a11y_aggregator.ir import (
    CoverageMatrix,
    CriterionStatus,
    Finding,
    LevelCoverage,
    coverage_percentage,
    sort_tools,
)
from a11y_aggregator.rules.load_rules import (
    DEFAULT_CATALOG_PATH,
    CatalogEntry,
    load_catalog_entries,
    load_rule_pack,
    pack_version,
)
from a11y_aggregator.semi_auto import SemiAutoResult
from a11y_aggregator.wcag import criterion_sort_key

logger = logging.getLogger(__name__)

RESULT_PRECEDENCE = {"fail": 3, "needs-review": 2, "pass": 1, "not-applicable": 0}
METHOD_PRECEDENCE = {"auto": 3, "semi-auto": 2, "manual": 1, "not-tested": 0}
SEMI_AUTO_ANSWER_TO_RESULT = {
    "appropriate": "pass",
    "inappropriate": "fail",
    "cannot-determine": "needs-review",
}
LEVELS = ("A", "AA", "AAA")

__all__ = [
    "WcagCatalog",
    "load_wcag_catalog",
    "CoverageBuilder",
    "coverage_percentage",
    "format_percentage",
    "unmapped_criteria",
]


@dataclass(frozen=True)
class WcagCatalog:
    """Read-only criterion table. Tests build partial catalogs directly."""
    entries: Tuple[CatalogEntry, ...]
    version: Optional[str] = None

    @classmethod
    def from_entries(cls, entries: Iterable[Any], version: Optional[str] = None) -> "WcagCatalog":
        out = []
        for e in entries:
            if not isinstance(e, CatalogEntry):
                criterion, level, title = e
                e = CatalogEntry(criterion=criterion, level=level, title=title)
            out.append(e)
        return cls(entries=tuple(out), version=version)

    def __contains__(self, criterion: object) -> bool:
        return any(e.criterion == criterion for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, criterion: str) -> Optional[CatalogEntry]:
        for e in self.entries:
            if e.criterion == criterion:
                return e
        return None

    def count(self, level: str) -> int:
        return sum(1 for e in self.entries if e.level == level)


def load_wcag_catalog(path: Optional[str] = None) -> WcagCatalog:
    pack = load_rule_pack(path or DEFAULT_CATALOG_PATH)
    catalog = WcagCatalog(entries=tuple(load_catalog_entries(pack)), version=pack_version(pack))
    logger.debug(f"Loaded WCAG catalog {catalog.version}: "
                 + ", ".join(f"{lvl}={catalog.count(lvl)}" for lvl in LEVELS))
    return catalog


def format_percentage(value: float) -> str:
    return f"{value:.1f}"


def unmapped_criteria(findings: Iterable[Finding], catalog: WcagCatalog) -> List[str]:
    """Criteria referenced by findings but missing from the catalog."""
    missing = {c for f in findings for c in f.wcag_criteria if c not in catalog}
    return sorted(missing, key=criterion_sort_key)


def _tools(f: Finding) -> List[str]:
    return list(f.tool_sources) if f.tool_sources else [f.tool_source]


@dataclass
class _Evidence:
    results: set = field(default_factory=set)
    methods: set = field(default_factory=set)
    tools: set = field(default_factory=set)


class CoverageBuilder:
    def __init__(self, catalog: WcagCatalog):
        self.catalog = catalog

    def build(
        self,
        violations: Sequence[Finding],
        passes: Sequence[Finding],
        incomplete: Sequence[Finding],
        semi_auto_results: Iterable[SemiAutoResult] = (),
        manual_results: Optional[Mapping[str, str]] = None,
    ) -> CoverageMatrix:
        """
        One CriterionStatus per catalog criterion.

        result precedence: fail > needs-review > pass > not-applicable
        method precedence: auto > semi-auto > manual > not-tested
        """
        evidence: Dict[str, _Evidence] = {e.criterion: _Evidence() for e in self.catalog.entries}
        unmapped: set = set()

        def record(criterion: str, result: str, method: str, tools: Iterable[str] = ()) -> None:
            ev = evidence.get(criterion)
            if ev is None:
                unmapped.add(criterion)
                return
            ev.results.add(result)
            ev.methods.add(method)
            ev.tools.update(tools)

        for findings, result in ((violations, "fail"), (incomplete, "needs-review"), (passes, "pass")):
            for f in findings:
                for c in f.wcag_criteria:
                    record(c, result, "auto", _tools(f))

        for r in semi_auto_results:
            result = SEMI_AUTO_ANSWER_TO_RESULT.get(r.answer)
            if result is None:
                logger.warning(f"Ignoring semi-auto result {r.item_id} with answer {r.answer!r}")
                continue
            for c in r.wcag_criteria:
                record(c, result, "semi-auto")

        for c, result in (manual_results or {}).items():
            if result not in RESULT_PRECEDENCE:
                logger.warning(f"Ignoring manual result {result!r} for {c}")
                continue
            record(c, result, "manual")

        if unmapped:
            logger.warning(f"Criteria missing from the WCAG catalog (excluded from coverage): "
                           f"{', '.join(sorted(unmapped, key=criterion_sort_key))}")

        statuses: List[CriterionStatus] = []
        for entry in self.catalog.entries:
            ev = evidence[entry.criterion]
            statuses.append(CriterionStatus(
                criterion=entry.criterion,
                level=entry.level,
                title=entry.title,
                method=max(ev.methods, key=METHOD_PRECEDENCE.__getitem__, default="not-tested"),
                result=max(ev.results, key=RESULT_PRECEDENCE.__getitem__, default="not-applicable"),
                tools=sort_tools(ev.tools),
            ))

        levels = {
            lvl: LevelCoverage(
                covered=sum(1 for s in statuses if s.level == lvl and s.result == "pass"),
                total=self.catalog.count(lvl),
            )
            for lvl in LEVELS
        }
        return CoverageMatrix(
            criteria=statuses,
            level_a=levels["A"],
            level_aa=levels["AA"],
            level_aaa=levels["AAA"],
            unmapped_criteria=sorted(unmapped, key=criterion_sort_key),
        )

    def build_aggregate(
        self,
        pages: Iterable[Any],
        semi_auto_results: Iterable[SemiAutoResult] = (),
        manual_results: Optional[Mapping[str, str]] = None,
    ) -> CoverageMatrix:
        """One matrix across pages; each page exposes violations, passes and incomplete."""
        violations: List[Finding] = []
        passes: List[Finding] = []
        incomplete: List[Finding] = []
        for page in pages:
            violations.extend(page.violations)
            passes.extend(page.passes)
            incomplete.extend(page.incomplete)
        return self.build(violations, passes, incomplete, semi_auto_results, manual_results)
