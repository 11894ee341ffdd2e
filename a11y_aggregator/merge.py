"""
Cross-engine merging.

Engines name the same defect differently (axe-core "color-contrast", pa11y
"WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail", WAVE "contrast"). Findings
are grouped under an equivalence key taken from the rule alias table, falling
back to the WCAG criterion set, and groups confirmed by two or more engines
become MultiEngineViolations.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from fnmatch import fnmatchcase
from typing import Dict, Iterable, List, Optional, Tuple, Union
import logging

from a11y_aggregator.ir import (
    EngineResult,
    Finding,
    MultiEngineViolation,
    NodeInfo,
    engine_rank,
    most_severe,
    sort_tools,
)
from a11y_aggregator.rules.load_rules import (
    DEFAULT_ALIASES_PATH,
    AliasBucket,
    load_alias_buckets,
    load_rule_pack,
    pack_version,
)
from a11y_aggregator.snippets import normalize_selector, text_similarity
from a11y_aggregator.wcag import criterion_sort_key, extract_wcag_criteria

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, ...]

SELECTOR_SIMILARITY = 0.9
DESCRIPTION_SIMILARITY = 0.8


@dataclass
class RuleAliasTable:
    buckets: List[AliasBucket] = field(default_factory=list)
    version: Optional[str] = None

    def bucket_for_rule(self, tool_source: str, rule_id: str, criteria: Iterable[str]) -> Optional[AliasBucket]:
        """The bucket listing this engine rule, provided it shares a criterion with the finding."""
        wanted = set(criteria)
        for bucket in self.buckets:
            patterns = bucket.rules.get(tool_source, ())
            if any(fnmatchcase(rule_id, p) for p in patterns) and bucket.criteria & wanted:
                return bucket
        return None

    def key_for(self, finding: Finding) -> Optional[GroupKey]:
        """
        Equivalence key; None for findings without criteria, which never merge.

        Only rules the table lists join a named bucket. Any other rule is keyed
        by its own criterion set.
        """
        if not finding.wcag_criteria:
            return None
        bucket = self.bucket_for_rule(finding.tool_source, finding.id, finding.wcag_criteria)
        if bucket is not None:
            return ("bucket", bucket.id)
        return ("criteria",) + tuple(sorted(set(finding.wcag_criteria), key=criterion_sort_key))


def load_rule_aliases(path: Optional[str] = None) -> RuleAliasTable:
    pack = load_rule_pack(path or DEFAULT_ALIASES_PATH)
    table = RuleAliasTable(buckets=load_alias_buckets(pack), version=pack_version(pack))
    logger.debug(f"Loaded {len(table.buckets)} rule alias buckets (version {table.version})")
    return table


def _group(findings: Iterable[Finding], aliases: RuleAliasTable) -> List[Tuple[Optional[GroupKey], List[Finding]]]:
    """Group in order of first appearance; findings without a key stay alone."""
    groups: Dict[GroupKey, List[Finding]] = {}
    ordered: List[Tuple[Optional[GroupKey], List[Finding]]] = []
    for f in findings:
        key = aliases.key_for(f)
        if key is None:
            ordered.append((None, [f]))
            continue
        if key not in groups:
            groups[key] = []
            ordered.append((key, groups[key]))
        groups[key].append(f)
    return ordered


def _leader(group: List[Finding]) -> Finding:
    """First finding of the highest-priority engine in the group."""
    return min(enumerate(group), key=lambda pair: (engine_rank(pair[1].tool_source), pair[0]))[1]


def _sources(f: Finding) -> List[str]:
    return list(f.tool_sources) if f.tool_sources else [f.tool_source]


def engine_summary(results: Iterable[EngineResult]) -> Dict[str, Dict[str, int]]:
    """
    Per-engine {violations, passes} counts in engine priority order.

    Every finding counts toward its own engine whether or not it merges, and
    an engine that ran but found nothing still gets a zero row.
    """
    counts: Dict[str, Dict[str, int]] = {}
    for r in results:
        row = counts.setdefault(r.tool_source, {"violations": 0, "passes": 0})
        row["violations"] += len(r.violations)
        row["passes"] += len(r.passes)
    return {tool: counts[tool] for tool in sort_tools(counts)}


def find_multi_engine_violations(
    violations: Iterable[Finding],
    aliases: Optional[RuleAliasTable] = None,
) -> List[MultiEngineViolation]:
    aliases = aliases if aliases is not None else RuleAliasTable()
    out: List[MultiEngineViolation] = []
    for key, group in _group(violations, aliases):
        if key is None:
            continue
        tools = sort_tools(t for f in group for t in _sources(f))
        if len(tools) < 2:
            continue
        leader = _leader(group)
        out.append(MultiEngineViolation(
            rule_id=leader.id,
            description=leader.description,
            wcag_criteria=extract_wcag_criteria(c for f in group for c in f.wcag_criteria),
            tool_sources=tools,
            node_count=sum(f.node_count for f in group),
            impact=most_severe(*(f.impact for f in group)),
        ))
    return out


def _merge_nodes(group: List[Finding]) -> Optional[List[NodeInfo]]:
    if all(f.nodes is None for f in group):
        return None
    seen = set()
    merged: List[NodeInfo] = []
    for f in group:
        for n in f.nodes or []:
            key = normalize_selector(n.target)
            if key in seen:
                continue
            seen.add(key)
            merged.append(n)
    return merged


def _merge_group(group: List[Finding]) -> Finding:
    leader = _leader(group)
    nodes = _merge_nodes(group)
    merged = replace(
        leader,
        description=max((f.description for f in group), key=len),
        impact=most_severe(*(f.impact for f in group)),
        wcag_criteria=extract_wcag_criteria(c for f in group for c in f.wcag_criteria),
        tool_sources=sort_tools(t for f in group for t in _sources(f)),
        nodes=nodes,
        raw_score=next((f.raw_score for f in group if f.raw_score is not None), None),
        classification_reason=next(
            (f.classification_reason for f in group if f.classification_reason is not None), None),
        is_experimental=any(f.is_experimental for f in group),
    )
    if nodes is None:
        merged.node_count = sum(f.node_count for f in group)
    return merged


def _first_selector(f: Finding) -> str:
    return normalize_selector(f.nodes[0].target) if f.nodes else ""


def _same_engine_other_rule(a: Finding, b: Finding) -> bool:
    return a.id != b.id and bool(set(_sources(a)) & set(_sources(b)))


def is_duplicate(a: Finding, b: Finding, same_bucket: bool = False) -> bool:
    """
    Whether two findings with the same equivalence key report one defect.

    Two rules of one engine are never duplicates. With a selector on both
    sides the first nodes must match. Otherwise the alias bucket, or failing
    that near-identical descriptions, decides.
    """
    if _same_engine_other_rule(a, b):
        return False
    sa, sb = _first_selector(a), _first_selector(b)
    if sa and sb:
        return sa == sb or text_similarity(sa, sb) >= SELECTOR_SIMILARITY
    if same_bucket:
        return True
    return text_similarity(a.description, b.description) >= DESCRIPTION_SIMILARITY


def _cluster(group: List[Finding], same_bucket: bool) -> List[List[Finding]]:
    """Greedy: each finding joins the first cluster it duplicates and no member rules out."""
    clusters: List[List[Finding]] = []
    for f in group:
        for c in clusters:
            if any(_same_engine_other_rule(m, f) for m in c):
                continue
            if any(is_duplicate(m, f, same_bucket) for m in c):
                c.append(f)
                break
        else:
            clusters.append([f])
    return clusters


def deduplicate_findings(findings: Iterable[Finding], aliases: Optional[RuleAliasTable] = None) -> List[Finding]:
    """
    Collapse findings that report the same defect into one finding.

    Nodes are unioned by normalized selector, the most severe impact and the
    longest description win, and tool_sources lists every contributing engine.
    Single findings pass through unchanged.
    """
    aliases = aliases if aliases is not None else RuleAliasTable()
    out: List[Finding] = []
    for key, group in _group(findings, aliases):
        same_bucket = key is not None and key[0] == "bucket"
        for c in _cluster(group, same_bucket):
            out.append(replace(c[0]) if len(c) == 1 else _merge_group(c))
    return out


@dataclass
class MergeResult:
    violations: List[Finding]
    passes: List[Finding]
    incomplete: List[Finding]
    engine_summary: Dict[str, Dict[str, int]]
    multi_engine_violations: List[MultiEngineViolation]

    def to_dict(self) -> Dict[str, object]:
        return {
            "violations": [f.to_dict() for f in self.violations],
            "passes": [f.to_dict() for f in self.passes],
            "incomplete": [f.to_dict() for f in self.incomplete],
            "engine_summary": {k: dict(v) for k, v in self.engine_summary.items()},
            "multi_engine_violations": [m.to_dict() for m in self.multi_engine_violations],
        }


class MergeService:
    """Merges every engine's findings for one page. Pure: the inputs are never mutated."""

    def __init__(self, aliases: Optional[RuleAliasTable] = None):
        self.aliases = aliases if aliases is not None else RuleAliasTable()

    def merge(self, results: Union[List[EngineResult], Dict[str, EngineResult]]) -> MergeResult:
        if isinstance(results, dict):
            results = list(results.values())
        ordered = sorted(results, key=lambda r: engine_rank(r.tool_source))

        violations = [f for r in ordered for f in r.violations]
        passes = [f for r in ordered for f in r.passes]
        incomplete = [f for r in ordered for f in r.incomplete]

        multi = find_multi_engine_violations(violations, self.aliases)
        if multi:
            logger.info(f"{len(multi)} violations confirmed by more than one engine")

        return MergeResult(
            violations=deduplicate_findings(violations, self.aliases),
            passes=deduplicate_findings(passes, self.aliases),
            incomplete=deduplicate_findings(incomplete, self.aliases),
            engine_summary=engine_summary(ordered),
            multi_engine_violations=multi,
        )
