from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json

from a11y_aggregator.coverage import format_percentage
from a11y_aggregator.ir import CoverageMatrix, EngineResult, LighthouseScores
from a11y_aggregator.merge import MergeResult
from a11y_aggregator.semi_auto import SemiAutoItem


@dataclass
class PageReport:
    name: str
    url: str
    engines: List[EngineResult]
    merged: MergeResult
    coverage: CoverageMatrix
    semi_auto_items: List[SemiAutoItem] = field(default_factory=list)
    diagnostics: str = "skipped"   # applied | skipped

    @property
    def violations(self):
        return self.merged.violations

    @property
    def passes(self):
        return self.merged.passes

    @property
    def incomplete(self):
        return self.merged.incomplete

    @property
    def lighthouse_scores(self) -> Optional[LighthouseScores]:
        for r in self.engines:
            if r.lighthouse_scores is not None:
                return r.lighthouse_scores
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "url": self.url,
            "engines": [
                {"tool_source": r.tool_source, "status": r.status, "duration_ms": r.duration_ms, "message": r.message}
                for r in self.engines
            ],
            "diagnostics": self.diagnostics,
        }
        scores = self.lighthouse_scores
        d["lighthouse_scores"] = scores.to_dict() if scores else None
        d.update(self.merged.to_dict())
        d["semi_auto_items"] = [i.to_dict() for i in self.semi_auto_items]
        d["coverage"] = self.coverage.to_dict()
        return d


@dataclass
class AccessibilityReport:
    timestamp_utc: str
    pages: List[PageReport]
    coverage: CoverageMatrix
    catalog_version: Optional[str] = None
    rule_aliases_version: Optional[str] = None

    def stats(self) -> Dict[str, int]:
        return {
            "pages": len(self.pages),
            "violations": sum(len(p.violations) for p in self.pages),
            "passes": sum(len(p.passes) for p in self.pages),
            "incomplete": sum(len(p.incomplete) for p in self.pages),
            "multi_engine_violations": sum(len(p.merged.multi_engine_violations) for p in self.pages),
            "failed_engines": sum(1 for p in self.pages for r in p.engines if r.status == "failed"),
            "unmapped_criteria": len(self.coverage.unmapped_criteria),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp_utc": self.timestamp_utc,
            "catalog_version": self.catalog_version,
            "rule_aliases_version": self.rule_aliases_version,
            "stats": self.stats(),
            "coverage": self.coverage.to_dict(),
            "pages": [p.to_dict() for p in self.pages],
        }


def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))


def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Accessibility Report - {payload.get('timestamp_utc')}")
    lines.append("")
    summary = (payload.get("coverage") or {}).get("summary", {})
    lines.append("WCAG Coverage (all pages)")
    for key, label in (("level_a", "A"), ("level_aa", "AA"), ("level_aaa", "AAA")):
        s = summary.get(key) or {}
        lines.append(f"- Level {label}: {s.get('covered', 0)}/{s.get('total', 0)} "
                     f"({format_percentage(s.get('percentage', 0.0))}%)")
    unmapped = (payload.get("coverage") or {}).get("unmapped_criteria") or []
    if unmapped:
        lines.append(f"- Not in catalog: {', '.join(unmapped)}")
    lines.append("")
    stats = payload.get("stats", {})
    lines.append("Stats")
    for k, v in stats.items():
        lines.append(f"- {k}: {v}")
    lines.append("")
    for page in payload.get("pages", []) or []:
        lines.append(f"Page: {page.get('name')} ({page.get('url')})")
        for e in page.get("engines", []) or []:
            lines.append(f"- {e['tool_source']}: {e['status']} ({e['duration_ms']} ms) {e.get('message') or ''}".rstrip())
        scores = page.get("lighthouse_scores")
        if scores:
            lines.append("- Lighthouse scores: " + ", ".join(f"{k}={v}" for k, v in scores.items()))
        summary = page.get("engine_summary") or {}
        if summary:
            lines.append("Engine Summary")
            for tool, counts in summary.items():
                lines.append(f"- {tool}: {counts['violations']} violations, {counts['passes']} passes")
        multi = page.get("multi_engine_violations") or []
        if multi:
            lines.append("Confirmed by Multiple Engines")
            for m in multi:
                lines.append(f"- [{(m.get('impact') or 'n/a').upper()}] {m['rule_id']} "
                             f"({', '.join(m['wcag_criteria'])}) by {', '.join(m['tool_sources'])}: "
                             f"{m['node_count']} nodes")
        violations = page.get("violations") or []
        if violations:
            lines.append("Violations")
            for v in violations[:60]:
                sources = ", ".join(v.get("tool_sources") or [v["tool_source"]])
                lines.append(f"- [{(v.get('impact') or 'n/a').upper()}] {v['id']} ({sources}): {v['description']}")
            if len(violations) > 60:
                lines.append(f"... plus {len(violations)-60} more.")
        items = page.get("semi_auto_items") or []
        if items:
            lines.append(f"Semi-automated checks: {len(items)} items awaiting review")
        lines.append("")
    return "\n".join(lines)
