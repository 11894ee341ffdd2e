from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.snippets import as_text, truncate_html
from a11y_aggregator.wcag import extract_wcag_criteria, has_wcag22_criterion

logger = logging.getLogger(__name__)

TOOL = "qualweb"
HELP_URL = "https://qualweb.di.fc.ul.pt/rules/{rule_id}"

_VERDICT_TO_KIND = {
    "failed": "violation",
    "passed": "pass",
    "warning": "incomplete",
    "cantTell": "incomplete",
}
_VERDICT_TO_IMPACT = {
    "failed": "serious",
    "warning": "moderate",
    "cantTell": "moderate",
}


def collect_assertions(report: Any) -> Dict[str, Dict[str, Any]]:
    """
    Find the assertion maps in a QualWeb report. Accepts {"assertions": ...},
    {"modules": {"act-rules": {"assertions": ...}, ...}} and the evaluate()
    output keyed by page URL.
    """
    if not isinstance(report, dict):
        return {}
    if isinstance(report.get("assertions"), dict):
        return dict(report["assertions"])
    if isinstance(report.get("modules"), dict):
        merged: Dict[str, Dict[str, Any]] = {}
        for module in report["modules"].values():
            merged.update(collect_assertions(module))
        return merged
    merged = {}
    for value in report.values():
        if isinstance(value, dict) and ("modules" in value or "assertions" in value):
            merged.update(collect_assertions(value))
    return merged


def _criteria(assertion: Dict[str, Any]) -> List[str]:
    metadata = assertion.get("metadata") or {}
    names = [sc.get("name") for sc in (metadata.get("success-criteria") or []) if isinstance(sc, dict)]
    return extract_wcag_criteria(names)


def adapt_qualweb(raw: Any, *, duration_ms: int = 0) -> EngineResult:
    """
    Convert a QualWeb report: one finding per assertion code and verdict
    kind; inapplicable results are skipped.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="QualWeb produced no output")
    assertions = collect_assertions(raw)
    if not assertions:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="QualWeb payload has no assertions")

    buckets: Dict[str, List[Finding]] = {"violation": [], "pass": [], "incomplete": []}
    for key, assertion in assertions.items():
        if not isinstance(assertion, dict):
            continue
        rule_id = as_text(assertion.get("code") or key)
        criteria = _criteria(assertion)
        description = as_text(assertion.get("description") or assertion.get("name"))

        per_kind: Dict[str, List[NodeInfo]] = {}
        verdicts: Dict[str, str] = {}
        for item in assertion.get("results") or []:
            if not isinstance(item, dict):
                continue
            verdict = as_text(item.get("verdict"))
            kind = _VERDICT_TO_KIND.get(verdict)
            if kind is None:
                continue
            pointer = as_text(item.get("pointer"))
            per_kind.setdefault(kind, []).append(
                NodeInfo(target=pointer, html=truncate_html(item.get("htmlCode"))))
            verdicts.setdefault(kind, verdict)

        for kind, nodes in per_kind.items():
            buckets[kind].append(Finding(
                id=rule_id,
                description=description,
                impact=None if kind == "pass" else _VERDICT_TO_IMPACT.get(verdicts[kind]),
                help_url=HELP_URL.format(rule_id=rule_id),
                wcag_criteria=criteria,
                tool_source=TOOL,
                nodes=nodes,
                is_experimental=kind != "pass" and has_wcag22_criterion(criteria),
            ))

    result = EngineResult(
        tool_source=TOOL,
        violations=buckets["violation"],
        passes=buckets["pass"],
        incomplete=buckets["incomplete"],
        duration_ms=duration_ms,
    )
    result.message = (f"QualWeb: {len(result.violations)} failed, {len(result.passes)} passed, "
                      f"{len(result.incomplete)} warning/cantTell")
    return result
