from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.snippets import as_text, truncate_html
from a11y_aggregator.wcag import extract_wcag_criteria, has_wcag22_criterion

logger = logging.getLogger(__name__)

TOOL = "alfa"

_OUTCOME_TO_KIND = {
    "failed": "violation",
    "passed": "pass",
    "cantTell": "incomplete",
}
_OUTCOME_TO_IMPACT = {
    "failed": "serious",
    "cantTell": "moderate",
}


def rule_id_from_uri(uri: str) -> str:
    """https://alfa.siteimprove.com/rules/sia-r66 -> sia-r66"""
    tail = as_text(uri).rstrip("/").rsplit("/", 1)[-1]
    return tail or as_text(uri)


def _requirements(rule: Dict[str, Any]) -> List[str]:
    uris = [req.get("uri") for req in (rule.get("requirements") or []) if isinstance(req, dict)]
    return extract_wcag_criteria(uris)


def adapt_alfa(raw: Any, *, duration_ms: int = 0) -> EngineResult:
    """
    Convert a Siteimprove Alfa audit ({"outcomes": [...]} or a bare outcome
    list). Outcomes are grouped per rule and outcome; inapplicable outcomes
    carry no information and are skipped.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="Alfa produced no output")
    outcomes = raw.get("outcomes") if isinstance(raw, dict) else raw
    if not isinstance(outcomes, list):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="Alfa payload has no outcomes list")

    grouped: Dict[Tuple[str, str], Dict[str, Any]] = {}
    inapplicable = 0
    for item in outcomes:
        if not isinstance(item, dict):
            continue
        outcome = as_text(item.get("outcome"))
        kind = _OUTCOME_TO_KIND.get(outcome)
        if kind is None:
            inapplicable += 1
            continue
        rule = item.get("rule") or {}
        uri = as_text(rule.get("uri"))
        rule_id = rule_id_from_uri(uri)

        target = item.get("target") or {}
        path = as_text(target.get("path"))
        node = NodeInfo(target=path, xpath=path or None, html=truncate_html(target.get("html")))

        key = (kind, rule_id)
        if key not in grouped:
            grouped[key] = {"uri": uri, "outcome": outcome, "criteria": _requirements(rule), "nodes": []}
        grouped[key]["nodes"].append(node)

    if inapplicable:
        logger.debug(f"Alfa: {inapplicable} inapplicable outcomes skipped")

    buckets: Dict[str, List[Finding]] = {"violation": [], "pass": [], "incomplete": []}
    for (kind, rule_id), g in grouped.items():
        criteria = g["criteria"]
        buckets[kind].append(Finding(
            id=rule_id,
            description=f"Alfa rule {rule_id}",
            impact=None if kind == "pass" else _OUTCOME_TO_IMPACT.get(g["outcome"]),
            help_url=g["uri"],
            wcag_criteria=criteria,
            tool_source=TOOL,
            nodes=g["nodes"],
            is_experimental=kind != "pass" and has_wcag22_criterion(criteria),
        ))

    result = EngineResult(
        tool_source=TOOL,
        violations=buckets["violation"],
        passes=buckets["pass"],
        incomplete=buckets["incomplete"],
        duration_ms=duration_ms,
    )
    result.message = (f"Alfa: {len(result.violations)} failed, {len(result.passes)} passed, "
                      f"{len(result.incomplete)} cantTell")
    return result
