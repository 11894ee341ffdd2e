from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo, IMPACT_PRIORITY, most_severe
from a11y_aggregator.snippets import as_text, truncate_html
from a11y_aggregator.wcag import extract_wcag_criteria

logger = logging.getLogger(__name__)

TOOL = "custom"


def adapt_custom(raw: Any, *, duration_ms: int = 0, enabled_rules: Optional[List[str]] = None) -> EngineResult:
    """
    In-house rule hits ({"violations": [...]} or a bare list of
    {ruleId, description, impact, wcagCriteria, helpUrl, selector, html})
    grouped by rule id. Custom rules only ever report violations.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="no custom rule hits")
    hits = raw.get("violations") if isinstance(raw, dict) else raw
    if not isinstance(hits, list):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="custom rule payload has no violations list")

    grouped: Dict[str, Finding] = {}
    for hit in hits:
        if not isinstance(hit, dict):
            continue
        rule_id = as_text(hit.get("ruleId") or hit.get("id"))
        if not rule_id:
            continue
        if enabled_rules is not None and rule_id not in enabled_rules:
            logger.debug(f"custom: rule {rule_id} disabled, hit dropped")
            continue
        node = NodeInfo(target=as_text(hit.get("selector")).strip(), html=truncate_html(hit.get("html")))
        impact = as_text(hit.get("impact")).lower()
        impact = impact if impact in IMPACT_PRIORITY else None
        criteria = extract_wcag_criteria(hit.get("wcagCriteria") or [])

        f = grouped.get(rule_id)
        if f is None:
            grouped[rule_id] = Finding(
                id=rule_id,
                description=as_text(hit.get("description")),
                impact=impact,
                help_url=as_text(hit.get("helpUrl")),
                wcag_criteria=criteria,
                tool_source=TOOL,
                nodes=[node],
            )
            continue
        f.nodes.append(node)
        f.node_count = len(f.nodes)
        f.impact = most_severe(f.impact, impact)
        f.wcag_criteria = extract_wcag_criteria(f.wcag_criteria + criteria)

    violations = list(grouped.values())
    return EngineResult(
        tool_source=TOOL,
        violations=violations,
        duration_ms=duration_ms,
        message=f"custom rules: {len(violations)} rules with hits",
    )
