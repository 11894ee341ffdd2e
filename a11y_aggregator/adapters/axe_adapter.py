from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo, IMPACT_PRIORITY
from a11y_aggregator.snippets import as_text, join_target, truncate_html
from a11y_aggregator.wcag import extract_wcag_criteria

logger = logging.getLogger(__name__)

TOOL = "axe-core"


def _impact(value: Any) -> Optional[str]:
    v = as_text(value).lower()
    return v if v in IMPACT_PRIORITY else None


def _parse_node(raw: Dict[str, Any]) -> NodeInfo:
    summary = raw.get("failureSummary")
    return NodeInfo(
        target=join_target(raw.get("target")),
        html=truncate_html(raw.get("html")),
        failure_summary=as_text(summary) if summary else None,
    )


def _parse_rule(raw: Dict[str, Any], keep_impact: bool) -> Finding:
    nodes = [_parse_node(n) for n in (raw.get("nodes") or []) if isinstance(n, dict)]
    return Finding(
        id=as_text(raw.get("id")),
        description=as_text(raw.get("description") or raw.get("help")),
        impact=_impact(raw.get("impact")) if keep_impact else None,
        help_url=as_text(raw.get("helpUrl")),
        wcag_criteria=extract_wcag_criteria(raw.get("tags") or []),
        tool_source=TOOL,
        nodes=nodes,
    )


def _parse_rules(entries: Any, keep_impact: bool) -> List[Finding]:
    findings: List[Finding] = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.debug(f"axe-core: skipping malformed rule entry {entry!r:.80}")
            continue
        findings.append(_parse_rule(entry, keep_impact))
    return findings


def adapt_axe(raw: Optional[Dict[str, Any]], *, duration_ms: int = 0) -> EngineResult:
    """
    Convert an axe-core results object (AxeBuilder.analyze() / axe.run())
    into findings. One finding per rule; node_count follows the node list.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="axe-core produced no output")
    if not isinstance(raw, dict):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message=f"Unexpected axe-core payload: {type(raw).__name__}")
    if raw.get("error"):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message=f"axe-core failed: {raw['error']}")

    result = EngineResult(
        tool_source=TOOL,
        violations=_parse_rules(raw.get("violations"), keep_impact=True),
        passes=_parse_rules(raw.get("passes"), keep_impact=False),
        incomplete=_parse_rules(raw.get("incomplete"), keep_impact=True),
        duration_ms=duration_ms,
    )
    result.message = (f"axe-core: {len(result.violations)} violations, {len(result.passes)} passes, "
                      f"{len(result.incomplete)} incomplete")
    return result
