from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.snippets import as_text, truncate_html
from a11y_aggregator.wcag import extract_wcag_criteria

logger = logging.getLogger(__name__)

TOOL = "pa11y"
HELP_URL = "https://squizlabs.github.io/HTML_CodeSniffer/Standards/WCAG2/"

_TYPE_TO_IMPACT = {
    "error": "serious",
    "warning": "moderate",
    "notice": "minor",
}


def _issue_to_finding(issue: Dict[str, Any]) -> Finding:
    code = as_text(issue.get("code"))
    issue_type = as_text(issue.get("type")).lower()
    # pa11y reports one issue per element; there is no failure summary
    node = NodeInfo(
        target=as_text(issue.get("selector")).strip(),
        html=truncate_html(issue.get("context")),
    )
    return Finding(
        id=code,
        description=as_text(issue.get("message")),
        impact=_TYPE_TO_IMPACT.get(issue_type),
        help_url=HELP_URL,
        wcag_criteria=extract_wcag_criteria([code]),
        tool_source=TOOL,
        nodes=[node],
    )


def adapt_pa11y(raw: Any, *, duration_ms: int = 0, include_notices: bool = True) -> EngineResult:
    """
    Convert pa11y results ({"issues": [...]} or a bare issue list).

    error -> violation, warning -> incomplete, notice -> incomplete (when
    include_notices). pa11y never reports passes.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="pa11y produced no output")
    if isinstance(raw, dict):
        issues = raw.get("issues")
    elif isinstance(raw, list):
        issues = raw
    else:
        issues = None
    if issues is None:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message=f"Unexpected pa11y payload: {type(raw).__name__}")

    violations: List[Finding] = []
    incomplete: List[Finding] = []
    for issue in issues:
        if not isinstance(issue, dict):
            continue
        issue_type = as_text(issue.get("type")).lower()
        if issue_type == "error":
            violations.append(_issue_to_finding(issue))
        elif issue_type == "warning" or (issue_type == "notice" and include_notices):
            incomplete.append(_issue_to_finding(issue))
        else:
            logger.debug(f"pa11y: ignoring issue type {issue_type!r} ({issue.get('code')})")

    return EngineResult(
        tool_source=TOOL,
        violations=violations,
        incomplete=incomplete,
        duration_ms=duration_ms,
        message=f"pa11y: {len(violations)} errors, {len(incomplete)} warnings/notices",
    )
