from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging
import re

from a11y_aggregator.ir import EngineResult, Finding, LighthouseScores, NodeInfo
from a11y_aggregator.snippets import as_text, truncate_html

logger = logging.getLogger(__name__)

TOOL = "lighthouse"

# Lighthouse runs axe-core internally; audit ids follow axe rule ids.
AUDIT_TO_WCAG: Dict[str, List[str]] = {
    "color-contrast": ["1.4.3"],
    "image-alt": ["1.1.1"],
    "input-image-alt": ["1.1.1"],
    "object-alt": ["1.1.1"],
    "svg-img-alt": ["1.1.1"],
    "role-img-alt": ["1.1.1"],
    "link-name": ["2.4.4", "4.1.2"],
    "button-name": ["4.1.2"],
    "input-button-name": ["4.1.2"],
    "select-name": ["4.1.2"],
    "label": ["1.3.1", "4.1.2"],
    "html-has-lang": ["3.1.1"],
    "html-lang-valid": ["3.1.1"],
    "html-xml-lang-mismatch": ["3.1.1"],
    "meta-viewport": ["1.4.4"],
    "meta-refresh": ["2.2.1"],
    "document-title": ["2.4.2"],
    "bypass": ["2.4.1"],
    "heading-order": ["1.3.1"],
    "list": ["1.3.1"],
    "listitem": ["1.3.1"],
    "definition-list": ["1.3.1"],
    "dlitem": ["1.3.1"],
    "aria-allowed-attr": ["4.1.2"],
    "aria-hidden-body": ["4.1.2"],
    "aria-hidden-focus": ["4.1.2"],
    "aria-required-attr": ["4.1.2"],
    "aria-required-children": ["1.3.1"],
    "aria-required-parent": ["1.3.1"],
    "aria-roles": ["4.1.2"],
    "aria-valid-attr-value": ["4.1.2"],
    "aria-valid-attr": ["4.1.2"],
    "aria-command-name": ["4.1.2"],
    "aria-input-field-name": ["4.1.2"],
    "aria-toggle-field-name": ["4.1.2"],
    "duplicate-id-aria": ["4.1.1"],
    "form-field-multiple-labels": ["3.3.2"],
    "frame-title": ["4.1.2"],
    "tabindex": ["2.4.3"],
    "td-headers-attr": ["1.3.1"],
    "th-has-data-cells": ["1.3.1"],
    "valid-lang": ["3.1.2"],
    "video-caption": ["1.2.2"],
    "link-in-text-block": ["1.4.1"],
    "target-size": ["2.5.8"],
}

_URL_IN_TEXT = re.compile(r"https?://[^\s)\]]+")


def _impact_from_score(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    if score < 0.5:
        return "critical"
    if score < 0.7:
        return "serious"
    if score < 0.9:
        return "moderate"
    return "minor"


def _classification_reason(score_display_mode: Optional[str]) -> str:
    if score_display_mode == "manual":
        return "manual-review"
    if score_display_mode == "informative":
        return "partial-support"
    return "insufficient-data"


def _category_score(categories: Dict[str, Any], key: str) -> Optional[int]:
    cat = categories.get(key)
    if not isinstance(cat, dict) or cat.get("score") is None:
        return None
    return round(float(cat["score"]) * 100)


def extract_scores(lhr: Dict[str, Any]) -> LighthouseScores:
    categories = lhr.get("categories") or {}
    return LighthouseScores(
        performance=_category_score(categories, "performance") or 0,
        accessibility=_category_score(categories, "accessibility") or 0,
        best_practices=_category_score(categories, "best-practices") or 0,
        seo=_category_score(categories, "seo") or 0,
        pwa=_category_score(categories, "pwa"),
    )


def _extract_nodes(details: Any) -> List[NodeInfo]:
    if not isinstance(details, dict):
        return []
    items = details.get("items")
    if not isinstance(items, list):
        return []

    nodes: List[NodeInfo] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if details.get("type") == "table":
            node = item.get("node")
        elif details.get("type") == "list":
            node = item
        else:
            node = None
        if isinstance(node, dict) and node.get("selector"):
            nodes.append(NodeInfo(
                target=as_text(node.get("selector")).strip(),
                html=truncate_html(node.get("snippet")),
            ))
    return nodes


def _help_url(audit: Dict[str, Any], audit_id: str) -> str:
    m = _URL_IN_TEXT.search(as_text(audit.get("description")))
    if m:
        return m.group(0)
    return f"https://web.dev/{audit_id}/"


def _audit_to_finding(audit: Dict[str, Any], audit_id: str) -> Finding:
    nodes = _extract_nodes(audit.get("details"))
    score = audit.get("score")
    details = audit.get("details") if isinstance(audit.get("details"), dict) else {}
    item_count = len(details.get("items") or []) if isinstance(details.get("items"), list) else 0
    return Finding(
        id=audit_id,
        description=as_text(audit.get("title")),
        impact=_impact_from_score(score),
        help_url=_help_url(audit, audit_id),
        wcag_criteria=list(AUDIT_TO_WCAG.get(audit_id, [])),
        tool_source=TOOL,
        # page-level audits without element detail keep the raw item count
        nodes=nodes or None,
        node_count=item_count,
        raw_score=score,
    )


def adapt_lighthouse(raw: Optional[Dict[str, Any]], *, duration_ms: int = 0) -> EngineResult:
    """
    Convert a Lighthouse result (the "lhr" object, or a runner result
    wrapping it) into category scores plus accessibility audit findings.

    score < 0.5 -> violation, score >= 0.5 -> pass, score None -> incomplete
    with a classification reason. notApplicable audits are skipped.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="Lighthouse produced no output",
                            lighthouse_scores=LighthouseScores())
    lhr = raw.get("lhr", raw) if isinstance(raw, dict) else None
    if not isinstance(lhr, dict) or not isinstance(lhr.get("audits"), dict):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="Lighthouse payload has no audits",
                            lighthouse_scores=LighthouseScores())

    scores = extract_scores(lhr)
    audits = lhr["audits"]
    a11y = (lhr.get("categories") or {}).get("accessibility") or {}

    violations: List[Finding] = []
    passes: List[Finding] = []
    incomplete: List[Finding] = []
    skipped: List[str] = []

    for ref in a11y.get("auditRefs") or []:
        audit_id = ref.get("id") if isinstance(ref, dict) else None
        audit = audits.get(audit_id) if audit_id else None
        if not isinstance(audit, dict):
            continue
        mode = audit.get("scoreDisplayMode")
        if mode == "notApplicable":
            skipped.append(audit_id)
            continue

        finding = _audit_to_finding(audit, audit_id)
        score = audit.get("score")
        if score is None:
            finding.classification_reason = _classification_reason(mode)
            incomplete.append(finding)
        elif score < 0.5:
            violations.append(finding)
        else:
            passes.append(finding)

    if skipped:
        logger.debug(f"Lighthouse: {len(skipped)} notApplicable audits skipped: {', '.join(skipped)}")

    return EngineResult(
        tool_source=TOOL,
        violations=violations,
        passes=passes,
        incomplete=incomplete,
        duration_ms=duration_ms,
        message=(f"Lighthouse: performance={scores.performance} accessibility={scores.accessibility} "
                 f"best_practices={scores.best_practices} seo={scores.seo}"),
        lighthouse_scores=scores,
    )
