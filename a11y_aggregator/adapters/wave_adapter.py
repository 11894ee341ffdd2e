from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.snippets import as_text

logger = logging.getLogger(__name__)

TOOL = "wave"
HELP_URL = "https://wave.webaim.org/doc/rule/{rule_id}"

WAVE_RULE_TO_WCAG: Dict[str, List[str]] = {
    # errors
    "alt_missing": ["1.1.1"],
    "alt_link_missing": ["1.1.1", "2.4.4"],
    "alt_spacer_missing": ["1.1.1"],
    "alt_input_missing": ["1.1.1", "1.3.1"],
    "alt_area_missing": ["1.1.1", "2.4.4"],
    "alt_map_missing": ["1.1.1"],
    "longdesc_invalid": ["1.1.1"],
    "label_missing": ["1.3.1", "4.1.2"],
    "label_empty": ["1.3.1", "4.1.2"],
    "label_multiple": ["1.3.1"],
    "title_invalid": ["2.4.2"],
    "language_missing": ["3.1.1"],
    "meta_refresh": ["2.2.1", "2.2.4"],
    "heading_empty": ["1.3.1", "2.4.6"],
    "button_empty": ["1.1.1", "4.1.2"],
    "link_empty": ["2.4.4", "4.1.2"],
    "link_skip_broken": ["2.4.1"],
    "th_empty": ["1.3.1"],
    "blink": ["2.2.2"],
    "marquee": ["2.2.2"],
    # contrast
    "contrast": ["1.4.3"],
    # alerts
    "alt_suspicious": ["1.1.1"],
    "alt_redundant": ["1.1.1"],
    "alt_duplicate": ["1.1.1"],
    "alt_long": ["1.1.1"],
    "longdesc": ["1.1.1"],
    "label_orphaned": ["1.3.1"],
    "label_title": ["1.3.1"],
    "heading_skipped": ["1.3.1"],
    "heading_possible": ["1.3.1"],
    "region_missing": ["1.3.1"],
    "table_layout": ["1.3.1"],
    "table_caption_possible": ["1.3.1"],
    "link_suspicious": ["2.4.4"],
    "link_redundant": ["2.4.4"],
    "noscript": ["4.1.1"],
    "title_redundant": ["2.4.2"],
    "audio_video": ["1.2.1", "1.2.2", "1.2.3"],
    "youtube_video": ["1.2.1", "1.2.2"],
    "flash": ["1.1.1"],
    "applet": ["1.1.1"],
    "object": ["1.1.1"],
    "plugin": ["1.1.1"],
    "html5_video_audio": ["1.2.1", "1.2.2"],
    "pdf": ["1.1.1"],
    "underline": ["1.4.1"],
    "text_small": ["1.4.4"],
    "text_justified": ["1.4.8"],
    # aria
    "aria_reference_broken": ["4.1.2"],
    "aria_menu_broken": ["4.1.2"],
    "aria_hidden": ["4.1.2"],
}

_CATEGORY_TO_KIND = {
    "error": "violation",
    "contrast": "violation",
    "alert": "incomplete",
    "feature": "pass",
    "structure": "pass",
    "aria": "pass",
}
_CATEGORY_TO_IMPACT = {
    "error": "serious",
    "contrast": "serious",
    "alert": "moderate",
}


def _item_to_finding(item_id: str, item: Dict[str, Any], category: str, kind: str) -> Finding:
    xpaths = [as_text(x) for x in (item.get("xpaths") or []) if x]
    selectors = [as_text(s) for s in (item.get("selectors") or [])]
    nodes = [
        NodeInfo(target=selectors[i] if i < len(selectors) and selectors[i] else xp, xpath=xp)
        for i, xp in enumerate(xpaths)
    ]
    finding = Finding(
        id=item_id,
        description=as_text(item.get("description")),
        impact=None if kind == "pass" else _CATEGORY_TO_IMPACT.get(category, "minor"),
        help_url=HELP_URL.format(rule_id=item_id),
        wcag_criteria=list(WAVE_RULE_TO_WCAG.get(item_id, [])),
        tool_source=TOOL,
        nodes=nodes or None,
    )
    if not nodes:
        # report types 1/2 give only a count per item
        try:
            finding.node_count = int(item.get("count") or 0)
        except (TypeError, ValueError):
            finding.node_count = 0
    return finding


def adapt_wave(raw: Any, *, duration_ms: int = 0) -> EngineResult:
    """
    Convert a WAVE API response (reporttype 3 or 4 carries xpaths).

    error/contrast -> violation, alert -> incomplete, feature/structure/aria
    -> pass. A response whose status.success is false counts as failed.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="WAVE produced no output")
    if not isinstance(raw, dict):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message=f"Unexpected WAVE payload: {type(raw).__name__}")
    status = raw.get("status") or {}
    if status and not status.get("success", True):
        code = status.get("httpstatuscode")
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message=f"WAVE API reported failure (http {code})")
    categories = raw.get("categories")
    if not isinstance(categories, dict):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="WAVE payload has no categories")

    buckets: Dict[str, List[Finding]] = {"violation": [], "pass": [], "incomplete": []}
    for category, body in categories.items():
        items = body.get("items") if isinstance(body, dict) else None
        if not items:
            continue
        kind = _CATEGORY_TO_KIND.get(category, "incomplete")
        for item_id, item in items.items():
            if isinstance(item, dict):
                buckets[kind].append(_item_to_finding(as_text(item.get("id") or item_id), item, category, kind))

    credits = (raw.get("statistics") or {}).get("creditsremaining")
    if credits is not None:
        logger.info(f"WAVE: {credits} API credits remaining")

    result = EngineResult(
        tool_source=TOOL,
        violations=buckets["violation"],
        passes=buckets["pass"],
        incomplete=buckets["incomplete"],
        duration_ms=duration_ms,
    )
    result.message = (f"WAVE: {len(result.violations)} errors, {len(result.incomplete)} alerts, "
                      f"{len(result.passes)} features")
    return result
