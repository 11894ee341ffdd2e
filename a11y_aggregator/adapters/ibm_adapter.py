from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging

from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.snippets import as_text, truncate_html
from a11y_aggregator.wcag import has_wcag22_criterion

logger = logging.getLogger(__name__)

TOOL = "ibm"
HELP_URL = "https://www.ibm.com/able/requirements/checker/rules/{rule_id}"

RULE_TO_WCAG: Dict[str, List[str]] = {
    # WCAG 2.0 / 2.1
    "WCAG20_Img_HasAlt": ["1.1.1"],
    "img_alt_valid": ["1.1.1"],
    "WCAG20_Img_LinkTextNotRedundant": ["1.1.1"],
    "WCAG20_A_HasText": ["2.4.4", "4.1.2"],
    "WCAG20_A_TargetAndText": ["2.4.4"],
    "WCAG20_Label_RefValid": ["1.3.1", "4.1.2"],
    "WCAG20_Input_ExplicitLabel": ["1.3.1", "4.1.2"],
    "WCAG20_Input_ExplicitLabelImage": ["1.3.1", "4.1.2"],
    "WCAG21_Label_Accessible": ["1.3.5", "2.5.3"],
    "WCAG20_Input_RadioChkInFieldSet": ["1.3.1"],
    "WCAG20_Fieldset_HasLegend": ["1.3.1"],
    "WCAG20_Table_Structure": ["1.3.1"],
    "WCAG20_Table_CapSummRedundant": ["1.3.1"],
    "WCAG20_Html_HasLang": ["3.1.1"],
    "WCAG20_Doc_HasTitle": ["2.4.2"],
    "WCAG20_Frame_HasTitle": ["2.4.1", "4.1.2"],
    "WCAG20_Body_FirstAContainsSkipText": ["2.4.1"],
    "WCAG20_Elem_UniqueAccessKey": ["2.4.1"],
    "WCAG20_Script_FocusBlurs": ["2.1.2"],
    "WCAG20_Select_HasOptGroup": ["1.3.1"],
    "WCAG20_Style_ColorSemantics1": ["1.4.1"],
    "WCAG20_Style_BeforeAfter": ["1.3.1"],
    "WCAG20_Text_ColorContrast": ["1.4.3"],
    "IBMA_Color_Contrast_WCAG2AA": ["1.4.3"],
    "text_contrast_sufficient": ["1.4.3"],
    "WCAG20_Text_LetterSpacing": ["1.4.8"],
    "WCAG20_Elem_Lang_Valid": ["3.1.2"],
    "WCAG20_Blink_AlwaysTrigger": ["2.2.2"],
    "WCAG20_Marquee_Trigger": ["2.2.2"],
    "WCAG20_Meta_RedirectZero": ["2.2.1"],
    "WCAG20_Object_HasText": ["1.1.1"],
    "WCAG20_Applet_HasAlt": ["1.1.1"],
    "WCAG20_Area_HasAlt": ["1.1.1"],
    "WCAG20_Embed_HasNoEmbed": ["1.1.1"],
    "RPT_Media_AltBrief": ["1.1.1"],
    "RPT_Media_ImgColorUsage": ["1.4.1"],
    # WCAG 2.2
    "focus-not-obscured": ["2.4.11"],
    "focus_not_obscured_minimum": ["2.4.11"],
    "focus_not_obscured_enhanced": ["2.4.12"],
    "dragging_movements": ["2.5.7"],
    "target-size": ["2.5.8"],
    "target_size_minimum": ["2.5.8"],
    "redundant_entry": ["3.3.7"],
    "accessible_authentication": ["3.3.8"],
    "accessible_authentication_minimum": ["3.3.8"],
    # ARIA
    "aria_role_valid": ["4.1.2"],
    "aria_hidden_focus": ["4.1.2"],
    "aria_activedescendant_valid": ["4.1.2"],
    "aria_attribute_valid": ["4.1.2"],
    "aria_content_in_landmark": ["1.3.1"],
    "aria_child_valid": ["4.1.2"],
    "aria_descendant_valid": ["4.1.2"],
    "aria_eventhandler_role_valid": ["4.1.2"],
    "aria_graphic_labelled": ["1.1.1"],
    "aria_id_unique": ["4.1.1"],
    "aria_landmark_name_unique": ["2.4.1"],
    "aria_main_label_visible": ["2.4.1"],
    "aria_parent_required": ["4.1.2"],
    "aria_region_label_unique": ["2.4.1"],
    "aria_semantics_role": ["4.1.2"],
    "aria_widget_labelled": ["4.1.2"],
}

_LEVEL_TO_IMPACT = {
    "VIOLATION": "serious",
    "POTENTIAL_VIOLATION": "moderate",
    "RECOMMENDATION": "moderate",
    "POTENTIAL_RECOMMENDATION": "minor",
    "MANUAL": "minor",
}


def classify(value: Any) -> str:
    """
    IBM reports value = [level, outcome], e.g. ["VIOLATION", "FAIL"],
    ["VIOLATION", "PASS"], ["RECOMMENDATION", "POTENTIAL"].
    """
    level, outcome = _split_value(value)
    if outcome == "PASS" or level == "PASS":
        return "pass"
    if level == "VIOLATION" and outcome in ("FAIL", ""):
        return "violation"
    return "incomplete"


def _split_value(value: Any) -> Tuple[str, str]:
    if not isinstance(value, (list, tuple)):
        return "", ""
    level = as_text(value[0]).upper() if len(value) > 0 else ""
    outcome = as_text(value[1]).upper() if len(value) > 1 else ""
    return level, outcome


def _impact(value: Any) -> Optional[str]:
    level, outcome = _split_value(value)
    if level == "VIOLATION" and outcome != "FAIL":
        return "moderate"
    return _LEVEL_TO_IMPACT.get(level, "minor")


def _result_node(result: Dict[str, Any]) -> NodeInfo:
    path = result.get("path") or {}
    dom = as_text(path.get("dom") if isinstance(path, dict) else path)
    # IBM only reports DOM paths, which are XPath-shaped
    return NodeInfo(target=dom, xpath=dom or None, html=truncate_html(result.get("snippet")))


def _group(results: List[Dict[str, Any]], kind: str) -> List[Finding]:
    grouped: Dict[str, Tuple[Dict[str, Any], List[NodeInfo]]] = {}
    for r in results:
        rule_id = as_text(r.get("ruleId"))
        if rule_id not in grouped:
            grouped[rule_id] = (r, [])
        grouped[rule_id][1].append(_result_node(r))

    findings: List[Finding] = []
    for rule_id, (first, nodes) in grouped.items():
        criteria = list(RULE_TO_WCAG.get(rule_id, []))
        findings.append(Finding(
            id=rule_id,
            description=as_text(first.get("message")),
            impact=None if kind == "pass" else _impact(first.get("value")),
            help_url=HELP_URL.format(rule_id=rule_id),
            wcag_criteria=criteria,
            tool_source=TOOL,
            nodes=nodes,
            is_experimental=kind != "pass" and has_wcag22_criterion(criteria),
        ))
    return findings


def adapt_ibm(raw: Any, *, duration_ms: int = 0) -> EngineResult:
    """
    Convert an IBM Equal Access Checker compliance report
    ({"report": {"results": [...]}} or the bare report) into findings,
    one per ruleId and outcome.
    """
    if not raw:
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="empty",
                            message="IBM Equal Access produced no output")
    report = raw.get("report", raw) if isinstance(raw, dict) else None
    results = report.get("results") if isinstance(report, dict) else None
    if not isinstance(results, list):
        return EngineResult(tool_source=TOOL, duration_ms=duration_ms, status="failed",
                            message="IBM payload has no results list")

    buckets: Dict[str, List[Dict[str, Any]]] = {"violation": [], "pass": [], "incomplete": []}
    for r in results:
        if not isinstance(r, dict) or not r.get("ruleId"):
            continue
        buckets[classify(r.get("value"))].append(r)

    unmapped = sorted({r["ruleId"] for rs in buckets.values() for r in rs if r["ruleId"] not in RULE_TO_WCAG})
    if unmapped:
        logger.debug(f"IBM: {len(unmapped)} rules without a WCAG mapping: {', '.join(unmapped)}")

    result = EngineResult(
        tool_source=TOOL,
        violations=_group(buckets["violation"], "violation"),
        passes=_group(buckets["pass"], "pass"),
        incomplete=_group(buckets["incomplete"], "incomplete"),
        duration_ms=duration_ms,
    )
    result.message = (f"IBM: {len(result.violations)} violations, {len(result.passes)} passes, "
                      f"{len(result.incomplete)} needs review")
    return result
