import json

from a11y_aggregator.adapters import adapt
from a11y_aggregator.ir import EngineResult, Finding, NodeInfo
from a11y_aggregator.merge import (
    MergeService,
    RuleAliasTable,
    deduplicate_findings,
    engine_summary,
    find_multi_engine_violations,
    load_rule_aliases,
)
from a11y_aggregator.snippets import text_similarity


def _violation(tool, rule_id, criteria, impact="serious", targets=("a.icon",), description=None):
    return Finding(
        id=rule_id,
        description=description or f"{tool} {rule_id}",
        tool_source=tool,
        wcag_criteria=list(criteria),
        impact=impact,
        nodes=[NodeInfo(target=t) for t in targets],
    )


AXE_CONTRAST = ("axe-core", "color-contrast", ["1.4.3"])
PA11Y_CONTRAST = ("pa11y", "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail", ["1.4.3"])


def test_contrast_confirmed_by_two_engines():
    axe = _violation(*AXE_CONTRAST, targets=("a.icon", "p.note"))
    pa11y = _violation(*PA11Y_CONTRAST)
    for aliases in (None, load_rule_aliases()):
        multi = find_multi_engine_violations([axe, pa11y], aliases)
        assert len(multi) == 1
        m = multi[0]
        assert m.tool_sources == ["axe-core", "pa11y"]
        assert m.rule_id == "color-contrast"
        assert m.wcag_criteria == ["1.4.3"]
        assert m.node_count == 3


def test_multi_engine_independent_of_input_order():
    axe = _violation(*AXE_CONTRAST, impact="moderate")
    pa11y = _violation(*PA11Y_CONTRAST, impact="serious")
    m = find_multi_engine_violations([pa11y, axe])[0]
    assert m.tool_sources == ["axe-core", "pa11y"]
    assert m.rule_id == "color-contrast"
    assert m.impact == "serious"


def test_single_engine_is_not_multi():
    a = _violation("axe-core", "color-contrast", ["1.4.3"], targets=("a.one",))
    b = _violation("axe-core", "color-contrast-enhanced", ["1.4.3"], targets=("a.two",))
    assert find_multi_engine_violations([a, b]) == []


def test_findings_without_criteria_never_merge():
    a = _violation("axe-core", "region", [])
    b = _violation("pa11y", "region", [])
    assert find_multi_engine_violations([a, b]) == []
    assert len(deduplicate_findings([a, b])) == 2


def test_alias_table_joins_differing_criteria():
    axe = _violation("axe-core", "link-name", ["2.4.4", "4.1.2"])
    pa11y = _violation("pa11y", "WCAG2AA.Principle2.Guideline2_4.2_4_4.H77,H78,H79,H80,H81", ["2.4.4"])
    assert find_multi_engine_violations([axe, pa11y], RuleAliasTable()) == []
    multi = find_multi_engine_violations([axe, pa11y], load_rule_aliases())
    assert len(multi) == 1
    assert multi[0].wcag_criteria == ["2.4.4", "4.1.2"]


def test_dedupe_unions_nodes_by_selector():
    axe = _violation(*AXE_CONTRAST, targets=("#main > div.links > a.icon",), description="short")
    pa11y = _violation(*PA11Y_CONTRAST, targets=("#main>div.links>a.icon", "footer a"),
                       description="a much longer description of the problem")
    merged = deduplicate_findings([axe, pa11y])
    assert len(merged) == 1
    f = merged[0]
    assert f.id == "color-contrast"
    assert f.tool_sources == ["axe-core", "pa11y"]
    assert [n.target for n in f.nodes] == ["#main > div.links > a.icon", "footer a"]
    assert f.node_count == 2
    assert f.description == "a much longer description of the problem"


def test_dedupe_sums_counts_without_nodes():
    a = Finding(id="contrast", description="Very low contrast", tool_source="wave",
                wcag_criteria=["1.4.3"], node_count=3)
    b = Finding(id="color-contrast", description="contrast", tool_source="lighthouse",
                wcag_criteria=["1.4.3"], node_count=2)
    # no selectors to compare, so only the alias table can tie them together
    assert len(deduplicate_findings([a, b])) == 2
    merged = deduplicate_findings([a, b], load_rule_aliases())
    assert len(merged) == 1
    assert merged[0].nodes is None
    assert merged[0].node_count == 5
    assert merged[0].tool_sources == ["lighthouse", "wave"]


def test_unlisted_rule_does_not_join_named_bucket():
    axe_list = _violation("axe-core", "list", ["1.3.1"], targets=("ul.nav",))
    heading = _violation("lighthouse", "heading-order", ["1.3.1"], targets=("h4",))
    assert find_multi_engine_violations([axe_list, heading], load_rule_aliases()) == []
    merged = deduplicate_findings([axe_list, heading], load_rule_aliases())
    assert [f.id for f in merged] == ["list", "heading-order"]


def test_unlisted_rules_with_equal_criteria_still_confirm():
    axe = _violation("axe-core", "td-headers-attr", ["1.3.1"], targets=("td.total",))
    pa11y = _violation("pa11y", "WCAG2AA.Principle1.Guideline1_3.1_3_1.H43.HeadersRequired",
                       ["1.3.1"], targets=("td.total",))
    multi = find_multi_engine_violations([axe, pa11y], load_rule_aliases())
    assert [m.tool_sources for m in multi] == [["axe-core", "pa11y"]]


def test_dedupe_keeps_distinct_rules_of_one_engine():
    raw = {"violations": [
        {"id": "aria-allowed-attr", "impact": "critical", "tags": ["wcag2a", "wcag412"],
         "help": "Elements must only use supported ARIA attributes",
         "nodes": [{"target": ["#a"], "html": '<div id="a" aria-checked="true">'}]},
        {"id": "aria-valid-attr", "impact": "critical", "tags": ["wcag2a", "wcag412"],
         "help": "ARIA attributes must conform to valid names",
         "nodes": [{"target": ["#b"], "html": '<div id="b" aria-lable="x">'}]},
    ]}
    result = adapt("axe-core", raw)
    merged = deduplicate_findings(result.violations, load_rule_aliases())
    assert [f.id for f in merged] == ["aria-allowed-attr", "aria-valid-attr"]
    assert all(f.tool_sources is None for f in merged)


def test_dedupe_same_rule_on_other_element_stays_separate():
    axe = _violation(*AXE_CONTRAST, targets=("nav a.home",))
    pa11y = _violation(*PA11Y_CONTRAST, targets=("footer p.legal",))
    merged = deduplicate_findings([axe, pa11y], load_rule_aliases())
    assert [f.tool_source for f in merged] == ["axe-core", "pa11y"]
    # still one defect class confirmed by two engines
    assert len(find_multi_engine_violations([axe, pa11y], load_rule_aliases())) == 1


def test_dedupe_matches_near_identical_descriptions_without_selector():
    a = _violation("axe-core", "scrollable-region-focusable", ["2.1.1"], targets=(),
                   description="Scrollable region must have keyboard access")
    b = _violation("pa11y", "WCAG2AA.Principle2.Guideline2_1.2_1_1.G90", ["2.1.1"], targets=("div.scroll",),
                   description="Scrollable region must have keyboard access.")
    merged = deduplicate_findings([a, b])
    assert len(merged) == 1
    assert merged[0].tool_sources == ["axe-core", "pa11y"]


def test_text_similarity():
    assert text_similarity("", "") == 1.0
    assert text_similarity("a.icon", "") == 0.0
    assert text_similarity("Read More", "read more") == 1.0
    assert text_similarity("#main > a.icon", "#main > a.icons") >= 0.8
    assert text_similarity("ul.nav", "h4") < 0.5


def test_engine_summary_order_and_zero_rows():
    results = [
        EngineResult(tool_source="wave", status="empty"),
        EngineResult(tool_source="pa11y", violations=[_violation(*PA11Y_CONTRAST)]),
        EngineResult(tool_source="axe-core", violations=[_violation(*AXE_CONTRAST)],
                     passes=[_violation("axe-core", "document-title", ["2.4.2"], impact=None)]),
    ]
    summary = engine_summary(results)
    assert list(summary) == ["axe-core", "pa11y", "wave"]
    assert summary["axe-core"] == {"violations": 1, "passes": 1}
    assert summary["wave"] == {"violations": 0, "passes": 0}


def test_merge_service_is_pure_and_idempotent(axe_raw, pa11y_raw):
    results = [adapt("pa11y", pa11y_raw), adapt("axe-core", axe_raw)]
    service = MergeService(load_rule_aliases())
    first = service.merge(results)
    second = service.merge(results)
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)

    assert results[1].violations[0].tool_sources is None
    assert len(first.multi_engine_violations) == 1
    assert first.multi_engine_violations[0].tool_sources == ["axe-core", "pa11y"]
    assert len(first.violations) == 1
    assert first.violations[0].tool_sources == ["axe-core", "pa11y"]


def test_merge_accepts_mapping(axe_raw):
    merged = MergeService().merge({"axe-core": adapt("axe-core", axe_raw)})
    assert list(merged.engine_summary) == ["axe-core"]
    assert merged.multi_engine_violations == []
