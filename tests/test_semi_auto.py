import pytest

from a11y_aggregator.ir import Finding, NodeInfo
from a11y_aggregator.semi_auto import GENERIC_QUESTION, SemiAutoCheckService, SemiAutoResult, _question


def _findings():
    image_alt = Finding(
        id="image-alt", description="Images must have alternate text", tool_source="axe-core",
        wcag_criteria=["1.1.1"], impact="critical",
        nodes=[NodeInfo(target="img.logo", html='<img class="logo" src="a.png" alt="logo">'),
               NodeInfo(target="img.hero", html='<img class="hero" src="b.png">')],
    )
    link_name = Finding(
        id="link-name", description="Links must have discernible text", tool_source="axe-core",
        wcag_criteria=["2.4.4", "4.1.2"], impact="serious",
        nodes=[NodeInfo(target="a.more", html="<a class='more' href='/x'>click here</a>")],
    )
    contrast = Finding(
        id="color-contrast", description="contrast", tool_source="axe-core",
        wcag_criteria=["1.4.3"], nodes=[NodeInfo(target="p")],
    )
    return [image_alt, contrast], [link_name]


def test_extract_items():
    violations, incomplete = _findings()
    service = SemiAutoCheckService()
    items = service.extract_items(violations, incomplete)
    assert [i.rule_id for i in items] == ["image-alt", "image-alt", "link-name"]
    assert '"logo"' in items[0].question
    assert '"(none)"' in items[1].question
    assert items[0].element_description == "image: logo"
    assert items[2].element_description == "link: click here"
    assert all(i.id.startswith("semi-auto-") for i in items)
    assert len({i.id for i in items}) == 3


def test_item_ids_are_stable():
    violations, incomplete = _findings()
    first = [i.id for i in SemiAutoCheckService().extract_items(violations, incomplete)]
    second = [i.id for i in SemiAutoCheckService().extract_items(violations, incomplete)]
    assert first == second


def test_category_filter():
    violations, incomplete = _findings()
    items = SemiAutoCheckService(categories=["link"]).extract_items(violations, incomplete)
    assert [i.rule_id for i in items] == ["link-name"]


def test_record_answer_and_progress():
    violations, incomplete = _findings()
    service = SemiAutoCheckService()
    items = service.extract_items(violations, incomplete)

    assert service.record_answer(items[0].id, "inappropriate")
    assert not service.record_answer("semi-auto-missing", "appropriate")
    with pytest.raises(ValueError):
        service.record_answer(items[1].id, "maybe")

    progress = service.get_progress()
    assert (progress.completed, progress.total) == (1, 3)

    results = service.get_results()
    assert len(results) == 1
    assert results[0].answer == "inappropriate"
    assert results[0].wcag_criteria == ["1.1.1"]
    assert results[0].answered_at


def test_result_from_dict_accepts_both_spellings():
    r = SemiAutoResult.from_dict({"itemId": "semi-auto-1", "ruleId": "link-name",
                                  "wcagCriteria": ["2.4.4"], "answer": "appropriate"})
    assert (r.item_id, r.rule_id, r.wcag_criteria) == ("semi-auto-1", "link-name", ["2.4.4"])
    with pytest.raises(ValueError):
        SemiAutoResult.from_dict({"item_id": "x", "answer": "yes"})


def test_unmapped_rule_gets_generic_question():
    assert _question("duplicate-id", "<div id='a'>") == GENERIC_QUESTION


def test_same_rule_from_two_engines_asks_once():
    axe = Finding(id="image-alt", description="Images must have alternate text", tool_source="axe-core",
                  wcag_criteria=["1.1.1"], nodes=[NodeInfo(target="#main > img.logo", html='<img alt="logo">')])
    lighthouse = Finding(id="image-alt", description="Image elements have [alt] attributes", tool_source="lighthouse",
                         wcag_criteria=["1.1.1"], nodes=[NodeInfo(target="#main>img.logo", html='<img alt="logo">'),
                                                         NodeInfo(target="img.hero", html="<img>")])
    items = SemiAutoCheckService().extract_items([axe, lighthouse], [])
    assert [i.selector for i in items] == ["#main > img.logo", "img.hero"]
