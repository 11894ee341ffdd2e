from types import SimpleNamespace

from a11y_aggregator.coverage import (
    CoverageBuilder,
    WcagCatalog,
    format_percentage,
    load_wcag_catalog,
    unmapped_criteria,
)
from a11y_aggregator.ir import Finding, LevelCoverage, coverage_percentage
from a11y_aggregator.semi_auto import SemiAutoResult

SMALL_CATALOG = WcagCatalog.from_entries([
    ("1.1.1", "A", "Non-text Content"),
    ("1.3.1", "A", "Info and Relationships"),
    ("2.4.2", "A", "Page Titled"),
    ("1.4.3", "AA", "Contrast (Minimum)"),
])


def _f(tool, rule_id, criteria):
    return Finding(id=rule_id, description=rule_id, tool_source=tool, wcag_criteria=list(criteria))


def test_percentages():
    assert coverage_percentage(2, 3) == 66.7
    assert coverage_percentage(1, 16) == 6.3
    assert coverage_percentage(0, 0) == 0.0
    assert format_percentage(LevelCoverage(2, 3).percentage) == "66.7"
    assert format_percentage(LevelCoverage(0, 0).percentage) == "0.0"


def test_fail_beats_pass_and_tools_union():
    matrix = CoverageBuilder(SMALL_CATALOG).build(
        violations=[_f("pa11y", "G18", ["1.4.3"])],
        passes=[_f("axe-core", "color-contrast", ["1.4.3"])],
        incomplete=[],
    )
    status = matrix.status_for("1.4.3")
    assert status.result == "fail"
    assert status.method == "auto"
    assert status.tools == ["axe-core", "pa11y"]
    assert matrix.level_aa.covered == 0


def test_needs_review_beats_pass():
    matrix = CoverageBuilder(SMALL_CATALOG).build(
        violations=[],
        passes=[_f("axe-core", "document-title", ["2.4.2"])],
        incomplete=[_f("pa11y", "H25.2", ["2.4.2"])],
    )
    assert matrix.status_for("2.4.2").result == "needs-review"


def test_level_counts_and_untested_criteria():
    matrix = CoverageBuilder(SMALL_CATALOG).build(
        violations=[],
        passes=[_f("axe-core", "image-alt", ["1.1.1"]), _f("axe-core", "list", ["1.3.1"])],
        incomplete=[],
    )
    assert (matrix.level_a.covered, matrix.level_a.total) == (2, 3)
    assert matrix.level_a.percentage == 66.7
    assert matrix.level_aaa.total == 0
    assert matrix.level_aaa.percentage == 0.0

    untested = matrix.status_for("2.4.2")
    assert (untested.method, untested.result, untested.tools) == ("not-tested", "not-applicable", [])


def test_criteria_outside_catalog_are_unmapped():
    findings = [_f("ibm", "target_size_minimum", ["2.5.8"]), _f("axe-core", "color-contrast", ["1.4.3"])]
    matrix = CoverageBuilder(SMALL_CATALOG).build(violations=findings, passes=[], incomplete=[])
    assert matrix.unmapped_criteria == ["2.5.8"]
    assert len(matrix.criteria) == len(SMALL_CATALOG)
    assert matrix.status_for("2.5.8") is None
    assert unmapped_criteria(findings, SMALL_CATALOG) == ["2.5.8"]


def test_semi_auto_answers():
    answers = [SemiAutoResult(item_id="semi-auto-1", rule_id="image-alt", wcag_criteria=["1.1.1"],
                              answer="inappropriate")]
    matrix = CoverageBuilder(SMALL_CATALOG).build([], [], [], semi_auto_results=answers)
    status = matrix.status_for("1.1.1")
    assert (status.method, status.result) == ("semi-auto", "fail")

    matrix = CoverageBuilder(SMALL_CATALOG).build(
        [], [_f("axe-core", "image-alt", ["1.1.1"])], [], semi_auto_results=answers)
    status = matrix.status_for("1.1.1")
    assert (status.method, status.result) == ("auto", "fail")


def test_manual_results():
    matrix = CoverageBuilder(SMALL_CATALOG).build([], [], [], manual_results={"2.4.2": "pass", "1.3.1": "bogus"})
    assert (matrix.status_for("2.4.2").method, matrix.status_for("2.4.2").result) == ("manual", "pass")
    assert matrix.status_for("1.3.1").method == "not-tested"
    assert matrix.level_a.covered == 1


def test_bundled_catalog_counts():
    catalog = load_wcag_catalog()
    assert catalog.version == "2.1"
    assert (catalog.count("A"), catalog.count("AA"), catalog.count("AAA")) == (30, 20, 28)
    assert len(catalog) == 78
    assert "1.4.3" in catalog and "2.5.8" not in catalog
    matrix = CoverageBuilder(catalog).build([], [], [])
    totals = {k: v.total for k, v in matrix.summary.items()}
    assert totals == {"level_a": 30, "level_aa": 20, "level_aaa": 28}


def test_build_is_idempotent():
    args = ([_f("pa11y", "G18", ["1.4.3"])], [_f("axe-core", "image-alt", ["1.1.1"])], [])
    builder = CoverageBuilder(SMALL_CATALOG)
    assert builder.build(*args).to_dict() == builder.build(*args).to_dict()


def test_aggregate_across_pages():
    home = SimpleNamespace(violations=[], passes=[_f("axe-core", "image-alt", ["1.1.1"])], incomplete=[])
    about = SimpleNamespace(violations=[_f("wave", "alt_missing", ["1.1.1"])], passes=[], incomplete=[])
    matrix = CoverageBuilder(SMALL_CATALOG).build_aggregate([home, about])
    status = matrix.status_for("1.1.1")
    assert status.result == "fail"
    assert status.tools == ["axe-core", "wave"]
