from __future__ import annotations
from typing import Any, Dict, List, Optional
from pathlib import Path
from datetime import datetime, timezone
import asyncio
import json
import logging

from a11y_aggregator.adapters import ADAPTERS, adapt
from a11y_aggregator.config import AggregatorConfig
from a11y_aggregator.coverage import RESULT_PRECEDENCE, CoverageBuilder, WcagCatalog, load_wcag_catalog
from a11y_aggregator.diagnostics import ElementAccessor, NodeDiagnosticExtractor
from a11y_aggregator.ir import EngineResult, engine_rank
from a11y_aggregator.merge import MergeService, RuleAliasTable, load_rule_aliases
from a11y_aggregator.report import AccessibilityReport, PageReport, write_json, write_txt
from a11y_aggregator.semi_auto import SemiAutoCheckService, SemiAutoResult
from a11y_aggregator.timing import log_engine_result

logger = logging.getLogger(__name__)


def _adapt_engines(page_input: Dict[str, Any], config: AggregatorConfig) -> List[EngineResult]:
    url = page_input.get("url", "")
    durations = page_input.get("durations") or {}
    results: List[EngineResult] = []
    for tool, raw in (page_input.get("engines") or {}).items():
        if tool not in ADAPTERS:
            logger.warning(f"Skipping output of unknown engine '{tool}' for {url}")
            continue
        kwargs: Dict[str, Any] = {"duration_ms": int(durations.get(tool, 0) or 0)}
        if tool == "pa11y":
            kwargs["include_notices"] = config.include_pa11y_notices
        result = adapt(tool, raw, **kwargs)
        log_engine_result(result, url, config.slow_engine_threshold_ms)
        results.append(result)
    results.sort(key=lambda r: engine_rank(r.tool_source))
    return results


async def _apply_diagnostics(results: List[EngineResult], extractor: NodeDiagnosticExtractor) -> None:
    # passes carry no defect to locate; only violations and incomplete get diagnostics
    for r in results:
        r.violations = await extractor.extract_findings(r.violations)
        r.incomplete = await extractor.extract_findings(r.incomplete)


def _load_answers(page_input: Dict[str, Any]) -> List[SemiAutoResult]:
    """Reviewer answers for one page; malformed records are logged and skipped."""
    url = page_input.get("url", "")
    answers: List[SemiAutoResult] = []
    for record in page_input.get("semi_auto_results") or []:
        if not isinstance(record, dict):
            logger.warning(f"Skipping semi-auto result that is not an object for {url}: {record!r}")
            continue
        try:
            answers.append(SemiAutoResult.from_dict(record))
        except ValueError as e:
            logger.warning(f"Skipping invalid semi-auto result for {url}: {e}")
    return answers


async def analyze_page(
    page_input: Dict[str, Any],
    config: Optional[AggregatorConfig] = None,
    accessor: Optional[ElementAccessor] = None,
    *,
    catalog: Optional[WcagCatalog] = None,
    aliases: Optional[RuleAliasTable] = None,
) -> PageReport:
    """
    Adapt every engine payload for one page, add live diagnostics when an
    accessor is given, merge across engines and build the coverage matrix.
    """
    config = config or AggregatorConfig()
    catalog = catalog or load_wcag_catalog(config.catalog_path)
    aliases = aliases or load_rule_aliases(config.rule_aliases_path)

    results = _adapt_engines(page_input, config)

    diagnostics = "skipped"
    if accessor is not None:
        await _apply_diagnostics(results, NodeDiagnosticExtractor(accessor, config))
        diagnostics = "applied"

    merged = MergeService(aliases).merge(results)

    # every engine rule gets its own review question, merged or not
    semi_auto = SemiAutoCheckService(config.semi_auto_categories)
    items = semi_auto.extract_items(
        [f for r in results for f in r.violations],
        [f for r in results for f in r.incomplete],
    )

    answers = _load_answers(page_input)
    coverage = CoverageBuilder(catalog).build(
        merged.violations,
        merged.passes,
        merged.incomplete,
        semi_auto_results=answers,
        manual_results=page_input.get("manual_results") or {},
    )

    return PageReport(
        name=str(page_input.get("name") or page_input.get("url") or "page"),
        url=str(page_input.get("url") or ""),
        engines=results,
        merged=merged,
        coverage=coverage,
        semi_auto_items=items,
        diagnostics=diagnostics,
    )


async def _analyze_all(
    pages: List[Dict[str, Any]],
    config: AggregatorConfig,
    catalog: WcagCatalog,
    aliases: RuleAliasTable,
    live: bool,
) -> List[PageReport]:
    reports: List[PageReport] = []
    for page_input in pages:
        url = page_input.get("url")
        if live and url:
            from a11y_aggregator.adapters.playwright_accessor import open_page_accessor
            async with open_page_accessor(url, config.viewport) as accessor:
                reports.append(await analyze_page(page_input, config, accessor, catalog=catalog, aliases=aliases))
        else:
            reports.append(await analyze_page(page_input, config, catalog=catalog, aliases=aliases))
    return reports


def run_pipeline(
    *,
    input_json: str,
    out_dir: str,
    config: Optional[AggregatorConfig] = None,
    live: bool = False,
) -> Dict[str, Any]:
    config = config or AggregatorConfig()
    ts = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
    out = Path(out_dir); out.mkdir(parents=True, exist_ok=True)

    stem = Path(input_json).stem
    bundle = out / f"{stem}_{ts.replace('-','').replace(':','').replace('T','_')}"
    bundle.mkdir(parents=True, exist_ok=True)
    report_json = str(bundle / "report.json")
    report_txt = str(bundle / "report.txt")

    with open(input_json, "r", encoding="utf-8") as f:
        document = json.load(f)
    pages = document.get("pages") if isinstance(document, dict) else None
    if not isinstance(pages, list):
        raise ValueError(f"{input_json} has no 'pages' list")

    catalog = load_wcag_catalog(config.catalog_path)
    aliases = load_rule_aliases(config.rule_aliases_path)

    page_reports = asyncio.run(_analyze_all(pages, config, catalog, aliases, live))

    all_answers = [a for p in pages for a in _load_answers(p)]
    manual: Dict[str, str] = {}
    for p in pages:
        for criterion, result in (p.get("manual_results") or {}).items():
            # stronger verdict wins across pages
            if RESULT_PRECEDENCE.get(result, -1) > RESULT_PRECEDENCE.get(manual.get(criterion), -1):
                manual[criterion] = result
    aggregate = CoverageBuilder(catalog).build_aggregate(
        [p.merged for p in page_reports], semi_auto_results=all_answers, manual_results=manual)

    report = AccessibilityReport(
        timestamp_utc=ts,
        pages=page_reports,
        coverage=aggregate,
        catalog_version=catalog.version,
        rule_aliases_version=aliases.version,
    )
    payload = report.to_dict()
    payload["artifacts"] = {"json": report_json, "txt": report_txt}

    write_json(report_json, payload)
    write_txt(report_txt, payload)
    logger.info(f"Wrote {report_json}")
    return payload
