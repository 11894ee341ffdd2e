from __future__ import annotations
import argparse
import json
import logging
import os
from pathlib import Path

from a11y_aggregator.config import CONFIG_ENV_VAR, load_config
from a11y_aggregator.coverage import format_percentage
from a11y_aggregator.pipeline import run_pipeline


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="a11y-aggregate",
        description="Merge accessibility engine results into one WCAG coverage report"
    )

    ap.add_argument("input_json", help="Path to the raw engine results document ({\"pages\": [...]})")
    ap.add_argument("--out", default="./a11y_out", help="Output directory")
    ap.add_argument(
        "--config",
        default=os.environ.get(CONFIG_ENV_VAR),
        help=f"YAML config file (or set {CONFIG_ENV_VAR})"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log engine outcomes and merge decisions")

    # Reference data
    data_group = ap.add_argument_group("Reference Data")
    data_group.add_argument("--catalog", help="WCAG catalog YAML (default: bundled WCAG 2.1 catalog)")
    data_group.add_argument("--rule-aliases", help="Cross-engine rule alias YAML (default: bundled table)")

    # Live diagnostics
    live_group = ap.add_argument_group("Live Diagnostics")
    live_group.add_argument(
        "--live",
        action="store_true",
        help="Open each page in headless Chromium and add XPath, visibility and context to nodes"
    )
    live_group.add_argument("--viewport-width", type=int, help="Viewport width for --live")
    live_group.add_argument("--viewport-height", type=int, help="Viewport height for --live")
    live_group.add_argument(
        "--sequential-nodes",
        action="store_true",
        help="Inspect nodes one at a time instead of concurrently"
    )

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.input_json).exists():
        ap.error(f"input file not found: {args.input_json}")

    config = load_config(args.config)
    if args.catalog:
        config.catalog_path = args.catalog
    if args.rule_aliases:
        config.rule_aliases_path = args.rule_aliases
    if args.viewport_width:
        config.viewport_width = args.viewport_width
    if args.viewport_height:
        config.viewport_height = args.viewport_height
    if args.sequential_nodes:
        config.concurrent_nodes = False

    payload = run_pipeline(
        input_json=args.input_json,
        out_dir=args.out,
        config=config,
        live=args.live,
    )

    summary = payload["coverage"]["summary"]
    output = {
        "bundle_dir": str(Path(payload["artifacts"]["json"]).parent),
        "pages": payload["stats"]["pages"],
        "violations": payload["stats"]["violations"],
        "multi_engine_violations": payload["stats"]["multi_engine_violations"],
        "failed_engines": payload["stats"]["failed_engines"],
        "coverage": {
            level: format_percentage(summary[level]["percentage"])
            for level in ("level_a", "level_aa", "level_aaa")
        },
    }
    if payload["coverage"]["unmapped_criteria"]:
        output["unmapped_criteria"] = payload["coverage"]["unmapped_criteria"]

    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
