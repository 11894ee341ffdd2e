from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import os

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "A11Y_AGGREGATOR_CONFIG"
RULES_DIR = Path(__file__).parent / "rules"


@dataclass
class AggregatorConfig:
    """Configuration for one aggregation run."""
    # Reference data
    catalog_path: str = str(RULES_DIR / "wcag_catalog.yml")
    rule_aliases_path: str = str(RULES_DIR / "rule_aliases.yml")

    # Live diagnostics
    viewport_width: int = 1280
    viewport_height: int = 720
    html_max_length: int = 200
    description_max_length: int = 20
    context_html_max_length: int = 1000
    concurrent_nodes: bool = True          # asyncio.gather across a finding's nodes
    resolve_timeout_ms: int = 5000

    # Engines
    include_pa11y_notices: bool = True
    slow_engine_threshold_ms: int = 60_000

    # Semi-automated checks
    semi_auto_categories: List[str] = field(default_factory=lambda: ["alt", "link", "heading", "focus"])

    @property
    def viewport(self) -> Dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


def load_config(path: Optional[str] = None) -> AggregatorConfig:
    """
    Build an AggregatorConfig from a YAML file.

    The path falls back to $A11Y_AGGREGATOR_CONFIG; with neither, defaults
    are returned. An explicit path that does not exist raises
    FileNotFoundError. Unknown keys are logged and ignored.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return AggregatorConfig()
    if not Path(path).exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = yaml.safe_load(f) or {}

    known = {f.name for f in fields(AggregatorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(unknown)}")
    config = AggregatorConfig(**{k: v for k, v in data.items() if k in known})
    logger.info(f"Loaded config from {path}")
    return config
