from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from a11y_aggregator.wcag import normalize_criterion, criterion_sort_key

RULES_DIR = Path(__file__).parent
DEFAULT_CATALOG_PATH = str(RULES_DIR / "wcag_catalog.yml")
DEFAULT_ALIASES_PATH = str(RULES_DIR / "rule_aliases.yml")


@dataclass(frozen=True)
class CatalogEntry:
    criterion: str
    level: str
    title: str


@dataclass(frozen=True)
class AliasBucket:
    id: str
    criteria: frozenset
    rules: Dict[str, tuple] = field(default_factory=dict)  # tool -> fnmatch patterns


def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_catalog_entries(rule_pack: Dict[str, Any]) -> List[CatalogEntry]:
    entries: List[CatalogEntry] = []
    for r in rule_pack.get("criteria", []) or []:
        criterion = normalize_criterion(r["id"])
        if criterion is None:
            raise ValueError(f"Catalog entry has an invalid criterion id: {r['id']!r}")
        entries.append(CatalogEntry(
            criterion=criterion,
            level=str(r["level"]).upper(),
            title=str(r.get("title", "")),
        ))
    entries.sort(key=lambda e: criterion_sort_key(e.criterion))
    return entries


def load_alias_buckets(rule_pack: Dict[str, Any]) -> List[AliasBucket]:
    buckets: List[AliasBucket] = []
    for b in rule_pack.get("buckets", []) or []:
        criteria = frozenset(c for c in (normalize_criterion(x) for x in b.get("criteria", []) or []) if c)
        rules = {str(tool): tuple(str(p) for p in (patterns or [])) for tool, patterns in (b.get("rules") or {}).items()}
        buckets.append(AliasBucket(id=str(b["id"]), criteria=criteria, rules=rules))
    return buckets


def pack_version(rule_pack: Dict[str, Any]) -> Optional[str]:
    v = rule_pack.get("version")
    return None if v is None else str(v)
