from __future__ import annotations
from dataclasses import dataclass, field, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Optional, Literal, Any

ToolSource = Literal["axe-core", "pa11y", "lighthouse", "ibm", "alfa", "qualweb", "wave", "custom"]
ImpactLevel = Literal["critical", "serious", "moderate", "minor"]
ClassificationReason = Literal["manual-review", "insufficient-data", "partial-support"]
WcagLevel = Literal["A", "AA", "AAA"]
TestMethod = Literal["auto", "semi-auto", "manual", "not-tested"]
TestResult = Literal["pass", "fail", "needs-review", "not-applicable"]
EngineStatus = Literal["ok", "empty", "failed"]

# Fixed engine order: drives tool_sources sorting and merged descriptions.
ENGINE_PRIORITY: List[str] = ["axe-core", "pa11y", "lighthouse", "ibm", "alfa", "qualweb", "wave", "custom"]

IMPACT_PRIORITY: Dict[str, int] = {
    "critical": 4,
    "serious": 3,
    "moderate": 2,
    "minor": 1,
}


def engine_rank(tool: str) -> int:
    try:
        return ENGINE_PRIORITY.index(tool)
    except ValueError:
        return len(ENGINE_PRIORITY)


def sort_tools(tools) -> List[str]:
    """Deduplicate engine ids and order them by ENGINE_PRIORITY."""
    return sorted(set(tools), key=lambda t: (engine_rank(t), t))


def coverage_percentage(covered: int, total: int) -> float:
    """Percentage rounded half-up to one decimal; an empty level is 0.0."""
    if total <= 0:
        return 0.0
    value = Decimal(covered * 100) / Decimal(total)
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def most_severe(*impacts: Optional[str]) -> Optional[str]:
    present = [i for i in impacts if i in IMPACT_PRIORITY]
    if not present:
        return None
    return max(present, key=lambda i: IMPACT_PRIORITY[i])


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass
class NodeInfo:
    target: str                               # CSS path, segments joined with " > "
    html: str = ""                            # <= 200 chars, "..." when truncated
    xpath: Optional[str] = None
    context_html: Optional[str] = None
    failure_summary: Optional[str] = None     # axe-core only
    bounding_box: Optional[BoundingBox] = None
    is_hidden: Optional[bool] = None
    element_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        # None means "not determined" and is left out rather than defaulted
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class Finding:
    id: str
    description: str
    tool_source: str
    help_url: str = ""
    wcag_criteria: List[str] = field(default_factory=list)
    impact: Optional[str] = None
    node_count: int = 0
    nodes: Optional[List[NodeInfo]] = None
    raw_score: Optional[float] = None                 # lighthouse only
    classification_reason: Optional[str] = None       # lighthouse incomplete only
    tool_sources: Optional[List[str]] = None          # set once merged across engines
    is_experimental: bool = False                     # WCAG 2.2 rule

    def __post_init__(self) -> None:
        if self.nodes is not None:
            self.node_count = len(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "impact": self.impact,
            "node_count": self.node_count,
            "help_url": self.help_url,
            "wcag_criteria": list(self.wcag_criteria),
            "tool_source": self.tool_source,
        }
        if self.nodes is not None:
            d["nodes"] = [n.to_dict() for n in self.nodes]
        if self.raw_score is not None:
            d["raw_score"] = self.raw_score
        if self.classification_reason is not None:
            d["classification_reason"] = self.classification_reason
        if self.tool_sources is not None:
            d["tool_sources"] = list(self.tool_sources)
        if self.is_experimental:
            d["is_experimental"] = True
        return d


@dataclass
class LighthouseScores:
    performance: int = 0
    accessibility: int = 0
    best_practices: int = 0
    seo: int = 0
    pwa: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class EngineResult:
    """Normalized output of one engine for one page."""
    tool_source: str
    violations: List[Finding] = field(default_factory=list)
    passes: List[Finding] = field(default_factory=list)
    incomplete: List[Finding] = field(default_factory=list)
    duration_ms: int = 0
    status: str = "ok"  # ok | empty | failed
    message: str = ""
    lighthouse_scores: Optional[LighthouseScores] = None

    @property
    def total(self) -> int:
        return len(self.violations) + len(self.passes) + len(self.incomplete)


@dataclass
class MultiEngineViolation:
    rule_id: str
    description: str
    wcag_criteria: List[str]
    tool_sources: List[str]
    node_count: int
    impact: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CriterionStatus:
    criterion: str
    level: str
    title: str
    method: str = "not-tested"
    result: str = "not-applicable"
    tools: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LevelCoverage:
    covered: int = 0
    total: int = 0

    @property
    def percentage(self) -> float:
        return coverage_percentage(self.covered, self.total)

    def to_dict(self) -> Dict[str, Any]:
        return {"covered": self.covered, "total": self.total, "percentage": self.percentage}


@dataclass
class CoverageMatrix:
    criteria: List[CriterionStatus]
    level_a: LevelCoverage
    level_aa: LevelCoverage
    level_aaa: LevelCoverage
    unmapped_criteria: List[str] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, LevelCoverage]:
        return {"level_a": self.level_a, "level_aa": self.level_aa, "level_aaa": self.level_aaa}

    def status_for(self, criterion: str) -> Optional[CriterionStatus]:
        for status in self.criteria:
            if status.criterion == criterion:
                return status
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criteria": [c.to_dict() for c in self.criteria],
            "summary": {k: v.to_dict() for k, v in self.summary.items()},
            "unmapped_criteria": list(self.unmapped_criteria),
        }
