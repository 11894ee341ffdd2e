from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional
import hashlib
import logging
import re

from a11y_aggregator.ir import Finding
from a11y_aggregator.snippets import describe_from_html, normalize_selector
from a11y_aggregator.wcag import extract_wcag_criteria

logger = logging.getLogger(__name__)

SemiAutoAnswer = Literal["appropriate", "inappropriate", "cannot-determine"]
SEMI_AUTO_ANSWERS = ("appropriate", "inappropriate", "cannot-determine")
SEMI_AUTO_CATEGORIES = ("alt", "link", "heading", "focus")

# rule id -> (category, question template)
SEMI_AUTO_RULE_MAPPING: Dict[str, tuple] = {
    "image-alt": ("alt", 'Does the alt text "{alt}" describe what the image shows?'),
    "input-image-alt": ("alt", "Does the alt text of this image button describe what the button does?"),
    "area-alt": ("alt", "Does the alt text of this image map area describe where the link goes?"),
    "object-alt": ("alt", "Does the text alternative of this object describe its content?"),
    "svg-img-alt": ("alt", "Does the text alternative of this SVG image describe what it shows?"),
    "link-name": ("link", "Does the link text make the link's destination clear?"),
    "link-in-text-block": ("link", "Can this link be told apart from the surrounding text without relying on color?"),
    "empty-heading": ("heading", "Does this heading summarize the section it introduces?"),
    "heading-order": ("heading", "Does the heading structure reflect the logical hierarchy of the page?"),
    "page-has-heading-one": ("heading", "Does the page have an h1 that describes its main content?"),
    "focus-visible": ("focus", "Is a focus indicator visible when this element receives focus?"),
    "focus-order-semantics": ("focus", "Does the focus order of this element match the visual layout?"),
    "tabindex": ("focus", "Does this tabindex keep a natural focus order?"),
}
GENERIC_QUESTION = "Is the accessibility of this element appropriate?"

_ALT_ATTR = re.compile(r"""\balt\s*=\s*["']([^"']*)["']""", re.IGNORECASE)


@dataclass
class SemiAutoItem:
    id: str
    rule_id: str
    wcag_criteria: List[str]
    question: str
    html: str
    element_description: str
    selector: str
    answer: Optional[str] = None
    answered_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "id": self.id,
            "rule_id": self.rule_id,
            "wcag_criteria": list(self.wcag_criteria),
            "question": self.question,
            "html": self.html,
            "element_description": self.element_description,
            "selector": self.selector,
        }
        if self.answer is not None:
            d["answer"] = self.answer
            d["answered_at"] = self.answered_at
        return d


@dataclass
class SemiAutoResult:
    item_id: str
    rule_id: str
    wcag_criteria: List[str]
    answer: str
    answered_at: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SemiAutoResult":
        answer = str(d.get("answer", ""))
        if answer not in SEMI_AUTO_ANSWERS:
            raise ValueError(f"Invalid semi-auto answer {answer!r}; expected one of {', '.join(SEMI_AUTO_ANSWERS)}")
        return cls(
            item_id=str(d.get("item_id") or d.get("itemId") or ""),
            rule_id=str(d.get("rule_id") or d.get("ruleId") or ""),
            wcag_criteria=extract_wcag_criteria(d.get("wcag_criteria") or d.get("wcagCriteria") or []),
            answer=answer,
            answered_at=str(d.get("answered_at") or d.get("answeredAt") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "rule_id": self.rule_id,
            "wcag_criteria": list(self.wcag_criteria),
            "answer": self.answer,
            "answered_at": self.answered_at,
        }


@dataclass
class SemiAutoProgress:
    completed: int
    total: int


def _item_id(finding: Finding, selector: str, index: int) -> str:
    h = hashlib.sha1(f"{finding.tool_source}|{finding.id}|{selector}|{index}".encode("utf-8")).hexdigest()[:12]
    return f"semi-auto-{h}"


def _question(rule_id: str, html: str) -> str:
    mapping = SEMI_AUTO_RULE_MAPPING.get(rule_id)
    if mapping is None:
        return GENERIC_QUESTION
    m = _ALT_ATTR.search(html or "")
    return mapping[1].replace("{alt}", m.group(1) if m and m.group(1) else "(none)")


class SemiAutoCheckService:
    """
    Turns findings that need a human judgement (is this alt text meaningful,
    is this link text clear) into yes/no review items, and collects the
    answers for the coverage matrix.
    """

    def __init__(self, categories: Optional[Iterable[str]] = None):
        self.categories = set(SEMI_AUTO_CATEGORIES if categories is None else categories)
        self.items: List[SemiAutoItem] = []

    def extract_items(self, violations: List[Finding], incomplete: List[Finding]) -> List[SemiAutoItem]:
        self.items = []
        seen = set()
        for finding in list(violations) + list(incomplete):
            mapping = SEMI_AUTO_RULE_MAPPING.get(finding.id)
            if mapping is None or not finding.nodes:
                continue
            if mapping[0] not in self.categories:
                continue
            for i, node in enumerate(finding.nodes):
                # engines sharing a rule id ask the same question once per element
                key = (finding.id, normalize_selector(node.target))
                if node.target and key in seen:
                    continue
                seen.add(key)
                self.items.append(SemiAutoItem(
                    id=_item_id(finding, node.target, i),
                    rule_id=finding.id,
                    wcag_criteria=list(finding.wcag_criteria),
                    question=_question(finding.id, node.html),
                    html=node.html,
                    element_description=node.element_description or describe_from_html(node.html),
                    selector=node.target,
                ))
        logger.info(f"Extracted {len(self.items)} semi-automated check items")
        return self.items

    def record_answer(self, item_id: str, answer: str) -> bool:
        """Returns False when no item has this id."""
        if answer not in SEMI_AUTO_ANSWERS:
            raise ValueError(f"Invalid semi-auto answer {answer!r}; expected one of {', '.join(SEMI_AUTO_ANSWERS)}")
        for item in self.items:
            if item.id == item_id:
                item.answer = answer
                item.answered_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
                return True
        logger.warning(f"No semi-automated check item with id {item_id}")
        return False

    def get_progress(self) -> SemiAutoProgress:
        return SemiAutoProgress(
            completed=sum(1 for i in self.items if i.answer is not None),
            total=len(self.items),
        )

    def get_results(self) -> List[SemiAutoResult]:
        return [
            SemiAutoResult(
                item_id=i.id,
                rule_id=i.rule_id,
                wcag_criteria=list(i.wcag_criteria),
                answer=i.answer,
                answered_at=i.answered_at or "",
            )
            for i in self.items
            if i.answer is not None
        ]
