from __future__ import annotations
from typing import Iterable, List, Optional, Tuple
import re

_DOTTED = re.compile(r"^(\d)\.(\d{1,2})\.(\d{1,2})\b")
_AXE_TAG = re.compile(r"^wcag(\d)(\d)(\d{1,2})$", re.IGNORECASE)
_UNDERSCORED = re.compile(r"(?<!\d)(\d)_(\d{1,2})_(\d{1,2})(?!\d)")

# Understanding-document slugs, as used in Alfa requirement URIs
# (https://www.w3.org/TR/WCAG/#contrast-minimum).
WCAG_SLUG_TO_CRITERION = {
    "non-text-content": "1.1.1",
    "audio-only-and-video-only-prerecorded": "1.2.1",
    "captions-prerecorded": "1.2.2",
    "audio-description-or-media-alternative-prerecorded": "1.2.3",
    "captions-live": "1.2.4",
    "audio-description-prerecorded": "1.2.5",
    "sign-language-prerecorded": "1.2.6",
    "extended-audio-description-prerecorded": "1.2.7",
    "media-alternative-prerecorded": "1.2.8",
    "audio-only-live": "1.2.9",
    "info-and-relationships": "1.3.1",
    "meaningful-sequence": "1.3.2",
    "sensory-characteristics": "1.3.3",
    "orientation": "1.3.4",
    "identify-input-purpose": "1.3.5",
    "identify-purpose": "1.3.6",
    "use-of-color": "1.4.1",
    "audio-control": "1.4.2",
    "contrast-minimum": "1.4.3",
    "resize-text": "1.4.4",
    "images-of-text": "1.4.5",
    "contrast-enhanced": "1.4.6",
    "low-or-no-background-audio": "1.4.7",
    "visual-presentation": "1.4.8",
    "images-of-text-no-exception": "1.4.9",
    "reflow": "1.4.10",
    "non-text-contrast": "1.4.11",
    "text-spacing": "1.4.12",
    "content-on-hover-or-focus": "1.4.13",
    "keyboard": "2.1.1",
    "no-keyboard-trap": "2.1.2",
    "keyboard-no-exception": "2.1.3",
    "character-key-shortcuts": "2.1.4",
    "timing-adjustable": "2.2.1",
    "pause-stop-hide": "2.2.2",
    "no-timing": "2.2.3",
    "interruptions": "2.2.4",
    "re-authenticating": "2.2.5",
    "timeouts": "2.2.6",
    "three-flashes-or-below-threshold": "2.3.1",
    "three-flashes": "2.3.2",
    "animation-from-interactions": "2.3.3",
    "bypass-blocks": "2.4.1",
    "page-titled": "2.4.2",
    "focus-order": "2.4.3",
    "link-purpose-in-context": "2.4.4",
    "multiple-ways": "2.4.5",
    "headings-and-labels": "2.4.6",
    "focus-visible": "2.4.7",
    "location": "2.4.8",
    "link-purpose-link-only": "2.4.9",
    "section-headings": "2.4.10",
    "focus-not-obscured-minimum": "2.4.11",
    "focus-not-obscured-enhanced": "2.4.12",
    "focus-appearance": "2.4.13",
    "pointer-gestures": "2.5.1",
    "pointer-cancellation": "2.5.2",
    "label-in-name": "2.5.3",
    "motion-actuation": "2.5.4",
    "target-size-enhanced": "2.5.5",
    "target-size": "2.5.5",
    "concurrent-input-mechanisms": "2.5.6",
    "dragging-movements": "2.5.7",
    "target-size-minimum": "2.5.8",
    "language-of-page": "3.1.1",
    "language-of-parts": "3.1.2",
    "unusual-words": "3.1.3",
    "abbreviations": "3.1.4",
    "reading-level": "3.1.5",
    "pronunciation": "3.1.6",
    "on-focus": "3.2.1",
    "on-input": "3.2.2",
    "consistent-navigation": "3.2.3",
    "consistent-identification": "3.2.4",
    "change-on-request": "3.2.5",
    "consistent-help": "3.2.6",
    "error-identification": "3.3.1",
    "labels-or-instructions": "3.3.2",
    "error-suggestion": "3.3.3",
    "error-prevention-legal-financial-data": "3.3.4",
    "help": "3.3.5",
    "error-prevention-all": "3.3.6",
    "redundant-entry": "3.3.7",
    "accessible-authentication-minimum": "3.3.8",
    "accessible-authentication-enhanced": "3.3.9",
    "parsing": "4.1.1",
    "name-role-value": "4.1.2",
    "status-messages": "4.1.3",
}

WCAG22_CRITERIA = frozenset({
    "2.4.11", "2.4.12", "2.4.13",
    "2.5.7", "2.5.8",
    "3.2.6",
    "3.3.7", "3.3.8", "3.3.9",
})


def _dotted(principle: str, guideline: str, criterion: str) -> str:
    return f"{int(principle)}.{int(guideline)}.{int(criterion)}"


def normalize_criterion(value: object) -> Optional[str]:
    """
    Map any engine's way of naming a success criterion to the dotted form.

    Handles "1.4.3", "wcag143", "wcag1410", HTML_CodeSniffer codes such as
    "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail", QualWeb names such as
    "1.4.3 Contrast (Minimum)" and understanding slugs or URIs ending in
    "#contrast-minimum". Level tags ("wcag2aa", "wcag21a") return None.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    m = _DOTTED.match(text)
    if m:
        return _dotted(*m.groups())

    m = _AXE_TAG.match(text)
    if m:
        return _dotted(*m.groups())

    # Sniff codes carry the guideline ("1_4") before the criterion ("1_4_3");
    # the three-part group is the criterion.
    m = _UNDERSCORED.search(text)
    if m:
        return _dotted(*m.groups())

    slug = text.rsplit("#", 1)[-1].rstrip("/").rsplit("/", 1)[-1].lower()
    return WCAG_SLUG_TO_CRITERION.get(slug)


def criterion_sort_key(criterion: str) -> Tuple[int, ...]:
    try:
        return tuple(int(p) for p in criterion.split("."))
    except ValueError:
        return (999,)


def extract_wcag_criteria(values: Optional[Iterable[object]]) -> List[str]:
    """Normalize, dedupe and sort (1.4.3 before 1.4.10)."""
    criteria = set()
    for v in values or []:
        c = normalize_criterion(v)
        if c:
            criteria.add(c)
    return sorted(criteria, key=criterion_sort_key)


def is_wcag22_criterion(criterion: str) -> bool:
    return criterion in WCAG22_CRITERIA


def has_wcag22_criterion(criteria: Iterable[str]) -> bool:
    return any(is_wcag22_criterion(c) for c in criteria)
