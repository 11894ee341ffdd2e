from __future__ import annotations
from typing import Iterable, Optional
import html as html_mod
import re

HTML_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 20
ELLIPSIS = "..."

_ENTITY_TAIL = re.compile(r"&#?[A-Za-z0-9]{0,10}$")
_TAG_NAME = re.compile(r"<\s*([A-Za-z][A-Za-z0-9-]*)")
_ALT_ATTR = re.compile(r"""\balt\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_ARIA_LABEL_ATTR = re.compile(r"""\baria-label\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_INNER_TEXT = re.compile(r">([^<]+)<")

TAG_NOUNS = {
    "a": "link",
    "img": "image",
    "svg": "image",
    "area": "image map area",
    "button": "button",
    "input": "input",
    "select": "dropdown",
    "textarea": "text area",
    "label": "label",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "table": "table",
    "th": "table header",
    "td": "table cell",
    "ul": "list",
    "ol": "list",
    "li": "list item",
    "nav": "navigation",
    "form": "form",
    "iframe": "frame",
    "video": "video",
    "audio": "audio",
    "html": "document",
    "p": "paragraph",
}


def as_text(value: object) -> str:
    """Missing raw fields become "" so truncation never sees None."""
    if value is None:
        return ""
    return str(value)


def join_target(chain: object) -> str:
    """
    Build a CSS path from an engine's selector chain.

    axe-core reports a list of selectors (one per frame or shadow root);
    other engines report a single string.
    """
    if chain is None:
        return ""
    if isinstance(chain, str):
        return chain.strip()
    parts = []
    for seg in chain:
        if isinstance(seg, (list, tuple)):
            seg = join_target(seg)
        seg = as_text(seg).strip()
        if seg:
            parts.append(seg)
    return " > ".join(parts)


def normalize_selector(selector: str) -> str:
    s = re.sub(r"\s+", " ", as_text(selector).strip())
    s = re.sub(r"\s*>\s*", " > ", s)
    s = re.sub(r"\s*\+\s*", " + ", s)
    return re.sub(r"\s*~\s*", " ~ ", s)


def _trigrams(text: str) -> set:
    padded = f"  {text.lower()}  "
    return {padded[i:i + 3] for i in range(len(padded) - 2)}


def text_similarity(a: object, b: object) -> float:
    """Dice coefficient over character trigrams, 0.0 to 1.0."""
    a, b = as_text(a), as_text(b)
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    ta, tb = _trigrams(a), _trigrams(b)
    return 2 * len(ta & tb) / (len(ta) + len(tb))


def truncate_html(markup: object, max_length: int = HTML_MAX_LENGTH) -> str:
    """
    Cut markup to at most max_length characters, ending in "...".

    The cut backs off to before a character reference (&amp; &#39;) rather
    than leaving half of one in the excerpt.
    """
    text = as_text(markup)
    if len(text) <= max_length:
        return text
    keep = max(0, max_length - len(ELLIPSIS))
    head = text[:keep]
    m = _ENTITY_TAIL.search(head)
    if m and ";" in text[m.start():m.start() + 12]:
        head = head[:m.start()]
    return head + ELLIPSIS


def truncate_text(text: object, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    s = as_text(text)
    if len(s) <= max_length:
        return s
    return s[:max_length] + ELLIPSIS


def tag_noun(tag: Optional[str], input_type: Optional[str] = None) -> str:
    tag = (tag or "").lower()
    if tag == "input" and (input_type or "").lower() in ("button", "submit", "reset", "image"):
        return "button"
    return TAG_NOUNS.get(tag, tag or "element")


def collapse_whitespace(text: object) -> str:
    return " ".join(as_text(text).split())


def build_description(
    tag: Optional[str],
    label: Optional[str] = None,
    input_type: Optional[str] = None,
    max_length: int = DESCRIPTION_MAX_LENGTH,
) -> str:
    """Short reviewer label: a tag-derived noun plus visible text or alt, e.g. "link: Read more"."""
    noun = tag_noun(tag, input_type)
    label = collapse_whitespace(label)
    text = f"{noun}: {label}" if label else noun
    return truncate_text(text, max_length)


def describe_from_html(markup: object, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Best-effort description from an html excerpt, for nodes with no live element."""
    text = as_text(markup)
    m = _TAG_NAME.search(text)
    tag = m.group(1).lower() if m else None
    label = None
    for pattern in (_ALT_ATTR, _ARIA_LABEL_ATTR, _INNER_TEXT):
        found = pattern.search(text)
        if found and found.group(1).strip():
            label = html_mod.unescape(found.group(1))
            break
    return build_description(tag, label, max_length=max_length)


def dedupe_preserving_order(values: Iterable[str]) -> list:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out
