"""
Node diagnostics.

Augments the nodes of engine findings with what only the live page can tell:
a structural XPath, the on-screen box and whether it is visible, the markup
of the surrounding block, and a short human label for the element.

The browser is reached through an ElementAccessor so the extractor can run
against Playwright in production and against in-memory fakes in tests.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Protocol
import asyncio
import logging

from a11y_aggregator.config import AggregatorConfig
from a11y_aggregator.ir import BoundingBox, Finding, NodeInfo
from a11y_aggregator.snippets import as_text, build_description, truncate_html

logger = logging.getLogger(__name__)


class ElementHandle(Protocol):
    async def bounding_box(self) -> Optional[Dict[str, float]]: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...


class ElementAccessor(Protocol):
    async def resolve(self, selector: str) -> Optional[ElementHandle]: ...

    def viewport(self) -> Optional[Dict[str, int]]: ...


# Indexed path from the document root, e.g. /html[1]/body[1]/main[1]/a[3].
XPATH_JS = """(el) => {
  const parts = [];
  let node = el;
  while (node && node.nodeType === Node.ELEMENT_NODE) {
    let index = 1;
    let sib = node.previousElementSibling;
    while (sib) {
      if (sib.localName === node.localName) index++;
      sib = sib.previousElementSibling;
    }
    parts.unshift(`${node.localName}[${index}]`);
    node = node.parentElement;
  }
  return '/' + parts.join('/');
}"""

# outerHTML of the nearest block-level ancestor (or the element itself when
# it is already a block), capped at maxLength characters.
CONTEXT_HTML_JS = """(el, maxLength) => {
  const blocks = new Set(['ADDRESS','ARTICLE','ASIDE','BLOCKQUOTE','DD','DIV','DL','DT','FIELDSET',
    'FIGURE','FOOTER','FORM','H1','H2','H3','H4','H5','H6','HEADER','LI','MAIN','NAV','OL','P',
    'SECTION','TABLE','TD','TH','TR','UL','BODY']);
  let node = el.parentElement || el;
  while (node && !blocks.has(node.tagName)) node = node.parentElement;
  const html = (node || el).outerHTML || '';
  return html.length > maxLength ? html.slice(0, maxLength) : html;
}"""

DESCRIBE_JS = """(el) => ({
  tag: el.localName,
  type: el.getAttribute('type'),
  alt: el.getAttribute('alt'),
  ariaLabel: el.getAttribute('aria-label'),
  title: el.getAttribute('title'),
  value: el.getAttribute('value'),
  text: (el.innerText || el.textContent || '').trim()
})"""


@dataclass
class ElementFacts:
    tag: Optional[str] = None
    input_type: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_evaluation(cls, raw: Any) -> "ElementFacts":
        if not isinstance(raw, dict):
            return cls()
        # alt and aria-label name an element more reliably than its text
        label = None
        for key in ("alt", "ariaLabel", "text", "title", "value"):
            v = as_text(raw.get(key)).strip()
            if v:
                label = v
                break
        return cls(tag=raw.get("tag"), input_type=raw.get("type"), label=label)


def is_outside_viewport(box: Dict[str, float], viewport: Optional[Dict[str, int]]) -> bool:
    """True when the rectangle has no area or does not intersect the viewport."""
    width = float(box.get("width") or 0)
    height = float(box.get("height") or 0)
    if width <= 0 or height <= 0:
        return True
    if not viewport:
        return False
    x, y = float(box.get("x") or 0), float(box.get("y") or 0)
    return (
        x + width <= 0
        or y + height <= 0
        or x >= viewport.get("width", 0)
        or y >= viewport.get("height", 0)
    )


class NodeDiagnosticExtractor:
    def __init__(self, accessor: ElementAccessor, config: Optional[AggregatorConfig] = None):
        self.accessor = accessor
        self.config = config or AggregatorConfig()

    def _viewport(self) -> Dict[str, int]:
        try:
            vp = self.accessor.viewport()
        except Exception as e:
            logger.debug(f"Viewport unavailable, using configured size: {e}")
            vp = None
        return vp or self.config.viewport

    async def _xpath(self, handle: ElementHandle, target: str) -> Optional[str]:
        try:
            xpath = await handle.evaluate(XPATH_JS)
        except Exception as e:
            logger.debug(f"XPath evaluation failed for {target}: {e}")
            return None
        return as_text(xpath) or None

    async def _box(self, handle: ElementHandle, target: str):
        """Returns (bounding_box, is_hidden); (None, None) when the query itself fails."""
        try:
            raw = await handle.bounding_box()
        except Exception as e:
            logger.debug(f"Bounding box query failed for {target}: {e}")
            return None, None
        if raw is None:
            return None, True
        if is_outside_viewport(raw, self._viewport()):
            return None, True
        box = BoundingBox(
            x=float(raw["x"]), y=float(raw["y"]),
            width=float(raw["width"]), height=float(raw["height"]),
        )
        return box, False

    async def _context_html(self, handle: ElementHandle, target: str) -> Optional[str]:
        limit = self.config.context_html_max_length
        try:
            html = await handle.evaluate(CONTEXT_HTML_JS, limit + 1)
        except Exception as e:
            logger.debug(f"Context HTML failed for {target}: {e}")
            return None
        html = as_text(html)
        return truncate_html(html, limit) if html else None

    async def _description(self, handle: ElementHandle, target: str) -> Optional[str]:
        try:
            facts = ElementFacts.from_evaluation(await handle.evaluate(DESCRIBE_JS))
        except Exception as e:
            logger.debug(f"Element description failed for {target}: {e}")
            return None
        if not facts.tag:
            return None
        return build_description(facts.tag, facts.label, facts.input_type, self.config.description_max_length)

    async def extract_node(self, node: NodeInfo) -> NodeInfo:
        """
        Return a copy of node with live diagnostics filled in.

        A node whose element cannot be resolved gets every diagnostic field,
        xpath included, as None; each failing sub-step only blanks its own
        field.
        """
        base = replace(node, html=truncate_html(node.html, self.config.html_max_length))
        unresolved = replace(base, xpath=None)
        if not node.target:
            return unresolved

        try:
            handle = await asyncio.wait_for(
                self.accessor.resolve(node.target), timeout=self.config.resolve_timeout_ms / 1000)
        except Exception as e:
            logger.warning(f"Could not resolve {node.target}: {type(e).__name__}: {e}")
            return unresolved
        if handle is None:
            logger.debug(f"No element matches {node.target}")
            return unresolved

        xpath = await self._xpath(handle, node.target)
        box, hidden = await self._box(handle, node.target)
        context_html = await self._context_html(handle, node.target)
        description = await self._description(handle, node.target)

        return replace(
            base,
            xpath=xpath or node.xpath,
            bounding_box=box,
            is_hidden=hidden,
            context_html=context_html,
            element_description=description,
        )

    async def extract_finding(self, finding: Finding) -> Finding:
        if not finding.nodes:
            return replace(finding)
        if self.config.concurrent_nodes:
            nodes = await asyncio.gather(*(self.extract_node(n) for n in finding.nodes))
        else:
            nodes = [await self.extract_node(n) for n in finding.nodes]
        return replace(finding, nodes=list(nodes))

    async def extract_findings(self, findings: List[Finding]) -> List[Finding]:
        out: List[Finding] = []
        for f in findings:
            out.append(await self.extract_finding(f))
        return out
