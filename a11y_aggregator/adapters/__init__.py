"""
Engine Adapters

One pure function per accessibility engine, turning that engine's raw JSON
into an EngineResult of canonical findings.
"""
from typing import Any, Callable, Dict

from a11y_aggregator.ir import EngineResult
from a11y_aggregator.adapters.axe_adapter import adapt_axe
from a11y_aggregator.adapters.pa11y_adapter import adapt_pa11y
from a11y_aggregator.adapters.lighthouse_adapter import adapt_lighthouse
from a11y_aggregator.adapters.ibm_adapter import adapt_ibm
from a11y_aggregator.adapters.alfa_adapter import adapt_alfa
from a11y_aggregator.adapters.qualweb_adapter import adapt_qualweb
from a11y_aggregator.adapters.wave_adapter import adapt_wave
from a11y_aggregator.adapters.custom_adapter import adapt_custom

ADAPTERS: Dict[str, Callable[..., EngineResult]] = {
    "axe-core": adapt_axe,
    "pa11y": adapt_pa11y,
    "lighthouse": adapt_lighthouse,
    "ibm": adapt_ibm,
    "alfa": adapt_alfa,
    "qualweb": adapt_qualweb,
    "wave": adapt_wave,
    "custom": adapt_custom,
}


def adapt(tool_source: str, raw: Any, **kwargs: Any) -> EngineResult:
    """Dispatch raw engine output to its adapter. Unknown engine ids raise ValueError."""
    try:
        adapter = ADAPTERS[tool_source]
    except KeyError:
        raise ValueError(f"Unknown engine '{tool_source}'. Known: {', '.join(ADAPTERS)}") from None
    return adapter(raw, **kwargs)


__all__ = [
    "ADAPTERS",
    "adapt",
    "adapt_axe",
    "adapt_pa11y",
    "adapt_lighthouse",
    "adapt_ibm",
    "adapt_alfa",
    "adapt_qualweb",
    "adapt_wave",
    "adapt_custom",
]
