from __future__ import annotations
from typing import Optional
import logging

from a11y_aggregator.ir import EngineResult

logger = logging.getLogger(__name__)

SLOW_ENGINE_MS = 60_000


def format_engine_log(result: EngineResult, url: str = "", slow_ms: int = SLOW_ENGINE_MS) -> str:
    """One-line record: [tool] status - 12.3s | URL: ... | details | slow warning"""
    seconds = f"{result.duration_ms / 1000:.1f}s"
    line = f"[{result.tool_source}] {result.status} - {seconds}"
    if url:
        line += f" | URL: {url}"
    line += f" | violations={len(result.violations)} passes={len(result.passes)} incomplete={len(result.incomplete)}"
    if result.message:
        line += f" | {result.message}"
    if result.duration_ms > slow_ms:
        line += f" | over {slow_ms // 1000}s"
    return line


def log_engine_result(result: EngineResult, url: str = "", slow_ms: int = SLOW_ENGINE_MS,
                      log: Optional[logging.Logger] = None) -> str:
    """Log an adapter outcome: error when the engine failed, warning when slow or empty."""
    log = log or logger
    line = format_engine_log(result, url, slow_ms)
    if result.status == "failed":
        log.error(line)
    elif result.status == "empty" or result.duration_ms > slow_ms:
        log.warning(line)
    else:
        log.info(line)
    return line
