"""Structured log lines for adapter fetches."""

from __future__ import annotations

import os
import time
from typing import Any

from loguru import logger


def env_log_level(default: str = "INFO") -> str:
    # LOG_LEVEL=debug shows per-fetch timings from fetch_safely
    return os.getenv("LOG_LEVEL", default).upper()


def log_search(
    *,
    source: str,
    query: Any,
    results_raw: int,
    results_kept: int | None = None,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """One line per adapter fetch, with the filter details bound as ``extra``.

    ``fetch_safely`` calls this after every adapter query, so ``source`` is a
    dataset label such as "Filing Parties" or "Tax Lots" and ``query`` is the
    parcel, name pattern or borough that was asked for. ``context`` carries
    batch sizes (``documents``, ``registrations``, ``lots``); ``None`` values
    are left out.
    """
    payload: dict[str, Any] = {"source": source, "query": query, "results_raw": results_raw}
    if results_kept is not None:
        payload["results_kept"] = results_kept
    if duration_ms is not None:
        payload["duration_ms"] = round(duration_ms, 1)
    payload.update({k: v for k, v in context.items() if v is not None})
    logger.bind(**payload).info(f"search {source}: {results_raw} rows")


class Timer:
    """Wall-clock milliseconds around one adapter await; read ``elapsed_ms`` after the block."""

    elapsed_ms: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
