"""
Data Source Adapter interface.

The resolver never talks HTTP itself. It consumes one adapter exposing a query
per public-record registry; each query takes a structured filter and returns
raw rows (upstream field names, mapped in ``records``). Adapter failures never
escape ``fetch_safely``: they degrade to "no rows from this source".
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, Sequence, Tuple

from loguru import logger

from config.ownership import ADAPTER_TIMEOUT_SECONDS
from owner_intel.utils.logging_utils import Timer, log_search

Record = dict[str, Any]


class DataSourceError(Exception):
    """Raised by adapters for non-success responses or malformed payloads."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


@dataclass(frozen=True, slots=True)
class ParcelFilter:
    borough: str
    block: str
    lot: str
    limit: int


@dataclass(frozen=True, slots=True)
class DocumentIdFilter:
    document_ids: Tuple[str, ...]
    limit: int
    newest_first: bool = False


@dataclass(frozen=True, slots=True)
class NamePatternFilter:
    """Case-insensitive "contains" match of ``pattern`` against ``field``."""

    pattern: str
    field: str
    limit: int
    order_by: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RegistrationIdFilter:
    registration_ids: Tuple[str, ...]
    limit: int


@dataclass(frozen=True, slots=True)
class TaxLotFilter:
    borough: str
    lots: Tuple[Tuple[str, str], ...]  # (block, lot) pairs
    limit: int


class DataSourceAdapter(Protocol):
    async def query_filing_legals(self, filter: ParcelFilter) -> list[Record]: ...

    async def query_filing_legals_by_documents(self, filter: DocumentIdFilter) -> list[Record]: ...

    async def query_filing_master(self, filter: DocumentIdFilter) -> list[Record]: ...

    async def query_filing_parties(self, filter: DocumentIdFilter) -> list[Record]: ...

    async def query_filing_parties_by_name(self, filter: NamePatternFilter) -> list[Record]: ...

    async def query_corporate_registry(self, filter: NamePatternFilter) -> list[Record]: ...

    async def query_housing_registry_contacts(self, filter: NamePatternFilter) -> list[Record]: ...

    async def query_housing_registry(self, filter: RegistrationIdFilter) -> list[Record]: ...

    async def query_tax_assessment(self, filter: TaxLotFilter) -> list[Record]: ...


async def fetch_safely(
    source: str,
    call: Awaitable[Sequence[Record]],
    timeout: Optional[float] = None,
    **context: Any,
) -> list[Record]:
    """
    Await one adapter call, converting any failure into an empty result.

    Timeouts, adapter errors and malformed payloads are logged and give [].
    Cancellation is not caught: when the caller abandons the request the
    CancelledError propagates and sibling fetches are cancelled with it.
    """
    timeout = ADAPTER_TIMEOUT_SECONDS if timeout is None else timeout
    with Timer() as timer:
        try:
            rows = await asyncio.wait_for(call, timeout=timeout)
        except TimeoutError:
            logger.warning(f"{source} timed out after {timeout:.1f}s ({context})")
            return []
        except Exception as e:
            logger.warning(f"{source} failed: {e!r} ({context})")
            return []

    if rows is None:
        return []
    if not isinstance(rows, (list, tuple)):
        logger.warning(f"{source} returned {type(rows).__name__}, expected a list ({context})")
        return []

    kept = [r for r in rows if isinstance(r, dict)]
    log_search(
        source=source,
        query=context.pop("query", None),
        results_raw=len(rows),
        results_kept=len(kept),
        duration_ms=timer.elapsed_ms,
        **context,
    )
    return kept
