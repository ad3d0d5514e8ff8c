"""
NYC / NYS Open Data (Socrata) data source.

Implements the ``DataSourceAdapter`` queries against the public Socrata
resource endpoints:

- city register legals / master / parties (NYC)
- housing registration contacts and registrations (NYC)
- tax lots (NYC)
- active corporations (NYS)

Each query is a single GET with SoQL ``$where``/``$limit``/``$order``/``$select``
parameters. One page per query; the filters carry the limits. Failures raise
``DataSourceError`` and are turned into empty results by the resolver.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

import httpx
from loguru import logger

from config.ownership import (
    DATASET_CORPORATE_REGISTRY,
    DATASET_FILING_LEGALS,
    DATASET_FILING_MASTER,
    DATASET_FILING_PARTIES,
    DATASET_HOUSING_CONTACTS,
    DATASET_HOUSING_REGISTRATIONS,
    DATASET_TAX_LOTS,
    NYC_OPEN_DATA_BASE_URL,
    NYS_OPEN_DATA_BASE_URL,
    SOCRATA_APP_TOKEN,
)
from owner_intel.services.ownership.adapters import (
    DataSourceError,
    DocumentIdFilter,
    NamePatternFilter,
    ParcelFilter,
    Record,
    RegistrationIdFilter,
    TaxLotFilter,
)

TAX_LOT_COLUMNS = (
    "block,lot,address,ownername,unitsres,unitstotal,yearbuilt,"
    "assesstot,numfloors,bldgarea,lotarea,zonedist1"
)

_FIELD_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_ORDER_RE = re.compile(r"^[a-z_][a-z0-9_]*( (ASC|DESC))?$", re.IGNORECASE)


def soql_quote(value: str) -> str:
    """SoQL string literal; single quotes are doubled."""
    return "'" + str(value).replace("'", "''") + "'"


def soql_in(column: str, values: Iterable[str]) -> str:
    return f"{column} in({','.join(soql_quote(v) for v in values)})"


def soql_contains(column: str, pattern: str) -> str:
    """Case-insensitive substring match (``upper(col) like '%PATTERN%'``)."""
    if not _FIELD_RE.match(column):
        raise ValueError(f"Invalid column name: {column!r}")
    return f"upper({column}) like {soql_quote('%' + pattern.upper() + '%')}"


class NycOpenDataSource:
    """Async Socrata client for the ownership resolver.

    Usable as an async context manager; a caller-supplied client is left open.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        nyc_base_url: str = NYC_OPEN_DATA_BASE_URL,
        nys_base_url: str = NYS_OPEN_DATA_BASE_URL,
        app_token: str | None = SOCRATA_APP_TOKEN,
        timeout: float = 20.0,
    ) -> None:
        self.nyc_base_url = nyc_base_url.rstrip("/")
        self.nys_base_url = nys_base_url.rstrip("/")
        self.app_token = app_token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.app_token:
                headers["X-App-Token"] = self.app_token
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Shut down the HTTP client."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> NycOpenDataSource:
        await self._ensure_client()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # HTTP helper
    # ------------------------------------------------------------------

    async def _get(self, base_url: str, dataset: str, params: dict[str, str]) -> list[Record]:
        client = await self._ensure_client()
        url = f"{base_url}/{dataset}.json"
        logger.debug(f"Socrata GET {dataset}: {params.get('$where', '')[:200]}")

        resp = await client.get(url, params=params)
        if resp.status_code != 200:
            raise DataSourceError(dataset, f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise DataSourceError(dataset, f"invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise DataSourceError(dataset, f"expected a JSON array, got {type(data).__name__}")
        return data

    @staticmethod
    def _params(where: str, limit: int, order: str | None = None, select: str | None = None) -> dict[str, str]:
        params = {"$where": where, "$limit": str(limit)}
        if order:
            if not _ORDER_RE.match(order):
                raise ValueError(f"Invalid order clause: {order!r}")
            params["$order"] = order
        if select:
            params["$select"] = select
        return params

    # ------------------------------------------------------------------
    # City register (filings)
    # ------------------------------------------------------------------

    async def query_filing_legals(self, filter: ParcelFilter) -> list[Record]:
        where = (
            f"borough={soql_quote(filter.borough)} AND block={soql_quote(filter.block)} "
            f"AND lot={soql_quote(filter.lot)}"
        )
        return await self._get(self.nyc_base_url, DATASET_FILING_LEGALS, self._params(where, filter.limit))

    async def query_filing_legals_by_documents(self, filter: DocumentIdFilter) -> list[Record]:
        if not filter.document_ids:
            return []
        where = soql_in("document_id", filter.document_ids)
        return await self._get(self.nyc_base_url, DATASET_FILING_LEGALS, self._params(where, filter.limit))

    async def query_filing_master(self, filter: DocumentIdFilter) -> list[Record]:
        if not filter.document_ids:
            return []
        where = soql_in("document_id", filter.document_ids)
        order = "recorded_datetime DESC" if filter.newest_first else None
        return await self._get(self.nyc_base_url, DATASET_FILING_MASTER, self._params(where, filter.limit, order))

    async def query_filing_parties(self, filter: DocumentIdFilter) -> list[Record]:
        if not filter.document_ids:
            return []
        where = soql_in("document_id", filter.document_ids)
        return await self._get(self.nyc_base_url, DATASET_FILING_PARTIES, self._params(where, filter.limit))

    async def query_filing_parties_by_name(self, filter: NamePatternFilter) -> list[Record]:
        where = soql_contains(filter.field, filter.pattern)
        return await self._get(
            self.nyc_base_url, DATASET_FILING_PARTIES, self._params(where, filter.limit, filter.order_by)
        )

    # ------------------------------------------------------------------
    # Corporate registry (NYS)
    # ------------------------------------------------------------------

    async def query_corporate_registry(self, filter: NamePatternFilter) -> list[Record]:
        where = soql_contains(filter.field, filter.pattern)
        return await self._get(
            self.nys_base_url, DATASET_CORPORATE_REGISTRY, self._params(where, filter.limit, filter.order_by)
        )

    # ------------------------------------------------------------------
    # Housing registrations
    # ------------------------------------------------------------------

    async def query_housing_registry_contacts(self, filter: NamePatternFilter) -> list[Record]:
        where = soql_contains(filter.field, filter.pattern)
        return await self._get(
            self.nyc_base_url, DATASET_HOUSING_CONTACTS, self._params(where, filter.limit, filter.order_by)
        )

    async def query_housing_registry(self, filter: RegistrationIdFilter) -> list[Record]:
        if not filter.registration_ids:
            return []
        where = soql_in("registrationid", filter.registration_ids)
        return await self._get(self.nyc_base_url, DATASET_HOUSING_REGISTRATIONS, self._params(where, filter.limit))

    # ------------------------------------------------------------------
    # Tax lots
    # ------------------------------------------------------------------

    async def query_tax_assessment(self, filter: TaxLotFilter) -> list[Record]:
        if not filter.lots:
            return []
        lots = " OR ".join(
            f"(block={soql_quote(block)} AND lot={soql_quote(lot)})" for block, lot in filter.lots
        )
        where = f"borocode={soql_quote(filter.borough)} AND ({lots})"
        return await self._get(
            self.nyc_base_url, DATASET_TAX_LOTS, self._params(where, filter.limit, select=TAX_LOT_COLUMNS)
        )
