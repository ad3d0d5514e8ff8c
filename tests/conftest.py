import asyncio
from datetime import date
from typing import Any, Callable

import pytest
from loguru import logger

from owner_intel.models.ownership import ParcelDescriptor, RegistryContact

AS_OF = date(2025, 1, 1)


class StubDataSource:
    """In-memory DataSourceAdapter.

    ``rows`` maps a query method name to a list of rows or a callable taking
    the filter; ``errors`` maps a method to an exception to raise; ``delays``
    maps a method to seconds to sleep first.
    """

    def __init__(
        self,
        rows: dict[str, Any] | None = None,
        errors: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.rows = rows or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, Any]] = []
        self.cancelled: list[str] = []

    def calls_to(self, method: str) -> list[Any]:
        return [f for m, f in self.calls if m == method]

    async def _answer(self, method: str, filter: Any) -> Any:
        self.calls.append((method, filter))
        delay = self.delays.get(method)
        if delay:
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled.append(method)
                raise
        if method in self.errors:
            raise self.errors[method]
        rows = self.rows.get(method, [])
        if callable(rows):
            rows = rows(filter)
        return rows

    async def query_filing_legals(self, filter):
        return await self._answer("query_filing_legals", filter)

    async def query_filing_legals_by_documents(self, filter):
        return await self._answer("query_filing_legals_by_documents", filter)

    async def query_filing_master(self, filter):
        return await self._answer("query_filing_master", filter)

    async def query_filing_parties(self, filter):
        return await self._answer("query_filing_parties", filter)

    async def query_filing_parties_by_name(self, filter):
        return await self._answer("query_filing_parties_by_name", filter)

    async def query_corporate_registry(self, filter):
        return await self._answer("query_corporate_registry", filter)

    async def query_housing_registry_contacts(self, filter):
        return await self._answer("query_housing_registry_contacts", filter)

    async def query_housing_registry(self, filter):
        return await self._answer("query_housing_registry", filter)

    async def query_tax_assessment(self, filter):
        return await self._answer("query_tax_assessment", filter)


@pytest.fixture
def stub_source() -> Callable[..., StubDataSource]:
    return StubDataSource


@pytest.fixture
def parcel() -> ParcelDescriptor:
    return ParcelDescriptor(borough="3", block="1234", lot="56", address="123 MAIN ST")


@pytest.fixture
def llc_contact() -> RegistryContact:
    return RegistryContact(
        registration_id="R100",
        type="CorporateOwner",
        corporate_name="123 MAIN ST LLC",
        business_address="123 MAIN ST",
        business_city="BROOKLYN",
        business_state="NY",
        business_zip="11201",
    )


@pytest.fixture
def main_st_rows() -> dict[str, Any]:
    """A deed to JANE DOE six months before AS_OF plus an active LLC registration."""
    return {
        "query_filing_legals": [
            {"document_id": "2024070100001", "borough": "3", "block": "1234", "lot": "56"},
        ],
        "query_filing_master": [
            {
                "document_id": "2024070100001",
                "doc_type": "DEED",
                "document_amt": "1250000.00",
                "recorded_datetime": "2024-07-01T00:00:00.000",
                "document_date": "2024-06-20T00:00:00.000",
            },
        ],
        "query_filing_parties": [
            {
                "document_id": "2024070100001",
                "party_type": "1",
                "name": "JANE DOE",
                "address_1": "123 MAIN ST",
                "city": "BROOKLYN",
                "state": "NY",
                "zip": "11201",
            },
        ],
        "query_corporate_registry": [
            {
                "corpid_num": "4711555",
                "corp_name": "123 MAIN ST LLC",
                "name_status": "A",
                "date_filed": "2015-03-02T00:00:00.000",
            },
        ],
    }


@pytest.fixture
def log_records():
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG", format="{message}")
    yield records
    logger.remove(handler_id)
