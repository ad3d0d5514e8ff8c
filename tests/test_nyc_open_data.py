import asyncio
import json

import httpx
import pytest

from conftest import AS_OF
from owner_intel.models.ownership import ParcelDescriptor
from owner_intel.scrapers.nyc_open_data import NycOpenDataSource, soql_contains, soql_quote
from owner_intel.services.ownership.adapters import (
    DataSourceError,
    DocumentIdFilter,
    NamePatternFilter,
    ParcelFilter,
    TaxLotFilter,
)
from owner_intel.services.ownership.enrichment import resolve_ownership


def _run(handler, query):
    """Run one query against a MockTransport-backed source; return (rows, requests)."""
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(record)) as client:
            source = NycOpenDataSource(client, app_token="tok-123")
            return await query(source)

    return asyncio.run(go()), requests


def _ok(rows):
    return lambda request: httpx.Response(200, json=rows)


def test_soql_quoting():
    assert soql_quote("O'BRIEN") == "'O''BRIEN'"
    assert soql_contains("name", "o'brien") == "upper(name) like '%O''BRIEN%'"
    with pytest.raises(ValueError):
        soql_contains("name) or (1=1", "x")


def test_filing_legals_by_parcel():
    rows, (request,) = _run(
        _ok([{"document_id": "D1"}]),
        lambda s: s.query_filing_legals(ParcelFilter(borough="3", block="1234", lot="56", limit=50)),
    )

    assert rows == [{"document_id": "D1"}]
    assert request.url.host == "data.cityofnewyork.us"
    assert request.url.path == "/resource/8h5j-fqxa.json"
    assert request.url.params["$where"] == "borough='3' AND block='1234' AND lot='56'"
    assert request.url.params["$limit"] == "50"
    assert request.headers["X-App-Token"] == "tok-123"


def test_master_newest_first():
    _, (request,) = _run(
        _ok([]),
        lambda s: s.query_filing_master(
            DocumentIdFilter(document_ids=("A", "B"), limit=100, newest_first=True)
        ),
    )

    assert request.url.params["$where"] == "document_id in('A','B')"
    assert request.url.params["$order"] == "recorded_datetime DESC"


def test_empty_id_list_skips_request():
    rows, requests = _run(_ok([{"x": 1}]), lambda s: s.query_filing_parties(DocumentIdFilter((), 10)))

    assert rows == []
    assert requests == []


def test_corporate_registry_uses_state_endpoint():
    _, (request,) = _run(
        _ok([]),
        lambda s: s.query_corporate_registry(
            NamePatternFilter(pattern="123 Main St", field="corp_name", limit=10, order_by="date_filed DESC")
        ),
    )

    assert request.url.host == "data.ny.gov"
    assert request.url.path == "/resource/ekwr-p59j.json"
    assert request.url.params["$where"] == "upper(corp_name) like '%123 MAIN ST%'"
    assert request.url.params["$order"] == "date_filed DESC"


def test_tax_lots_query():
    _, (request,) = _run(
        _ok([]),
        lambda s: s.query_tax_assessment(TaxLotFilter(borough="3", lots=(("100", "1"), ("200", "2")), limit=50)),
    )

    assert request.url.params["$where"] == (
        "borocode='3' AND ((block='100' AND lot='1') OR (block='200' AND lot='2'))"
    )
    assert "unitsres" in request.url.params["$select"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="server error"),
        httpx.Response(200, json={"error": True}),
        httpx.Response(200, content=b"<html>"),
    ],
)
def test_bad_responses_raise(response):
    with pytest.raises(DataSourceError):
        _run(
            lambda request: response,
            lambda s: s.query_filing_legals(ParcelFilter(borough="1", block="1", lot="1", limit=5)),
        )


def test_resolver_survives_failing_upstream():
    def handler(request: httpx.Request) -> httpx.Response:
        if "8h5j-fqxa" in request.url.path:
            return httpx.Response(200, json=[{"document_id": "D1"}])
        if "bnx9-e6tj" in request.url.path:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(
            200,
            content=json.dumps([{"document_id": "D1", "party_type": "1", "name": "JANE DOE"}]).encode(),
        )

    result, requests = _run(
        handler,
        lambda s: resolve_ownership(
            s, ParcelDescriptor(borough="MANHATTAN", block="10", lot="20"), ["JANE DOE"], as_of=AS_OF
        ),
    )

    assert [c.name for c in result.candidates] == ["JANE DOE"]
    assert result.data_source_counts["filing_documents"] == 0
    assert len(requests) == 3


def test_owned_client_closed():
    async def go():
        source = NycOpenDataSource(app_token=None)
        async with source:
            client = source._client  # noqa: SLF001
            assert "X-App-Token" not in client.headers
        return client

    client = asyncio.run(go())
    assert client.is_closed
