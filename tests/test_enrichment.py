import asyncio

import pytest

from conftest import AS_OF
from owner_intel.models.ownership import ParcelDescriptor, SignalSource
from owner_intel.services.ownership.adapters import DataSourceError
from owner_intel.services.ownership.enrichment import OwnershipEnricher, resolve_ownership


def _resolve(source, parcel, **kwargs):
    kwargs.setdefault("as_of", AS_OF)
    return asyncio.run(resolve_ownership(source, parcel, **kwargs))


def test_individual_behind_llc_ranks_first(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(rows=main_st_rows)

    result = _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    names = [c.name for c in result.candidates]
    assert names == ["JANE DOE", "123 MAIN ST LLC"]

    jane, llc = result.candidates
    assert all(0 <= c.confidence <= 100 for c in result.candidates)
    assert jane.confidence >= 75
    assert jane.linked_entities == ["123 MAIN ST LLC"]
    assert llc.linked_entities == ["JANE DOE"]
    assert "likely true owner" in jane.recommendation.lower()
    assert "Named on deed" in jane.recommendation
    assert jane.score_breakdown["linked_individual"] > 0
    assert llc.is_entity and not jane.is_entity


def test_result_carries_transactions_and_counts(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(rows=main_st_rows)

    result = _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    assert [t.document_id for t in result.transactions] == ["2024070100001"]
    txn = result.transactions[0]
    assert txn.doc_type == "DEED"
    assert txn.amount == 1250000
    assert [(p.role, p.name) for p in txn.parties] == [("Grantee", "JANE DOE")]

    assert [e.corp_name for e in result.corporate_registry_hits] == ["123 MAIN ST LLC"]
    assert result.data_source_counts == {
        "filing_documents": 1,
        "filing_parties": 1,
        "corporate_entities": 1,
        "housing_contacts": 1,
    }
    assert result.as_of == AS_OF


def test_queries_use_parcel_and_document_filters(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(rows=main_st_rows)

    _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    (legal_filter,) = source.calls_to("query_filing_legals")
    assert (legal_filter.borough, legal_filter.block, legal_filter.lot) == ("3", "1234", "56")

    (master_filter,) = source.calls_to("query_filing_master")
    assert master_filter.document_ids == ("2024070100001",)
    assert master_filter.newest_first is True

    (corp_filter,) = source.calls_to("query_corporate_registry")
    assert corp_filter.pattern == "123 MAIN ST"
    assert corp_filter.order_by == "date_filed DESC"


def test_borough_name_is_accepted(stub_source, main_st_rows):
    source = stub_source(rows=main_st_rows)
    parcel = ParcelDescriptor(borough="Brooklyn", block="1234", lot="56")

    result = _resolve(source, parcel)

    assert source.calls_to("query_filing_legals")[0].borough == "3"
    assert [c.name for c in result.candidates] == ["JANE DOE"]


def test_failing_source_does_not_block_the_others(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(
        rows=main_st_rows,
        errors={"query_corporate_registry": DataSourceError("ekwr-p59j", "HTTP 500")},
    )

    result = _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    assert result.corporate_registry_hits == []
    assert result.data_source_counts["filing_parties"] == 1
    jane = result.candidates[0]
    assert jane.name == "JANE DOE"
    assert SignalSource.DEED_FILING in jane.sources


def test_failing_master_still_records_parties(stub_source, parcel, main_st_rows):
    source = stub_source(rows=main_st_rows, errors={"query_filing_master": RuntimeError("boom")})

    result = _resolve(source, parcel)

    (jane,) = result.candidates
    (signal,) = jane.signals
    assert signal.source == SignalSource.OTHER_FILING
    assert signal.role == "Grantee on Unknown"
    assert result.transactions == []


def test_timeout_counts_as_no_data(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(rows=main_st_rows, delays={"query_corporate_registry": 2.0})

    result = _resolve(
        source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact], timeout=0.05
    )

    assert result.corporate_registry_hits == []
    assert source.cancelled == ["query_corporate_registry"]
    assert result.candidates[0].name == "JANE DOE"


def test_incomplete_parcel_makes_no_calls(stub_source, main_st_rows):
    source = stub_source(rows=main_st_rows)

    for bad in (
        ParcelDescriptor(borough="", block="1234", lot="56"),
        ParcelDescriptor(borough="ATLANTIS", block="1234", lot="56"),
        ParcelDescriptor(borough="3", block=" ", lot="56"),
    ):
        result = _resolve(source, bad, known_names=["JANE DOE"])
        assert result.candidates == []
        assert result.transactions == []

    assert source.calls == []


def test_repeat_calls_are_identical(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(rows=main_st_rows)

    first = _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])
    second = _resolve(source, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    assert [(c.name, c.confidence) for c in first.candidates] == [
        (c.name, c.confidence) for c in second.candidates
    ]


def test_completion_order_does_not_change_result(stub_source, parcel, llc_contact, main_st_rows):
    fast = stub_source(rows=main_st_rows)
    slow_filings = stub_source(
        rows=main_st_rows, delays={"query_filing_parties": 0.05, "query_filing_legals": 0.02}
    )

    a = _resolve(fast, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])
    b = _resolve(slow_filings, parcel, known_names=["123 MAIN ST LLC"], known_contacts=[llc_contact])

    assert [(c.name, c.confidence, c.score_breakdown) for c in a.candidates] == [
        (c.name, c.confidence, c.score_breakdown) for c in b.candidates
    ]


def test_cancellation_propagates_and_stops_fetches(stub_source, parcel, llc_contact, main_st_rows):
    source = stub_source(
        rows=main_st_rows,
        delays={"query_filing_legals": 5.0, "query_corporate_registry": 5.0},
    )

    async def run():
        task = asyncio.create_task(
            resolve_ownership(
                source, parcel, ["123 MAIN ST LLC"], [llc_contact], as_of=AS_OF, timeout=30
            )
        )
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())

    assert sorted(source.cancelled) == ["query_corporate_registry", "query_filing_legals"]
    assert source.calls_to("query_filing_master") == []


def test_no_legals_skips_document_queries(stub_source, parcel):
    source = stub_source(rows={})

    result = _resolve(source, parcel, known_names=["JOHN SMITH"])

    assert source.calls_to("query_filing_master") == []
    assert source.calls_to("query_filing_parties") == []
    (john,) = result.candidates
    assert john.signals[0].role == "Tax Record Owner"


def test_document_ids_truncated(stub_source, parcel):
    legals = [{"document_id": f"DOC{i:03d}"} for i in range(45)]
    source = stub_source(rows={"query_filing_legals": legals + legals[:5]})

    _resolve(source, parcel)

    (parties_filter,) = source.calls_to("query_filing_parties")
    assert len(parties_filter.document_ids) == 30
    assert parties_filter.document_ids[0] == "DOC000"


def test_corporate_lookup_patterns():
    enricher = OwnershipEnricher(adapter=None)

    patterns = enricher.corporate_lookup_patterns(
        ["JANE DOE", "Acme Realty", "acme realty", "CO LLC", "Park Holdings Inc", "Elm Capital", "Oak Group"],
        [],
    )

    # distinct lookup names capped at 3 before short names are dropped
    assert patterns == ["ACME REALTY", "PARK HOLDINGS"]


def test_corporate_lookup_includes_contact_names(llc_contact):
    enricher = OwnershipEnricher(adapter=None)

    patterns = enricher.corporate_lookup_patterns([], [llc_contact])

    assert patterns == ["123 MAIN ST"]
