"""
Signal Collector - turns source records into Signals on graph candidates.

One pass per source. Passes only touch the graph through ``get_or_create``
and the index it returns, so the result does not depend on fetch order.
"""

from __future__ import annotations

from typing import Iterable, Optional

from config.ownership import (
    DOC_TYPE_AGREEMENT,
    DOC_TYPE_ASSIGNMENT,
    DOC_TYPE_DEED,
    DOC_TYPE_MORTGAGE,
)
from owner_intel.models.ownership import (
    ContactInfo,
    CorporateEntity,
    FilingDocument,
    FilingParty,
    RegistryContact,
    Signal,
    SignalSource,
)
from owner_intel.services.ownership.candidate_graph import CandidateGraph

ROLE_TAX_RECORD_OWNER = "Tax Record Owner"

CONTACT_SOURCE_HOUSING = "Housing Registration"
CONTACT_SOURCE_FILING = "Filing Party Address"

_FILING_SOURCES = {
    DOC_TYPE_DEED: SignalSource.DEED_FILING,
    DOC_TYPE_MORTGAGE: SignalSource.MORTGAGE_FILING,
    DOC_TYPE_ASSIGNMENT: SignalSource.ASSIGNMENT_FILING,
    DOC_TYPE_AGREEMENT: SignalSource.AGREEMENT_FILING,
}


def filing_source(doc_type: str) -> SignalSource:
    return _FILING_SOURCES.get((doc_type or "").upper(), SignalSource.OTHER_FILING)


def filing_role(party_role: str, doc_type: str) -> str:
    """
    Human-readable role for a party on a filing.

    Anything that is not a grantee is described from the grantor side.
    """
    if party_role == "Grantee":
        if doc_type == DOC_TYPE_DEED:
            return "Deed Grantee (Buyer)"
        if doc_type == DOC_TYPE_MORTGAGE:
            return "Mortgage Borrower"
        return f"Grantee on {doc_type}"
    if doc_type == DOC_TYPE_DEED:
        return "Deed Grantor (Seller)"
    return f"Grantor on {doc_type}"


def format_amount(amount: int) -> Optional[str]:
    if amount and amount > 0:
        return f"${amount:,}"
    return None


def collect_tax_record_signals(graph: CandidateGraph, owner_names: Iterable[str]) -> int:
    added = 0
    for name in owner_names:
        idx = graph.get_or_create(name)
        if idx is None:
            continue
        graph.add_signal(idx, Signal(source=SignalSource.TAX_RECORD, role=ROLE_TAX_RECORD_OWNER, date="current"))
        added += 1
    return added


def collect_housing_contact_signals(graph: CandidateGraph, contacts: Iterable[RegistryContact]) -> int:
    added = 0
    for contact in contacts:
        idx = graph.get_or_create(contact.display_name)
        if idx is None:
            continue
        role = contact.contact_description or contact.type or "Contact"
        graph.add_signal(idx, Signal(source=SignalSource.HOUSING_REGISTRY, role=role, date="current"))
        address = contact.business_address_line
        if address:
            graph.add_contact(idx, ContactInfo(value=address, source=CONTACT_SOURCE_HOUSING))
        added += 1
    return added


def collect_filing_signals(
    graph: CandidateGraph,
    parties: Iterable[FilingParty],
    documents: Iterable[FilingDocument],
) -> int:
    by_id = {}
    for doc in documents:
        by_id.setdefault(doc.document_id, doc)

    added = 0
    for party in parties:
        if not party.name:
            continue
        idx = graph.get_or_create(party.name)
        if idx is None:
            continue
        doc = by_id.get(party.document_id)
        doc_type = doc.doc_type if doc and doc.doc_type else "Unknown"
        graph.add_signal(
            idx,
            Signal(
                source=filing_source(doc_type),
                role=filing_role(party.party_role, doc_type),
                date=doc.recorded_date if doc else "",
                detail=format_amount(doc.amount) if doc else None,
            ),
        )
        address = party.address_line
        if address:
            graph.add_contact(idx, ContactInfo(value=address, source=CONTACT_SOURCE_FILING))
        added += 1
    return added


def collect_corporate_signals(graph: CandidateGraph, entities: Iterable[CorporateEntity]) -> int:
    added = 0
    for entity in entities:
        idx = graph.get_or_create(entity.corp_name)
        if idx is None:
            continue
        graph.add_signal(
            idx,
            Signal(
                source=SignalSource.CORPORATE_REGISTRY,
                role=f"Registered Entity ({entity.status})",
                date=entity.date_filed,
            ),
        )
        if entity.corp_id:
            graph.add_signal(
                idx,
                Signal(
                    source=SignalSource.CORPORATE_REGISTRY,
                    role=f"Registry ID: {entity.corp_id}",
                    date=entity.date_filed,
                    detail=entity.corp_id,
                ),
            )
        added += 1
    return added
