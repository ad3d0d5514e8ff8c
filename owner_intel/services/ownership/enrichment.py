"""
Enrichment Orchestrator - resolves the likely owner behind one parcel.

Fetch plan:
- filing legals (by borough/block/lot) -> document ids -> filing master and
  filing parties in parallel
- corporate registry lookups for entity-looking known names, in parallel
  with the whole filing chain

All fetches fan in before any candidate is touched; collection, linking and
scoring then run synchronously on data owned by this call only.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from config.ownership import (
    CORPORATE_LOOKUP_LIMIT,
    CORPORATE_NAME_MIN_LENGTH,
    MAX_CORPORATE_LOOKUPS,
    MAX_DOCUMENT_IDS_PER_PARCEL,
    OWNERSHIP_DOC_TYPES,
    PARCEL_LEGALS_LIMIT,
    PARCEL_MASTER_LIMIT,
    PARCEL_PARTIES_LIMIT,
)
from owner_intel.models.ownership import (
    CorporateEntity,
    FilingDocument,
    FilingParty,
    OwnershipResult,
    ParcelDescriptor,
    RegistryContact,
    Transaction,
    TransactionParty,
)
from owner_intel.services.ownership import records
from owner_intel.services.ownership.adapters import (
    DataSourceAdapter,
    DocumentIdFilter,
    NamePatternFilter,
    ParcelFilter,
    fetch_safely,
)
from owner_intel.services.ownership.candidate_graph import CandidateGraph
from owner_intel.services.ownership.entity_linker import link_entities
from owner_intel.services.ownership.scorer import ConfidenceScorer
from owner_intel.services.ownership.signal_collector import (
    collect_corporate_signals,
    collect_filing_signals,
    collect_housing_contact_signals,
    collect_tax_record_signals,
)
from owner_intel.utils.name_matcher import NameMatcher, default_matcher
from owner_intel.utils.time import date_sort_key, today_local


class OwnershipEnricher:
    """
    Ranks the people and entities behind a parcel.

    Holds no per-request state; one instance can serve concurrent calls.
    """

    def __init__(
        self,
        adapter: DataSourceAdapter,
        matcher: Optional[NameMatcher] = None,
        timeout: Optional[float] = None,
    ):
        self.adapter = adapter
        self.matcher = matcher or default_matcher
        self.timeout = timeout

    async def resolve_ownership(
        self,
        parcel: ParcelDescriptor,
        known_names: Optional[Iterable[str]] = None,
        known_contacts: Optional[Iterable[RegistryContact]] = None,
        *,
        as_of: Optional[date] = None,
    ) -> OwnershipResult:
        as_of = as_of or today_local()
        if not parcel.is_complete:
            logger.warning(f"Skipping ownership resolution, incomplete parcel: {parcel.model_dump()}")
            return OwnershipResult(as_of=as_of)

        names = [n for n in (known_names or []) if n and n.strip()]
        contacts = list(known_contacts or [])
        lookups = self.corporate_lookup_patterns(names, contacts)
        label = f"{parcel.borough_code}-{parcel.block}-{parcel.lot}"

        logger.info(f"Resolving ownership for {label} ({parcel.address or 'no address'})")

        (documents, parties), entities = await asyncio.gather(
            self._fetch_filings(parcel, label),
            self._fetch_corporate_entities(lookups, label),
        )

        graph = CandidateGraph(self.matcher)
        collect_tax_record_signals(graph, names)
        collect_housing_contact_signals(graph, contacts)
        collect_filing_signals(graph, parties, documents)
        collect_corporate_signals(graph, entities)

        link_entities(graph)

        scorer = ConfidenceScorer(as_of=as_of)
        for candidate in graph:
            scorer.score(candidate)

        candidates = sorted(graph.candidates(), key=lambda c: c.confidence, reverse=True)
        transactions = build_transactions(documents, parties)

        top = candidates[0] if candidates else None
        logger.info(
            f"Ownership resolved for {label}: {len(candidates)} candidates, "
            f"top={top.name if top else None} ({top.confidence if top else 0})"
        )

        return OwnershipResult(
            candidates=candidates,
            transactions=transactions,
            corporate_registry_hits=entities,
            data_source_counts={
                "filing_documents": len(documents),
                "filing_parties": len(parties),
                "corporate_entities": len(entities),
                "housing_contacts": len(contacts),
            },
            as_of=as_of,
        )

    def corporate_lookup_patterns(
        self,
        known_names: Sequence[str],
        known_contacts: Sequence[RegistryContact],
    ) -> List[str]:
        """Search patterns for the first few distinct entity-looking known names."""
        pool: List[str] = list(known_names)
        for contact in known_contacts:
            if contact.corporate_name:
                pool.append(contact.corporate_name)
            if contact.full_name:
                pool.append(contact.full_name)

        distinct: dict[str, str] = {}
        for name in pool:
            key = self.matcher.normalize(name)
            if key and key not in distinct and self.matcher.is_lookup_entity(name):
                distinct[key] = name

        patterns = []
        for name in list(distinct.values())[:MAX_CORPORATE_LOOKUPS]:
            clean = self.matcher.strip_corporate_suffixes(name)
            if len(clean) < CORPORATE_NAME_MIN_LENGTH:
                continue
            patterns.append(clean)
        return patterns

    async def _fetch_filings(
        self, parcel: ParcelDescriptor, label: str
    ) -> Tuple[List[FilingDocument], List[FilingParty]]:
        legal_rows = await fetch_safely(
            "Filing Legals",
            self.adapter.query_filing_legals(
                ParcelFilter(
                    borough=parcel.borough_code or "",
                    block=parcel.block.strip(),
                    lot=parcel.lot.strip(),
                    limit=PARCEL_LEGALS_LIMIT,
                )
            ),
            self.timeout,
            query=label,
        )
        doc_ids = tuple(records.unique_document_ids(legal_rows)[:MAX_DOCUMENT_IDS_PER_PARCEL])
        if not doc_ids:
            return [], []

        master_rows, party_rows = await asyncio.gather(
            fetch_safely(
                "Filing Master",
                self.adapter.query_filing_master(
                    DocumentIdFilter(document_ids=doc_ids, limit=PARCEL_MASTER_LIMIT, newest_first=True)
                ),
                self.timeout,
                query=label,
                documents=len(doc_ids),
            ),
            fetch_safely(
                "Filing Parties",
                self.adapter.query_filing_parties(
                    DocumentIdFilter(document_ids=doc_ids, limit=PARCEL_PARTIES_LIMIT)
                ),
                self.timeout,
                query=label,
                documents=len(doc_ids),
            ),
        )

        documents = [d for d in map(records.to_filing_document, master_rows) if d.document_id]
        parties = [p for p in map(records.to_filing_party, party_rows) if p.document_id]
        return documents, parties

    async def _fetch_corporate_entities(self, patterns: Sequence[str], label: str) -> List[CorporateEntity]:
        if not patterns:
            return []

        batches = await asyncio.gather(
            *(
                fetch_safely(
                    "Corporate Registry",
                    self.adapter.query_corporate_registry(
                        NamePatternFilter(
                            pattern=pattern,
                            field="corp_name",
                            limit=CORPORATE_LOOKUP_LIMIT,
                            order_by="date_filed DESC",
                        )
                    ),
                    self.timeout,
                    query=pattern,
                    parcel=label,
                )
                for pattern in patterns
            )
        )

        entities: List[CorporateEntity] = []
        seen: set[tuple[str, str]] = set()
        for rows in batches:
            for entity in map(records.to_corporate_entity, rows):
                key = (entity.corp_id, entity.corp_name.upper())
                if not entity.corp_name or key in seen:
                    continue
                seen.add(key)
                entities.append(entity)
        return entities


def build_transactions(documents: Sequence[FilingDocument], parties: Sequence[FilingParty]) -> List[Transaction]:
    """Ownership-relevant filings with their parties, newest first."""
    parties_by_doc: dict[str, List[TransactionParty]] = {}
    for party in parties:
        parties_by_doc.setdefault(party.document_id, []).append(
            TransactionParty(role=party.party_role, name=party.name, address=party.address_line)
        )

    transactions = [
        Transaction(
            document_id=doc.document_id,
            doc_type=doc.doc_type,
            amount=doc.amount,
            recorded_date=doc.recorded_date,
            document_date=doc.document_date,
            parties=parties_by_doc.get(doc.document_id, []),
        )
        for doc in documents
        if doc.doc_type in OWNERSHIP_DOC_TYPES
    ]
    return sorted(transactions, key=lambda t: date_sort_key(t.recorded_date), reverse=True)


async def resolve_ownership(
    adapter: DataSourceAdapter,
    parcel: ParcelDescriptor,
    known_names: Optional[Iterable[str]] = None,
    known_contacts: Optional[Iterable[RegistryContact]] = None,
    *,
    as_of: Optional[date] = None,
    timeout: Optional[float] = None,
) -> OwnershipResult:
    enricher = OwnershipEnricher(adapter, timeout=timeout)
    return await enricher.resolve_ownership(parcel, known_names, known_contacts, as_of=as_of)
