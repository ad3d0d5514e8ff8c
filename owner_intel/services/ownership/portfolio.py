"""
Portfolio Discovery Orchestrator - finds the other parcels tied to resolved owners.

Phases:
1. pick search names (top individuals + top entities) and address prefixes
2. per name, concurrently: filing parties by name -> legals + master for
   their documents; housing contacts by name -> registrations
3. merge everything into one parcel map (first writer creates the entry)
4. tax-lot enrichment for parcels missing an address or building data
5. newest documents first
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from config import ownership as cfg
from owner_intel.models.ownership import (
    FilingDocument,
    FilingLegal,
    FilingParty,
    HousingRegistration,
    OwnerCandidate,
    PortfolioDocument,
    PortfolioProperty,
    PortfolioResult,
    TaxLot,
    lot_key,
    parcel_key,
)
from owner_intel.services.ownership import records
from owner_intel.services.ownership.adapters import (
    DataSourceAdapter,
    DocumentIdFilter,
    NamePatternFilter,
    RegistrationIdFilter,
    TaxLotFilter,
    fetch_safely,
)
from owner_intel.utils.name_matcher import NameMatcher, default_matcher
from owner_intel.utils.time import date_sort_key

REGISTRY_DOC_TYPE = "HPD"
REGISTRY_ROLE = "Registered"


@dataclass(slots=True)
class NameFilings:
    """Filing records found for one search name."""

    name: str
    legals: List[FilingLegal] = field(default_factory=list)
    documents: List[FilingDocument] = field(default_factory=list)
    parties: List[FilingParty] = field(default_factory=list)


@dataclass(slots=True)
class NameRegistrations:
    name: str
    registrations: List[HousingRegistration] = field(default_factory=list)


class PortfolioDiscovery:

    def __init__(
        self,
        adapter: DataSourceAdapter,
        matcher: Optional[NameMatcher] = None,
        timeout: Optional[float] = None,
    ):
        self.adapter = adapter
        self.matcher = matcher or default_matcher
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Search terms
    # ------------------------------------------------------------------

    def search_names(self, candidates: Sequence[OwnerCandidate]) -> List[str]:
        individuals = [c for c in candidates if not c.is_entity][: cfg.PORTFOLIO_MAX_INDIVIDUALS]
        entities = [c for c in candidates if c.is_entity][: cfg.PORTFOLIO_MAX_ENTITIES]

        names: List[str] = []
        for candidate in individuals + entities:
            name = self.matcher.normalize(candidate.name)
            if name and name not in names:
                names.append(name)
        return names[: cfg.PORTFOLIO_MAX_NAMES]

    def search_addresses(self, candidates: Sequence[OwnerCandidate]) -> List[str]:
        """Street-level prefixes ("45 PARK AVE") of the leading candidates' addresses."""
        addresses: List[str] = []
        for candidate in candidates[: cfg.PORTFOLIO_ADDRESS_CANDIDATES]:
            for contact in candidate.contact_info:
                if contact.type != "address" or len(contact.value) <= cfg.PORTFOLIO_ADDRESS_MIN_LENGTH:
                    continue
                prefix = contact.value.split(",")[0].strip().upper()
                if prefix and prefix not in addresses:
                    addresses.append(prefix)
        return addresses

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def discover_portfolio(self, candidates: Iterable[OwnerCandidate]) -> PortfolioResult:
        candidates = list(candidates)
        names = self.search_names(candidates)
        addresses = self.search_addresses(candidates)

        logger.info(f"Portfolio discovery: names={names} addresses={addresses}")
        if not names:
            return PortfolioResult(searched_names=names, searched_addresses=addresses)

        results = await asyncio.gather(
            *(self._search_filings(name) for name in names),
            *(self._search_registrations(name) for name in names),
        )
        filings: List[NameFilings] = list(results[: len(names)])
        registrations: List[NameRegistrations] = list(results[len(names):])

        parcels: Dict[str, PortfolioProperty] = {}
        for found in filings:
            merge_filings(parcels, found)
        for found in registrations:
            merge_registrations(parcels, found)

        await self._enrich_with_tax_lots(list(parcels.values()))

        properties = sort_by_latest_document(parcels.values())
        logger.info(f"Portfolio discovery complete: {len(properties)} properties")
        return PortfolioResult(properties=properties, searched_names=names, searched_addresses=addresses)

    async def _search_filings(self, name: str) -> NameFilings:
        found = NameFilings(name=name)
        party_rows = await fetch_safely(
            "Filing Parties",
            self.adapter.query_filing_parties_by_name(
                NamePatternFilter(pattern=name, field="name", limit=cfg.PORTFOLIO_PARTY_LIMIT)
            ),
            self.timeout,
            query=name,
        )
        doc_ids = tuple(records.unique_document_ids(party_rows)[: cfg.MAX_DOCUMENT_IDS_PER_NAME])
        if not doc_ids:
            return found

        legal_rows, master_rows = await asyncio.gather(
            fetch_safely(
                "Filing Legals",
                self.adapter.query_filing_legals_by_documents(
                    DocumentIdFilter(document_ids=doc_ids, limit=cfg.PORTFOLIO_LEGALS_LIMIT)
                ),
                self.timeout,
                query=name,
                documents=len(doc_ids),
            ),
            fetch_safely(
                "Filing Master",
                self.adapter.query_filing_master(
                    DocumentIdFilter(document_ids=doc_ids, limit=cfg.PORTFOLIO_MASTER_LIMIT)
                ),
                self.timeout,
                query=name,
                documents=len(doc_ids),
            ),
        )

        found.parties = [p for p in map(records.to_filing_party, party_rows) if p.document_id]
        found.legals = [legal for legal in map(records.to_filing_legal, legal_rows) if legal.document_id]
        found.documents = [d for d in map(records.to_filing_document, master_rows) if d.document_id]
        return found

    async def _search_registrations(self, name: str) -> NameRegistrations:
        found = NameRegistrations(name=name)
        if self.matcher.is_entity(name):
            search_field, term = "corporationname", name
        else:
            search_field, term = "lastname", name.split(" ")[-1]

        contact_rows = await fetch_safely(
            "Housing Contacts",
            self.adapter.query_housing_registry_contacts(
                NamePatternFilter(pattern=term, field=search_field, limit=cfg.HOUSING_CONTACT_LIMIT)
            ),
            self.timeout,
            query=term,
            field=search_field,
        )
        reg_ids = tuple(records.unique_document_ids(contact_rows, key="registrationid")[: cfg.MAX_REGISTRATION_IDS])
        if not reg_ids:
            return found

        reg_rows = await fetch_safely(
            "Housing Registrations",
            self.adapter.query_housing_registry(
                RegistrationIdFilter(registration_ids=reg_ids, limit=cfg.HOUSING_REGISTRATION_LIMIT)
            ),
            self.timeout,
            query=name,
            registrations=len(reg_ids),
        )
        found.registrations = list(map(records.to_housing_registration, reg_rows))
        return found

    async def _enrich_with_tax_lots(self, properties: List[PortfolioProperty]) -> int:
        """Fill empty building fields from the tax-lot dataset. Returns parcels enriched."""
        needing = [
            p
            for p in properties
            if len(p.address.strip()) < cfg.USABLE_ADDRESS_MIN_LENGTH
            or not p.units
            or not p.year_built
            or not p.assessed_value
        ]
        if not needing:
            return 0

        by_borough: Dict[str, List[PortfolioProperty]] = {}
        for prop in needing:
            by_borough.setdefault(prop.borough_code or cfg.DEFAULT_BOROUGH_CODE, []).append(prop)

        batches: List[Tuple[str, List[PortfolioProperty]]] = []
        for borough, props in by_borough.items():
            for start in range(0, len(props), cfg.TAX_LOT_BATCH_SIZE):
                batches.append((borough, props[start : start + cfg.TAX_LOT_BATCH_SIZE]))

        rows_per_batch = await asyncio.gather(
            *(
                fetch_safely(
                    "Tax Lots",
                    self.adapter.query_tax_assessment(
                        TaxLotFilter(
                            borough=borough,
                            lots=tuple(lot_key(p.block, p.lot) for p in props),
                            limit=cfg.TAX_LOT_LIMIT,
                        )
                    ),
                    self.timeout,
                    query=borough,
                    lots=len(props),
                )
                for borough, props in batches
            )
        )

        enriched = 0
        for (_, props), rows in zip(batches, rows_per_batch):
            lookup = {lot_key(p.block, p.lot): p for p in props}
            for lot in map(records.to_tax_lot, rows):
                prop = lookup.get(lot_key(lot.block, lot.lot))
                if prop is not None:
                    apply_tax_lot(prop, lot)
                    enriched += 1
        return enriched


# ----------------------------------------------------------------------
# Parcel map merging
# ----------------------------------------------------------------------


def _prefer_longer(current: str, candidate: str) -> str:
    candidate = (candidate or "").strip()
    if len(candidate) > len((current or "").strip()):
        return candidate
    return current


def _get_or_create_parcel(
    parcels: Dict[str, PortfolioProperty],
    borough_code: str,
    block: str,
    lot: str,
    borough: str,
    address: str,
    matched_via: str,
) -> PortfolioProperty:
    key = parcel_key(borough_code, block, lot)
    prop = parcels.get(key)
    if prop is None:
        prop = PortfolioProperty(
            borough_code=borough_code,
            block=block,
            lot=lot,
            borough=borough,
            address=address,
            matched_via=matched_via,
        )
        parcels[key] = prop
    else:
        prop.address = _prefer_longer(prop.address, address)
        if not prop.borough:
            prop.borough = borough
    return prop


def _append_document(prop: PortfolioProperty, doc: PortfolioDocument) -> bool:
    if doc in prop.documents:
        return False
    prop.documents.append(doc)
    return True


def merge_filings(parcels: Dict[str, PortfolioProperty], found: NameFilings) -> int:
    """Attach one name's filings to the parcel map. Returns documents added."""
    masters: Dict[str, FilingDocument] = {}
    for doc in found.documents:
        masters.setdefault(doc.document_id, doc)
    parties: Dict[str, FilingParty] = {}
    for party in found.parties:
        parties.setdefault(party.document_id, party)

    added = 0
    for legal in found.legals:
        if not legal.block or not legal.lot:
            continue
        prop = _get_or_create_parcel(
            parcels,
            borough_code=legal.borough,
            block=legal.block,
            lot=legal.lot,
            borough=cfg.BOROUGH_NAMES.get(legal.borough, legal.borough),
            address=legal.address,
            matched_via=found.name,
        )
        master = masters.get(legal.document_id)
        party = parties.get(legal.document_id)
        doc = PortfolioDocument(
            doc_type=master.doc_type if master else "",
            role="Grantee" if party and party.party_role == "Grantee" else "Grantor",
            amount=master.amount if master else 0,
            recorded_date=master.recorded_date if master else "",
            name=party.name if party and party.name else found.name,
        )
        if _append_document(prop, doc):
            added += 1
    return added


def merge_registrations(parcels: Dict[str, PortfolioProperty], found: NameRegistrations) -> int:
    """Attach one name's housing registrations. Returns parcels touched."""
    touched = 0
    for reg in found.registrations:
        if not reg.block or not reg.lot:
            continue
        prop = _get_or_create_parcel(
            parcels,
            borough_code=reg.borough_code,
            block=reg.block,
            lot=reg.lot,
            borough=reg.borough,
            address=reg.address,
            matched_via=f"{found.name} (HPD)",
        )
        if not any(d.role == REGISTRY_ROLE for d in prop.documents):
            prop.documents.append(
                PortfolioDocument(doc_type=REGISTRY_DOC_TYPE, role=REGISTRY_ROLE, name=found.name)
            )
        touched += 1
    return touched


def apply_tax_lot(prop: PortfolioProperty, lot: TaxLot) -> None:
    """Fill only what is missing; a longer address wins."""
    prop.address = _prefer_longer(prop.address, lot.address)
    if not prop.owner_name:
        prop.owner_name = lot.owner_name
    if not prop.units:
        prop.units = lot.units_residential
    if not prop.year_built:
        prop.year_built = lot.year_built
    if not prop.assessed_value:
        prop.assessed_value = lot.assessed_total
    if not prop.num_floors:
        prop.num_floors = lot.num_floors
    if not prop.building_area:
        prop.building_area = lot.building_area
    if not prop.zoning:
        prop.zoning = lot.zoning


def latest_document_key(prop: PortfolioProperty) -> float:
    return max((date_sort_key(d.recorded_date) for d in prop.documents), default=float("-inf"))


def sort_by_latest_document(properties: Iterable[PortfolioProperty]) -> List[PortfolioProperty]:
    return sorted(properties, key=latest_document_key, reverse=True)


async def discover_portfolio(
    adapter: DataSourceAdapter,
    candidates: Iterable[OwnerCandidate],
    *,
    timeout: Optional[float] = None,
) -> PortfolioResult:
    discovery = PortfolioDiscovery(adapter, timeout=timeout)
    return await discovery.discover_portfolio(candidates)
