"""
Record mapping for the public-record datasets.

Adapters hand back raw rows keyed by the upstream (NYC / NYS Open Data)
column names. Everything downstream works on the typed models built here.
"""

from __future__ import annotations

from typing import Any, Iterable

from config.ownership import BOROUGH_NAMES, PARTY_CODE_GRANTEE, PARTY_CODE_GRANTOR
from owner_intel.models.ownership import (
    CorporateEntity,
    FilingDocument,
    FilingLegal,
    FilingParty,
    HousingRegistration,
    RegistryContact,
    TaxLot,
)


def _text(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def _int(row: dict[str, Any], key: str) -> int:
    """Leading-integer parse ("1250000.00" -> 1250000); garbage gives 0."""
    raw = _text(row, key)
    if not raw:
        return 0
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        digits = ""
        for ch in raw.lstrip("-"):
            if not ch.isdigit():
                break
            digits += ch
        return int(digits) if digits else 0


def party_role_from_code(code: str) -> str:
    if code == PARTY_CODE_GRANTEE:
        return "Grantee"
    if code == PARTY_CODE_GRANTOR:
        return "Grantor"
    return "Other"


def to_filing_legal(row: dict[str, Any]) -> FilingLegal:
    return FilingLegal(
        document_id=_text(row, "document_id"),
        borough=_text(row, "borough"),
        block=_text(row, "block"),
        lot=_text(row, "lot"),
        street_number=_text(row, "street_number"),
        street_name=_text(row, "street_name"),
    )


def to_filing_document(row: dict[str, Any]) -> FilingDocument:
    return FilingDocument(
        document_id=_text(row, "document_id"),
        doc_type=_text(row, "doc_type").upper(),
        amount=_int(row, "document_amt"),
        recorded_date=_text(row, "recorded_datetime"),
        document_date=_text(row, "document_date"),
    )


def to_filing_party(row: dict[str, Any]) -> FilingParty:
    return FilingParty(
        document_id=_text(row, "document_id"),
        party_role=party_role_from_code(_text(row, "party_type")),
        name=_text(row, "name"),
        address1=_text(row, "address_1"),
        address2=_text(row, "address_2"),
        city=_text(row, "city"),
        state=_text(row, "state"),
        zip=_text(row, "zip"),
    )


def to_corporate_entity(row: dict[str, Any]) -> CorporateEntity:
    return CorporateEntity(
        corp_id=_text(row, "corpid_num"),
        corp_name=_text(row, "corp_name"),
        status="Active" if _text(row, "name_status").upper() == "A" else "Inactive",
        date_filed=_text(row, "date_filed"),
    )


def to_registry_contact(row: dict[str, Any]) -> RegistryContact:
    street = " ".join(
        p for p in (_text(row, "businesshousenumber"), _text(row, "businessstreetname")) if p
    )
    return RegistryContact(
        registration_id=_text(row, "registrationid"),
        type=_text(row, "type"),
        contact_description=_text(row, "contactdescription"),
        corporate_name=_text(row, "corporationname"),
        first_name=_text(row, "firstname"),
        last_name=_text(row, "lastname"),
        business_address=street,
        business_city=_text(row, "businesscity"),
        business_state=_text(row, "businessstate"),
        business_zip=_text(row, "businesszip"),
    )


def to_housing_registration(row: dict[str, Any]) -> HousingRegistration:
    borough_code = _text(row, "boroid")
    return HousingRegistration(
        registration_id=_text(row, "registrationid"),
        borough_code=borough_code,
        borough=_text(row, "boro") or BOROUGH_NAMES.get(borough_code, ""),
        block=_text(row, "block"),
        lot=_text(row, "lot"),
        house_number=_text(row, "housenumber"),
        street_name=_text(row, "streetname"),
        zip=_text(row, "zip"),
        bin=_text(row, "bin"),
        last_registration_date=_text(row, "lastregistrationdate"),
    )


def to_tax_lot(row: dict[str, Any]) -> TaxLot:
    return TaxLot(
        block=_text(row, "block"),
        lot=_text(row, "lot"),
        address=_text(row, "address"),
        owner_name=_text(row, "ownername"),
        units_residential=_int(row, "unitsres"),
        units_total=_int(row, "unitstotal"),
        year_built=_int(row, "yearbuilt"),
        num_floors=_int(row, "numfloors"),
        building_area=_int(row, "bldgarea"),
        lot_area=_int(row, "lotarea"),
        zoning=_text(row, "zonedist1"),
        assessed_total=_int(row, "assesstot"),
    )


def unique_document_ids(rows: Iterable[dict[str, Any]], key: str = "document_id") -> list[str]:
    """Distinct non-empty ids in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        doc_id = _text(row, key)
        if doc_id and doc_id not in seen:
            seen[doc_id] = None
    return list(seen)
