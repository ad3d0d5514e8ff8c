from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from config.ownership import BOROUGH_CODES


class SignalSource(str, Enum):
    TAX_RECORD = "Tax Record"
    HOUSING_REGISTRY = "Housing Registry"
    DEED_FILING = "Deed Filing"
    MORTGAGE_FILING = "Mortgage Filing"
    ASSIGNMENT_FILING = "Assignment Filing"
    AGREEMENT_FILING = "Agreement Filing"
    OTHER_FILING = "Other Filing"
    CORPORATE_REGISTRY = "Corporate Registry"


class Signal(BaseModel):
    """One piece of evidence tying a name to the parcel."""

    model_config = ConfigDict(frozen=True)

    source: SignalSource
    role: str
    date: str = ""  # recorded date, or "current" for live registry data
    detail: Optional[str] = None


class ContactInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "address"
    value: str
    source: str


class OwnerCandidate(BaseModel):
    name: str
    confidence: int = 0
    signals: List[Signal] = Field(default_factory=list)
    contact_info: List[ContactInfo] = Field(default_factory=list)
    is_entity: bool = False
    linked_entities: List[str] = Field(default_factory=list)
    recommendation: str = ""
    score_breakdown: Dict[str, int] = Field(default_factory=dict)

    @property
    def sources(self) -> set[SignalSource]:
        return {s.source for s in self.signals}


class ParcelDescriptor(BaseModel):
    borough: str
    block: str
    lot: str
    address: str = ""

    @property
    def borough_code(self) -> Optional[str]:
        """Borough code "1".."5", accepting either a code or a borough name."""
        raw = (self.borough or "").strip().upper()
        if raw in BOROUGH_CODES.values():
            return raw
        return BOROUGH_CODES.get(raw)

    @property
    def is_complete(self) -> bool:
        return bool(self.borough_code and (self.block or "").strip() and (self.lot or "").strip())


class RegistryContact(BaseModel):
    """Housing-registry contact (owner, officer, agent) for a registered building."""

    registration_id: str = ""
    type: str = ""
    contact_description: str = ""
    corporate_name: str = ""
    first_name: str = ""
    last_name: str = ""
    business_address: str = ""
    business_city: str = ""
    business_state: str = ""
    business_zip: str = ""

    @property
    def display_name(self) -> str:
        if self.corporate_name.strip():
            return self.corporate_name.strip()
        return " ".join(p for p in (self.first_name.strip(), self.last_name.strip()) if p)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name.strip(), self.last_name.strip()) if p)

    @property
    def business_address_line(self) -> str:
        parts = [self.business_address, self.business_city, self.business_state, self.business_zip]
        return ", ".join(p.strip() for p in parts if p and p.strip())


class CorporateEntity(BaseModel):
    corp_id: str = ""
    corp_name: str = ""
    status: str = "Inactive"  # Active / Inactive
    date_filed: str = ""


class FilingLegal(BaseModel):
    document_id: str
    borough: str = ""
    block: str = ""
    lot: str = ""
    street_number: str = ""
    street_name: str = ""

    @property
    def address(self) -> str:
        if not self.street_number:
            return ""
        return f"{self.street_number} {self.street_name}".strip()


class FilingDocument(BaseModel):
    document_id: str
    doc_type: str = ""
    amount: int = 0
    recorded_date: str = ""
    document_date: str = ""


class FilingParty(BaseModel):
    document_id: str
    party_role: str = "Other"  # Grantee / Grantor / Other
    name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    @property
    def address_line(self) -> str:
        parts = [self.address1, self.address2, self.city, self.state, self.zip]
        return ", ".join(p.strip() for p in parts if p and p.strip())


class HousingRegistration(BaseModel):
    registration_id: str = ""
    borough_code: str = ""
    borough: str = ""
    block: str = ""
    lot: str = ""
    house_number: str = ""
    street_name: str = ""
    zip: str = ""
    bin: str = ""
    last_registration_date: str = ""

    @property
    def address(self) -> str:
        if not self.house_number:
            return ""
        return f"{self.house_number} {self.street_name}".strip()


class TaxLot(BaseModel):
    block: str = ""
    lot: str = ""
    address: str = ""
    owner_name: str = ""
    units_residential: int = 0
    units_total: int = 0
    year_built: int = 0
    num_floors: int = 0
    building_area: int = 0
    lot_area: int = 0
    zoning: str = ""
    assessed_total: int = 0


class TransactionParty(BaseModel):
    role: str
    name: str
    address: str = ""


class Transaction(BaseModel):
    document_id: str
    doc_type: str
    amount: int = 0
    recorded_date: str = ""
    document_date: str = ""
    parties: List[TransactionParty] = Field(default_factory=list)


class OwnershipResult(BaseModel):
    candidates: List[OwnerCandidate] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    corporate_registry_hits: List[CorporateEntity] = Field(default_factory=list)
    data_source_counts: Dict[str, int] = Field(default_factory=dict)
    as_of: Optional[date] = None


class PortfolioDocument(BaseModel):
    doc_type: str = ""
    role: str = ""
    amount: int = 0
    recorded_date: str = ""
    name: str = ""


class PortfolioProperty(BaseModel):
    borough_code: str
    block: str
    lot: str
    borough: str = ""
    address: str = ""
    matched_via: str = ""
    documents: List[PortfolioDocument] = Field(default_factory=list)
    owner_name: str = ""
    units: int = 0
    year_built: int = 0
    assessed_value: int = 0
    num_floors: int = 0
    building_area: int = 0
    zoning: str = ""

    @property
    def key(self) -> str:
        return parcel_key(self.borough_code, self.block, self.lot)


class PortfolioResult(BaseModel):
    properties: List[PortfolioProperty] = Field(default_factory=list)
    searched_names: List[str] = Field(default_factory=list)
    searched_addresses: List[str] = Field(default_factory=list)


def lot_key(block: str, lot: str) -> Tuple[str, str]:
    # Sources disagree on zero padding ("0012" vs "12")
    return (block.strip().lstrip("0") or "0", lot.strip().lstrip("0") or "0")


def parcel_key(borough_code: str, block: str, lot: str) -> str:
    block, lot = lot_key(block, lot)
    return f"{borough_code.strip()}-{block}-{lot}"
