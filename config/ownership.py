"""
Ownership Resolution Configuration.

Controls the parcel ownership resolver and the portfolio discovery pass:
query caps, scoring weights, and the name-matching vocabulary.
"""

import os

# Per-adapter timeout (seconds). A timed-out call counts as "no data".
ADAPTER_TIMEOUT_SECONDS = float(os.getenv("OWNER_INTEL_ADAPTER_TIMEOUT", "8.0"))

# NYC / NYS Open Data (Socrata) endpoints
NYC_OPEN_DATA_BASE_URL = os.getenv("NYC_OPEN_DATA_BASE_URL", "https://data.cityofnewyork.us/resource")
NYS_OPEN_DATA_BASE_URL = os.getenv("NYS_OPEN_DATA_BASE_URL", "https://data.ny.gov/resource")
SOCRATA_APP_TOKEN = os.getenv("SOCRATA_APP_TOKEN")

# Dataset ids
DATASET_FILING_LEGALS = "8h5j-fqxa"
DATASET_FILING_MASTER = "bnx9-e6tj"
DATASET_FILING_PARTIES = "636b-3b5g"
DATASET_CORPORATE_REGISTRY = "ekwr-p59j"
DATASET_HOUSING_CONTACTS = "feu5-w2e2"
DATASET_HOUSING_REGISTRATIONS = "tesw-yqqr"
DATASET_TAX_LOTS = "64uk-42ks"

# Boroughs
BOROUGH_CODES = {
    "MANHATTAN": "1",
    "BRONX": "2",
    "BROOKLYN": "3",
    "QUEENS": "4",
    "STATEN ISLAND": "5",
}
BOROUGH_NAMES = {code: name.title() for name, code in BOROUGH_CODES.items()}
DEFAULT_BOROUGH_CODE = "3"

# Parcel resolution limits
PARCEL_LEGALS_LIMIT = 50
PARCEL_MASTER_LIMIT = 100
PARCEL_PARTIES_LIMIT = 200
MAX_DOCUMENT_IDS_PER_PARCEL = 30
MAX_CORPORATE_LOOKUPS = 3
CORPORATE_LOOKUP_LIMIT = 10
CORPORATE_NAME_MIN_LENGTH = 3

# Portfolio discovery limits
PORTFOLIO_MAX_INDIVIDUALS = 3
PORTFOLIO_MAX_ENTITIES = 2
PORTFOLIO_MAX_NAMES = 5
PORTFOLIO_ADDRESS_CANDIDATES = 5
PORTFOLIO_ADDRESS_MIN_LENGTH = 10
PORTFOLIO_PARTY_LIMIT = 80
MAX_DOCUMENT_IDS_PER_NAME = 40
PORTFOLIO_LEGALS_LIMIT = 200
PORTFOLIO_MASTER_LIMIT = 200
HOUSING_CONTACT_LIMIT = 50
MAX_REGISTRATION_IDS = 30
HOUSING_REGISTRATION_LIMIT = 100
TAX_LOT_BATCH_SIZE = 20
TAX_LOT_LIMIT = 50
USABLE_ADDRESS_MIN_LENGTH = 5

# Filing document types
DOC_TYPE_DEED = "DEED"
DOC_TYPE_MORTGAGE = "MTGE"
DOC_TYPE_ASSIGNMENT = "ASST"
DOC_TYPE_AGREEMENT = "AGMT"
OWNERSHIP_DOC_TYPES = {DOC_TYPE_DEED, DOC_TYPE_MORTGAGE, DOC_TYPE_ASSIGNMENT, DOC_TYPE_AGREEMENT}

# Filing party codes
PARTY_CODE_GRANTEE = "1"
PARTY_CODE_GRANTOR = "2"

# Organizational keywords (word-boundary, case-insensitive)
ENTITY_KEYWORDS = [
    "LLC",
    "INC",
    "CORP",
    "CORPORATION",
    "COMPANY",
    "CO",
    "LTD",
    "LP",
    "PARTNERSHIP",
    "TRUST",
    "ASSOC",
    "ASSOCIATES",
]

# Extra keywords used only when picking names for corporate registry lookups
CORPORATE_LOOKUP_KEYWORDS = ENTITY_KEYWORDS + [
    "REALTY",
    "PROPERTIES",
    "MANAGEMENT",
    "GROUP",
    "CAPITAL",
    "HOLDINGS",
]

# Suffixes stripped before searching the corporate registry
CORPORATE_SUFFIXES = [
    "LLC",
    "INC",
    "CORP",
    "CORPORATION",
    "COMPANY",
    "CO",
    "LTD",
    "LP",
    "PARTNERSHIP",
]

# Scoring weights
SCORE_PER_SOURCE = 8
SCORE_SOURCE_CAP = 25
SCORE_INDIVIDUAL_BONUS = 20
SCORE_ENTITY_PENALTY = -10
SCORE_DEED_GRANTEE = 30
SCORE_MORTGAGE_BORROWER = 25
SCORE_REGISTRY_OWNER = 20
SCORE_TAX_RECORD = 15
SCORE_RECENCY_TIERS = [(1, 20), (3, 15), (5, 10)]
SCORE_RECENCY_FLOOR = 5
SCORE_PER_CONTACT = 5
SCORE_CONTACT_CAP = 10
SCORE_REGISTERED_ENTITY = 10
SCORE_INDIVIDUAL_ON_DEED = 5
SCORE_LINKED_INDIVIDUAL = 10
SCORE_GRANTOR_ONLY_PENALTY = -20
SCORE_AGENT_ONLY_PENALTY = -15

# Recommendation thresholds
CONFIDENCE_HIGH = 75
CONFIDENCE_MODERATE = 50
CONFIDENCE_LOW = 25
