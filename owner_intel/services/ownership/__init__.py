"""
Building ownership resolution.

Resolves the likely controlling owner behind a parcel from public records,
then discovers the other parcels those owners hold.

Modules:
- adapters: Data source interface, query filters, safe fetching
- records: Upstream row -> model mapping
- candidate_graph: Deduplicated candidate identities
- signal_collector: Evidence collection per source
- entity_linker: Entity <-> individual links via shared addresses
- scorer: Confidence scoring and recommendations
- enrichment: Per-parcel ownership resolution
- portfolio: Portfolio discovery for resolved owners
"""

from owner_intel.services.ownership.adapters import DataSourceAdapter, DataSourceError, fetch_safely
from owner_intel.services.ownership.candidate_graph import CandidateGraph
from owner_intel.services.ownership.scorer import ConfidenceScorer
from owner_intel.services.ownership.enrichment import OwnershipEnricher, resolve_ownership
from owner_intel.services.ownership.portfolio import PortfolioDiscovery, discover_portfolio

__all__ = [
    "CandidateGraph",
    "ConfidenceScorer",
    "DataSourceAdapter",
    "DataSourceError",
    "OwnershipEnricher",
    "PortfolioDiscovery",
    "discover_portfolio",
    "fetch_safely",
    "resolve_ownership",
]
