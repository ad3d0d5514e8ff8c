"""
Owner Intel: building ownership resolution over NYC public records.

Callers own logging setup; entry points call ``setup_default_logging()`` once
before resolving.
"""

from owner_intel.models.ownership import (
    ContactInfo,
    CorporateEntity,
    OwnerCandidate,
    OwnershipResult,
    ParcelDescriptor,
    PortfolioProperty,
    PortfolioResult,
    RegistryContact,
    Signal,
    SignalSource,
    Transaction,
)
from owner_intel.services.ownership import (
    DataSourceAdapter,
    DataSourceError,
    OwnershipEnricher,
    PortfolioDiscovery,
    discover_portfolio,
    resolve_ownership,
)
from owner_intel.utils.logging_config import setup_default_logging
from owner_intel.utils.name_matcher import NameMatcher

__all__ = [
    "ContactInfo",
    "CorporateEntity",
    "DataSourceAdapter",
    "DataSourceError",
    "NameMatcher",
    "OwnerCandidate",
    "OwnershipEnricher",
    "OwnershipResult",
    "ParcelDescriptor",
    "PortfolioDiscovery",
    "PortfolioProperty",
    "PortfolioResult",
    "RegistryContact",
    "Signal",
    "SignalSource",
    "Transaction",
    "discover_portfolio",
    "resolve_ownership",
    "setup_default_logging",
]
