"""
Confidence Scorer - heuristic 0-100 ranking of owner candidates.

Each candidate is scored from its own signals and contacts. The one
cross-candidate input is the linked-individual bonus, which needs the entity
links to be built first; it is itemized in ``score_breakdown`` like every
other component.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from config import ownership as cfg
from owner_intel.models.ownership import OwnerCandidate, SignalSource
from owner_intel.utils.time import parse_date, today_local, years_between


@dataclass(frozen=True)
class RoleFlags:
    deed_grantee: bool
    mortgage_borrower: bool
    registry_owner: bool
    tax_record: bool
    corporate_registry: bool
    grantor_only: bool
    agent_only: bool


def role_flags(candidate: OwnerCandidate) -> RoleFlags:
    signals = candidate.signals
    roles = [s.role.lower() for s in signals]
    return RoleFlags(
        deed_grantee=any("deed grantee" in r for r in roles),
        mortgage_borrower=any("mortgage borrower" in r for r in roles),
        registry_owner=any(
            s.source == SignalSource.HOUSING_REGISTRY and "owner" in s.role.lower() for s in signals
        ),
        tax_record=any(s.source == SignalSource.TAX_RECORD for s in signals),
        corporate_registry=any(s.source == SignalSource.CORPORATE_REGISTRY for s in signals),
        grantor_only=bool(roles) and all("grantor" in r or "seller" in r for r in roles),
        agent_only=bool(roles) and all("agent" in r for r in roles),
    )


class ConfidenceScorer:

    def __init__(self, as_of: Optional[date] = None):
        self.as_of = as_of or today_local()

    def most_recent_signal_date(self, candidate: OwnerCandidate) -> Optional[date]:
        dates = [parse_date(s.date) for s in candidate.signals]
        dates = [d for d in dates if d is not None]
        return max(dates) if dates else None

    def recency_points(self, candidate: OwnerCandidate) -> int:
        latest = self.most_recent_signal_date(candidate)
        if latest is None:
            return 0
        years_ago = years_between(latest, self.as_of)
        for limit, points in cfg.SCORE_RECENCY_TIERS:
            if years_ago < limit:
                return points
        return cfg.SCORE_RECENCY_FLOOR

    def breakdown(self, candidate: OwnerCandidate) -> dict[str, int]:
        flags = role_flags(candidate)
        parts: dict[str, int] = {}

        parts["source_diversity"] = min(len(candidate.sources) * cfg.SCORE_PER_SOURCE, cfg.SCORE_SOURCE_CAP)
        parts["entity_type"] = cfg.SCORE_ENTITY_PENALTY if candidate.is_entity else cfg.SCORE_INDIVIDUAL_BONUS

        if flags.deed_grantee:
            parts["role_authority"] = cfg.SCORE_DEED_GRANTEE
        elif flags.mortgage_borrower:
            parts["role_authority"] = cfg.SCORE_MORTGAGE_BORROWER
        elif flags.registry_owner:
            parts["role_authority"] = cfg.SCORE_REGISTRY_OWNER
        elif flags.tax_record:
            parts["role_authority"] = cfg.SCORE_TAX_RECORD
        else:
            parts["role_authority"] = 0

        parts["recency"] = self.recency_points(candidate)
        parts["contact_richness"] = min(len(candidate.contact_info) * cfg.SCORE_PER_CONTACT, cfg.SCORE_CONTACT_CAP)

        if candidate.is_entity and flags.corporate_registry:
            parts["registered_entity"] = cfg.SCORE_REGISTERED_ENTITY
        if not candidate.is_entity and flags.deed_grantee:
            parts["individual_on_deed"] = cfg.SCORE_INDIVIDUAL_ON_DEED
        if not candidate.is_entity and candidate.linked_entities:
            parts["linked_individual"] = cfg.SCORE_LINKED_INDIVIDUAL
        if flags.grantor_only:
            parts["grantor_only"] = cfg.SCORE_GRANTOR_ONLY_PENALTY
        if flags.agent_only:
            parts["agent_only"] = cfg.SCORE_AGENT_ONLY_PENALTY

        return parts

    def score(self, candidate: OwnerCandidate) -> int:
        """Finalize one candidate: confidence, breakdown and recommendation."""
        parts = self.breakdown(candidate)
        candidate.score_breakdown = parts
        candidate.confidence = max(0, min(100, sum(parts.values())))
        candidate.recommendation = recommendation(candidate, role_flags(candidate))
        return candidate.confidence


def recommendation(candidate: OwnerCandidate, flags: RoleFlags) -> str:
    source_count = len(candidate.sources)
    linked = ", ".join(candidate.linked_entities)

    if candidate.confidence >= cfg.CONFIDENCE_HIGH:
        if candidate.is_entity:
            text = "Registered entity. "
            text += f"Likely controlled by: {linked}. " if linked else "Individual owner not yet identified. "
            return text + f"Appears across {source_count} sources."
        text = "LIKELY TRUE OWNER. "
        if flags.deed_grantee:
            text += "Named on deed. "
        if flags.mortgage_borrower:
            text += "Named on mortgage. "
        if linked:
            text += f"Controls: {linked}. "
        if candidate.contact_info:
            text += "Contact info available."
        return text.strip()

    if candidate.confidence >= cfg.CONFIDENCE_MODERATE:
        kind = "Registered entity" if candidate.is_entity else "Individual"
        return (
            f"Moderate confidence. {kind} with {len(candidate.signals)} signals "
            f"across {source_count} sources."
        )

    if candidate.confidence >= cfg.CONFIDENCE_LOW:
        return "Low confidence. Limited data - may be agent, previous owner, or related party."

    return "Unlikely current owner. Possibly previous owner or third party."
