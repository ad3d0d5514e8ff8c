"""
Candidate Graph - deduplicated owner identities for one resolution run.

Candidates live in an arena (list) and are addressed by integer index.
``get_or_create`` is the single merge point: every signal, contact and link
goes through an index it returned. Nothing is shared between runs.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from owner_intel.models.ownership import ContactInfo, OwnerCandidate, Signal
from owner_intel.utils.name_matcher import NameMatcher, default_matcher


class CandidateGraph:

    def __init__(self, matcher: Optional[NameMatcher] = None):
        self.matcher = matcher or default_matcher
        self._candidates: List[OwnerCandidate] = []
        self._index: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[OwnerCandidate]:
        return iter(self._candidates)

    def get(self, idx: int) -> OwnerCandidate:
        return self._candidates[idx]

    def get_or_create(self, raw_name: Optional[str]) -> Optional[int]:
        """
        Index of the candidate this name belongs to, creating one if needed.

        Returns None for names that normalize to "" (the caller drops those).
        Lookup is exact on the normalized key first, then a names_match scan
        over existing keys in creation order.
        """
        normalized = self.matcher.normalize(raw_name)
        if not normalized:
            return None

        idx = self._index.get(normalized)
        if idx is not None:
            return idx

        for key, existing in self._index.items():
            if self.matcher.names_match(key, normalized):
                return existing

        candidate = OwnerCandidate(name=normalized, is_entity=self.matcher.is_entity(raw_name))
        self._candidates.append(candidate)
        idx = len(self._candidates) - 1
        self._index[normalized] = idx
        return idx

    def add_signal(self, idx: int, signal: Signal) -> None:
        self._candidates[idx].signals.append(signal)

    def add_contact(self, idx: int, contact: ContactInfo) -> bool:
        """Record a contact unless the same value is already on the candidate."""
        candidate = self._candidates[idx]
        if not contact.value or any(ci.value == contact.value for ci in candidate.contact_info):
            return False
        candidate.contact_info.append(contact)
        return True

    def link(self, entity_idx: int, individual_idx: int) -> None:
        """Bidirectional controls / controlled-by relation, deduplicated."""
        entity = self._candidates[entity_idx]
        individual = self._candidates[individual_idx]
        if individual.name not in entity.linked_entities:
            entity.linked_entities.append(individual.name)
        if entity.name not in individual.linked_entities:
            individual.linked_entities.append(entity.name)

    def indices(self) -> range:
        return range(len(self._candidates))

    def candidates(self) -> List[OwnerCandidate]:
        return list(self._candidates)
