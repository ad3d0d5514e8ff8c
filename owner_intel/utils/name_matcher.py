"""
Name Matcher Utility.

Canonicalizes owner-name spellings from the public-record sources and decides
whether two spellings denote the same owner. Matching is deliberately loose:
over-merging is preferred to splitting one owner across two spellings.
"""

import re
from typing import Iterable, Optional

from config.ownership import (
    CORPORATE_LOOKUP_KEYWORDS,
    CORPORATE_SUFFIXES,
    ENTITY_KEYWORDS,
)

_STRIP_CHARS = re.compile(r"[,.'\"’]")
_WHITESPACE = re.compile(r"\s+")


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern:
    alternation = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b({alternation})\b", re.IGNORECASE)


class NameMatcher:

    def __init__(
        self,
        entity_keywords: Optional[Iterable[str]] = None,
        lookup_keywords: Optional[Iterable[str]] = None,
        corporate_suffixes: Optional[Iterable[str]] = None,
    ):
        self.entity_keywords = list(entity_keywords or ENTITY_KEYWORDS)
        self.lookup_keywords = list(lookup_keywords or CORPORATE_LOOKUP_KEYWORDS)
        self.corporate_suffixes = list(corporate_suffixes or CORPORATE_SUFFIXES)
        self._entity_re = _keyword_pattern(self.entity_keywords)
        self._lookup_re = _keyword_pattern(self.lookup_keywords)
        self._suffix_re = _keyword_pattern(self.corporate_suffixes)

    @staticmethod
    def normalize(name: Optional[str]) -> str:
        """
        Uppercase, drop commas/periods/quotes, collapse whitespace.

        Never fails: empty or missing input gives "".
        """
        if not name:
            return ""
        clean = _STRIP_CHARS.sub("", name.upper())
        return _WHITESPACE.sub(" ", clean).strip()

    def is_entity(self, raw_name: Optional[str]) -> bool:
        """True if the raw name carries an organizational keyword (LLC, CORP, TRUST...)."""
        if not raw_name:
            return False
        return bool(self._entity_re.search(raw_name))

    def is_lookup_entity(self, raw_name: Optional[str]) -> bool:
        """Wider test used to pick names worth a corporate-registry lookup."""
        if not raw_name:
            return False
        return bool(self._lookup_re.search(raw_name))

    def strip_corporate_suffixes(self, name: str) -> str:
        """Normalized name with LLC/INC/CORP style words removed, for registry searches."""
        stripped = self._suffix_re.sub("", self.normalize(name))
        return _WHITESPACE.sub(" ", stripped).strip()

    def names_match(self, name1: Optional[str], name2: Optional[str]) -> bool:
        """
        Loose identity test.

        - exact match after normalization
        - either name contains the other ("LEE" matches "LEE GARDENS LLC";
          short names over-merge, which is accepted)
        - two-token names with the tokens swapped ("SMITH JOHN" / "JOHN SMITH")
        """
        n1 = self.normalize(name1)
        n2 = self.normalize(name2)
        if not n1 or not n2:
            return False

        if n1 == n2:
            return True

        if n1 in n2 or n2 in n1:
            return True

        parts1 = n1.split(" ")
        parts2 = n2.split(" ")
        if len(parts1) == 2 and len(parts2) == 2:
            return parts1[0] == parts2[1] and parts1[1] == parts2[0]

        return False


default_matcher = NameMatcher()

normalize_name = NameMatcher.normalize


def names_match(name1: Optional[str], name2: Optional[str]) -> bool:
    return default_matcher.names_match(name1, name2)


def is_entity(raw_name: Optional[str]) -> bool:
    return default_matcher.is_entity(raw_name)


if __name__ == "__main__":
    cases = [
        ("John Smith", "Smith, John"),
        ("John Smith", "JOHN SMITH"),
        ("ABC Realty LLC", "XYZ Corp"),
        ("LEE", "LEE GARDENS LLC"),
        ("O'Brien Holdings, L.L.C.", "OBRIEN HOLDINGS LLC"),
    ]

    for n1, n2 in cases:
        print(f"{n1:<30} | {n2:<30} | {names_match(n1, n2)}")
