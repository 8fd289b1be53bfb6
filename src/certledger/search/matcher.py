"""Fuzzy and full-text matching, producing natural-key sets.

Matches are never applied as raw filters on the primary query. Each mode
returns the set of organization ids it matched at the request's head, and
the planner intersects those sets with its other filters.
"""

from typing import Optional, Set

from ..database.versioned_store import VersionedEntityStore
from ..errors import BadRequestError
from ..query.predicates import In, Similar, TextMatch, any_of
from ..utils.logging import get_logger
from .trigram import SIMILARITY_THRESHOLD, words

logger = get_logger(__name__)

FUZZY_ADDRESS_FIELDS = ("city", "state_province", "country", "postal_code")


class SearchMatcher:
    """Head-aware search over organizations and their addresses."""

    def __init__(self, store: VersionedEntityStore, head: int):
        self.store = store
        self.head = head

    def fuzzy_address_keys(self, **terms: Optional[str]) -> Optional[Set[str]]:
        """
        Organization ids whose address is similar to any given field term.

        Terms are keyword arguments named after address columns
        (city, state_province, country, postal_code). Terms left as None are
        ignored; the remaining per-field matches are unioned.

        Returns:
            Matching organization ids, or None if no term was given
        """
        unknown = set(terms) - set(FUZZY_ADDRESS_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported fuzzy fields: {sorted(unknown)}")

        predicate = any_of(*(
            Similar(field, term, SIMILARITY_THRESHOLD)
            for field, term in terms.items()
            if term is not None
        ))
        if predicate is None:
            return None

        keys = self.store.matching_keys("addresses", self.head, predicate)
        logger.debug("Fuzzy address match at head %s: %d organizations", self.head, len(keys))
        return keys

    def full_text_keys(self, term: str) -> Set[str]:
        """
        Organization ids matching ``term`` by name, certified standard name,
        or searchable address, unioned.

        Raises:
            BadRequestError: If the term has no searchable words
        """
        if not words(term):
            raise BadRequestError("search term must contain at least one word")

        by_name = self.store.matching_keys(
            "organizations", self.head, TextMatch("name", term)
        )

        standard_ids = self.store.matching_keys(
            "standards", self.head, TextMatch("name", term)
        )
        by_standard: Set[str] = set()
        if standard_ids:
            by_standard = self.store.matching_keys(
                "certificates",
                self.head,
                In("standard_id", standard_ids),
                key_field="factory_id",
            )

        by_address = self.store.matching_keys(
            "addresses", self.head, TextMatch("searchable_address", term)
        )

        logger.debug(
            "Full-text match at head %s: name=%d standard=%d address=%d",
            self.head,
            len(by_name),
            len(by_standard),
            len(by_address),
        )
        return by_name | by_standard | by_address
