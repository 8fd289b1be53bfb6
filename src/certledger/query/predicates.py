"""Composable row predicates.

Filters are built as small immutable objects and compiled to SQL by the
store, instead of conditionally mutating one query. Field names refer to
columns of the entity being queried.
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional, Tuple

from ..search.trigram import SIMILARITY_THRESHOLD


class Predicate:
    """Marker base class for all predicates."""


@dataclass(frozen=True)
class Eq(Predicate):
    field: str
    value: Any


@dataclass(frozen=True)
class In(Predicate):
    """Membership in a key set. An empty set matches nothing."""
    field: str
    values: FrozenSet[Any]

    def __init__(self, field: str, values: Iterable[Any]):
        object.__setattr__(self, "field", field)
        object.__setattr__(self, "values", frozenset(values))


@dataclass(frozen=True)
class Similar(Predicate):
    """Trigram similarity of the field to ``term`` at or above ``threshold``."""
    field: str
    term: str
    threshold: float = SIMILARITY_THRESHOLD


@dataclass(frozen=True)
class TextMatch(Predicate):
    """Every word of ``term`` occurs in the field's document."""
    field: str
    term: str


@dataclass(frozen=True)
class AllOf(Predicate):
    predicates: Tuple[Predicate, ...]


@dataclass(frozen=True)
class AnyOf(Predicate):
    predicates: Tuple[Predicate, ...]


def all_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    """AND the given predicates, skipping ``None``; ``None`` when none remain."""
    active = tuple(p for p in predicates if p is not None)
    if not active:
        return None
    if len(active) == 1:
        return active[0]
    return AllOf(active)


def any_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    """OR the given predicates, skipping ``None``; ``None`` when none remain."""
    active = tuple(p for p in predicates if p is not None)
    if not active:
        return None
    if len(active) == 1:
        return active[0]
    return AnyOf(active)


def eq_if(field: str, value: Any) -> Optional[Eq]:
    """``Eq`` for an optional request filter; ``None`` when unset."""
    if value is None:
        return None
    return Eq(field, value)
