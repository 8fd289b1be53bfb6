"""Offline checks of the versioned-row invariants.

Ingestion is trusted to close one version before opening the next. These
checks find rows where it did not, without needing a head.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, aliased

from ..errors import InternalError, ServiceUnavailableError
from ..utils.logging import get_logger
from .schema import ASSERTION_TYPES, ORGANIZATION_TYPES, ROLES
from .versioned_store import ENTITIES, EntitySpec, entity_spec

logger = get_logger(__name__)

OVERLAP = "overlapping_versions"
INVERTED = "inverted_interval"
UNKNOWN_VALUE = "unknown_value"

# Enumerated columns checked against their allowed values
ENUM_COLUMNS = {
    "organizations": ("organization_type", ORGANIZATION_TYPES),
    "authorizations": ("role", ROLES),
    "assertions": ("assertion_type", ASSERTION_TYPES),
}


def _fetch(session: Session, stmt, scalars: bool = True) -> list:
    try:
        result = session.execute(stmt)
        return list(result.scalars()) if scalars else list(result.all())
    except PoolTimeoutError as exc:
        raise ServiceUnavailableError("Database connection pool exhausted") from exc
    except SQLAlchemyError as exc:
        logger.error("Integrity query failed: %s", exc.__class__.__name__)
        raise InternalError.from_exception(exc) from exc


@dataclass(frozen=True)
class IntegrityIssue:
    entity_type: str
    natural_key: str
    kind: str
    row_ids: Tuple[int, ...]
    detail: str = ""

    def to_dict(self) -> dict:
        return {
            "entity_type": self.entity_type,
            "natural_key": self.natural_key,
            "kind": self.kind,
            "row_ids": list(self.row_ids),
            "detail": self.detail,
        }


def find_overlapping_versions(session: Session, spec: EntitySpec) -> List[IntegrityIssue]:
    """Pairs of versions of one natural key whose block ranges intersect."""
    model = spec.model
    left = aliased(model)
    right = aliased(model)
    key = spec.key_field
    stmt = (
        select(left, right)
        .join(
            right,
            and_(
                getattr(left, key) == getattr(right, key),
                left.id < right.id,
                left.start_block_num < right.end_block_num,
                right.start_block_num < left.end_block_num,
            ),
        )
        .order_by(getattr(left, key), left.id, right.id)
    )
    issues = []
    for a, b in _fetch(session, stmt, scalars=False):
        issues.append(IntegrityIssue(
            entity_type=spec.name,
            natural_key=getattr(a, key),
            kind=OVERLAP,
            row_ids=(a.id, b.id),
            detail=(
                f"[{a.start_block_num}, {a.end_block_num}) overlaps "
                f"[{b.start_block_num}, {b.end_block_num})"
            ),
        ))
    return issues


def find_inverted_intervals(session: Session, spec: EntitySpec) -> List[IntegrityIssue]:
    """Rows whose end block is not after their start block (never visible)."""
    model = spec.model
    stmt = (
        select(model)
        .where(model.start_block_num >= model.end_block_num)
        .order_by(model.id)
    )
    return [
        IntegrityIssue(
            entity_type=spec.name,
            natural_key=getattr(row, spec.key_field),
            kind=INVERTED,
            row_ids=(row.id,),
            detail=f"start {row.start_block_num} >= end {row.end_block_num}",
        )
        for row in _fetch(session, stmt)
    ]


def find_unknown_values(session: Session, spec: EntitySpec) -> List[IntegrityIssue]:
    if spec.name not in ENUM_COLUMNS:
        return []
    column_name, allowed = ENUM_COLUMNS[spec.name]
    model = spec.model
    column = getattr(model, column_name)
    stmt = select(model).where(column.not_in(allowed)).order_by(model.id)
    return [
        IntegrityIssue(
            entity_type=spec.name,
            natural_key=getattr(row, spec.key_field),
            kind=UNKNOWN_VALUE,
            row_ids=(row.id,),
            detail=f"{column_name}={getattr(row, column_name)!r}",
        )
        for row in _fetch(session, stmt)
    ]


def check_integrity(session: Session, entity_type: Optional[str] = None) -> List[IntegrityIssue]:
    """
    Run every check over one entity type, or all of them.

    Overlaps are only checked for entity types that are unique per natural
    key; contacts and standard versions legitimately share keys.

    Args:
        session: SQLAlchemy session
        entity_type: Table name from ENTITIES, or None for all

    Returns:
        Issues ordered by entity type, then check
    """
    specs = [entity_spec(entity_type)] if entity_type else list(ENTITIES.values())
    issues: List[IntegrityIssue] = []
    for spec in specs:
        if spec.unique:
            issues.extend(find_overlapping_versions(session, spec))
        issues.extend(find_inverted_intervals(session, spec))
        issues.extend(find_unknown_values(session, spec))
    if issues:
        logger.warning("Integrity check found %d issues", len(issues))
    return issues
