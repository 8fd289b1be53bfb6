"""Head-filtered access to versioned tables.

Every read goes through ``VersionedEntityStore`` so the validity window
``start_block_num <= head < end_block_num`` is applied uniformly. Request
filters arrive as predicate objects and are compiled here; nothing above
this module builds SQL.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from sqlalchemy import and_, false, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from ..errors import DataIntegrityError, InternalError, ServiceUnavailableError
from ..query.predicates import AllOf, AnyOf, Eq, In, Predicate, Similar, TextMatch
from ..utils.logging import get_logger
from .functions import similarity, text_match
from .schema import (
    Address,
    Assertion,
    Authorization,
    Certificate,
    Contact,
    Organization,
    Standard,
    StandardVersion,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class EntitySpec:
    """
    How one versioned table is keyed.

    ``key_field`` is the natural key stable across versions. ``owner_field``
    points at the entity this row hangs off, for batched dependent fetches.
    ``unique`` entities have at most one row per key at any head.
    """
    name: str
    model: Any
    key_field: str
    owner_field: Optional[str] = None
    unique: bool = True


ENTITIES: Dict[str, EntitySpec] = {
    spec.name: spec
    for spec in (
        EntitySpec("organizations", Organization, "organization_id"),
        EntitySpec("addresses", Address, "organization_id", owner_field="organization_id"),
        EntitySpec("contacts", Contact, "organization_id", owner_field="organization_id", unique=False),
        EntitySpec("authorizations", Authorization, "public_key", owner_field="organization_id"),
        EntitySpec("certificates", Certificate, "certificate_id", owner_field="factory_id"),
        EntitySpec("standards", Standard, "standard_id", owner_field="organization_id"),
        EntitySpec("standard_versions", StandardVersion, "standard_id", owner_field="standard_id", unique=False),
        EntitySpec("assertions", Assertion, "assertion_id", owner_field="object_id"),
    )
}


def entity_spec(entity_type: str) -> EntitySpec:
    try:
        return ENTITIES[entity_type]
    except KeyError:
        raise ValueError(f"Unknown entity type: {entity_type}") from None


def _column(model: Any, field: str):
    if field not in model.__table__.columns:
        raise ValueError(f"{model.__tablename__} has no column '{field}'")
    return getattr(model, field)


def valid_at(model: Any, head: int):
    """Validity window clause: start inclusive, end exclusive."""
    return and_(model.start_block_num <= head, model.end_block_num > head)


def compile_predicate(model: Any, predicate: Predicate):
    """Translate a predicate object into a SQLAlchemy clause for ``model``."""
    if isinstance(predicate, Eq):
        return _column(model, predicate.field) == predicate.value
    if isinstance(predicate, In):
        if not predicate.values:
            return false()
        return _column(model, predicate.field).in_(list(predicate.values))
    if isinstance(predicate, Similar):
        return similarity(_column(model, predicate.field), predicate.term) >= predicate.threshold
    if isinstance(predicate, TextMatch):
        return text_match(_column(model, predicate.field), predicate.term)
    if isinstance(predicate, AllOf):
        return and_(*(compile_predicate(model, p) for p in predicate.predicates))
    if isinstance(predicate, AnyOf):
        return or_(*(compile_predicate(model, p) for p in predicate.predicates))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class VersionedEntityStore:
    """Reads rows of one entity type as they stood at a given head."""

    def __init__(self, session: Session):
        self.session = session

    def _where(self, spec: EntitySpec, head: int, predicate: Optional[Predicate]) -> list:
        clauses = [valid_at(spec.model, head)]
        if predicate is not None:
            clauses.append(compile_predicate(spec.model, predicate))
        return clauses

    def _execute(self, statement, collect: Callable[[Any], Any]) -> Any:
        try:
            return collect(self.session.execute(statement))
        except PoolTimeoutError as exc:
            raise ServiceUnavailableError("Database connection pool exhausted") from exc
        except SQLAlchemyError as exc:
            logger.error("Versioned query failed: %s", exc.__class__.__name__)
            raise InternalError.from_exception(exc) from exc

    def list_rows(
        self,
        entity_type: str,
        head: int,
        predicate: Optional[Predicate] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_field: Optional[str] = None,
    ) -> List[Any]:
        """
        Rows valid at ``head`` matching ``predicate``.

        Ordered by ``order_field`` (natural key by default) ascending, then
        by surrogate id, so paging is reproducible.
        """
        spec = entity_spec(entity_type)
        model = spec.model
        stmt = (
            select(model)
            .where(*self._where(spec, head, predicate))
            .order_by(_column(model, order_field or spec.key_field).asc(), model.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return self._execute(stmt, lambda result: list(result.scalars().all()))

    def count_rows(
        self,
        entity_type: str,
        head: int,
        predicate: Optional[Predicate] = None,
    ) -> int:
        spec = entity_spec(entity_type)
        stmt = (
            select(func.count())
            .select_from(spec.model)
            .where(*self._where(spec, head, predicate))
        )
        return self._execute(stmt, lambda result: int(result.scalar_one()))

    def get_row(self, entity_type: str, head: int, natural_key: str) -> Optional[Any]:
        """
        The single row for ``natural_key`` valid at ``head``, or None.

        Raises:
            DataIntegrityError: If more than one version is valid at ``head``
        """
        spec = entity_spec(entity_type)
        if not spec.unique:
            raise ValueError(f"{entity_type} is not unique per {spec.key_field}")
        rows = self.list_rows(entity_type, head, Eq(spec.key_field, natural_key), limit=2)
        if len(rows) > 1:
            logger.warning(
                "Overlapping versions for %s %s at head %s", entity_type, natural_key, head
            )
            raise DataIntegrityError(
                f"More than one {entity_type} row for {spec.key_field}={natural_key} "
                f"is valid at block {head}"
            )
        return rows[0] if rows else None

    def matching_keys(
        self,
        entity_type: str,
        head: int,
        predicate: Predicate,
        key_field: Optional[str] = None,
    ) -> Set[str]:
        """Distinct values of ``key_field`` (natural key by default) over matching rows."""
        spec = entity_spec(entity_type)
        column = _column(spec.model, key_field or spec.key_field)
        stmt = select(column).where(*self._where(spec, head, predicate)).distinct()
        return self._execute(stmt, lambda result: set(result.scalars().all()))
