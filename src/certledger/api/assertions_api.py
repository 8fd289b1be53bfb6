"""Assertions API."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..database.schema import ASSERTION_TYPES
from ..errors import BadRequestError, NotFoundError
from ..ops.metrics import MetricsPort
from ..query.paging import resolve_paging
from ..query.predicates import all_of, eq_if
from .models import ApiAssertion
from .responses import dump, open_scope, page_response, single_response


def fetch_assertion(
    session: Session,
    assertion_id: str,
    head: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    scope = open_scope(session, head, metrics)
    assertion = scope.planner.fetch("assertions", assertion_id)
    if assertion is None:
        raise NotFoundError(
            f"No assertion with the ID {assertion_id} exists at block {scope.head}"
        )
    return single_response(
        dump(ApiAssertion.model_validate(assertion)),
        f"/api/assertions/{assertion_id}",
        scope.head,
    )


def list_assertions(
    session: Session,
    assertion_type: Optional[str] = None,
    object_id: Optional[str] = None,
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    Page of assertions valid at the head.

    Raises:
        BadRequestError: If assertion_type is not Factory, Certificate or Standard
    """
    if assertion_type is not None and assertion_type not in ASSERTION_TYPES:
        raise BadRequestError(
            f"Invalid assertion_type {assertion_type!r}; expected one of {', '.join(ASSERTION_TYPES)}"
        )
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)
    predicate = all_of(eq_if("assertion_type", assertion_type), eq_if("object_id", object_id))
    assertions, total = scope.planner.page("assertions", predicate, limit, offset)
    return page_response(
        [dump(ApiAssertion.model_validate(a)) for a in assertions],
        "/api/assertions",
        [("assertion_type", assertion_type), ("object_id", object_id)],
        scope.head,
        total,
        limit,
        offset,
    )
