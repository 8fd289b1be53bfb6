"""Standards API: standards with their versions, globally or per standards body."""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..errors import BadRequestError, NotFoundError
from ..ops.metrics import MetricsPort
from ..query.paging import resolve_paging
from ..query.predicates import Predicate, all_of, eq_if
from .responses import ReadScope, dump, open_scope, page_response, single_response
from .views import standard_listing_view, standard_view


def _standard_page(
    scope: ReadScope,
    predicate: Optional[Predicate],
    limit: int,
    offset: int,
):
    standards, total = scope.planner.page("standards", predicate, limit, offset)
    keys = [s.standard_id for s in standards]
    versions = scope.planner.collections("standard_versions", keys)
    assertion_ids = scope.planner.assertion_ids(keys)
    data: List[Dict[str, Any]] = [
        dump(standard_view(s, versions.get(s.standard_id, []), assertion_ids.get(s.standard_id)))
        for s in standards
    ]
    return data, total


def fetch_standard(
    session: Session,
    standard_id: str,
    head: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    One standard with its versions ordered by approval date.

    Raises:
        NotFoundError: If the standard is not valid at the head
    """
    scope = open_scope(session, head, metrics)
    standard = scope.planner.fetch("standards", standard_id)
    if standard is None:
        raise NotFoundError(
            f"No standard with the ID {standard_id} exists at block {scope.head}"
        )
    versions = scope.planner.collections("standard_versions", [standard_id])
    assertion_id = scope.planner.assertion_ids([standard_id]).get(standard_id)
    return single_response(
        dump(standard_view(standard, versions.get(standard_id, []), assertion_id)),
        f"/api/standards/{standard_id}",
        scope.head,
    )


def list_standards(
    session: Session,
    name: Optional[str] = None,
    organization_id: Optional[str] = None,
    standard_id: Optional[str] = None,
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    Page of standards valid at the head, without their versions.

    Rows use the listing shape, where the name is exposed as standard_name.
    """
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)
    predicate = all_of(
        eq_if("name", name),
        eq_if("organization_id", organization_id),
        eq_if("standard_id", standard_id),
    )
    standards, total = scope.planner.page("standards", predicate, limit, offset)
    assertion_ids = scope.planner.assertion_ids(s.standard_id for s in standards)
    data = [
        dump(standard_listing_view(s, assertion_ids.get(s.standard_id)))
        for s in standards
    ]
    return page_response(
        data,
        "/api/standards",
        [("name", name), ("organization_id", organization_id), ("standard_id", standard_id)],
        scope.head,
        total,
        limit,
        offset,
    )


def list_standards_by_body(
    session: Session,
    organization_id: Optional[str],
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    Standards owned by one standards body.

    Raises:
        BadRequestError: If organization_id is missing
    """
    if not organization_id:
        raise BadRequestError("organization_id is required")
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)
    data, total = _standard_page(scope, eq_if("organization_id", organization_id), limit, offset)
    return page_response(
        data,
        "/api/standards_body/standards",
        [("organization_id", organization_id)],
        scope.head,
        total,
        limit,
        offset,
    )
