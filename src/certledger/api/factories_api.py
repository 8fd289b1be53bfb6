"""Factories API: factories with their address, contacts and certificates."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..ops.metrics import MetricsPort
from ..query.paging import resolve_paging
from ..query.predicates import Eq, In, all_of, eq_if
from ..utils.logging import get_logger
from .responses import dump, open_scope, page_response, single_response
from .views import factory_view

logger = get_logger(__name__)

FACTORY_TYPE = "Factory"


def fetch_factory(
    session: Session,
    factory_id: str,
    head: Optional[int] = None,
    expand: bool = False,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    One factory as of the head.

    Args:
        session: SQLAlchemy session
        factory_id: Organization id of the factory
        head: Block height to read at (latest committed block if None)
        expand: Include the factory's certificates inline
        metrics: Request counter

    Raises:
        NotFoundError: If no factory with this id is valid at the head
    """
    scope = open_scope(session, head, metrics)
    organization = scope.planner.fetch("organizations", factory_id)
    if organization is None or organization.organization_type != FACTORY_TYPE:
        raise NotFoundError(
            f"No factory with the organization ID {factory_id} exists at block {scope.head}"
        )

    dependents = scope.planner.organization_dependents([factory_id])
    certificates = None
    if expand:
        certificates = scope.planner.certificates_by_factory([factory_id]).get(factory_id, [])

    data = dump(factory_view(organization, dependents, certificates))
    return single_response(data, f"/api/factories/{factory_id}", scope.head)


def list_factories(
    session: Session,
    name: Optional[str] = None,
    city: Optional[str] = None,
    state_province: Optional[str] = None,
    country: Optional[str] = None,
    postal_code: Optional[str] = None,
    search: Optional[str] = None,
    expand: Optional[bool] = None,
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    Page of factories valid at the head.

    ``name`` is an exact match. Address fields are fuzzy (trigram) matches
    unioned with each other; ``search`` is a full-text match over names,
    certified standard names and addresses. All filters are intersected.

    Returns:
        Dict with data, head, link and paging
    """
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)

    fuzzy_keys = scope.matcher.fuzzy_address_keys(
        city=city,
        state_province=state_province,
        country=country,
        postal_code=postal_code,
    )
    search_keys = scope.matcher.full_text_keys(search) if search is not None else None

    predicate = all_of(
        Eq("organization_type", FACTORY_TYPE),
        eq_if("name", name),
        In("organization_id", fuzzy_keys) if fuzzy_keys is not None else None,
        In("organization_id", search_keys) if search_keys is not None else None,
    )
    organizations, total = scope.planner.page("organizations", predicate, limit, offset)

    keys = [o.organization_id for o in organizations]
    dependents = scope.planner.organization_dependents(keys)
    certificates = scope.planner.certificates_by_factory(keys) if expand else None
    logger.debug(
        "Listed %d of %d factories at head %s", len(organizations), total, scope.head
    )

    data = [
        dump(factory_view(
            o,
            dependents,
            certificates.get(o.organization_id, []) if certificates is not None else None,
        ))
        for o in organizations
    ]
    return page_response(
        data,
        "/api/factories",
        [
            ("name", name),
            ("city", city),
            ("state_province", state_province),
            ("country", country),
            ("postal_code", postal_code),
            ("search", search),
        ],
        scope.head,
        total,
        limit,
        offset,
        flags=[("expand", expand)],
    )
