"""Organizations API: every organization, shaped by its type."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..errors import BadRequestError, NotFoundError
from ..ops.metrics import MetricsPort
from ..query.paging import resolve_paging
from ..query.planner import OrganizationDependents
from ..query.predicates import all_of, eq_if
from .responses import dump, open_scope, page_response, single_response
from .views import body_view, factory_view

if TYPE_CHECKING:
    from ..database.schema import Organization

# Request code for the organization_type filter; any other integer means StandardsBody
CERTIFYING_BODY_CODE = 1


def parse_organization_type(code: Optional[int]) -> Optional[str]:
    """
    Map a request type code to its stored name.

    1 is CertifyingBody; every other integer is StandardsBody.

    Raises:
        BadRequestError: If the code is not an integer
    """
    if code is None:
        return None
    try:
        value = int(code)
    except (TypeError, ValueError):
        raise BadRequestError(
            f"Invalid organization_type {code!r}; expected an integer"
        ) from None
    return "CertifyingBody" if value == CERTIFYING_BODY_CODE else "StandardsBody"


def _factory_ids(organizations) -> List[str]:
    return [o.organization_id for o in organizations if o.organization_type == "Factory"]


def _organization_payload(
    organization: "Organization",
    dependents: OrganizationDependents,
) -> Dict[str, Any]:
    if organization.organization_type == "Factory":
        return dump(factory_view(organization, dependents))
    if organization.organization_type in ("CertifyingBody", "StandardsBody"):
        return dump(body_view(organization, dependents))
    # Ingestion and unset organizations have no public shape
    return {}


def fetch_organization(
    session: Session,
    organization_id: str,
    head: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    One organization as of the head.

    Raises:
        NotFoundError: If no organization with this id is valid at the head
    """
    scope = open_scope(session, head, metrics)
    organization = scope.planner.fetch("organizations", organization_id)
    if organization is None:
        raise NotFoundError(
            f"No organization with the organization ID {organization_id} "
            f"exists at block {scope.head}"
        )
    dependents = scope.planner.organization_dependents(
        [organization_id],
        address_owner_ids=_factory_ids([organization]),
    )
    return single_response(
        _organization_payload(organization, dependents),
        f"/api/organizations/{organization_id}",
        scope.head,
    )


def list_organizations(
    session: Session,
    name: Optional[str] = None,
    organization_type: Optional[int] = None,
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    Page of organizations valid at the head.

    Args:
        session: SQLAlchemy session
        name: Exact organization name
        organization_type: 1 CertifyingBody, any other integer StandardsBody
        head: Block height (latest committed block if None)
        limit: Page size (default 100)
        offset: Page offset (default 0)
        metrics: Request counter

    Returns:
        Dict with data, head, link and paging
    """
    type_name = parse_organization_type(organization_type)
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)

    predicate = all_of(eq_if("name", name), eq_if("organization_type", type_name))
    organizations, total = scope.planner.page("organizations", predicate, limit, offset)

    dependents = scope.planner.organization_dependents(
        [o.organization_id for o in organizations],
        address_owner_ids=_factory_ids(organizations),
    )
    data = [_organization_payload(o, dependents) for o in organizations]
    return page_response(
        data,
        "/api/organizations",
        [("name", name), ("organization_type", organization_type)],
        scope.head,
        total,
        limit,
        offset,
    )
