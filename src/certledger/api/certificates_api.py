"""Certificates API."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..ops.metrics import MetricsPort
from ..query.paging import resolve_paging
from ..query.predicates import all_of, eq_if
from .responses import dump, open_scope, page_response, single_response
from .views import certificate_view


def fetch_certificate(
    session: Session,
    certificate_id: str,
    head: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    """
    One certificate with its factory, standard and certifying body names.

    Raises:
        NotFoundError: If the certificate is not valid at the head
        DataIntegrityError: If a referenced organization or standard is not
    """
    scope = open_scope(session, head, metrics)
    certificate = scope.planner.fetch("certificates", certificate_id)
    if certificate is None:
        raise NotFoundError(
            f"No certificate with the ID {certificate_id} exists at block {scope.head}"
        )
    detail = scope.planner.certificate_details([certificate])[0]
    return single_response(
        dump(certificate_view(detail)),
        f"/api/certificates/{certificate_id}",
        scope.head,
    )


def list_certificates(
    session: Session,
    certifying_body_id: Optional[str] = None,
    factory_id: Optional[str] = None,
    standard_id: Optional[str] = None,
    head: Optional[int] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> Dict[str, Any]:
    limit, offset = resolve_paging(limit, offset)
    scope = open_scope(session, head, metrics)

    predicate = all_of(
        eq_if("certifying_body_id", certifying_body_id),
        eq_if("factory_id", factory_id),
        eq_if("standard_id", standard_id),
    )
    certificates, total = scope.planner.page("certificates", predicate, limit, offset)
    data = [dump(certificate_view(d)) for d in scope.planner.certificate_details(certificates)]
    return page_response(
        data,
        "/api/certificates",
        [
            ("certifying_body_id", certifying_body_id),
            ("factory_id", factory_id),
            ("standard_id", standard_id),
        ],
        scope.head,
        total,
        limit,
        offset,
    )
