"""Convert head-consistent rows into response DTOs."""

from typing import TYPE_CHECKING, Any, List, Optional

from ..query.planner import CertificateDetail, OrganizationDependents
from .models import (
    ApiAddress,
    ApiAuthorization,
    ApiCertificate,
    ApiCertifyingBody,
    ApiContact,
    ApiFactory,
    ApiStandard,
    ApiStandardListing,
    ApiStandardsBody,
    ApiVersion,
)

if TYPE_CHECKING:
    from ..database.schema import Organization, Standard, StandardVersion


def certificate_view(detail: CertificateDetail) -> ApiCertificate:
    cert = detail.certificate
    return ApiCertificate(
        id=cert.certificate_id,
        certifying_body_id=detail.certifying_body.organization_id,
        certifying_body=detail.certifying_body.name,
        factory_id=detail.factory.organization_id,
        factory_name=detail.factory.name,
        standard_id=cert.standard_id,
        standard_name=detail.standard.name,
        standard_version=cert.standard_version,
        valid_from=cert.valid_from,
        valid_to=cert.valid_to,
        assertion_id=detail.assertion_id,
    )


def factory_view(
    organization: "Organization",
    dependents: OrganizationDependents,
    certificates: Optional[List[CertificateDetail]] = None,
) -> ApiFactory:
    """
    Factory payload from its row and batched dependents.

    ``certificates`` is None when not expanded, which leaves the field out
    of the output; an expanded factory without certificates gets ``[]``.
    """
    key = organization.organization_id
    address = dependents.addresses.get(key)
    return ApiFactory(
        id=key,
        name=organization.name,
        contacts=[ApiContact.model_validate(c) for c in dependents.contacts.get(key, [])],
        authorizations=[
            ApiAuthorization.model_validate(a) for a in dependents.authorizations.get(key, [])
        ],
        address=ApiAddress.model_validate(address) if address is not None else None,
        certificates=(
            [certificate_view(d) for d in certificates] if certificates is not None else None
        ),
        organization_type=organization.organization_type,
        assertion_id=dependents.assertion_ids.get(key),
    )


def body_view(organization: "Organization", dependents: OrganizationDependents) -> Any:
    """CertifyingBody or StandardsBody payload; same fields, distinct types."""
    key = organization.organization_id
    model = (
        ApiCertifyingBody
        if organization.organization_type == "CertifyingBody"
        else ApiStandardsBody
    )
    return model(
        id=key,
        name=organization.name,
        contacts=[ApiContact.model_validate(c) for c in dependents.contacts.get(key, [])],
        authorizations=[
            ApiAuthorization.model_validate(a) for a in dependents.authorizations.get(key, [])
        ],
        organization_type=organization.organization_type,
    )


def standard_view(
    standard: "Standard",
    versions: List["StandardVersion"],
    assertion_id: Optional[str] = None,
) -> ApiStandard:
    # Stable sort keeps surrogate-id order among equal approval dates
    ordered = sorted(versions, key=lambda v: v.approval_date)
    return ApiStandard(
        standard_id=standard.standard_id,
        organization_id=standard.organization_id,
        name=standard.name,
        versions=[
            ApiVersion(
                version=v.version,
                external_link=v.link,
                description=v.description,
                approval_date=v.approval_date,
            )
            for v in ordered
        ],
        assertion_id=assertion_id,
    )


def standard_listing_view(standard: "Standard", assertion_id: Optional[str] = None) -> ApiStandardListing:
    return ApiStandardListing(
        standard_id=standard.standard_id,
        standard_name=standard.name,
        assertion_id=assertion_id,
    )
