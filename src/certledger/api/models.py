"""Response DTOs for the API layer.

Optional fields are dropped from output (``model_dump(exclude_none=True)``),
so an absent address or assertion never serializes as null.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RowModel(BaseModel):
    """DTO that can be built straight from an ORM row's attributes."""
    model_config = ConfigDict(from_attributes=True)


class ApiAddress(RowModel):
    street_line_1: str
    street_line_2: Optional[str] = None
    city: str
    state_province: Optional[str] = None
    country: str
    postal_code: Optional[str] = None


class ApiContact(RowModel):
    name: str
    language_code: str
    phone_number: str


class ApiAuthorization(RowModel):
    public_key: str
    role: str


class ApiCertificate(BaseModel):
    """Certificate with the names of the organizations and standard it references."""
    id: str
    certifying_body_id: str
    certifying_body: str
    factory_id: str
    factory_name: str
    standard_id: str
    standard_name: str
    standard_version: str
    valid_from: int
    valid_to: int
    assertion_id: Optional[str] = None


class ApiFactory(BaseModel):
    id: str
    name: str
    contacts: List[ApiContact] = Field(default_factory=list)
    authorizations: List[ApiAuthorization] = Field(default_factory=list)
    address: Optional[ApiAddress] = None  # Absent when no address is valid at the head
    certificates: Optional[List[ApiCertificate]] = None  # Only when expanded
    organization_type: str
    assertion_id: Optional[str] = None


class ApiCertifyingBody(BaseModel):
    id: str
    name: str
    contacts: List[ApiContact] = Field(default_factory=list)
    authorizations: List[ApiAuthorization] = Field(default_factory=list)
    organization_type: str


class ApiStandardsBody(BaseModel):
    id: str
    name: str
    contacts: List[ApiContact] = Field(default_factory=list)
    authorizations: List[ApiAuthorization] = Field(default_factory=list)
    organization_type: str


class ApiVersion(BaseModel):
    version: str
    external_link: str
    description: str
    approval_date: int


class ApiStandard(BaseModel):
    standard_id: str
    organization_id: str
    name: str
    versions: List[ApiVersion] = Field(default_factory=list)
    assertion_id: Optional[str] = None


class ApiStandardListing(BaseModel):
    """Row of the global standards list: identity and linked assertion only."""
    standard_id: str
    standard_name: str
    assertion_id: Optional[str] = None


class ApiAssertion(RowModel):
    assertion_id: str
    address: str
    assertor_pub_key: str
    assertion_type: str
    object_id: str
    data_id: Optional[str] = None
