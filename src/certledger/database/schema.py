from sqlalchemy import (
    BigInteger,
    Column,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Open (current) facts end at the largest signed 64-bit block number.
MAX_BLOCK_NUM = 2**63 - 1

ORGANIZATION_TYPES = ("Factory", "CertifyingBody", "StandardsBody", "Ingestion", "UnsetType")
ROLES = ("Admin", "Transactor", "UnsetRole")
ASSERTION_TYPES = ("Factory", "Certificate", "Standard")


class Block(Base):
    """Append-only ledger of committed blocks."""
    __tablename__ = "blocks"

    block_num = Column(BigInteger, primary_key=True, autoincrement=False)
    block_id = Column(String, nullable=False, unique=True)


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    organization_type = Column(String, nullable=False)  # one of ORGANIZATION_TYPES
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_organizations_key_range", "organization_id", "start_block_num", "end_block_num"),
    )


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String, nullable=False)
    street_line_1 = Column(String, nullable=False)
    street_line_2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state_province = Column(String, nullable=True)
    country = Column(String, nullable=False)
    postal_code = Column(String, nullable=True)
    searchable_address = Column(Text, nullable=True)  # precomputed by ingestion for full-text search
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_addresses_key_range", "organization_id", "start_block_num", "end_block_num"),
    )


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    language_code = Column(String, nullable=False)
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_contacts_key_range", "organization_id", "start_block_num", "end_block_num"),
    )


class Authorization(Base):
    __tablename__ = "authorizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(String, nullable=False, index=True)
    public_key = Column(String, nullable=False)
    role = Column(String, nullable=False)  # one of ROLES
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_authorizations_key_range", "public_key", "start_block_num", "end_block_num"),
    )


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    certificate_id = Column(String, nullable=False)
    certifying_body_id = Column(String, nullable=False, index=True)
    factory_id = Column(String, nullable=False, index=True)
    standard_id = Column(String, nullable=False, index=True)
    standard_version = Column(String, nullable=False)
    valid_from = Column(BigInteger, nullable=False)  # unix seconds
    valid_to = Column(BigInteger, nullable=False)  # unix seconds
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_certificates_key_range", "certificate_id", "start_block_num", "end_block_num"),
    )


class Standard(Base):
    __tablename__ = "standards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    standard_id = Column(String, nullable=False)
    organization_id = Column(String, nullable=False, index=True)  # standards body
    name = Column(String, nullable=False)
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_standards_key_range", "standard_id", "start_block_num", "end_block_num"),
    )


class StandardVersion(Base):
    __tablename__ = "standard_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    standard_id = Column(String, nullable=False)
    version = Column(String, nullable=False)
    link = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    approval_date = Column(BigInteger, nullable=False)  # unix seconds
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_standard_versions_key_range", "standard_id", "start_block_num", "end_block_num"),
    )


class Assertion(Base):
    __tablename__ = "assertions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assertion_id = Column(String, nullable=False)
    address = Column(String, nullable=False)
    assertor_pub_key = Column(String, nullable=False)
    assertion_type = Column(String, nullable=False)  # one of ASSERTION_TYPES
    object_id = Column(String, nullable=False, index=True)
    data_id = Column(String, nullable=True)
    start_block_num = Column(BigInteger, nullable=False)
    end_block_num = Column(BigInteger, nullable=False, default=MAX_BLOCK_NUM)

    __table_args__ = (
        Index("idx_assertions_key_range", "assertion_id", "start_block_num", "end_block_num"),
    )
