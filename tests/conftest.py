"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy.orm import sessionmaker

from certledger.database.client import get_engine
from certledger.database.schema import (
    MAX_BLOCK_NUM,
    Address,
    Assertion,
    Authorization,
    Base,
    Block,
    Certificate,
    Contact,
    Organization,
    Standard,
    StandardVersion,
)


class LedgerSeeder:
    """Writes versioned rows the way ingestion would, for tests."""

    def __init__(self, session):
        self.session = session

    def _add(self, row):
        self.session.add(row)
        self.session.commit()
        return row

    def blocks(self, *block_nums):
        for num in block_nums:
            self.session.add(Block(block_num=num, block_id=f"block-{num}"))
        self.session.commit()

    def organization(self, organization_id, name=None, organization_type="Factory",
                     start=1, end=MAX_BLOCK_NUM):
        return self._add(Organization(
            organization_id=organization_id,
            name=name or organization_id,
            organization_type=organization_type,
            start_block_num=start,
            end_block_num=end,
        ))

    def address(self, organization_id, city="Springfield", country="US", start=1,
                end=MAX_BLOCK_NUM, **fields):
        fields.setdefault("street_line_1", "1 Main St")
        return self._add(Address(
            organization_id=organization_id,
            city=city,
            country=country,
            start_block_num=start,
            end_block_num=end,
            **fields,
        ))

    def contact(self, organization_id, name="Pat", start=1, end=MAX_BLOCK_NUM):
        return self._add(Contact(
            organization_id=organization_id,
            name=name,
            phone_number="555-0100",
            language_code="en",
            start_block_num=start,
            end_block_num=end,
        ))

    def authorization(self, organization_id, public_key, role="Admin", start=1, end=MAX_BLOCK_NUM):
        return self._add(Authorization(
            organization_id=organization_id,
            public_key=public_key,
            role=role,
            start_block_num=start,
            end_block_num=end,
        ))

    def standard(self, standard_id, organization_id, name=None, start=1, end=MAX_BLOCK_NUM):
        return self._add(Standard(
            standard_id=standard_id,
            organization_id=organization_id,
            name=name or standard_id,
            start_block_num=start,
            end_block_num=end,
        ))

    def standard_version(self, standard_id, version, approval_date, start=1, end=MAX_BLOCK_NUM):
        return self._add(StandardVersion(
            standard_id=standard_id,
            version=version,
            link=f"https://standards.example/{standard_id}/{version}",
            description=f"{standard_id} {version}",
            approval_date=approval_date,
            start_block_num=start,
            end_block_num=end,
        ))

    def certificate(self, certificate_id, factory_id, certifying_body_id, standard_id,
                    start=1, end=MAX_BLOCK_NUM):
        return self._add(Certificate(
            certificate_id=certificate_id,
            factory_id=factory_id,
            certifying_body_id=certifying_body_id,
            standard_id=standard_id,
            standard_version="1.0",
            valid_from=1_600_000_000,
            valid_to=1_700_000_000,
            start_block_num=start,
            end_block_num=end,
        ))

    def assertion(self, assertion_id, object_id, assertion_type="Factory", start=1, end=MAX_BLOCK_NUM):
        return self._add(Assertion(
            assertion_id=assertion_id,
            address=f"addr-{assertion_id}",
            assertor_pub_key="assertor-key",
            assertion_type=assertion_type,
            object_id=object_id,
            start_block_num=start,
            end_block_num=end,
        ))

    def certified_factory(self, factory_id="factory-1", body_id="body-1",
                          standards_body_id="sb-1", standard_id="std-1", certificate_id="cert-1"):
        """A factory holding one certificate, with everything it references."""
        self.organization(factory_id, name=f"{factory_id} Works")
        self.address(factory_id)
        self.organization(body_id, name="Acme Certifiers", organization_type="CertifyingBody")
        self.organization(standards_body_id, name="Standards Org", organization_type="StandardsBody")
        self.standard(standard_id, standards_body_id, name="Fair Labor")
        self.certificate(certificate_id, factory_id, body_id, standard_id)


@pytest.fixture
def engine():
    """In-memory SQLite engine with search functions registered."""
    engine = get_engine("sqlite://")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    """Create a temporary in-memory database session for testing."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(session):
    return LedgerSeeder(session)


@pytest.fixture
def seeder_cls():
    """Seeder class, for tests that open their own sessions."""
    return LedgerSeeder
