"""Tests for the offline integrity checker."""

import pytest
from sqlalchemy.orm import sessionmaker

from certledger.database.client import get_engine
from certledger.database.integrity import (
    INVERTED,
    OVERLAP,
    UNKNOWN_VALUE,
    check_integrity,
)
from certledger.errors import InternalError


def test_clean_ledger_has_no_issues(session, seed):
    seed.organization("f1", start=1, end=5)
    seed.organization("f1", start=5)
    seed.contact("f1", name="Ann")
    seed.contact("f1", name="Bob")
    assert check_integrity(session) == []


def test_overlapping_versions_are_reported(session, seed):
    first = seed.organization("f1", start=1, end=10)
    second = seed.organization("f1", start=5)

    issues = check_integrity(session, "organizations")

    assert len(issues) == 1
    assert issues[0].kind == OVERLAP
    assert issues[0].natural_key == "f1"
    assert issues[0].row_ids == (first.id, second.id)


def test_adjacent_versions_do_not_overlap(session, seed):
    """Test that [1, 5) and [5, max) share no block."""
    seed.assertion("a1", "f1", start=1, end=5)
    seed.assertion("a1", "f1", start=5)
    assert check_integrity(session, "assertions") == []


def test_inverted_interval_is_reported(session, seed):
    row = seed.standard("s1", "sb-1", start=7, end=7)
    issues = check_integrity(session, "standards")
    assert [(i.kind, i.row_ids) for i in issues] == [(INVERTED, (row.id,))]


def test_unknown_enum_value_is_reported(session, seed):
    seed.authorization("o1", "pk-1", role="Superuser")
    issues = check_integrity(session, "authorizations")
    assert [i.kind for i in issues] == [UNKNOWN_VALUE]
    assert issues[0].to_dict()["detail"] == "role='Superuser'"


def test_missing_schema_is_an_internal_error():
    """Test that storage failures surface as InternalError, not raw SQLAlchemy errors."""
    engine = get_engine("sqlite://")
    session = sessionmaker(bind=engine)()
    try:
        with pytest.raises(InternalError) as exc_info:
            check_integrity(session, "organizations")
        assert "no such table" in exc_info.value.message
    finally:
        session.close()
        engine.dispose()
