"""Tests for fuzzy and full-text key matching."""

import pytest

from certledger.database.versioned_store import VersionedEntityStore
from certledger.errors import BadRequestError
from certledger.search.matcher import SearchMatcher


def _matcher(session, head=1):
    return SearchMatcher(VersionedEntityStore(session), head)


def test_fuzzy_city_includes_similar_and_excludes_dissimilar(session, seed):
    seed.address("f1", city="Springfield")
    seed.address("f2", city="Boston")
    assert _matcher(session).fuzzy_address_keys(city="Springfeld") == {"f1"}


def test_fuzzy_fields_are_unioned(session, seed):
    seed.address("f1", city="Springfield", country="US")
    seed.address("f2", city="Boston", country="Canada")
    keys = _matcher(session).fuzzy_address_keys(city="Springfield", country="Canada")
    assert keys == {"f1", "f2"}


def test_fuzzy_without_terms_returns_none(session):
    assert _matcher(session).fuzzy_address_keys(city=None, country=None) is None


def test_fuzzy_rejects_unknown_fields(session):
    with pytest.raises(ValueError):
        _matcher(session).fuzzy_address_keys(street_line_1="Main")


def test_fuzzy_respects_head(session, seed):
    """Test that a superseded address no longer matches."""
    seed.address("f1", city="Springfield", start=1, end=3)
    seed.address("f1", city="Boston", start=3)
    assert _matcher(session, head=2).fuzzy_address_keys(city="Springfield") == {"f1"}
    assert _matcher(session, head=3).fuzzy_address_keys(city="Springfield") == set()


def test_full_text_unions_name_standard_and_address(session, seed):
    seed.organization("by-name", name="Organic Cotton Mill")
    seed.organization("by-standard", name="Weaving Co")
    seed.organization("sb-1", organization_type="StandardsBody")
    seed.standard("std-1", "sb-1", name="Organic Textile Standard")
    seed.certificate("cert-1", "by-standard", "body-1", "std-1")
    seed.organization("by-address", name="Dye House")
    seed.address("by-address", searchable_address="4 Organic Way Leeds UK")
    seed.organization("unrelated", name="Steel Works")

    assert _matcher(session).full_text_keys("organic") == {"by-name", "by-standard", "by-address"}


def test_full_text_ignores_standards_not_valid_at_head(session, seed):
    seed.organization("f1", name="Weaving Co")
    seed.standard("std-1", "sb-1", name="Organic Textile Standard", start=5)
    seed.certificate("cert-1", "f1", "body-1", "std-1")
    assert _matcher(session, head=4).full_text_keys("organic") == set()
    assert _matcher(session, head=5).full_text_keys("organic") == {"f1"}


def test_full_text_rejects_blank_terms(session):
    with pytest.raises(BadRequestError):
        _matcher(session).full_text_keys("  ,, ")
