"""Tests for the factories query surface."""

import pytest

from certledger.api.factories_api import fetch_factory, list_factories
from certledger.errors import BadRequestError, DataIntegrityError, NotFoundError
from certledger.ops.metrics import InMemoryMetrics


def test_fetch_factory_full_shape(session, seed):
    seed.blocks(1)
    seed.certified_factory()
    seed.contact("factory-1", name="Ann")
    seed.authorization("factory-1", "pk-1", role="Admin")
    seed.assertion("assert-1", "factory-1")

    result = fetch_factory(session, "factory-1")

    assert result["head"] == 1
    assert result["link"] == "/api/factories/factory-1?head=1"
    assert "paging" not in result
    assert result["data"] == {
        "id": "factory-1",
        "name": "factory-1 Works",
        "contacts": [{"name": "Ann", "language_code": "en", "phone_number": "555-0100"}],
        "authorizations": [{"public_key": "pk-1", "role": "Admin"}],
        "address": {"street_line_1": "1 Main St", "city": "Springfield", "country": "US"},
        "organization_type": "Factory",
        "assertion_id": "assert-1",
    }


def test_fetch_factory_expand_includes_certificates(session, seed):
    seed.certified_factory()
    data = fetch_factory(session, "factory-1", head=1, expand=True)["data"]
    assert data["certificates"] == [{
        "id": "cert-1",
        "certifying_body_id": "body-1",
        "certifying_body": "Acme Certifiers",
        "factory_id": "factory-1",
        "factory_name": "factory-1 Works",
        "standard_id": "std-1",
        "standard_name": "Fair Labor",
        "standard_version": "1.0",
        "valid_from": 1_600_000_000,
        "valid_to": 1_700_000_000,
    }]


def test_fetch_factory_without_address_omits_it(session, seed):
    seed.organization("f1")
    data = fetch_factory(session, "f1", head=1)["data"]
    assert "address" not in data
    assert "certificates" not in data
    assert data["contacts"] == []


def test_fetch_factory_respects_validity_window(session, seed):
    """Test that a factory valid [1, 2) is found at 1 and missing at 2."""
    seed.organization("f1", start=1, end=2)
    assert fetch_factory(session, "f1", head=1)["data"]["id"] == "f1"
    with pytest.raises(NotFoundError):
        fetch_factory(session, "f1", head=2)


def test_fetch_non_factory_is_not_found(session, seed):
    seed.organization("b1", organization_type="CertifyingBody")
    with pytest.raises(NotFoundError):
        fetch_factory(session, "b1", head=1)


def test_fetch_factory_counts_request(session, seed):
    seed.organization("f1")
    metrics = InMemoryMetrics()
    fetch_factory(session, "f1", head=1, metrics=metrics)
    assert metrics.get("http_requests_total") == 1


def test_list_factories_filters_type_and_pages(session, seed):
    seed.blocks(1, 2)
    for key in ("f1", "f2", "f3"):
        seed.organization(key)
    seed.organization("b1", organization_type="CertifyingBody")

    result = list_factories(session, limit=2)

    assert result["head"] == 2
    assert [f["id"] for f in result["data"]] == ["f1", "f2"]
    assert result["paging"]["total"] == 3
    assert result["link"] == "/api/factories?head=2&limit=2&offset=0"
    assert result["paging"]["next"] == "/api/factories?head=2&limit=2&offset=2"
    assert result["paging"]["last"] == "/api/factories?head=2&limit=2&offset=2"


def test_list_factories_same_head_is_reproducible(session, seed):
    seed.organization("f1")
    seed.organization("f2")
    first = list_factories(session, head=1)
    second = list_factories(session, head=1)
    assert first["data"] == second["data"]
    assert first["paging"]["total"] == second["paging"]["total"]


def test_list_factories_later_head_drops_closed_rows(session, seed):
    seed.organization("f1", start=1, end=3)
    seed.organization("f2", start=1)
    assert [f["id"] for f in list_factories(session, head=2)["data"]] == ["f1", "f2"]
    assert [f["id"] for f in list_factories(session, head=3)["data"]] == ["f2"]


def test_list_factories_fuzzy_city(session, seed):
    seed.organization("f1")
    seed.address("f1", city="Springfield")
    seed.organization("f2")
    seed.address("f2", city="Boston")

    result = list_factories(session, city="Springfeld", head=1)

    assert [f["id"] for f in result["data"]] == ["f1"]
    assert result["paging"]["total"] == 1
    assert result["link"] == "/api/factories?city=Springfeld&head=1&limit=100&offset=0"


def test_list_factories_intersects_name_and_fuzzy(session, seed):
    seed.organization("f1", name="Alpha")
    seed.address("f1", city="Springfield")
    seed.organization("f2", name="Beta")
    seed.address("f2", city="Springfield")
    result = list_factories(session, name="Beta", city="Springfield", head=1)
    assert [f["id"] for f in result["data"]] == ["f2"]


def test_list_factories_full_text_search(session, seed):
    seed.certified_factory()
    seed.organization("f2", name="Steel Works")

    result = list_factories(session, search="fair labor", head=1)

    assert [f["id"] for f in result["data"]] == ["factory-1"]
    assert result["link"] == "/api/factories?search=fair%20labor&head=1&limit=100&offset=0"


def test_list_factories_search_never_returns_non_factories(session, seed):
    seed.organization("b1", name="Organic Body", organization_type="CertifyingBody")
    result = list_factories(session, search="organic", head=1)
    assert result["data"] == []
    assert result["paging"]["total"] == 0


def test_list_factories_expand_flag_in_links(session, seed):
    seed.certified_factory()
    result = list_factories(session, expand=True, head=1)
    assert result["link"] == "/api/factories?head=1&expand=true&limit=100&offset=0"
    assert [c["id"] for c in result["data"][0]["certificates"]] == ["cert-1"]


def test_list_factories_expand_broken_reference(session, seed):
    """Test that an expanded certificate with no certifying body fails loudly."""
    seed.organization("f1")
    seed.standard("s1", "sb-1")
    seed.certificate("c1", "f1", "missing-body", "s1")
    with pytest.raises(DataIntegrityError):
        list_factories(session, expand=True, head=1)


def test_list_factories_duplicate_address_is_integrity_error(session, seed):
    seed.organization("f1")
    seed.address("f1", city="A")
    seed.address("f1", city="B")
    with pytest.raises(DataIntegrityError):
        list_factories(session, head=1)


def test_list_factories_rejects_bad_paging(session, seed):
    seed.blocks(1)
    with pytest.raises(BadRequestError):
        list_factories(session, limit=0)
    with pytest.raises(BadRequestError):
        list_factories(session, offset=-5)


def test_list_factories_head_past_tip_shows_rows_valid_there(session, seed):
    seed.blocks(1)
    seed.organization("f1", start=1)
    seed.organization("f2", start=10)
    result = list_factories(session, head=5)
    assert [f["id"] for f in result["data"]] == ["f1"]
