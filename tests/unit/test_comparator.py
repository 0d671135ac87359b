import json

import pytest

from nonce_validator.compare.comparator import (
    compare_nonces,
    extract_router_nonce,
    extract_slot_nonce,
)
from nonce_validator.errors import ExtractError, ExtractErrorKind
from nonce_validator.models.schemas import ValidationTarget

TARGET = ValidationTarget(process_id="p1", target="hostA")
SLOT_URL = "https://hostA/p1~process@1.0/compute/at-slot"
ROUTER_URL = "https://su-router.ao-testnet.xyz/p1/latest"


def _router_body(tags: list[dict]) -> str:
    return json.dumps({"assignment": {"id": "x", "tags": tags}})


def _compare(**kwargs):
    return compare_nonces(TARGET, SLOT_URL, ROUTER_URL, **kwargs)


def test_extract_slot_nonce_trims_whitespace() -> None:
    assert extract_slot_nonce("  42\n") == "42"


def test_extract_slot_nonce_rejects_empty_body() -> None:
    with pytest.raises(ExtractError) as excinfo:
        extract_slot_nonce(" \n ")
    assert excinfo.value.kind == ExtractErrorKind.EMPTY_BODY


def test_extract_router_nonce_finds_tag() -> None:
    body = _router_body(
        [{"name": "Data-Protocol", "value": "ao"}, {"name": "Nonce", "value": "10"}]
    )
    assert extract_router_nonce(body) == "10"


def test_extract_router_nonce_missing_tag() -> None:
    with pytest.raises(ExtractError) as excinfo:
        extract_router_nonce(_router_body([{"name": "Type", "value": "Message"}]))
    assert excinfo.value.kind == ExtractErrorKind.FIELD_NOT_FOUND


@pytest.mark.parametrize(
    "body",
    ["not json", "[]", '{"assignment": {}}', '{"assignment": {"tags": {}}}', "{}"],
)
def test_extract_router_nonce_malformed_shape(body: str) -> None:
    with pytest.raises(ExtractError) as excinfo:
        extract_router_nonce(body)
    assert excinfo.value.kind == ExtractErrorKind.MALFORMED_SHAPE


def test_compare_match() -> None:
    result = _compare(slot_nonce="10", router_nonce="10")

    assert result.status == "match"
    assert result.difference == 0
    assert result.error is None
    assert result.slot_url == SLOT_URL
    assert result.router_url == ROUTER_URL


@pytest.mark.parametrize(("slot", "router"), [(12, 10), (3, 9), (0, 0), (5, 5)])
def test_compare_numeric_law(slot: int, router: int) -> None:
    result = _compare(slot_nonce=str(slot), router_nonce=str(router))

    assert (result.status == "match") == (slot == router)
    if result.status == "mismatch":
        assert result.difference == slot - router


def test_compare_mismatch_positive_when_slot_ahead() -> None:
    result = _compare(slot_nonce="12", router_nonce="10")

    assert result.status == "mismatch"
    assert result.difference == 2


def test_compare_non_numeric_mismatch_has_no_difference() -> None:
    result = _compare(slot_nonce="abc", router_nonce="10")

    assert result.status == "mismatch"
    assert result.difference is None


def test_compare_slot_error_takes_precedence() -> None:
    result = _compare(slot_error="HTTP 502", router_error="HTTP 404")

    assert result.status == "error"
    assert result.error == "Slot endpoint: HTTP 502"
    assert result.difference is None


def test_compare_router_error() -> None:
    result = _compare(slot_nonce="10", router_error="Nonce tag not found")

    assert result.status == "error"
    assert result.error == "Router endpoint: Nonce tag not found"
    assert result.slot_nonce == "10"
