import json
from typing import Any

from nonce_validator.errors import ExtractError, ExtractErrorKind
from nonce_validator.models.schemas import (
    STATUS_ERROR,
    STATUS_MATCH,
    STATUS_MISMATCH,
    ComparisonResult,
    ValidationTarget,
)

NONCE_TAG_NAME = "Nonce"


def extract_slot_nonce(body: str) -> str:
    value = (body or "").strip()
    if not value:
        raise ExtractError(ExtractErrorKind.EMPTY_BODY, "Empty slot response body")
    return value


def extract_router_nonce(body: str, tag_name: str = NONCE_TAG_NAME) -> str:
    """Return the value of the ``assignment.tags`` entry named ``tag_name``."""
    try:
        data: Any = json.loads(body)
    except ValueError as exc:
        raise ExtractError(
            ExtractErrorKind.MALFORMED_SHAPE,
            f"Invalid router response structure: {exc}",
        ) from exc

    assignment = data.get("assignment") if isinstance(data, dict) else None
    tags = assignment.get("tags") if isinstance(assignment, dict) else None
    if not isinstance(tags, list):
        raise ExtractError(
            ExtractErrorKind.MALFORMED_SHAPE, "Invalid router response structure"
        )

    for tag in tags:
        if isinstance(tag, dict) and tag.get("name") == tag_name:
            value = tag.get("value")
            return "" if value is None else str(value).strip()

    raise ExtractError(
        ExtractErrorKind.FIELD_NOT_FOUND, f"{tag_name} tag not found"
    )


def _as_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def compare_nonces(
    target: ValidationTarget,
    slot_url: str,
    router_url: str,
    *,
    slot_nonce: str | None = None,
    router_nonce: str | None = None,
    slot_error: str | None = None,
    router_error: str | None = None,
) -> ComparisonResult:
    """Classify one entity from its two extraction outcomes.

    A slot-side error is reported in preference to a router-side one.
    ``difference`` is slot minus router, so positive means the slot is ahead.
    """
    base = {
        "process_id": target.process_id,
        "target": target.target,
        "slot_url": slot_url,
        "router_url": router_url,
        "slot_nonce": slot_nonce,
        "router_nonce": router_nonce,
    }
    if slot_error is not None or slot_nonce is None:
        return ComparisonResult(
            status=STATUS_ERROR,
            error=f"Slot endpoint: {slot_error or 'no value'}",
            **base,
        )
    if router_error is not None or router_nonce is None:
        return ComparisonResult(
            status=STATUS_ERROR,
            error=f"Router endpoint: {router_error or 'no value'}",
            **base,
        )

    slot_number = _as_int(slot_nonce)
    router_number = _as_int(router_nonce)
    numeric = slot_number is not None and router_number is not None

    if slot_nonce == router_nonce or (numeric and slot_number == router_number):
        return ComparisonResult(status=STATUS_MATCH, difference=0, **base)

    difference = slot_number - router_number if numeric else None
    return ComparisonResult(status=STATUS_MISMATCH, difference=difference, **base)
