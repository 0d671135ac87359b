"""PagerDuty Events API v2 client."""

from __future__ import annotations

import logging
from typing import Any

import requests

from nonce_validator.codec.json_codec import decode_fields, encode
from nonce_validator.errors import DeliveryError, DeliveryErrorKind
from nonce_validator.models.schemas import (
    EVENT_ACTIONS,
    SEVERITIES,
    AlertEvent,
    AlertPayload,
)

logger = logging.getLogger(__name__)

PAGERDUTY_EVENTS_URL = "https://events.pagerduty.com/v2/enqueue"


def validate_event(event: AlertEvent) -> None:
    if not event.event_action:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT, "event_action is required"
        )
    if event.event_action not in EVENT_ACTIONS:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT,
            "event_action must be 'trigger', 'acknowledge', or 'resolve'",
        )
    if event.event_action != "trigger":
        return

    payload = event.payload
    if payload is None:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT,
            "payload is required for trigger events",
        )
    if not payload.summary:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT, "payload.summary is required"
        )
    if payload.severity not in SEVERITIES:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT,
            "payload.severity must be 'critical', 'error', 'warning', or 'info'",
        )
    if not payload.source:
        raise DeliveryError(
            DeliveryErrorKind.INVALID_EVENT, "payload.source is required"
        )


def _payload_to_dict(payload: AlertPayload) -> dict[str, Any]:
    body: dict[str, Any] = {
        "summary": payload.summary,
        "severity": payload.severity,
        "source": payload.source,
        "timestamp": payload.timestamp,
    }
    if payload.component:
        body["component"] = payload.component
    if payload.group:
        body["group"] = payload.group
    if payload.event_class:
        body["class"] = payload.event_class
    if payload.custom_details is not None:
        body["custom_details"] = payload.custom_details
    return body


def build_request(routing_key: str, event: AlertEvent) -> dict[str, Any]:
    request: dict[str, Any] = {
        "routing_key": routing_key,
        "event_action": event.event_action,
    }
    if event.dedup_key:
        request["dedup_key"] = event.dedup_key
    if event.payload is not None:
        request["payload"] = _payload_to_dict(event.payload)
    if event.client:
        request["client"] = event.client
    if event.client_url:
        request["client_url"] = event.client_url
    return request


class PagerDutyClient:
    def __init__(
        self,
        routing_key: str,
        endpoint: str = PAGERDUTY_EVENTS_URL,
        timeout: float = 10.0,
    ) -> None:
        if not routing_key:
            raise ValueError("routing_key is required")
        self.routing_key = routing_key
        self.endpoint = endpoint
        self.timeout = timeout

    def send_event(self, event: AlertEvent) -> dict[str, str | None]:
        """Deliver one event and return the decoded response fields.

        Raises ``EncodingError`` if the event cannot be serialized and
        ``DeliveryError`` for validation, transport, or HTTP failures.
        """
        validate_event(event)
        body = encode(build_request(self.routing_key, event))

        try:
            response = requests.post(
                self.endpoint,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise DeliveryError(
                DeliveryErrorKind.NETWORK, f"HTTP error: {reason}"
            ) from exc

        status = response.status_code
        if status == 202:
            fields = decode_fields(response.text)
            logger.debug(
                "PagerDuty accepted %s event (dedup_key=%s)",
                event.event_action,
                fields["dedup_key"],
            )
            return fields
        if status == 400:
            message = decode_fields(response.text)["message"] or "Invalid event"
            raise DeliveryError(
                DeliveryErrorKind.BAD_REQUEST, f"Bad request: {message}", status
            )
        if status == 429:
            raise DeliveryError(
                DeliveryErrorKind.RATE_LIMITED,
                "Rate limited: Too many requests",
                status,
            )
        if status >= 500:
            raise DeliveryError(
                DeliveryErrorKind.SERVER_ERROR, f"Server error: HTTP {status}", status
            )
        raise DeliveryError(
            DeliveryErrorKind.UNEXPECTED_STATUS,
            f"HTTP {status}: {response.text or 'Unknown error'}",
            status,
        )

    def acknowledge(self, dedup_key: str) -> dict[str, str | None]:
        return self.send_event(
            AlertEvent(event_action="acknowledge", dedup_key=dedup_key)
        )

    def resolve(self, dedup_key: str) -> dict[str, str | None]:
        return self.send_event(AlertEvent(event_action="resolve", dedup_key=dedup_key))
