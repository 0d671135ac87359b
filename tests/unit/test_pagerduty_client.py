import pytest
import requests

from nonce_validator.alerts import pagerduty
from nonce_validator.errors import DeliveryError, DeliveryErrorKind, EncodingError
from nonce_validator.models.schemas import AlertEvent, AlertPayload


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


def _trigger_event(**payload_overrides) -> AlertEvent:
    payload = {
        "summary": "Nonce mismatches detected",
        "severity": "error",
        "source": "nonce-validator",
        "timestamp": "2026-10-19T08:00:00Z",
        "custom_details": {"mismatches": [{"process_id": "p1", "difference": 2}]},
    }
    payload.update(payload_overrides)
    return AlertEvent(
        event_action="trigger",
        dedup_key="nonce-validator-2026-10-19-mismatches",
        payload=AlertPayload(**payload),
    )


def test_client_requires_routing_key() -> None:
    with pytest.raises(ValueError):
        pagerduty.PagerDutyClient("")


def test_send_event_posts_encoded_body(monkeypatch) -> None:
    calls: list[tuple[str, bytes, dict]] = []

    def fake_post(url, data, headers, timeout):
        calls.append((url, data, headers))
        return FakeResponse(
            202,
            '{"status":"success","message":"Event processed",'
            '"dedup_key":"nonce-validator-2026-10-19-mismatches"}',
        )

    monkeypatch.setattr(pagerduty.requests, "post", fake_post)
    client = pagerduty.PagerDutyClient("rk-123")

    fields = client.send_event(_trigger_event())

    assert fields["status"] == "success"
    assert fields["dedup_key"] == "nonce-validator-2026-10-19-mismatches"
    url, body, headers = calls[0]
    assert url == pagerduty.PAGERDUTY_EVENTS_URL
    assert headers == {"Content-Type": "application/json"}
    text = body.decode("utf-8")
    assert text.startswith('{"routing_key":"rk-123","event_action":"trigger"')
    assert '"custom_details":{"mismatches":[{"process_id":"p1","difference":2}]}' in text


@pytest.mark.parametrize(
    ("status", "text", "kind", "message"),
    [
        (400, '{"status":"invalid event","message":"Event object is invalid"}',
         DeliveryErrorKind.BAD_REQUEST, "Bad request: Event object is invalid"),
        (400, "", DeliveryErrorKind.BAD_REQUEST, "Bad request: Invalid event"),
        (429, "", DeliveryErrorKind.RATE_LIMITED, "Rate limited: Too many requests"),
        (503, "", DeliveryErrorKind.SERVER_ERROR, "Server error: HTTP 503"),
        (404, "nope", DeliveryErrorKind.UNEXPECTED_STATUS, "HTTP 404: nope"),
    ],
)
def test_send_event_maps_failure_statuses(
    monkeypatch, status, text, kind, message
) -> None:
    monkeypatch.setattr(
        pagerduty.requests,
        "post",
        lambda url, data, headers, timeout: FakeResponse(status, text),
    )
    client = pagerduty.PagerDutyClient("rk-123")

    with pytest.raises(DeliveryError) as excinfo:
        client.send_event(_trigger_event())

    assert excinfo.value.kind == kind
    assert str(excinfo.value) == message
    assert excinfo.value.status_code == status


def test_send_event_network_failure(monkeypatch) -> None:
    def fake_post(url, data, headers, timeout):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(pagerduty.requests, "post", fake_post)
    client = pagerduty.PagerDutyClient("rk-123")

    with pytest.raises(DeliveryError) as excinfo:
        client.send_event(_trigger_event())
    assert excinfo.value.kind == DeliveryErrorKind.NETWORK


def test_send_event_rejects_unencodable_payload(monkeypatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(
        pagerduty.requests,
        "post",
        lambda url, data, headers, timeout: calls.append(url),
    )
    client = pagerduty.PagerDutyClient("rk-123")

    with pytest.raises(EncodingError):
        client.send_event(_trigger_event(custom_details={"elapsed": float("nan")}))
    assert calls == []


@pytest.mark.parametrize(
    "event",
    [
        AlertEvent(event_action="escalate"),
        AlertEvent(event_action="trigger"),
        _trigger_event(summary=""),
        _trigger_event(severity="fatal"),
        _trigger_event(source=""),
    ],
)
def test_validate_event_rejects_invalid(event: AlertEvent) -> None:
    with pytest.raises(DeliveryError) as excinfo:
        pagerduty.validate_event(event)
    assert excinfo.value.kind == DeliveryErrorKind.INVALID_EVENT


def test_resolve_sends_without_payload(monkeypatch) -> None:
    bodies: list[str] = []

    def fake_post(url, data, headers, timeout):
        bodies.append(data.decode("utf-8"))
        return FakeResponse(202, '{"status":"success"}')

    monkeypatch.setattr(pagerduty.requests, "post", fake_post)
    client = pagerduty.PagerDutyClient("rk-123")

    client.resolve("nonce-validator-2026-10-19-errors")

    assert bodies == [
        '{"routing_key":"rk-123","event_action":"resolve",'
        '"dedup_key":"nonce-validator-2026-10-19-errors"}'
    ]


def test_bad_request_message_keeps_escaped_quotes(monkeypatch) -> None:
    body = '{"status":"invalid event","message":"Field \\"severity\\" is invalid"}'
    monkeypatch.setattr(
        pagerduty.requests,
        "post",
        lambda url, data, headers, timeout: FakeResponse(400, body),
    )
    client = pagerduty.PagerDutyClient("rk-123")

    with pytest.raises(DeliveryError) as excinfo:
        client.send_event(_trigger_event())

    assert str(excinfo.value) == 'Bad request: Field "severity" is invalid'
