from dataclasses import dataclass
from typing import Any

STATUS_MATCH = "match"
STATUS_MISMATCH = "mismatch"
STATUS_ERROR = "error"

EVENT_ACTIONS = ("trigger", "acknowledge", "resolve")
SEVERITIES = ("critical", "error", "warning", "info")


@dataclass(frozen=True)
class ValidationTarget:
    process_id: str
    target: str


@dataclass(frozen=True)
class ComparisonResult:
    process_id: str
    target: str
    slot_url: str
    router_url: str
    status: str
    slot_nonce: str | None = None
    router_nonce: str | None = None
    difference: int | None = None
    error: str | None = None


@dataclass
class AggregateStats:
    matches: int = 0
    mismatches: int = 0
    errors: int = 0
    total: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class AlertPayload:
    summary: str
    severity: str
    source: str
    timestamp: str
    custom_details: Any = None
    component: str | None = None
    group: str | None = None
    event_class: str | None = None


@dataclass
class AlertEvent:
    event_action: str
    dedup_key: str | None = None
    payload: AlertPayload | None = None
    client: str | None = None
    client_url: str | None = None
