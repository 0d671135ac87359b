from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any

from nonce_validator.alerts.pagerduty import PagerDutyClient
from nonce_validator.errors import DeliveryError, EncodingError
from nonce_validator.models.schemas import (
    STATUS_ERROR,
    STATUS_MISMATCH,
    AggregateStats,
    AlertEvent,
    AlertPayload,
    ComparisonResult,
)

logger = logging.getLogger(__name__)

STATE_DISABLED = "disabled"
STATE_UNCONFIGURED = "enabled-unconfigured"
STATE_ENABLED = "enabled"

KIND_MISMATCHES = "mismatches"
KIND_ERRORS = "errors"
KIND_FAILURE = "failure"

DEDUP_NAMESPACE = "nonce-validator"
DEFAULT_SOURCE = "nonce-validator"
DELIVERY_ATTEMPTS = 2
RETRY_PAUSE_SECONDS = 1.0


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_dedup_key(kind: str, day: date | None = None) -> str:
    """Same kind on the same UTC day always yields the same key."""
    if day is None:
        day = datetime.now(timezone.utc).date()
    return f"{DEDUP_NAMESPACE}-{day.isoformat()}-{kind}"


def _run_metadata(stats: AggregateStats) -> dict[str, Any]:
    return {
        "total_processes": stats.total,
        "match_count": stats.matches,
        "mismatch_count": stats.mismatches,
        "error_count": stats.errors,
        "elapsed_seconds": round(stats.elapsed_seconds, 3),
        "run_timestamp": _utc_timestamp(),
    }


def build_mismatch_details(
    results: list[ComparisonResult],
    stats: AggregateStats,
) -> dict[str, Any]:
    details: dict[str, Any] = {"alert_type": KIND_MISMATCHES}
    details.update(_run_metadata(stats))
    details["mismatches"] = [
        {
            "process_id": result.process_id,
            "target": result.target,
            "slot_nonce": result.slot_nonce,
            "router_nonce": result.router_nonce,
            "difference": result.difference,
            "slot_url": result.slot_url,
            "router_url": result.router_url,
        }
        for result in results
        if result.status == STATUS_MISMATCH
    ]
    return details


def build_error_details(
    results: list[ComparisonResult],
    stats: AggregateStats,
) -> dict[str, Any]:
    details: dict[str, Any] = {"alert_type": KIND_ERRORS}
    details.update(_run_metadata(stats))
    details["errors"] = [
        {
            "process_id": result.process_id,
            "target": result.target,
            "error": result.error,
            "slot_nonce": result.slot_nonce,
            "router_nonce": result.router_nonce,
            "slot_url": result.slot_url,
            "router_url": result.router_url,
        }
        for result in results
        if result.status == STATUS_ERROR
    ]
    return details


class AlertManager:
    """Threshold-gated PagerDuty alerting for a single validation run.

    Local state never suppresses a repeat alert; repeats within a day are
    collapsed by PagerDuty through the dedup key.
    """

    def __init__(
        self,
        enabled: bool,
        routing_key: str | None,
        *,
        source: str = DEFAULT_SOURCE,
        client: PagerDutyClient | None = None,
        retry_pause: float = RETRY_PAUSE_SECONDS,
    ) -> None:
        self.source = source
        self.retry_pause = retry_pause
        self.alerts_sent = 0
        self.client: PagerDutyClient | None = None

        if not enabled:
            self.state = STATE_DISABLED
            return

        routing_key = (routing_key or "").strip()
        if client is None and not routing_key:
            logger.warning(
                "PagerDuty alerting enabled but no routing key configured; "
                "alerts will not be sent"
            )
            self.state = STATE_UNCONFIGURED
            return

        self.client = client or PagerDutyClient(routing_key)
        self.state = STATE_ENABLED

    @property
    def enabled(self) -> bool:
        return self.state == STATE_ENABLED

    def should_alert(self, kind: str, count: int, threshold: int) -> bool:
        if not self.enabled:
            return False
        if count < threshold:
            logger.debug(
                "No %s alert: count %d below threshold %d", kind, count, threshold
            )
            return False
        return True

    def send_alert(
        self,
        severity: str,
        summary: str,
        details: dict[str, Any],
    ) -> bool:
        """Trigger one alert, retrying once. Failures are logged, never raised."""
        if not self.enabled or self.client is None:
            return False

        kind = details.get("alert_type") or "general"
        event = AlertEvent(
            event_action="trigger",
            dedup_key=build_dedup_key(kind),
            payload=AlertPayload(
                summary=summary,
                severity=severity,
                source=self.source,
                timestamp=_utc_timestamp(),
                custom_details=details,
                component=DEFAULT_SOURCE,
                group="validation",
                event_class=kind,
            ),
        )

        for attempt in range(1, DELIVERY_ATTEMPTS + 1):
            try:
                self.client.send_event(event)
            except EncodingError as exc:
                logger.error("Dropping %s alert, payload not encodable: %s", kind, exc)
                return False
            except DeliveryError as exc:
                logger.warning(
                    "PagerDuty %s alert attempt %d/%d failed: %s",
                    kind,
                    attempt,
                    DELIVERY_ATTEMPTS,
                    exc,
                )
                if attempt < DELIVERY_ATTEMPTS:
                    time.sleep(self.retry_pause)
                continue

            self.alerts_sent += 1
            print(f"PagerDuty {severity} alert sent: {summary}")
            return True

        logger.error(
            "PagerDuty %s alert not delivered after %d attempts",
            kind,
            DELIVERY_ATTEMPTS,
        )
        return False

    def alert_mismatches(
        self,
        results: list[ComparisonResult],
        stats: AggregateStats,
        threshold: int,
    ) -> bool:
        if not self.should_alert(KIND_MISMATCHES, stats.mismatches, threshold):
            return False
        summary = (
            f"Nonce mismatches detected: {stats.mismatches} of "
            f"{stats.total} processes"
        )
        return self.send_alert(
            "error", summary, build_mismatch_details(results, stats)
        )

    def alert_errors(
        self,
        results: list[ComparisonResult],
        stats: AggregateStats,
        threshold: int,
    ) -> bool:
        if not self.should_alert(KIND_ERRORS, stats.errors, threshold):
            return False
        summary = (
            f"Nonce validation errors: {stats.errors} of "
            f"{stats.total} processes could not be checked"
        )
        return self.send_alert(
            "warning", summary, build_error_details(results, stats)
        )

    def alert_failure(self, reason: str) -> bool:
        """Report a run that could not validate anything; no threshold applies."""
        return self.send_alert(
            "critical",
            f"Nonce validator run failed: {reason}",
            {
                "alert_type": KIND_FAILURE,
                "error": reason,
                "run_timestamp": _utc_timestamp(),
            },
        )
