"""Exception taxonomy for a validation run.

Only ``ConfigError`` aborts a run. Fetch and extract failures become an
entity's ``error`` status; encoding and delivery failures drop one alert.
"""

from __future__ import annotations

from enum import Enum


class ConfigErrorKind(str, Enum):
    EMPTY = "empty"
    NOT_AN_OBJECT = "not_an_object"
    UNBALANCED_BRACES = "unbalanced_braces"
    UNREADABLE = "unreadable"


class FetchErrorKind(str, Enum):
    STATUS_OR_NETWORK = "status_or_network"


class ExtractErrorKind(str, Enum):
    EMPTY_BODY = "empty_body"
    FIELD_NOT_FOUND = "field_not_found"
    MALFORMED_SHAPE = "malformed_shape"


class EncodingErrorKind(str, Enum):
    NOT_FINITE = "not_finite"
    CIRCULAR_REFERENCE = "circular_reference"
    UNSUPPORTED_TYPE = "unsupported_type"


class DeliveryErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    UNEXPECTED_STATUS = "unexpected_status"
    NETWORK = "network"
    INVALID_EVENT = "invalid_event"


class ValidatorError(Exception):
    """Base class carrying a machine-readable ``kind``."""

    def __init__(self, kind: Enum, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class ConfigError(ValidatorError):
    pass


class FetchError(ValidatorError):
    def __init__(self, url: str, attempts: int, last_error: str) -> None:
        super().__init__(FetchErrorKind.STATUS_OR_NETWORK, last_error)
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class ExtractError(ValidatorError):
    pass


class EncodingError(ValidatorError):
    pass


class DeliveryError(ValidatorError):
    def __init__(
        self,
        kind: DeliveryErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(kind, message)
        self.status_code = status_code
