import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from nonce_validator.sources.fetcher import (
    DEFAULT_ROUTER_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    process_map_path: Path = Path("process-map.json")
    concurrency: int = 10
    max_retries: int = 3
    base_retry_delay: float = 1.0
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    router_base_url: str = DEFAULT_ROUTER_BASE_URL
    verbose: bool = False
    only_mismatches: bool = False
    pagerduty_enabled: bool = False
    pagerduty_routing_key: str = ""
    pagerduty_mismatch_threshold: int = 3
    pagerduty_error_threshold: int = 5
    pagerduty_source: str = "nonce-validator"
    log_level: str = "WARNING"


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value:
        return default
    return Path(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False

    logger.warning("Invalid boolean value for %s: %s", name, value)
    return default


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Invalid integer value for %s: %s", name, value)
        return default
    if minimum is not None and parsed < minimum:
        logger.warning("Value for %s must be at least %d: %s", name, minimum, value)
        return default
    return parsed


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid number value for %s: %s", name, value)
        return default


def load_config() -> AppConfig:
    """Load configuration from defaults and optional .env overrides."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    defaults = AppConfig()

    return AppConfig(
        process_map_path=_env_path(
            "PROCESS_MAP_PATH", defaults.process_map_path
        ),
        concurrency=_env_int("CONCURRENCY", defaults.concurrency, minimum=1),
        max_retries=_env_int("MAX_RETRIES", defaults.max_retries, minimum=1),
        base_retry_delay=_env_float(
            "BASE_RETRY_DELAY", defaults.base_retry_delay
        ),
        request_timeout=_env_float("REQUEST_TIMEOUT", defaults.request_timeout),
        router_base_url=_env_str("ROUTER_BASE_URL", defaults.router_base_url),
        verbose=_env_bool("VERBOSE", defaults.verbose),
        only_mismatches=_env_bool("ONLY_MISMATCHES", defaults.only_mismatches),
        pagerduty_enabled=_env_bool(
            "PAGERDUTY_ENABLED", defaults.pagerduty_enabled
        ),
        pagerduty_routing_key=_env_str(
            "PAGERDUTY_ROUTING_KEY", defaults.pagerduty_routing_key
        ),
        pagerduty_mismatch_threshold=_env_int(
            "PAGERDUTY_MISMATCH_THRESHOLD",
            defaults.pagerduty_mismatch_threshold,
            minimum=1,
        ),
        pagerduty_error_threshold=_env_int(
            "PAGERDUTY_ERROR_THRESHOLD",
            defaults.pagerduty_error_threshold,
            minimum=1,
        ),
        pagerduty_source=_env_str("PAGERDUTY_SOURCE", defaults.pagerduty_source),
        log_level=_env_str("LOG_LEVEL", defaults.log_level),
    )
