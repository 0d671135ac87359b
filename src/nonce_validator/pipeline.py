import logging
import time
from concurrent.futures import ThreadPoolExecutor

from nonce_validator.alerts.dispatcher import AlertManager
from nonce_validator.compare.comparator import (
    compare_nonces,
    extract_router_nonce,
    extract_slot_nonce,
)
from nonce_validator.config import AppConfig, load_config
from nonce_validator.errors import ConfigError, ExtractError, FetchError
from nonce_validator.models.schemas import ComparisonResult, ValidationTarget
from nonce_validator.reporting.aggregator import (
    EXIT_INVALID_CONFIG,
    aggregate,
    exit_code_for,
)
from nonce_validator.reporting.console import (
    BLUE,
    RED,
    RESET,
    print_progress,
    print_result,
    print_summary,
)
from nonce_validator.sources.fetcher import (
    build_router_url,
    build_slot_url,
    fetch_with_retry,
)
from nonce_validator.storage.process_map import load_process_map

logger = logging.getLogger(__name__)


def validate_target(target: ValidationTarget, config: AppConfig) -> ComparisonResult:
    slot_url = build_slot_url(target)
    router_url = build_router_url(target, config.router_base_url)

    slot_nonce = router_nonce = None
    slot_error = router_error = None

    try:
        response = fetch_with_retry(
            slot_url,
            config.max_retries,
            config.base_retry_delay,
            config.request_timeout,
        )
        slot_nonce = extract_slot_nonce(response.text)
    except (FetchError, ExtractError) as exc:
        slot_error = str(exc)

    try:
        response = fetch_with_retry(
            router_url,
            config.max_retries,
            config.base_retry_delay,
            config.request_timeout,
        )
        router_nonce = extract_router_nonce(response.text)
    except (FetchError, ExtractError) as exc:
        router_error = str(exc)

    result = compare_nonces(
        target,
        slot_url,
        router_url,
        slot_nonce=slot_nonce,
        router_nonce=router_nonce,
        slot_error=slot_error,
        router_error=router_error,
    )
    logger.debug("%s: %s", target.process_id, result.status)
    return result


def validate_all(
    targets: list[ValidationTarget],
    config: AppConfig,
) -> list[ComparisonResult]:
    """Validate every target, returning results in input order."""
    total = len(targets)
    results: list[ComparisonResult] = []
    workers = max(config.concurrency, 1)

    if workers == 1:
        for target in targets:
            results.append(validate_target(target, config))
            print_progress(len(results), total)
        return results

    with ThreadPoolExecutor(max_workers=workers) as executor:
        for result in executor.map(lambda t: validate_target(t, config), targets):
            results.append(result)
            print_progress(len(results), total)
    return results


def run_validation(
    config: AppConfig,
    alert_manager: AlertManager | None = None,
) -> int:
    """Run one validation pass and return the process exit code."""
    manager = alert_manager or AlertManager(
        config.pagerduty_enabled,
        config.pagerduty_routing_key,
        source=config.pagerduty_source,
    )

    print(f"{BLUE}Loading process map...{RESET}")
    try:
        targets = load_process_map(config.process_map_path)
    except ConfigError as exc:
        print(f"{RED}Error: {exc}{RESET}")
        manager.alert_failure(str(exc))
        return EXIT_INVALID_CONFIG

    print(
        f"{BLUE}Validating {len(targets)} processes with concurrency "
        f"{config.concurrency}...{RESET}\n"
    )

    start = time.monotonic()
    results = validate_all(targets, config)
    stats = aggregate(results, time.monotonic() - start)

    for result in results:
        print_result(
            result,
            verbose=config.verbose,
            only_mismatches=config.only_mismatches,
        )

    manager.alert_mismatches(results, stats, config.pagerduty_mismatch_threshold)
    manager.alert_errors(results, stats, config.pagerduty_error_threshold)

    print_summary(stats, manager.alerts_sent if manager.enabled else None)
    return exit_code_for(stats)


def run_daily() -> int:
    config = load_config()
    return run_validation(config)


if __name__ == "__main__":
    raise SystemExit(run_daily())
