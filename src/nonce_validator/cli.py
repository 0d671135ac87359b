import argparse
import logging
import sys
from pathlib import Path

from nonce_validator.config import AppConfig, load_config
from nonce_validator.pipeline import run_validation
from nonce_validator.reporting.aggregator import EXIT_INVALID_CONFIG


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_INVALID_CONFIG, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="nonce-validator",
        description=(
            "Compare process nonces reported by the compute nodes and the "
            "scheduler router"
        ),
        epilog="Exit codes: 0 all matched, 1 mismatches, 2 errors, 3 invalid configuration",
    )
    parser.add_argument("--file", help="Path to process map JSON file")
    parser.add_argument("--concurrency", type=int, help="Number of parallel workers")
    parser.add_argument("--max-retries", type=int, help="Attempts per request")
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Show the target host for each process",
    )
    parser.add_argument(
        "--only-mismatches",
        action="store_true",
        default=None,
        help="Only show processes with mismatched nonces",
    )
    parser.add_argument(
        "--pagerduty-enabled",
        action="store_true",
        default=None,
        help="Send PagerDuty alerts when thresholds are reached",
    )
    parser.add_argument(
        "--pagerduty-key",
        help="PagerDuty routing key (default: PAGERDUTY_ROUTING_KEY)",
    )
    parser.add_argument("--pagerduty-mismatch-threshold", type=int)
    parser.add_argument("--pagerduty-error-threshold", type=int)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    return parser


def apply_overrides(
    config: AppConfig,
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
) -> AppConfig:
    if args.file:
        config.process_map_path = Path(args.file)
    if args.concurrency is not None:
        if args.concurrency < 1:
            parser.error("--concurrency must be at least 1")
        config.concurrency = args.concurrency
    if args.max_retries is not None:
        if args.max_retries < 1:
            parser.error("--max-retries must be at least 1")
        config.max_retries = args.max_retries
    if args.verbose:
        config.verbose = True
    if args.only_mismatches:
        config.only_mismatches = True
    if args.pagerduty_enabled:
        config.pagerduty_enabled = True
    if args.pagerduty_key:
        config.pagerduty_routing_key = args.pagerduty_key
    if args.pagerduty_mismatch_threshold is not None:
        if args.pagerduty_mismatch_threshold < 1:
            parser.error("--pagerduty-mismatch-threshold must be at least 1")
        config.pagerduty_mismatch_threshold = args.pagerduty_mismatch_threshold
    if args.pagerduty_error_threshold is not None:
        if args.pagerduty_error_threshold < 1:
            parser.error("--pagerduty-error-threshold must be at least 1")
        config.pagerduty_error_threshold = args.pagerduty_error_threshold
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = apply_overrides(load_config(), args, parser)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return run_validation(config)


if __name__ == "__main__":
    raise SystemExit(main())
