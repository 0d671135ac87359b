import sys

from nonce_validator.models.schemas import (
    STATUS_MATCH,
    STATUS_MISMATCH,
    AggregateStats,
    ComparisonResult,
)

GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RESET = "\033[0m"

RULE = "━" * 40


def format_process_id(process_id: str) -> str:
    if not process_id:
        return "unknown"
    if len(process_id) > 20:
        return f"{process_id[:10]}...{process_id[-7:]}"
    return process_id


def print_progress(done: int, total: int) -> None:
    if done % 10 == 0 or done == total:
        sys.stdout.write(f"\r{BLUE}Processed {done}/{total}...{RESET}")
        sys.stdout.flush()
    if done == total:
        sys.stdout.write("\r" + " " * 50 + "\r")
        sys.stdout.flush()


def print_result(
    result: ComparisonResult,
    *,
    verbose: bool = False,
    only_mismatches: bool = False,
) -> None:
    pid_short = format_process_id(result.process_id)
    target_suffix = f" [{result.target}]" if verbose else ""

    if result.status == STATUS_MATCH:
        if only_mismatches:
            return
        print(
            f"{GREEN}✓{RESET} {pid_short} (nonce: {result.slot_nonce})"
            f"{target_suffix}"
        )
        return

    if result.status == STATUS_MISMATCH:
        print(f"{RED}✗{RESET} {pid_short}{target_suffix}")
        print(f"  Slot:   {result.slot_nonce}")
        print(f"  Router: {result.router_nonce}")
        if result.difference is not None:
            print(f"  Diff:   {result.difference:+d}")
        print("  URLs:")
        print(f"    Slot:   {result.slot_url}")
        print(f"    Router: {result.router_url}")
        return

    if only_mismatches:
        return
    print(f"{YELLOW}⚠{RESET} {pid_short}{target_suffix}: {result.error}")


def print_summary(stats: AggregateStats, alerts_sent: int | None = None) -> None:
    print(f"\n{BLUE}{RULE}{RESET}")
    print(f"{BLUE}Summary:{RESET}")
    print(f"  {GREEN}✓ Matches:{RESET} {stats.matches}")
    print(f"  {RED}✗ Mismatches:{RESET} {stats.mismatches}")
    print(f"  {YELLOW}⚠ Errors:{RESET} {stats.errors}")
    print(f"  {BLUE}Total:{RESET} {stats.total}")
    print(f"  {BLUE}Time elapsed:{RESET} {stats.elapsed_seconds:.0f}s")
    if alerts_sent is not None:
        print(f"  {BLUE}PagerDuty alerts sent:{RESET} {alerts_sent}")
    print(f"{BLUE}{RULE}{RESET}")
