from typing import Iterable

from nonce_validator.models.schemas import (
    STATUS_MATCH,
    STATUS_MISMATCH,
    AggregateStats,
    ComparisonResult,
)

EXIT_OK = 0
EXIT_MISMATCHES = 1
EXIT_ERRORS = 2
EXIT_INVALID_CONFIG = 3


def aggregate(
    results: Iterable[ComparisonResult],
    elapsed_seconds: float = 0.0,
) -> AggregateStats:
    stats = AggregateStats(elapsed_seconds=elapsed_seconds)
    for result in results:
        stats.total += 1
        if result.status == STATUS_MATCH:
            stats.matches += 1
        elif result.status == STATUS_MISMATCH:
            stats.mismatches += 1
        else:
            stats.errors += 1
    return stats


def exit_code_for(stats: AggregateStats) -> int:
    """Mismatches outrank errors: they are what the run exists to surface."""
    if stats.mismatches > 0:
        return EXIT_MISMATCHES
    if stats.errors > 0:
        return EXIT_ERRORS
    return EXIT_OK
