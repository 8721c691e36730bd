"""
Tie-break rules for histogram analysis.

Every choice the behavior analyzer makes over a histogram goes through one
of these functions so the tie order is explicit:

    rank_buckets        count descending, then bucket index ascending
    pick_usage_pattern  largest window sum; ties morning > afternoon > evening > night
    find_quiet_window   smallest circular window sum; ties go to the earliest start
"""

from collections.abc import Sequence

from smartnotify.models import QUIET_WINDOW_HOURS, FrequencyPreference, UsagePattern


# Hour windows checked in tie-break order
USAGE_WINDOWS: tuple[tuple[UsagePattern, tuple[int, ...]], ...] = (
    (UsagePattern.MORNING, tuple(range(6, 12))),
    (UsagePattern.AFTERNOON, tuple(range(12, 17))),
    (UsagePattern.EVENING, tuple(range(17, 22))),
    (UsagePattern.NIGHT, (22, 23, 0, 1, 2, 3, 4, 5)),
)


def bucket_rank_key(counts: Sequence[int], index: int) -> tuple[int, int]:
    """Sort key for a histogram bucket: higher count first, lower index on ties."""
    return (-counts[index], index)


def rank_buckets(counts: Sequence[int], limit: int) -> list[int]:
    """
    Indices of the non-empty buckets, best first.

    Args:
        counts: Histogram (24 hours or 7 days)
        limit: Maximum number of indices returned

    Returns:
        Deduplicated bucket indices, at most ``limit`` long
    """
    non_empty = [i for i, count in enumerate(counts) if count > 0]
    non_empty.sort(key=lambda i: bucket_rank_key(counts, i))
    return non_empty[:limit]


def usage_window_sums(hour_counts: Sequence[int]) -> list[tuple[UsagePattern, int]]:
    return [
        (pattern, sum(hour_counts[h] for h in hours))
        for pattern, hours in USAGE_WINDOWS
    ]


def pick_usage_pattern(hour_counts: Sequence[int]) -> UsagePattern:
    """
    Part of the day with the most reads.

    An empty histogram carries no signal and resolves to MIXED rather than
    to the first window in tie order.
    """
    sums = usage_window_sums(hour_counts)
    best = max(total for _, total in sums)
    if best == 0:
        return UsagePattern.MIXED

    for pattern, total in sums:
        if total == best:
            return pattern
    return UsagePattern.MIXED


def circular_window_sum(hour_counts: Sequence[int], start: int, length: int) -> int:
    """Sum of ``length`` consecutive hours from ``start``, wrapping past 23."""
    size = len(hour_counts)
    return sum(hour_counts[(start + offset) % size] for offset in range(length))


def find_quiet_window(hour_counts: Sequence[int], length: int = QUIET_WINDOW_HOURS) -> int:
    """
    Start hour of the least active circular window.

    Strict ``<`` comparison keeps the earliest start when several windows
    share the minimum.
    """
    best_start = 0
    best_sum = None
    for start in range(len(hour_counts)):
        total = circular_window_sum(hour_counts, start, length)
        if best_sum is None or total < best_sum:
            best_sum = total
            best_start = start
    return best_start


def frequency_preference(engagement_rate: float) -> FrequencyPreference:
    if engagement_rate > 0.7:
        return FrequencyPreference.HIGH
    if engagement_rate > 0.4:
        return FrequencyPreference.MEDIUM
    return FrequencyPreference.LOW
