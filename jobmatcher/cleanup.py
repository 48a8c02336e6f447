"""
Cleanup module for removing stale job postings.

Stale jobs are those posted more than a given number of days ago (default: 30).
Their matches go with them, so users are never shown a match for a posting
that no longer exists.
"""

from typing import Tuple

from .errors import UpstreamUnavailable
from .logger import get_logger
from .storage import SqlStore

DEFAULT_STALE_DAYS = 30


def cleanup_stale_jobs(store: SqlStore, days: int = DEFAULT_STALE_DAYS) -> Tuple[int, int]:
    """
    Remove job postings older than the specified number of days.

    Args:
        store: Store holding the jobs
        days: Number of days to keep jobs (default: 30)

    Returns:
        Tuple of (total_jobs_before, total_jobs_after)
        Difference = jobs_removed

    Raises:
        UpstreamUnavailable: The store could not be cleaned
    """
    logger = get_logger()

    try:
        jobs_before, jobs_after = store.delete_stale_jobs(days=days)
    except UpstreamUnavailable as e:
        logger.error(f"Cleanup failed: {e}", days=days)
        raise

    jobs_removed = jobs_before - jobs_after
    logger.info(
        f"Cleanup complete: {jobs_removed} removed, {jobs_after} remaining",
        jobs_before=jobs_before,
        jobs_removed=jobs_removed,
        jobs_after=jobs_after,
        days_threshold=days,
    )
    return (jobs_before, jobs_after)
