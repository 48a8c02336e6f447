"""
Error kinds raised (or reported) by the matching core.

All errors derive from MatcherError so callers can catch the family in one
place. The pipeline tags the error with the phase it failed in before it
propagates.
"""

from typing import List, Optional, Tuple


class MatcherError(Exception):
    """Base class for matching errors."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase


class NotFound(MatcherError):
    """A resume or referenced job does not exist."""
    pass


class InvalidInput(MatcherError):
    """A resume or job payload is malformed (e.g. missing id)."""

    def __init__(self, errors: List[str], phase: Optional[str] = None):
        super().__init__("; ".join(errors) or "Invalid input", phase=phase)
        self.errors = list(errors)


class UpstreamUnavailable(MatcherError):
    """
    A store could not be reached or failed mid-operation.

    Fatal to the current pipeline call. Callers should retry with backoff.
    """
    pass


class PipelineTimeout(UpstreamUnavailable):
    """The pipeline did not finish within the caller-supplied timeout."""
    pass


class PersistencePartialFailure(MatcherError):
    """
    Some match rows could not be inserted.

    The pipeline returns this as a value on its result; rows that were written
    stay written.
    """

    def __init__(self, failures: List[Tuple[str, str]], inserted_count: int = 0):
        self.failures = list(failures)
        self.inserted_count = inserted_count
        super().__init__(
            f"{len(self.failures)} match(es) failed to insert, {inserted_count} inserted",
            phase="persisting",
        )

    @property
    def failed_count(self) -> int:
        return len(self.failures)
