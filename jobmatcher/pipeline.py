"""
Match pipeline: score one resume against the most recent jobs and persist
the new matches.

Phases run strictly in order, each gating the next:

    idle -> fetching -> scoring -> deduplicating -> persisting -> done

Any phase may end in failed instead. A run that times out is cancelled and
stops at its next phase boundary. It does not start persisting once the
caller has been told it failed.

Stores are injected, so the same pipeline runs against SQLite or in-memory
fakes.
"""

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from .errors import (
    InvalidInput,
    MatcherError,
    NotFound,
    PersistencePartialFailure,
    PipelineTimeout,
    UpstreamUnavailable,
)
from .logger import StructuredLogger, get_logger
from .models import InsertResult, Job, JobMatch, MatchRunResult, Resume, utcnow
from .scoring import compute_match_scores, compute_overall_score
from .storage import JobStore, MatchStore, ResumeStore

DEFAULT_JOB_LIMIT = 50


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SCORING = "scoring"
    DEDUPLICATING = "deduplicating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


def _new_match_id() -> str:
    return str(uuid.uuid4())


def build_match(resume: Resume, job: Job, match_id: str, created_at: datetime) -> JobMatch:
    """Score one job for a resume and wrap it as an unsaved JobMatch."""
    scores = compute_match_scores(resume, job)
    return JobMatch(
        id=match_id,
        user_id=resume.user_id,
        job_id=job.id,
        match_score=compute_overall_score(scores),
        skill_match_score=scores.skill * 100,
        location_match_score=scores.location * 100,
        company_match_score=scores.company * 100,
        salary_match_score=scores.salary * 100,
        created_at=created_at,
        is_shown=False,
    )


class MatchPipeline:
    """
    One-shot orchestration of fetch, score, rank, dedupe and persist.

    Args:
        resume_store: Source of resumes
        job_store: Source of job postings
        match_store: Where matches are checked and written
        job_limit: Most recent jobs considered per run
        logger: StructuredLogger (default: global logger)
        id_factory: Produces match ids
        clock: Produces the creation timestamp shared by a run's matches
    """

    def __init__(
        self,
        resume_store: ResumeStore,
        job_store: JobStore,
        match_store: MatchStore,
        job_limit: int = DEFAULT_JOB_LIMIT,
        logger: Optional[StructuredLogger] = None,
        id_factory: Callable[[], str] = _new_match_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.resume_store = resume_store
        self.job_store = job_store
        self.match_store = match_store
        self.job_limit = job_limit
        self.logger = logger or get_logger()
        self.id_factory = id_factory
        self.clock = clock
        self.state = PipelineState.IDLE
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self):
        """Stop at the next phase boundary. No insert starts once this is set."""
        self._cancelled.set()

    def _advance(self, state: PipelineState):
        if self.cancelled:
            raise PipelineTimeout(
                f"Match pipeline cancelled before {state.value}", phase=self.state.value
            )
        self.state = state

    def run(self, resume_id: str) -> MatchRunResult:
        self.logger.record_pipeline_run()
        self.logger.info("Starting match pipeline", resume_id=resume_id)
        try:
            return self._run(resume_id)
        except MatcherError as e:
            if e.phase is None:
                e.phase = self.state.value
            self.state = PipelineState.FAILED
            if self.cancelled:
                # The caller already recorded the timeout
                raise
            self.logger.record_pipeline_failure(e.phase, type(e).__name__)
            self.logger.error(
                f"Match pipeline failed during {e.phase}: {e}",
                resume_id=resume_id,
                error_type=type(e).__name__,
            )
            raise

    def _call(self, action: str, func: Callable, *args):
        """Run a store operation; foreign exceptions become UpstreamUnavailable."""
        try:
            return func(*args)
        except MatcherError:
            raise
        except Exception as e:
            raise UpstreamUnavailable(f"{action} failed: {e}", phase=self.state.value) from e

    def _run(self, resume_id: str) -> MatchRunResult:
        self._advance(PipelineState.FETCHING)
        resume = self._call("fetch resume", self.resume_store.get_resume_by_id, resume_id)
        if resume is None:
            raise NotFound(f"Resume not found: {resume_id}")
        if not resume.user_id:
            raise InvalidInput([f"Resume {resume_id} has no user_id"])

        jobs = self._call("fetch jobs", self.job_store.list_recent_jobs, self.job_limit)
        self.logger.debug("Fetched jobs", resume_id=resume_id, job_count=len(jobs))

        self._advance(PipelineState.SCORING)
        matches = self._score(resume, jobs)

        if not matches:
            self._advance(PipelineState.DONE)
            self.logger.info("No jobs to match", resume_id=resume_id)
            self.logger.record_pipeline_result(scored=0, created=0, skipped=0, failed=0)
            return MatchRunResult(created_count=0)

        self._advance(PipelineState.DEDUPLICATING)
        existing = self._call(
            "check existing matches",
            self.match_store.find_existing_pairs,
            resume.user_id,
            [m.job_id for m in matches],
        )
        new_rows = [m for m in matches if m.pair not in existing]
        skipped = len(matches) - len(new_rows)

        # Last cancellation point: past here rows may already be written
        self._advance(PipelineState.PERSISTING)
        if new_rows:
            outcome = self._call("insert matches", self.match_store.insert_matches, new_rows)
        else:
            outcome = InsertResult()

        partial_failure = None
        if outcome.failed:
            partial_failure = PersistencePartialFailure(outcome.failed, len(outcome.inserted))
            self.logger.warning(
                "Some matches were not inserted",
                resume_id=resume_id,
                inserted=len(outcome.inserted),
                failed=partial_failure.failed_count,
            )

        self.state = PipelineState.DONE
        self.logger.record_pipeline_result(
            scored=len(matches),
            created=len(outcome.inserted),
            skipped=skipped,
            failed=len(outcome.failed),
        )
        self.logger.info(
            f"Match pipeline done: {len(outcome.inserted)} created, {skipped} already present",
            resume_id=resume_id,
            user_id=resume.user_id,
            scored=len(matches),
        )
        return MatchRunResult(
            created_count=len(outcome.inserted),
            matches=matches,
            new_matches=list(outcome.inserted),
            skipped_count=skipped,
            partial_failure=partial_failure,
        )

    def _score(self, resume: Resume, jobs: List[Job]) -> List[JobMatch]:
        created_at = self.clock()
        matches: List[JobMatch] = []
        seen = set()
        for job in jobs:
            if not job.id:
                self.logger.warning("Skipping job without id", title=job.title, company=job.company)
                continue
            if job.id in seen:
                continue
            seen.add(job.id)
            matches.append(build_match(resume, job, self.id_factory(), created_at))

        # Stable: equal scores keep fetch (newest-first) order
        matches.sort(key=lambda m: m.match_score, reverse=True)
        return matches


def run_match_pipeline(
    resume_id: str,
    resume_store: ResumeStore,
    job_store: JobStore,
    match_store: MatchStore,
    job_limit: int = DEFAULT_JOB_LIMIT,
    logger: Optional[StructuredLogger] = None,
    timeout: Optional[float] = None,
    **kwargs,
) -> MatchRunResult:
    """
    Score a resume against recent jobs and persist matches not already stored.

    Args:
        resume_id: Resume to match
        resume_store, job_store, match_store: Injected stores
        job_limit: Most recent jobs considered
        logger: StructuredLogger (default: global logger)
        timeout: Seconds before giving up with PipelineTimeout (None = wait)
        **kwargs: Passed to MatchPipeline (id_factory, clock)

    Returns:
        MatchRunResult with created_count and the ranked matches

    Raises:
        NotFound: Resume does not exist
        UpstreamUnavailable: A store failed, or the timeout expired
    """
    pipeline = MatchPipeline(
        resume_store,
        job_store,
        match_store,
        job_limit=job_limit,
        logger=logger,
        **kwargs,
    )
    if timeout is None:
        return pipeline.run(resume_id)

    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(pipeline.run, resume_id)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as e:
        phase = pipeline.state.value
        # The worker keeps running; stop it before it reaches the insert
        pipeline.cancel()
        pipeline.logger.record_pipeline_failure(phase, PipelineTimeout.__name__)
        pipeline.logger.error(
            f"Match pipeline timed out after {timeout}s during {phase}",
            resume_id=resume_id,
        )
        raise PipelineTimeout(
            f"Match pipeline for resume {resume_id} timed out after {timeout}s",
            phase=phase,
        ) from e
    finally:
        executor.shutdown(wait=False)


def get_user_matches(
    match_store: MatchStore,
    user_id: str,
    logger: Optional[StructuredLogger] = None,
) -> List[JobMatch]:
    """All persisted matches for a user, joined with their jobs, best first."""
    logger = logger or get_logger()
    try:
        matches = match_store.list_user_matches(user_id)
    except MatcherError:
        raise
    except Exception as e:
        raise UpstreamUnavailable(f"fetch user matches failed: {e}") from e
    matches = sorted(matches, key=lambda m: m.match_score, reverse=True)
    logger.debug("Fetched user matches", user_id=user_id, count=len(matches))
    return matches
