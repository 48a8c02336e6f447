"""
Store interfaces consumed by the match pipeline, and their SQLite implementation.

The pipeline only sees the abstract stores, so tests can swap in in-memory
fakes. SqlStore implements all three over SQLAlchemy.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, sessionmaker

from .database import JobMatchRecord, JobRecord, ResumeRecord
from .errors import NotFound, UpstreamUnavailable
from .models import InsertResult, Job, JobMatch, Resume, utcnow

Pair = Tuple[str, str]


class ResumeStore(ABC):
    @abstractmethod
    def get_resume_by_id(self, resume_id: str) -> Optional[Resume]:
        pass


class JobStore(ABC):
    @abstractmethod
    def list_recent_jobs(self, limit: int) -> List[Job]:
        """Newest jobs first, at most `limit`."""
        pass


class MatchStore(ABC):
    @abstractmethod
    def find_existing_pairs(self, user_id: str, job_ids: Sequence[str]) -> Set[Pair]:
        pass

    @abstractmethod
    def insert_matches(self, rows: Sequence[JobMatch]) -> InsertResult:
        """Insert rows; per-row conflicts go to InsertResult.failed."""
        pass

    @abstractmethod
    def list_user_matches(self, user_id: str) -> List[JobMatch]:
        """Matches for a user with `job` populated, best score first."""
        pass


def _resume_from_record(rec: ResumeRecord) -> Resume:
    return Resume(
        id=rec.id,
        user_id=rec.user_id,
        extracted_skills=list(rec.extracted_skills or []),
        preferred_locations=list(rec.preferred_locations or []),
        preferred_companies=list(rec.preferred_companies or []),
        min_salary=rec.min_salary,
        max_salary=rec.max_salary,
    )


def _job_from_record(rec: JobRecord) -> Job:
    return Job(
        id=rec.id,
        title=rec.title or "",
        company=rec.company or "",
        location=rec.location or "",
        description=rec.description or "",
        requirements=list(rec.requirements or []),
        salary_range=rec.salary_range,
        posted_date=rec.posted_date,
        apply_url=rec.apply_url,
        source=rec.source,
        salary_min=rec.salary_min,
        salary_max=rec.salary_max,
    )


def _match_from_record(rec: JobMatchRecord, with_job: bool = False) -> JobMatch:
    return JobMatch(
        id=rec.id,
        user_id=rec.user_id,
        job_id=rec.job_id,
        match_score=rec.match_score,
        skill_match_score=rec.skill_match_score,
        location_match_score=rec.location_match_score,
        company_match_score=rec.company_match_score,
        salary_match_score=rec.salary_match_score,
        created_at=rec.created_at,
        is_shown=bool(rec.is_shown),
        viewed_at=rec.viewed_at,
        job=_job_from_record(rec.job) if with_job and rec.job is not None else None,
    )


def _match_to_record(match: JobMatch) -> JobMatchRecord:
    return JobMatchRecord(
        id=match.id,
        user_id=match.user_id,
        job_id=match.job_id,
        match_score=match.match_score,
        skill_match_score=match.skill_match_score,
        location_match_score=match.location_match_score,
        company_match_score=match.company_match_score,
        salary_match_score=match.salary_match_score,
        is_shown=match.is_shown,
        created_at=match.created_at,
        viewed_at=match.viewed_at,
    )


class SqlStore(ResumeStore, JobStore, MatchStore):
    """SQLAlchemy-backed resume, job and match store."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            raise UpstreamUnavailable(f"{action} failed: {e}") from e
        finally:
            session.close()

    # Resumes

    def get_resume_by_id(self, resume_id: str) -> Optional[Resume]:
        with self._session("fetch resume") as session:
            rec = session.get(ResumeRecord, resume_id)
            return _resume_from_record(rec) if rec is not None else None

    def add_resume(self, resume: Resume) -> None:
        with self._session("save resume") as session:
            session.merge(ResumeRecord(
                id=resume.id,
                user_id=resume.user_id,
                extracted_skills=list(resume.extracted_skills),
                preferred_locations=list(resume.preferred_locations),
                preferred_companies=list(resume.preferred_companies),
                min_salary=resume.min_salary,
                max_salary=resume.max_salary,
            ))
            session.commit()

    # Jobs

    def list_recent_jobs(self, limit: int) -> List[Job]:
        with self._session("fetch jobs") as session:
            records = (
                session.query(JobRecord)
                .order_by(JobRecord.posted_date.desc().nulls_last(), JobRecord.id)
                .limit(limit)
                .all()
            )
            return [_job_from_record(rec) for rec in records]

    def add_jobs(self, jobs: Iterable[Job]) -> int:
        """Insert or replace jobs by id. Returns how many were written."""
        count = 0
        with self._session("save jobs") as session:
            for job in jobs:
                session.merge(JobRecord(
                    id=job.id,
                    title=job.title,
                    company=job.company,
                    location=job.location,
                    description=job.description,
                    requirements=list(job.requirements),
                    salary_range=job.salary_range,
                    salary_min=job.salary_min,
                    salary_max=job.salary_max,
                    apply_url=job.apply_url,
                    source=job.source,
                    posted_date=job.posted_date,
                ))
                count += 1
            session.commit()
        return count

    def count_jobs(self) -> int:
        with self._session("count jobs") as session:
            return session.query(JobRecord).count()

    def delete_stale_jobs(self, days: int, now: Optional[datetime] = None) -> Tuple[int, int]:
        """
        Delete jobs posted more than `days` ago, along with their matches.

        Jobs without a posted date are kept.

        Returns:
            Tuple of (total_jobs_before, total_jobs_after)
        """
        cutoff = (now or utcnow()) - timedelta(days=days)
        with self._session("delete stale jobs") as session:
            before = session.query(JobRecord).count()
            stale_ids = [
                row.id
                for row in session.query(JobRecord.id).filter(JobRecord.posted_date < cutoff)
            ]
            if stale_ids:
                session.query(JobMatchRecord).filter(
                    JobMatchRecord.job_id.in_(stale_ids)
                ).delete(synchronize_session=False)
                session.query(JobRecord).filter(
                    JobRecord.id.in_(stale_ids)
                ).delete(synchronize_session=False)
                session.commit()
            after = session.query(JobRecord).count()
        return before, after

    # Matches

    def find_existing_pairs(self, user_id: str, job_ids: Sequence[str]) -> Set[Pair]:
        if not job_ids:
            return set()
        with self._session("check existing matches") as session:
            rows = (
                session.query(JobMatchRecord.user_id, JobMatchRecord.job_id)
                .filter(JobMatchRecord.user_id == user_id)
                .filter(JobMatchRecord.job_id.in_(list(job_ids)))
                .all()
            )
            return {(row.user_id, row.job_id) for row in rows}

    def insert_matches(self, rows: Sequence[JobMatch]) -> InsertResult:
        result = InsertResult()
        if not rows:
            return result

        with self._session("insert matches") as session:
            try:
                session.add_all([_match_to_record(m) for m in rows])
                session.commit()
                result.inserted.extend(rows)
                return result
            except IntegrityError:
                session.rollback()

            # Row by row, so one conflicting pair does not sink the batch
            for match in rows:
                session.add(_match_to_record(match))
                try:
                    session.commit()
                except IntegrityError as e:
                    session.rollback()
                    result.failed.append((match.id, str(e.orig)))
                else:
                    result.inserted.append(match)
        return result

    def list_user_matches(self, user_id: str) -> List[JobMatch]:
        with self._session("fetch user matches") as session:
            records = (
                session.query(JobMatchRecord)
                .outerjoin(JobMatchRecord.job)
                .options(contains_eager(JobMatchRecord.job))
                .filter(JobMatchRecord.user_id == user_id)
                # Ties follow the run's rank order: newest posting first, then job id
                .order_by(
                    JobMatchRecord.match_score.desc(),
                    JobMatchRecord.created_at,
                    JobRecord.posted_date.desc().nulls_last(),
                    JobMatchRecord.job_id,
                )
                .all()
            )
            return [_match_from_record(rec, with_job=True) for rec in records]

    def mark_shown(self, match_id: str, viewed_at: Optional[datetime] = None) -> JobMatch:
        """Flag a match as shown to the user. Called by the presentation layer."""
        with self._session("mark match shown") as session:
            rec = session.get(JobMatchRecord, match_id)
            if rec is None:
                raise NotFound(f"Job match not found: {match_id}")
            rec.is_shown = True
            rec.viewed_at = viewed_at or utcnow()
            session.commit()
            return _match_from_record(rec)
