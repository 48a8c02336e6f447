"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Set

from jobmatcher.database import get_session_factory, init_database
from jobmatcher.logger import get_logger, reset_logger
from jobmatcher.models import InsertResult, Job, JobMatch, Resume
from jobmatcher.storage import JobStore, MatchStore, ResumeStore, SqlStore


class FakeStore(ResumeStore, JobStore, MatchStore):
    """
    In-memory resume/job/match store.

    `fail_on` names methods that should raise ConnectionError, and
    `conflict_job_ids` makes inserts for those jobs fail as if another
    writer got there first.
    """

    def __init__(self, resumes=(), jobs=(), fail_on=(), conflict_job_ids=()):
        self.resumes = {r.id: r for r in resumes}
        self.jobs: List[Job] = list(jobs)
        self.matches: Dict[str, JobMatch] = {}
        self.fail_on = set(fail_on)
        self.conflict_job_ids = set(conflict_job_ids)
        self.calls: List[str] = []

    def _enter(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise ConnectionError(f"{name} unavailable")

    def get_resume_by_id(self, resume_id: str) -> Optional[Resume]:
        self._enter("get_resume_by_id")
        return self.resumes.get(resume_id)

    def list_recent_jobs(self, limit: int) -> List[Job]:
        self._enter("list_recent_jobs")
        return self.jobs[:limit]

    def find_existing_pairs(self, user_id: str, job_ids: Sequence[str]) -> Set:
        self._enter("find_existing_pairs")
        wanted = set(job_ids)
        return {m.pair for m in self.matches.values() if m.user_id == user_id and m.job_id in wanted}

    def insert_matches(self, rows: Sequence[JobMatch]) -> InsertResult:
        self._enter("insert_matches")
        result = InsertResult()
        existing = {m.pair for m in self.matches.values()}
        for row in rows:
            if row.pair in existing or row.id in self.matches or row.job_id in self.conflict_job_ids:
                result.failed.append((row.id, "duplicate key value violates unique constraint"))
                continue
            self.matches[row.id] = row
            existing.add(row.pair)
            result.inserted.append(row)
        return result

    def list_user_matches(self, user_id: str) -> List[JobMatch]:
        self._enter("list_user_matches")
        jobs = {job.id: job for job in self.jobs}
        rows = [m for m in self.matches.values() if m.user_id == user_id]
        rows.sort(key=lambda m: m.match_score, reverse=True)
        return [
            JobMatch(**{**m.__dict__, "job": jobs.get(m.job_id)})
            for m in rows
        ]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Global logger without console or file output."""
    reset_logger()
    logger = get_logger(enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def resume_data() -> Dict[str, Any]:
    """Parsed resume payload as the upload workflow stores it."""
    return {
        "id": "resume-1",
        "user_id": "user-1",
        "extracted_skills": ["python", "react"],
        "preferred_locations": ["remote"],
        "preferred_companies": [],
        "min_salary": 80000,
        "max_salary": None,
    }


@pytest.fixture
def job_data() -> Dict[str, Any]:
    """Scraped job payload."""
    return {
        "id": "job-1",
        "title": "Backend Developer",
        "company": "Acme Corp",
        "location": "Remote - India",
        "description": "Looking for a Python developer",
        "requirements": [],
        "salary_range": "$90,000 - $120,000",
        "posted_date": "2026-10-01T09:00:00Z",
        "apply_url": "https://jobs.example.com/acme/1",
        "source": "greenhouse",
    }


@pytest.fixture
def resume(resume_data) -> Resume:
    return Resume.from_dict(resume_data)


@pytest.fixture
def job(job_data) -> Job:
    return Job.from_dict(job_data)


def make_job(job_id: str, days_old: int = 0, **fields) -> Job:
    """Job posted `days_old` days before a fixed reference date."""
    posted = datetime(2026, 10, 1, 12, 0) - timedelta(days=days_old)
    defaults = {
        "title": "Engineer",
        "company": "Acme",
        "location": "Berlin",
        "description": "",
        "requirements": [],
        "salary_range": None,
    }
    defaults.update(fields)
    return Job(id=job_id, posted_date=posted, **defaults)


@pytest.fixture
def catalog() -> List[Job]:
    """Five jobs, newest first, with distinct expected scores for `resume`."""
    return [
        make_job("job-a", 0, description="Python and React engineer", location="Remote"),
        make_job("job-b", 1, description="Python backend", location="Remote"),
        make_job("job-c", 2, description="Go services", location="Berlin"),
        make_job("job-d", 3, description="React frontend", location="Remote", salary_range="$40,000"),
        make_job("job-e", 4, description="Kotlin mobile", location="Paris", salary_range="$100,000 - $130,000"),
    ]


@pytest.fixture
def fake_store(resume, catalog) -> FakeStore:
    return FakeStore(resumes=[resume], jobs=catalog)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "jobmatcher.db"
    init_database(path)
    return path


@pytest.fixture
def sql_store(db_path) -> SqlStore:
    return SqlStore(get_session_factory(db_path))
