"""Plain data records passed between stores, scorers and the pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidInput, PersistencePartialFailure
from .schema import validate_job, validate_resume


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every stored datetime takes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def _str_list(value: Any) -> List[str]:
    return [str(v) for v in value] if value else []


@dataclass
class Resume:
    id: str
    user_id: str
    extracted_skills: List[str] = field(default_factory=list)
    preferred_locations: List[str] = field(default_factory=list)
    preferred_companies: List[str] = field(default_factory=list)
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resume":
        errors = validate_resume(data)
        if errors:
            raise InvalidInput(errors)
        return cls(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            extracted_skills=_str_list(data.get("extracted_skills")),
            preferred_locations=_str_list(data.get("preferred_locations")),
            preferred_companies=_str_list(data.get("preferred_companies")),
            min_salary=data.get("min_salary"),
            max_salary=data.get("max_salary"),
        )


@dataclass
class Job:
    id: str
    title: str = ""
    company: str = ""
    location: str = ""
    description: str = ""
    requirements: List[str] = field(default_factory=list)
    salary_range: Optional[str] = None
    posted_date: Optional[datetime] = None
    apply_url: Optional[str] = None
    source: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        errors = validate_job(data)
        if errors:
            raise InvalidInput(errors)
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            company=data.get("company") or "",
            location=data.get("location") or "",
            description=data.get("description") or "",
            requirements=_str_list(data.get("requirements")),
            salary_range=data.get("salary_range"),
            posted_date=parse_timestamp(data.get("posted_date")),
            apply_url=data.get("apply_url"),
            source=data.get("source"),
            salary_min=data.get("salary_min"),
            salary_max=data.get("salary_max"),
        )


@dataclass(frozen=True)
class MatchScores:
    """Factor scores, each in [0, 1]."""

    skill: float
    location: float
    company: float
    salary: float


@dataclass
class JobMatch:
    id: str
    user_id: str
    job_id: str
    match_score: int
    skill_match_score: float
    location_match_score: float
    company_match_score: float
    salary_match_score: float
    created_at: datetime
    is_shown: bool = False
    viewed_at: Optional[datetime] = None
    job: Optional[Job] = None

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.user_id, self.job_id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["viewed_at"] = self.viewed_at.isoformat() if self.viewed_at else None
        if self.job is not None and self.job.posted_date is not None:
            data["job"]["posted_date"] = self.job.posted_date.isoformat()
        return data


@dataclass
class ScoredJob:
    job: Job
    scores: MatchScores
    match_score: int


@dataclass
class InsertResult:
    inserted: List[JobMatch] = field(default_factory=list)
    # (match id, reason)
    failed: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class MatchRunResult:
    created_count: int
    matches: List[JobMatch] = field(default_factory=list)
    new_matches: List[JobMatch] = field(default_factory=list)
    skipped_count: int = 0
    partial_failure: Optional[PersistencePartialFailure] = None

    @property
    def failed_count(self) -> int:
        return self.partial_failure.failed_count if self.partial_failure else 0
