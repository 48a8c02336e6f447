"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for resumes, jobs and persisted job matches.
"""

from pathlib import Path

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from .models import utcnow

Base = declarative_base()


class ResumeRecord(Base):
    """Parsed resume, written by the upload workflow and read by the matcher."""

    __tablename__ = "resumes"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    extracted_skills = Column(JSON, nullable=False, default=list)
    preferred_locations = Column(JSON, nullable=False, default=list)
    preferred_companies = Column(JSON, nullable=False, default=list)
    min_salary = Column(Float, nullable=True)
    max_salary = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class JobRecord(Base):
    """Scraped job posting."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False, default="")
    company = Column(String, nullable=False, default="")
    location = Column(String, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    requirements = Column(JSON, nullable=False, default=list)
    salary_range = Column(String, nullable=True)  # free text, e.g. "$50,000 - $80,000"
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    apply_url = Column(String, nullable=True)
    source = Column(String, nullable=True)
    posted_date = Column(DateTime, nullable=True, index=True)


class JobMatchRecord(Base):
    """Persisted score of one job for one user."""

    __tablename__ = "job_matches"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    job_id = Column(String, ForeignKey("jobs.id"), nullable=False)
    match_score = Column(Integer, nullable=False)
    skill_match_score = Column(Float, nullable=True)
    location_match_score = Column(Float, nullable=True)
    company_match_score = Column(Float, nullable=True)
    salary_match_score = Column(Float, nullable=True)
    is_shown = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    viewed_at = Column(DateTime, nullable=True)

    job = relationship(JobRecord)

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_job_matches_user_job"),
    )


def _database_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(_database_url(db_path))
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session_factory(db_path: Path) -> sessionmaker:
    """
    Build a session factory bound to one database file.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy sessionmaker
    """
    engine = create_engine(
        _database_url(db_path),
        connect_args={"check_same_thread": False},
    )
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(db_path)()
