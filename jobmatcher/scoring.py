"""
Deterministic job-match scoring.

Four factor scores in [0, 1] (skill, location, company, salary) are combined
with fixed weights into a 0-100 match percentage. Every function here is pure:
missing resume or job data degrades to a neutral or low score, never an error.
"""

import math
from typing import Iterable, List, Optional, Sequence

from .models import Job, MatchScores, Resume, ScoredJob
from .similarity import extract_salary_range

WEIGHTS = {
    "skill": 0.5,
    "location": 0.2,
    "company": 0.1,
    "salary": 0.2,
}

NEUTRAL_SCORE = 0.5
LOCATION_MISMATCH_SCORE = 0.1
COMPANY_MISMATCH_SCORE = 0.3
SALARY_BELOW_FLOOR_SCORE = 0.2
SALARY_ABOVE_CEILING_SCORE = 0.7
FULL_MATCH_SCORE = 1.0

REMOTE_TOKEN = "remote"


def skill_match_score(
    resume_skills: Optional[Sequence[str]],
    job_description: Optional[str] = "",
    job_requirements: Optional[Sequence[str]] = None,
) -> float:
    """
    Fraction of resume skills mentioned anywhere in the job text.

    A skill counts when it is a substring of the description or of any single
    requirement (case-insensitive).
    """
    if not resume_skills:
        return 0.0

    description = (job_description or "").lower()
    requirements = [req.lower() for req in (job_requirements or [])]

    match_count = 0
    for skill in resume_skills:
        skill = skill.lower()
        if skill in description or any(skill in req for req in requirements):
            match_count += 1

    return match_count / max(len(resume_skills), 1)


def location_match_score(
    preferred_locations: Optional[Sequence[str]],
    job_location: Optional[str] = "",
) -> float:
    if not preferred_locations or not job_location:
        return NEUTRAL_SCORE

    location = job_location.lower()

    remote_preferred = any(loc.lower() == REMOTE_TOKEN for loc in preferred_locations)
    if remote_preferred and REMOTE_TOKEN in location:
        return FULL_MATCH_SCORE

    for preferred in preferred_locations:
        if preferred.lower() in location:
            return FULL_MATCH_SCORE

    return LOCATION_MISMATCH_SCORE


def company_match_score(
    preferred_companies: Optional[Sequence[str]],
    job_company: Optional[str] = "",
) -> float:
    if not preferred_companies or not job_company:
        return NEUTRAL_SCORE

    company = job_company.lower()
    for preferred in preferred_companies:
        if preferred.lower() in company:
            return FULL_MATCH_SCORE

    return COMPANY_MISMATCH_SCORE


def salary_match_score(
    min_salary: Optional[float],
    max_salary: Optional[float],
    job_salary_range: Optional[str],
) -> float:
    """
    Compare the candidate's salary bounds with the job's advertised range.

    Overlap scores 1.0. A job paying above the candidate's ceiling scores 0.7.
    A job paying below the candidate's floor scores 0.2. Unparseable or
    missing data is neutral.
    """
    if not min_salary or not job_salary_range:
        return NEUTRAL_SCORE

    parsed = extract_salary_range(job_salary_range)
    if parsed is None or parsed.min == 0:
        return NEUTRAL_SCORE

    if max_salary and max_salary < parsed.min:
        return SALARY_ABOVE_CEILING_SCORE
    if min_salary > parsed.max:
        return SALARY_BELOW_FLOOR_SCORE
    return FULL_MATCH_SCORE


def compute_match_scores(resume: Resume, job: Job) -> MatchScores:
    return MatchScores(
        skill=skill_match_score(resume.extracted_skills, job.description, job.requirements),
        location=location_match_score(resume.preferred_locations, job.location),
        company=company_match_score(resume.preferred_companies, job.company),
        salary=salary_match_score(resume.min_salary, resume.max_salary, job.salary_range),
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_overall_score(scores: MatchScores) -> int:
    """
    Weighted sum of the factor scores as an integer percentage.

    Halves round up, so 12.5 becomes 13.
    """
    weighted = (
        scores.skill * WEIGHTS["skill"]
        + scores.location * WEIGHTS["location"]
        + scores.company * WEIGHTS["company"]
        + scores.salary * WEIGHTS["salary"]
    )
    return max(0, min(100, round_half_up(weighted * 100)))


def score_job(resume: Resume, job: Job) -> ScoredJob:
    scores = compute_match_scores(resume, job)
    return ScoredJob(job=job, scores=scores, match_score=compute_overall_score(scores))


def rank_jobs(resume: Resume, jobs: Iterable[Job]) -> List[ScoredJob]:
    """Score every job and sort by match score, highest first (stable)."""
    scored = [score_job(resume, job) for job in jobs]
    scored.sort(key=lambda item: item.match_score, reverse=True)
    return scored


def recommend_jobs(resume: Resume, jobs: Iterable[Job], limit: int = 10) -> List[ScoredJob]:
    """Top `limit` jobs for a resume, without touching any store."""
    if limit <= 0:
        return []
    return rank_jobs(resume, jobs)[:limit]
