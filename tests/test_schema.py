"""
Tests for resume and job validation.
"""

import pytest

from jobmatcher.errors import InvalidInput
from jobmatcher.models import Job, Resume
from jobmatcher.schema import validate_job, validate_resume


class TestValidateResume:
    """Resume payload checks."""

    def test_valid_resume(self, resume_data):
        assert validate_resume(resume_data) == []

    def test_minimal_resume(self):
        assert validate_resume({"id": "r1", "user_id": "u1"}) == []

    @pytest.mark.parametrize("field", ["id", "user_id"])
    def test_missing_id(self, resume_data, field):
        del resume_data[field]
        errors = validate_resume(resume_data)
        assert any(field in err for err in errors)

    def test_blank_id(self, resume_data):
        resume_data["id"] = "   "
        assert validate_resume(resume_data)

    def test_integer_ids_allowed(self):
        assert validate_resume({"id": 7, "user_id": 3}) == []

    def test_skills_must_be_strings(self, resume_data):
        resume_data["extracted_skills"] = ["python", 3]
        errors = validate_resume(resume_data)
        assert any("extracted_skills" in err for err in errors)

    def test_salary_must_be_number(self, resume_data):
        resume_data["min_salary"] = "80k"
        errors = validate_resume(resume_data)
        assert any("min_salary" in err for err in errors)

    def test_null_optional_fields(self):
        data = {"id": "r1", "user_id": "u1", "preferred_locations": None, "max_salary": None}
        assert validate_resume(data) == []

    def test_not_an_object(self):
        assert validate_resume(["id"]) == ["Resume must be an object"]


class TestValidateJob:
    """Job payload checks."""

    def test_valid_job(self, job_data):
        assert validate_job(job_data) == []

    def test_missing_id(self, job_data):
        del job_data["id"]
        errors = validate_job(job_data)
        assert errors == ["Missing required field: id"]

    def test_wrong_string_type(self, job_data):
        job_data["location"] = ["Remote"]
        errors = validate_job(job_data)
        assert any("location" in err for err in errors)

    def test_requirements_must_be_list(self, job_data):
        job_data["requirements"] = "python"
        errors = validate_job(job_data)
        assert any("requirements" in err for err in errors)

    def test_bad_posted_date(self, job_data):
        job_data["posted_date"] = "last tuesday"
        errors = validate_job(job_data)
        assert any("posted_date" in err for err in errors)

    def test_invalid_url(self, job_data):
        job_data["apply_url"] = "not-a-url"
        errors = validate_job(job_data)
        assert any("apply_url" in err for err in errors)

    def test_null_salary_range(self, job_data):
        job_data["salary_range"] = None
        assert validate_job(job_data) == []


class TestFromDict:
    """Record construction raises InvalidInput on bad shapes."""

    def test_resume_from_dict(self, resume_data):
        resume = Resume.from_dict(resume_data)
        assert resume.extracted_skills == ["python", "react"]
        assert resume.max_salary is None

    def test_resume_missing_id(self):
        with pytest.raises(InvalidInput) as exc_info:
            Resume.from_dict({"user_id": "u1"})
        assert exc_info.value.errors == ["Missing required field: id"]

    def test_job_defaults(self):
        job = Job.from_dict({"id": 12})
        assert job.id == "12"
        assert job.location == ""
        assert job.requirements == []
        assert job.posted_date is None

    def test_job_posted_date_normalized_to_utc(self, job_data):
        job_data["posted_date"] = "2026-10-01T11:00:00+02:00"
        job = Job.from_dict(job_data)
        assert job.posted_date.isoformat() == "2026-10-01T09:00:00"

    def test_job_missing_id(self):
        with pytest.raises(InvalidInput):
            Job.from_dict({"title": "engineer"})
