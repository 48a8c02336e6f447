from datetime import datetime
from typing import Any, Dict, List
from urllib.parse import urlparse

RESUME_REQUIRED_ID_FIELDS = ["id", "user_id"]
RESUME_LIST_FIELDS = [
    "extracted_skills",
    "preferred_locations",
    "preferred_companies",
]
RESUME_NUMBER_FIELDS = ["min_salary", "max_salary"]

JOB_REQUIRED_ID_FIELDS = ["id"]
JOB_OPTIONAL_STR_FIELDS = [
    "title",
    "company",
    "location",
    "description",
    "salary_range",
    "apply_url",
    "source",
]
JOB_NUMBER_FIELDS = ["salary_min", "salary_max"]


def _is_valid_id(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    if isinstance(v, int):
        return True
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_str_list(v: Any) -> bool:
    return isinstance(v, (list, tuple)) and all(isinstance(item, str) for item in v)


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def _valid_timestamp(v: Any) -> bool:
    if isinstance(v, datetime):
        return True
    if not isinstance(v, str):
        return False
    try:
        datetime.fromisoformat(v.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False


def _check_ids(data: Dict[str, Any], fields: List[str], errors: List[str]) -> None:
    for f in fields:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_valid_id(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string or integer")


def _check_numbers(data: Dict[str, Any], fields: List[str], errors: List[str]) -> None:
    for f in fields:
        if data.get(f) is not None and not _is_number(data[f]):
            errors.append(f"Field '{f}' must be a number if provided")


def validate_resume(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    Only identity fields are required; preference and salary fields may be
    missing or null, the scorer treats absence as neutral.
    """
    if not isinstance(data, dict):
        return ["Resume must be an object"]

    errors: List[str] = []
    _check_ids(data, RESUME_REQUIRED_ID_FIELDS, errors)

    for f in RESUME_LIST_FIELDS:
        if data.get(f) is not None and not _is_str_list(data[f]):
            errors.append(f"Field '{f}' must be a list of strings if provided")

    _check_numbers(data, RESUME_NUMBER_FIELDS, errors)
    return errors


def validate_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(data, dict):
        return ["Job must be an object"]

    errors: List[str] = []
    _check_ids(data, JOB_REQUIRED_ID_FIELDS, errors)

    # Optional strings: if present and not null, must be strings
    for f in JOB_OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    if data.get("requirements") is not None and not _is_str_list(data["requirements"]):
        errors.append("Field 'requirements' must be a list of strings if provided")

    _check_numbers(data, JOB_NUMBER_FIELDS, errors)

    if data.get("posted_date") is not None and not _valid_timestamp(data["posted_date"]):
        errors.append("Field 'posted_date' must be an ISO 8601 timestamp if provided")

    # URL shape if present
    if isinstance(data.get("apply_url"), str) and data["apply_url"].strip():
        if not _valid_url(data["apply_url"]):
            errors.append("Field 'apply_url' must be a valid absolute URL (scheme + host)")

    return errors
