"""Settings for the CLI, read from the environment and an optional .env file."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "JOBMATCHER_"


def load_env() -> None:
    """Load .env from the working directory if present. Real env vars win."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(ENV_PREFIX + key, default).strip()


def _int_env(key: str, default: int) -> int:
    raw = get_env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {raw!r}")


def _float_env(key: str) -> Optional[float]:
    raw = get_env(key)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}")


@dataclass
class Settings:
    db_path: Path = Path("data/jobmatcher.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    job_limit: int = 50
    timeout: Optional[float] = None
    max_retries: int = 3
    stale_days: int = 30

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=Path(get_env("DB") or cls.db_path),
            log_level=(get_env("LOG_LEVEL") or cls.log_level).upper(),
            log_dir=Path(get_env("LOG_DIR") or cls.log_dir),
            job_limit=_int_env("JOB_LIMIT", cls.job_limit),
            timeout=_float_env("TIMEOUT"),
            max_retries=_int_env("MAX_RETRIES", cls.max_retries),
            stale_days=_int_env("STALE_DAYS", cls.stale_days),
        )
