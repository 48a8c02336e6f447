"""
Structured logging for jobmatcher.

One process-wide logger writes to the console and a dated file under
logs/, appends keyword context as JSON, and keeps counters describing
match pipeline health.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional
from datetime import datetime
import json

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'


def _log_file(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"jobmatcher_{datetime.now().strftime('%Y%m%d')}.log"


def _bump(counter: Dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


class StructuredLogger:
    """
    Logger facade with JSON context and pipeline counters.

    Args:
        name: Logger name
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (default: logs/)
        enable_file: Write logs to a dated file
        enable_console: Write logs to stdout
    """

    def __init__(
        self,
        name: str = "jobmatcher",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        numeric_level = getattr(logging, level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(numeric_level)
        self.logger.handlers.clear()

        self.metrics = {
            "pipeline_runs": 0,
            "pipeline_failures": 0,
            "jobs_scored": 0,
            "matches_created": 0,
            "matches_skipped": 0,
            "insert_failures": 0,
            "errors_by_type": {},
            "failures_by_phase": {},
        }

        handlers = []
        if enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(numeric_level)
            console.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
            handlers.append(console)
        if enable_file:
            file_handler = logging.FileHandler(_log_file(log_dir or Path("logs")), encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # file gets everything the logger lets through
            file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
            handlers.append(file_handler)
        if not handlers:
            handlers.append(logging.NullHandler())

        for handler in handlers:
            self.logger.addHandler(handler)

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def critical(self, message: str, **context):
        self._log(logging.CRITICAL, message, context)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Pipeline counters

    def record_pipeline_run(self):
        self.metrics["pipeline_runs"] += 1

    def record_pipeline_result(self, scored: int, created: int, skipped: int, failed: int):
        """Accumulate the counts of one finished pipeline run."""
        self.metrics["jobs_scored"] += scored
        self.metrics["matches_created"] += created
        self.metrics["matches_skipped"] += skipped
        self.metrics["insert_failures"] += failed

    def record_pipeline_failure(self, phase: str, error_type: str):
        self.metrics["pipeline_failures"] += 1
        _bump(self.metrics["failures_by_phase"], phase)
        _bump(self.metrics["errors_by_type"], error_type)

    def get_metrics(self) -> dict:
        """Snapshot of the counters, plus success_rate once a run has started."""
        snapshot = dict(self.metrics)
        snapshot["failures_by_phase"] = dict(self.metrics["failures_by_phase"])
        snapshot["errors_by_type"] = dict(self.metrics["errors_by_type"])
        runs = snapshot["pipeline_runs"]
        if runs:
            snapshot["success_rate"] = round((runs - snapshot["pipeline_failures"]) / runs, 3)
        return snapshot

    def log_metrics_summary(self):
        metrics = self.get_metrics()
        runs = metrics["pipeline_runs"]
        ok = runs - metrics["pipeline_failures"]
        rate = round(metrics.get("success_rate", 0) * 100, 1)

        self.info("=== Match Pipeline Metrics ===")
        self.info(f"Runs: {ok}/{runs} ({rate}% success)")
        self.info(f"Jobs scored: {metrics['jobs_scored']}")
        self.info(
            f"Matches: {metrics['matches_created']} created, "
            f"{metrics['matches_skipped']} already present, "
            f"{metrics['insert_failures']} failed"
        )
        for title, key in (("Failures by phase:", "failures_by_phase"), ("Error types:", "errors_by_type")):
            if metrics[key]:
                self.info(title)
                for label, count in metrics[key].items():
                    self.info(f"  {label}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "jobmatcher", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Return the process-wide logger, creating it on first use.

    Later calls return the existing instance and ignore their arguments.
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)
    return _global_logger


def reset_logger():
    """Drop the process-wide logger so the next get_logger builds a fresh one."""
    global _global_logger
    _global_logger = None
