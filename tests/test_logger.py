"""
Tests for logger functionality.
"""

import pytest
from jobmatcher.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["pipeline_runs"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context keywords are written as JSON after the message."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Matched", resume_id="resume-1", created=3)

        content = next(tmp_path.glob("*.log")).read_text()
        assert 'Matched | Context: {"resume_id": "resume-1", "created": 3}' in content

    def test_pipeline_metrics(self):
        """Run counters accumulate across runs."""
        logger = StructuredLogger(name="test", enable_console=False, enable_file=False)

        logger.record_pipeline_run()
        logger.record_pipeline_result(scored=50, created=10, skipped=40, failed=0)
        logger.record_pipeline_run()
        logger.record_pipeline_result(scored=50, created=2, skipped=47, failed=1)

        metrics = logger.get_metrics()
        assert metrics["pipeline_runs"] == 2
        assert metrics["jobs_scored"] == 100
        assert metrics["matches_created"] == 12
        assert metrics["matches_skipped"] == 87
        assert metrics["insert_failures"] == 1
        assert metrics["success_rate"] == 1.0

    def test_failure_metrics(self):
        """Failures are tracked by phase and error type."""
        logger = StructuredLogger(name="test", enable_console=False, enable_file=False)

        for _ in range(3):
            logger.record_pipeline_run()
        logger.record_pipeline_failure("fetching", "NotFound")
        logger.record_pipeline_failure("persisting", "UpstreamUnavailable")

        metrics = logger.get_metrics()
        assert metrics["pipeline_failures"] == 2
        assert metrics["failures_by_phase"] == {"fetching": 1, "persisting": 1}
        assert metrics["errors_by_type"] == {"NotFound": 1, "UpstreamUnavailable": 1}
        assert metrics["success_rate"] == pytest.approx(0.333, rel=0.01)

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(name="test-summary", log_dir=tmp_path, enable_console=False)
        logger.record_pipeline_run()
        logger.record_pipeline_result(scored=5, created=5, skipped=0, failed=0)

        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Runs: 1/1 (100.0% success)" in content
        assert "Matches: 5 created, 0 already present, 0 failed" in content

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1
        assert log_files[0].name.startswith("jobmatcher_")
        assert "Test message" in log_files[0].read_text()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_pipeline_run()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2.metrics["pipeline_runs"] == 0
