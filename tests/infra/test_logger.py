"""
Tests for infra/logger.py

Key behaviors to verify:
1. Lazy initialization - no files created until first log
2. JSON formatting with session/stage/page context fields
3. Human console format
4. Close doesn't create files if nothing was logged
"""

import json
import logging

from infra.logger import HumanFormatter, PipelineLogger, create_logger


class TestPipelineLoggerLazyInit:
    """Test that logger initializes lazily."""

    def test_no_file_created_on_init(self, tmp_path):
        """Logger should not create any files on instantiation."""
        log_dir = tmp_path / "logs"

        logger = PipelineLogger(
            session_id="abc123",
            stage="document-ocr",
            log_dir=log_dir,
            console_output=False,
        )

        assert not log_dir.exists(), "Log directory should not be created on init"
        assert logger.log_file is None, "Log file should be None before first log"

    def test_file_created_on_first_log(self, tmp_path):
        """File should be created when first message is logged."""
        log_dir = tmp_path / "logs"

        logger = PipelineLogger(
            session_id="abc123",
            stage="document-ocr",
            log_dir=log_dir,
            console_output=False,
        )
        logger.info("First message")

        assert logger.log_file == log_dir / "document-ocr.jsonl"
        assert logger.log_file.exists(), "Log file should exist after logging"
        logger.close()

    def test_close_without_logging_creates_nothing(self, tmp_path):
        """Closing an unused logger should not create files."""
        log_dir = tmp_path / "logs"

        logger = PipelineLogger(session_id="abc123", stage="document-ocr", log_dir=log_dir)
        logger.close()

        assert not log_dir.exists()

    def test_no_log_dir_means_no_json(self):
        """Without a log directory the logger only writes to the console."""
        logger = PipelineLogger(session_id="abc123", stage="document-ocr", console_output=False)
        logger.info("Nothing to write")

        assert logger.log_file is None
        assert logger.json_output is False


class TestJSONOutput:

    def _records(self, path):
        with open(path) as f:
            return [json.loads(line) for line in f if line.strip()]

    def test_context_fields(self, tmp_path):
        """Page events carry session, stage, page and custom fields."""
        with create_logger(
            "abc123",
            "document-ocr",
            log_dir=tmp_path,
            console_output=False,
            filename="session.jsonl",
        ) as logger:
            logger.page_event("Page recognized", page=3, chars=120, duration_seconds=0.5)
            logger.page_error("Recognition failed", page=4, error="503")

        records = self._records(tmp_path / "session.jsonl")
        assert len(records) == 2

        first, second = records
        assert first["message"] == "Page recognized"
        assert first["level"] == "INFO"
        assert first["session_id"] == "abc123"
        assert first["stage"] == "document-ocr"
        assert first["page"] == 3
        assert first["chars"] == 120
        assert first["duration_seconds"] == 0.5

        assert second["level"] == "ERROR"
        assert second["error"] == "503"

    def test_level_filtering(self, tmp_path):
        with create_logger(
            "abc123", "document-ocr", log_dir=tmp_path, console_output=False, level="WARNING"
        ) as logger:
            logger.debug("hidden")
            logger.info("hidden")
            logger.warning("shown")

        records = self._records(tmp_path / "document-ocr.jsonl")
        assert [r["message"] for r in records] == ["shown"]

    def test_stage_helpers(self, tmp_path):
        with create_logger("abc123", "document-ocr", log_dir=tmp_path, console_output=False) as logger:
            logger.start_stage()
            logger.complete_stage(duration_seconds=1.25, pages=3)

        records = self._records(tmp_path / "document-ocr.jsonl")
        assert records[0]["message"] == "Starting document-ocr"
        assert records[1]["message"] == "Completed document-ocr"
        assert records[1]["pages"] == 3


class TestHumanFormatter:

    def test_format(self):
        record = logging.LogRecord("lexscan", logging.ERROR, __file__, 1, "Enhancement failed", None, None)
        record.stage = "document-ocr"
        record.page = 7
        record.error = "cannot identify image file"

        line = HumanFormatter().format(record)

        assert "ERROR" in line
        assert "[document-ocr]" in line
        assert "[page 7]" in line
        assert line.endswith("Enhancement failed - cannot identify image file")
