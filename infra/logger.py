"""
Pipeline logging.

Each OCR session logs through a PipelineLogger bound to its session id and
stage. Console output is human-readable; an optional JSONL file receives one
machine-parseable record per event.

USAGE:
  with create_logger(session.id, "document-ocr", log_dir=Path("logs")) as logger:
      logger.info("Rasterizing", pages=12)
      logger.page_event("Enhancement complete", page=3)
      logger.page_error("Recognition failed", page=4, error="503 Service Unavailable")

Handlers are created lazily on the first log call, so a logger that never
logs never creates a directory or file.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


CONTEXT_FIELDS = (
    'session_id',
    'stage',
    'page',
    'pages',
    'duration_seconds',
    'chars',
    'error',
)


class FlushingFileHandler(logging.FileHandler):
    """FileHandler that flushes after every emit for real-time log visibility."""
    def emit(self, record):
        super().emit(record)
        self.flush()


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data)


class HumanFormatter(logging.Formatter):
    """Format log records for console output."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime('%H:%M:%S')
        parts = [f"[{timestamp}]", f"{record.levelname:<7}"]

        if hasattr(record, 'stage'):
            parts.append(f"[{record.stage}]")
        if hasattr(record, 'page'):
            parts.append(f"[page {record.page}]")

        parts.append(record.getMessage())

        if hasattr(record, 'duration_seconds'):
            parts.append(f"({record.duration_seconds:.2f}s)")
        if hasattr(record, 'error'):
            parts.append(f"- {record.error}")

        return ' '.join(parts)


class PipelineLogger:
    """Logger bound to one OCR session and stage."""

    def __init__(
        self,
        session_id: str,
        stage: str,
        log_dir: Optional[Path] = None,
        console_output: bool = True,
        json_output: Optional[bool] = None,
        level: str = "INFO",
        filename: Optional[str] = None
    ):
        self.session_id = session_id
        self.stage = stage
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.console_output = console_output
        # JSON output defaults on only when there is somewhere to write it
        self.json_output = json_output if json_output is not None else log_dir is not None
        self.level = level
        self.filename = filename or f"{stage}.jsonl"

        self._logger = None
        self._initialized = False
        self.log_file = None

    def _ensure_initialized(self):
        if self._initialized:
            return

        # Open the file before attaching anything, so a failed init can be retried
        json_handler = None
        if self.json_output:
            if self.log_dir is None:
                raise ValueError("json_output requires log_dir")
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_file = self.log_dir / self.filename
            json_handler = FlushingFileHandler(json_file, mode='a')
            json_handler.setFormatter(JSONFormatter())
            self.log_file = json_file

        logger_name = f"lexscan.{self.stage}.{self.session_id}.{id(self)}"
        self._logger = logging.getLogger(logger_name)
        self._logger.setLevel(getattr(logging, self.level.upper()))
        self._logger.propagate = False

        if self.console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(HumanFormatter())
            self._logger.addHandler(console_handler)

        if json_handler is not None:
            self._logger.addHandler(json_handler)

        if not self._logger.handlers:
            self._logger.addHandler(logging.NullHandler())

        self._initialized = True

    @property
    def logger(self):
        self._ensure_initialized()
        return self._logger

    def _log(self, level: str, message: str, **kwargs):
        reserved_params = {}
        for param in ['exc_info', 'stack_info', 'stacklevel']:
            if param in kwargs:
                reserved_params[param] = kwargs.pop(param)

        extra = {
            'session_id': self.session_id,
            'stage': self.stage,
            **kwargs
        }

        self.logger.log(
            getattr(logging, level.upper()),
            message,
            extra=extra,
            **reserved_params
        )

    def debug(self, message: str, **kwargs):
        self._log('DEBUG', message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log('INFO', message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log('WARNING', message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log('ERROR', message, **kwargs)

    def page_event(self, message: str, page: int, **kwargs):
        self._log('INFO', message, page=page, **kwargs)

    def page_error(self, message: str, page: int, error: str, **kwargs):
        self._log('ERROR', message, page=page, error=error, **kwargs)

    def start_stage(self, **kwargs):
        self.info(f"Starting {self.stage}", **kwargs)

    def complete_stage(self, duration_seconds: float, **kwargs):
        self.info(f"Completed {self.stage}", duration_seconds=duration_seconds, **kwargs)

    def close(self):
        if self._initialized and self._logger:
            for handler in self._logger.handlers[:]:
                handler.close()
                self._logger.removeHandler(handler)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_logger(session_id: str, stage: str, **kwargs) -> PipelineLogger:
    return PipelineLogger(session_id, stage, **kwargs)
