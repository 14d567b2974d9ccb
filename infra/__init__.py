from infra.config import OCRConfig, load_ocr_config
from infra.concurrency import ConcurrencyGate
from infra.errors import (
    LexscanError,
    ConfigurationError,
    InvalidDocument,
    StageFailure,
    StateTransitionError,
    PipelineAborted,
    EmptyResult,
)
from infra.logger import PipelineLogger, create_logger

__all__ = [
    "OCRConfig",
    "load_ocr_config",

    "ConcurrencyGate",

    "LexscanError",
    "ConfigurationError",
    "InvalidDocument",
    "StageFailure",
    "StateTransitionError",
    "PipelineAborted",
    "EmptyResult",

    "PipelineLogger",
    "create_logger",
]
