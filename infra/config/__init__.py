"""
Configuration management for lexscan.

Usage:
    from infra.config import load_ocr_config

    config = load_ocr_config(Path("config.yaml"), overrides={"dpi": 400})
    config.concurrency.recognition  # -> 2
"""

from .schemas import (
    OCRConfig,
    EnhancementConfig,
    ConcurrencyConfig,
    RecognitionConfig,
    resolve_env_vars,
)

from .loader import (
    OCRConfigManager,
    load_ocr_config,
    default_config_path,
    env_values,
    ENV_VARS,
)


__all__ = [
    "OCRConfig",
    "EnhancementConfig",
    "ConcurrencyConfig",
    "RecognitionConfig",
    "resolve_env_vars",
    "OCRConfigManager",
    "load_ocr_config",
    "default_config_path",
    "env_values",
    "ENV_VARS",
]
