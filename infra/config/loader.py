"""
Configuration loading.

Precedence (highest first):
  1. Explicit overrides (CLI flags, keyword overrides)
  2. Environment variables (DPI, TARGET_WIDTH, DOC_AI_PROCESSOR, ...)
  3. YAML config file
  4. Built-in defaults (OCRConfig field defaults)

String values in the config file may reference ${ENV_VAR}.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .schemas import OCRConfig, resolve_env_vars


DEFAULT_CONFIG_PATH = Path("~/.config/lexscan/config.yaml")

# env var -> path into the config dict
ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "DPI": ("dpi",),
    "TARGET_WIDTH": ("enhancement", "target_width"),
    "SHARP": ("enhancement", "sharpen_sigma"),
    "MEDIAN": ("enhancement", "median"),
    "UNGAMMA": ("enhancement", "ungamma"),
    "CONCURRENCY_PDF_CONVERSION": ("concurrency", "rasterization"),
    "CONCURRENCY_IMAGE_ENHANCEMENT": ("concurrency", "enhancement"),
    "CONCURRENCY_GOOGLE_OCR": ("concurrency", "recognition"),
    "DOC_AI_PROCESSOR": ("recognition", "processor"),
    "GOOGLE_APPLICATION_CREDENTIALS": ("recognition", "credentials_file"),
    "LOG_LEVEL": ("log_level",),
}


def default_config_path() -> Path:
    return Path(os.getenv('LEXSCAN_CONFIG', str(DEFAULT_CONFIG_PATH))).expanduser()


class OCRConfigManager:
    """
    Loads and saves the lexscan config file.

    Usage:
        manager = OCRConfigManager(Path("config.yaml"))
        config = manager.load(overrides={"dpi": 400})
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path).expanduser() if config_path else default_config_path()

    def exists(self) -> bool:
        return self.config_path.exists()

    def load_file(self) -> Dict[str, Any]:
        """Raw file values with ${ENV_VAR} references resolved ({} if no file)."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

        return _resolve_strings(data)

    def load(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> OCRConfig:
        data = self.load_file()

        env = os.environ if environ is None else environ
        _deep_merge(data, env_values(env))

        if overrides:
            _deep_merge(data, _drop_none(dict(overrides)))

        return OCRConfig.model_validate(data)

    def save(self, config: OCRConfig) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json", exclude_none=True)
        with open(self.config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def env_values(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Nested config dict built from the recognized environment variables."""
    data: Dict[str, Any] = {}
    for var, path in ENV_VARS.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        node = data
        for key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1]] = value
    return data


def _resolve_strings(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _resolve_strings(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_strings(v) for v in value]
    return resolve_env_vars(value)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            nested = _drop_none(value)
            if nested:
                cleaned[key] = nested
        elif value is not None:
            cleaned[key] = value
    return cleaned


def _deep_merge(base: dict, updates: dict) -> None:
    """
    Deep merge updates into base dict (mutates base).
    """
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_ocr_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> OCRConfig:
    """
    Convenience function to build the pipeline config once at startup.

    Args:
        config_path: YAML file (default: LEXSCAN_CONFIG or ~/.config/lexscan/config.yaml)
        overrides: Nested dict of explicit values; None entries are ignored
        environ: Environment mapping (default: os.environ)

    Returns:
        Frozen OCRConfig
    """
    return OCRConfigManager(config_path).load(overrides=overrides, environ=environ)
