"""
Configuration schemas for lexscan.

One OCRConfig is built at startup (see infra.config.loader for precedence)
and passed by value into the pipeline. All models are frozen.
"""

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from infra.errors import ConfigurationError


PROCESSOR_PATTERN = re.compile(
    r'^projects/(?P<project>[^/]+)/locations/(?P<location>[^/]+)/processors/(?P<processor>[^/]+)'
    r'(/processorVersions/[^/]+)?$'
)


class EnhancementConfig(BaseModel):
    """Image enhancement transform chain settings."""
    model_config = ConfigDict(frozen=True)

    target_width: int = Field(2480, ge=1, description="Width in pixels after resize (aspect preserved)")
    sharpen_sigma: float = Field(1.0, gt=0, description="Unsharp mask sigma")
    median: int = Field(3, ge=0, description="Median filter size (0 or 1 disables)")
    ungamma: float = Field(1.0, gt=0, description="Inverse gamma value")
    threshold: int = Field(128, ge=0, le=255, description="Binarization threshold")

    @field_validator('sharpen_sigma', mode='before')
    @classmethod
    def parse_sharpen(cls, value):
        """
        Accept legacy "AxB" sharpen strings (sigma is B).

        "0.5x1.5" -> 1.5, "0.5x" -> 1.0
        """
        if isinstance(value, str) and 'x' in value:
            _, _, sigma = value.partition('x')
            try:
                parsed = float(sigma)
            except ValueError:
                return 1.0
            return parsed or 1.0
        return value


class ConcurrencyConfig(BaseModel):
    """Per-stage concurrency limits."""
    model_config = ConfigDict(frozen=True)

    rasterization: int = Field(4, ge=1)
    enhancement: int = Field(4, ge=1)
    recognition: int = Field(2, ge=1)


class RecognitionConfig(BaseModel):
    """Identity and credentials of the document recognition service."""
    model_config = ConfigDict(frozen=True)

    processor: Optional[str] = Field(
        None,
        description="projects/{project}/locations/{location}/processors/{id}"
    )
    credentials_file: Optional[Path] = Field(
        None,
        description="Service account key file (None uses application default credentials)"
    )
    api_endpoint: Optional[str] = Field(
        None,
        description="Override endpoint (defaults to {location}-documentai.googleapis.com)"
    )
    timeout_seconds: float = Field(120.0, gt=0)
    mime_type: str = "image/png"

    @property
    def location(self) -> Optional[str]:
        if not self.processor:
            return None
        match = PROCESSOR_PATTERN.match(self.processor)
        return match.group('location') if match else None

    @property
    def endpoint(self) -> Optional[str]:
        if self.api_endpoint:
            return self.api_endpoint
        location = self.location
        return f"{location}-documentai.googleapis.com" if location else None

    def validate_service(self) -> None:
        """
        Raise ConfigurationError unless the processor identity and
        credentials file are usable.
        """
        if not self.processor:
            raise ConfigurationError(
                "Recognition processor not configured "
                "(set recognition.processor or DOC_AI_PROCESSOR)"
            )
        if not PROCESSOR_PATTERN.match(self.processor):
            raise ConfigurationError(
                f"Invalid processor name: {self.processor!r} "
                f"(expected projects/<project>/locations/<location>/processors/<id>)"
            )
        if self.credentials_file is not None:
            path = Path(self.credentials_file).expanduser()
            if not path.is_file():
                raise ConfigurationError(f"Credentials not found: {path}")


class OCRConfig(BaseModel):
    """
    Fully resolved pipeline configuration.

    Stored at: ~/.config/lexscan/config.yaml (or LEXSCAN_CONFIG)
    """
    model_config = ConfigDict(frozen=True)

    dpi: int = Field(300, ge=1, description="Rasterization resolution")
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    workspace_root: Optional[Path] = Field(
        None,
        description="Parent directory for session workspaces (None uses the system temp dir)"
    )
    page_markers: bool = Field(False, description="Prefix each page with a page delimiter")
    log_level: str = "INFO"
    log_dir: Optional[Path] = Field(None, description="Directory for JSONL session logs")

    @field_validator('log_level')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown log level: {value}")
        return level


def resolve_env_vars(value: str) -> str:
    """
    Resolve ${ENV_VAR} references in a string.

    Examples:
        "${DOC_AI_PROCESSOR}" -> actual value from environment
        "literal-value" -> "literal-value"
        "${MISSING_VAR}" -> "" (empty string if not set)
    """
    if not isinstance(value, str):
        return value

    pattern = r'\$\{([^}]+)\}'

    def replace(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return re.sub(pattern, replace, value)
