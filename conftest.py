"""
Pytest configuration for project root.

Ensures project modules can be imported in tests and keeps tests
independent of the developer's environment and config file.
"""

import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


PIPELINE_ENV_VARS = (
    "DPI",
    "TARGET_WIDTH",
    "SHARP",
    "MEDIAN",
    "UNGAMMA",
    "CONCURRENCY_PDF_CONVERSION",
    "CONCURRENCY_IMAGE_ENHANCEMENT",
    "CONCURRENCY_GOOGLE_OCR",
    "DOC_AI_PROCESSOR",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Strip pipeline env vars and point the default config at a missing file."""
    for var in PIPELINE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LEXSCAN_CONFIG", str(tmp_path / "no-config.yaml"))
