"""
Shared fixtures for infra tests.

All tests use real filesystem operations with temporary directories.
"""

import pytest
import yaml


PROCESSOR = "projects/demo/locations/eu/processors/abc123"


@pytest.fixture
def processor_name():
    return PROCESSOR


@pytest.fixture
def credentials_file(tmp_path):
    """A stand-in service account key file."""
    path = tmp_path / "service-account.json"
    path.write_text('{"type": "service_account"}')
    return path


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config file and return its path."""
    def _write(data, name="config.yaml"):
        path = tmp_path / name
        with open(path, "w") as f:
            yaml.dump(data, f)
        return path
    return _write
