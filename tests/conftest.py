"""Common test fixtures for blueprint-docs."""

from pathlib import Path

import pytest

from blueprint_docs.config import DocConfig
from tests.support.helpers import RecordingReporter


@pytest.fixture
def config(tmp_path: Path) -> DocConfig:
    """Minimal config writing to a temporary output file."""
    return DocConfig(output=str(tmp_path / "api.apib"))


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
