"""Shared test fixtures for ghflow tests."""

import shutil
import tempfile
from pathlib import Path

import pytest

from ghflow.config import ConfigStore
from tests.helpers import NOW, FakeResolver


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def config_store(temp_dir):
    """ConfigStore rooted in a temporary config directory."""
    return ConfigStore(temp_dir / "config")


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def resolver():
    return FakeResolver()
