"""
Pytest configuration for pingg tests.
"""
import sys
from pathlib import Path

# This file is at: pingg/tests/conftest.py
# Project root is 2 levels up: ../../
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

import pytest
from loguru import logger

from pingg.automation.handoff import CancelToken, Handoff

# Configure loguru for tests
logger.remove()
logger.add(sys.stderr, level="WARNING")


@pytest.fixture(scope="session")
def project_root_path():
    """Provide project root path to all tests."""
    return project_root


@pytest.fixture
def token():
    """Fresh cancel token; cancelled on teardown so no worker thread outlives a test."""
    t = CancelToken()
    yield t
    t.cancel()


@pytest.fixture
def handoff(token):
    return Handoff(token)
