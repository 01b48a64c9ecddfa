"""
Pytest configuration.

Adds the project root (and this directory, for the shared fakes) to the
Python path so tests can import domain, repositories, services and api.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import InMemoryLeadScoreStore  # noqa: E402


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def store() -> InMemoryLeadScoreStore:
    return InMemoryLeadScoreStore()
