"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides shared fixtures.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.identity import Identity  # noqa: E402
from tests.fakes import NOW, InMemoryDocumentStore  # noqa: E402


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def seller() -> Identity:
    return Identity(uid="seller-1", email="seller@example.com")


@pytest.fixture
def buyer() -> Identity:
    return Identity(uid="buyer-1", email="buyer@example.com")


@pytest.fixture
def other_buyer() -> Identity:
    return Identity(uid="buyer-2", email="buyer2@example.com")
