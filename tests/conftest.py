"""
Global test configuration for the DVR manager.
"""
import pytest

from app.services.fetch_types import LibraryIds
from tests.factories import FakeGuideClient


@pytest.fixture
def libraries() -> LibraryIds:
    return LibraryIds(tv="2", film="1")


@pytest.fixture
def guide() -> FakeGuideClient:
    return FakeGuideClient()
