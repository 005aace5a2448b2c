"""
Unit test fixtures.

All unit tests should be:
- Fast (< 100ms)
- Isolated (in-memory repository, temp dirs only for blobs)
- Deterministic (same result every time)
"""

import pytest
from datetime import datetime

from engagement import LocalBlobStore


class StaticSource:
    """Pipeline source backed by plain lists, for stage tests."""

    def __init__(self, **collections):
        self.collections = collections
        self.loads = []

    def snapshot(self, collection: str) -> list:
        self.loads.append(collection)
        return self.collections.get(collection, [])


@pytest.fixture
def static_source():
    return StaticSource


@pytest.fixture
def blobs(tmp_path):
    """Local blob store rooted in a temp dir."""
    return LocalBlobStore(root=tmp_path / "blobs")


@pytest.fixture
def upload_file(tmp_path):
    """Factory writing a small local file to upload."""
    counter = {"n": 0}

    def _make(suffix: str = ".mp4", content: bytes = b"data"):
        counter["n"] += 1
        path = tmp_path / f"upload-{counter['n']}{suffix}"
        path.write_bytes(content)
        return path
    return _make


@pytest.fixture
def fixed_time():
    """Fixed datetime for deterministic tests."""
    return datetime(2024, 1, 15, 12, 0, 0)
