"""
Repository layer - abstracts persistence.

Usage:
    from repositories import get_repository

    repo = get_repository()  # Returns configured backend
    video = repo.videos.get(video_id)
    repo.likes.upsert_if_absent(key)

Backends are swappable via config (STORE_BACKEND).
"""

from pathlib import Path

from config import STORE_BACKEND, DATA_DIR
from .base import Repository, EdgeRepository
from .memory_backend import MemoryRepository
from .json_backend import JsonRepository

_backend: str = STORE_BACKEND
_options: dict = {}
_instance: Repository = None


def create_repository(backend: str, **kwargs) -> Repository:
    """Build a fresh repository for the named backend."""
    if backend == "memory":
        return MemoryRepository()
    elif backend == "json":
        return JsonRepository(base_path=Path(kwargs.get("data_dir") or DATA_DIR))
    else:
        raise ValueError(f"Unknown backend: {backend}")


def get_repository() -> Repository:
    """Get the configured repository instance."""
    global _instance

    if _instance is None:
        _instance = create_repository(_backend, **_options)

    return _instance


def configure_backend(backend: str, **kwargs) -> None:
    """Configure the repository backend."""
    global _backend, _options, _instance
    _backend = backend
    _options = kwargs
    _instance = None  # Force re-initialization


__all__ = [
    "get_repository",
    "configure_backend",
    "create_repository",
    "Repository",
    "EdgeRepository",
    "MemoryRepository",
    "JsonRepository",
]
