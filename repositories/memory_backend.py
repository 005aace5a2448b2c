"""
In-memory backend - dicts guarded by a per-store lock.

Default backend for development and tests. Records are stored in their
JSON shape so callers never share mutable state with the store.
"""

import copy
import threading
from typing import Callable, List

from models import (
    User,
    Video,
    Comment,
    Tweet,
    EdgeKey,
    Edge,
    Like,
    Subscription,
    UpsertResult,
    RemoveResult,
)
from .base import (
    Repository,
    UserRepository,
    VideoRepository,
    CommentRepository,
    TweetRepository,
    EdgeRepository,
)


class _MemoryEntityStore:
    """Shared implementation for the entity repositories."""

    model = None

    def __init__(self):
        self._records: dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, id: str):
        data = self._records.get(id)
        if data is None:
            return None
        return self.model.model_validate(data)

    def save(self, entity) -> None:
        data = entity.model_dump(mode="json")
        with self._lock:
            self._records[entity.id] = data

    def delete(self, id: str) -> bool:
        with self._lock:
            return self._records.pop(id, None) is not None

    def list(self) -> list:
        with self._lock:
            records = list(self._records.values())
        return [self.model.model_validate(data) for data in records]

    def exists(self, id: str) -> bool:
        return id in self._records

    def update(self, id: str, mutate: Callable):
        with self._lock:
            data = self._records.get(id)
            if data is None:
                return None
            entity = self.model.model_validate(data)
            mutate(entity)
            entity.touch()
            self._records[id] = entity.model_dump(mode="json")
            return entity

    def snapshot(self) -> List[dict]:
        with self._lock:
            return copy.deepcopy(list(self._records.values()))


class MemoryUserRepository(_MemoryEntityStore, UserRepository):
    model = User

    def save_if_username_free(self, user: User) -> bool:
        with self._lock:
            if any(data["username"] == user.username for data in self._records.values()):
                return False
            self._records[user.id] = user.model_dump(mode="json")
            return True


class MemoryVideoRepository(_MemoryEntityStore, VideoRepository):
    model = Video


class MemoryCommentRepository(_MemoryEntityStore, CommentRepository):
    model = Comment


class MemoryTweetRepository(_MemoryEntityStore, TweetRepository):
    model = Tweet


class MemoryEdgeRepository(EdgeRepository):
    """Edges keyed by EdgeKey.storage_key(); the dict key is the constraint."""

    def __init__(self, edge_class: type[Edge]):
        self._edge_class = edge_class
        self._edges: dict[str, dict] = {}
        self._lock = threading.Lock()

    def upsert_if_absent(self, key: EdgeKey) -> UpsertResult:
        storage_key = key.storage_key()
        with self._lock:
            if storage_key in self._edges:
                return UpsertResult(created=False)
            self._edges[storage_key] = key.to_edge().model_dump(mode="json")
        return UpsertResult(created=True)

    def remove_if_present(self, key: EdgeKey) -> RemoveResult:
        with self._lock:
            removed = self._edges.pop(key.storage_key(), None) is not None
        return RemoveResult(removed=removed)

    def exists(self, key: EdgeKey) -> bool:
        return key.storage_key() in self._edges

    def list(self) -> List[Edge]:
        with self._lock:
            records = list(self._edges.values())
        return [self._edge_class.model_validate(data) for data in records]

    def remove_where(self, predicate: Callable[[Edge], bool]) -> int:
        with self._lock:
            doomed = [
                k for k, data in self._edges.items()
                if predicate(self._edge_class.model_validate(data))
            ]
            for k in doomed:
                del self._edges[k]
        return len(doomed)

    def snapshot(self) -> List[dict]:
        with self._lock:
            return copy.deepcopy(list(self._edges.values()))


class MemoryRepository(Repository):
    """In-memory backend implementation."""

    def __init__(self):
        self._users = MemoryUserRepository()
        self._videos = MemoryVideoRepository()
        self._comments = MemoryCommentRepository()
        self._tweets = MemoryTweetRepository()
        self._likes = MemoryEdgeRepository(Like)
        self._subscriptions = MemoryEdgeRepository(Subscription)

    @property
    def users(self) -> UserRepository:
        return self._users

    @property
    def videos(self) -> VideoRepository:
        return self._videos

    @property
    def comments(self) -> CommentRepository:
        return self._comments

    @property
    def tweets(self) -> TweetRepository:
        return self._tweets

    @property
    def likes(self) -> EdgeRepository:
        return self._likes

    @property
    def subscriptions(self) -> EdgeRepository:
        return self._subscriptions
