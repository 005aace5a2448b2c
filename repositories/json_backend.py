"""
JSON file backend - stores each collection as one JSON file.

Directory structure:
    {data_dir}/
        users.json          - {id: record}
        videos.json         - {id: record}
        comments.json       - {id: record}
        tweets.json         - {id: record}
        likes.json          - {storage_key: edge}
        subscriptions.json  - {storage_key: edge}

Every read-modify-write cycle runs under the write queue lock, which is
what makes the edge key constraint hold across threads of one process.
"""

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List

from config import DATA_DIR
from errors import UpstreamError
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

logger = logging.getLogger(__name__)


class WriteQueue:
    """Thread-safe read-modify-write serialization."""

    def __init__(self):
        self._lock = threading.RLock()

    def read_json(self, path: Path) -> dict:
        """Load a collection file. Missing file is an empty collection."""
        with self._lock:
            if not path.exists():
                return {}
            try:
                with open(path) as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise UpstreamError(f"Corrupt store file {path.name}") from e
            except OSError as e:
                raise UpstreamError(f"Store read failed: {path.name}") from e

    def write_json(self, path: Path, data: dict) -> None:
        """Atomic JSON write."""
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                temp = path.with_suffix(".json.tmp")
                with open(temp, "w") as f:
                    json.dump(data, f, indent=2, default=str)
                temp.replace(path)
            except OSError as e:
                raise UpstreamError(f"Store write failed: {path.name}") from e

    @contextmanager
    def transaction(self, path: Path) -> Iterator[dict]:
        """
        Hold the lock across load, caller mutation and write.

        If the caller raises, nothing is written.
        """
        with self._lock:
            data = self.read_json(path)
            yield data
            self.write_json(path, data)


_write_queue = WriteQueue()


class _JsonEntityStore:
    """Shared implementation for the entity repositories."""

    model = None
    filename = ""

    def __init__(self, base_path: Path = None):
        self._base_path = base_path or DATA_DIR

    @property
    def _path(self) -> Path:
        return self._base_path / self.filename

    def get(self, id: str):
        data = _write_queue.read_json(self._path).get(id)
        if data is None:
            return None
        return self.model.model_validate(data)

    def save(self, entity) -> None:
        with _write_queue.transaction(self._path) as records:
            records[entity.id] = entity.model_dump(mode="json")

    def delete(self, id: str) -> bool:
        with _write_queue.transaction(self._path) as records:
            return records.pop(id, None) is not None

    def list(self) -> list:
        records = _write_queue.read_json(self._path)
        return [self.model.model_validate(data) for data in records.values()]

    def exists(self, id: str) -> bool:
        return id in _write_queue.read_json(self._path)

    def update(self, id: str, mutate: Callable):
        with _write_queue.transaction(self._path) as records:
            data = records.get(id)
            if data is None:
                return None
            entity = self.model.model_validate(data)
            mutate(entity)
            entity.touch()
            records[id] = entity.model_dump(mode="json")
            return entity

    def snapshot(self) -> List[dict]:
        return list(_write_queue.read_json(self._path).values())


class JsonUserRepository(_JsonEntityStore, UserRepository):
    model = User
    filename = "users.json"

    def save_if_username_free(self, user: User) -> bool:
        with _write_queue.transaction(self._path) as records:
            if any(data["username"] == user.username for data in records.values()):
                return False
            records[user.id] = user.model_dump(mode="json")
            return True


class JsonVideoRepository(_JsonEntityStore, VideoRepository):
    model = Video
    filename = "videos.json"


class JsonCommentRepository(_JsonEntityStore, CommentRepository):
    model = Comment
    filename = "comments.json"


class JsonTweetRepository(_JsonEntityStore, TweetRepository):
    model = Tweet
    filename = "tweets.json"


class JsonEdgeRepository(EdgeRepository):
    """JSON file implementation of an edge store."""

    def __init__(self, edge_class: type[Edge], filename: str, base_path: Path = None):
        self._edge_class = edge_class
        self._base_path = base_path or DATA_DIR
        self._filename = filename

    @property
    def _path(self) -> Path:
        return self._base_path / self._filename

    def upsert_if_absent(self, key: EdgeKey) -> UpsertResult:
        storage_key = key.storage_key()
        with _write_queue.transaction(self._path) as edges:
            if storage_key in edges:
                return UpsertResult(created=False)
            edges[storage_key] = key.to_edge().model_dump(mode="json")
        return UpsertResult(created=True)

    def remove_if_present(self, key: EdgeKey) -> RemoveResult:
        with _write_queue.transaction(self._path) as edges:
            removed = edges.pop(key.storage_key(), None) is not None
        return RemoveResult(removed=removed)

    def exists(self, key: EdgeKey) -> bool:
        return key.storage_key() in _write_queue.read_json(self._path)

    def list(self) -> List[Edge]:
        edges = _write_queue.read_json(self._path)
        return [self._edge_class.model_validate(data) for data in edges.values()]

    def remove_where(self, predicate: Callable[[Edge], bool]) -> int:
        with _write_queue.transaction(self._path) as edges:
            doomed = [
                k for k, data in edges.items()
                if predicate(self._edge_class.model_validate(data))
            ]
            for k in doomed:
                del edges[k]
        if doomed:
            logger.debug("Removed %d edges from %s", len(doomed), self._filename)
        return len(doomed)

    def snapshot(self) -> List[dict]:
        return list(_write_queue.read_json(self._path).values())


class JsonRepository(Repository):
    """JSON file backend implementation."""

    def __init__(self, base_path: Path = None):
        self._base_path = Path(base_path) if base_path else DATA_DIR
        self._users = JsonUserRepository(self._base_path)
        self._videos = JsonVideoRepository(self._base_path)
        self._comments = JsonCommentRepository(self._base_path)
        self._tweets = JsonTweetRepository(self._base_path)
        self._likes = JsonEdgeRepository(Like, "likes.json", self._base_path)
        self._subscriptions = JsonEdgeRepository(Subscription, "subscriptions.json", self._base_path)

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
