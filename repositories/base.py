"""
Repository base classes - define the interface.

Entity repositories own User/Video/Comment/Tweet records. Edge
repositories own Like/Subscription edges and enforce the one-edge-per-key
constraint themselves, so callers never need their own locking.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

from errors import NotFoundError
from models import (
    User,
    Video,
    Comment,
    Tweet,
    EdgeKey,
    Edge,
    SubjectType,
    UpsertResult,
    RemoveResult,
)

T = TypeVar("T")
E = TypeVar("E", bound=Edge)


class BaseRepository(ABC, Generic[T]):
    """Abstract base for entity repositories."""

    @abstractmethod
    def get(self, id: str) -> Optional[T]:
        """Get entity by ID."""
        pass

    @abstractmethod
    def save(self, entity: T) -> None:
        """Insert or replace entity."""
        pass

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Delete entity by ID. Returns True if deleted."""
        pass

    @abstractmethod
    def list(self) -> List[T]:
        """List all entities in creation order."""
        pass

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Check if entity exists."""
        pass

    @abstractmethod
    def update(self, id: str, mutate: Callable[[T], None]) -> Optional[T]:
        """
        Atomically load, mutate and save one entity.

        Returns the updated entity, or None if it does not exist.
        """
        pass

    @abstractmethod
    def snapshot(self) -> List[dict]:
        """All records as JSON-shaped dicts, for the pipeline engine."""
        pass

    # Shared helpers

    def require(self, id: str, label: str = "Record") -> T:
        """Get entity or raise NotFoundError."""
        entity = self.get(id)
        if entity is None:
            raise NotFoundError(f"{label} not found")
        return entity

    def find(self, predicate: Callable[[T], bool]) -> List[T]:
        return [e for e in self.list() if predicate(e)]


class UserRepository(BaseRepository[User]):
    """Repository for user profiles."""

    def get_by_username(self, username: str) -> Optional[User]:
        username = username.strip().lower()
        for user in self.list():
            if user.username == username:
                return user
        return None

    @abstractmethod
    def save_if_username_free(self, user: User) -> bool:
        """
        Save a new user unless its username is taken.

        Check and write happen under the store lock, so two registrations
        for one username cannot both succeed.
        """
        pass


class VideoRepository(BaseRepository[Video]):
    """Repository for videos."""


class CommentRepository(BaseRepository[Comment]):
    """Repository for comments."""


class TweetRepository(BaseRepository[Tweet]):
    """Repository for tweets."""


class EdgeRepository(ABC, Generic[E]):
    """
    Abstract base for edge stores.

    upsert_if_absent/remove_if_present are the only mutations and both are
    idempotent: hitting an existing (or missing) key is a no-op that
    reports False, never an error.
    """

    @abstractmethod
    def upsert_if_absent(self, key: EdgeKey) -> UpsertResult:
        """Create the edge unless one already exists for this key."""
        pass

    @abstractmethod
    def remove_if_present(self, key: EdgeKey) -> RemoveResult:
        """Remove the edge if it exists."""
        pass

    @abstractmethod
    def exists(self, key: EdgeKey) -> bool:
        """Check if an edge exists for this key."""
        pass

    @abstractmethod
    def list(self) -> List[E]:
        """All edges in creation order."""
        pass

    @abstractmethod
    def remove_where(self, predicate: Callable[[E], bool]) -> int:
        """Remove every edge matching predicate. Returns count removed."""
        pass

    @abstractmethod
    def snapshot(self) -> List[dict]:
        """All edges as JSON-shaped dicts, for the pipeline engine."""
        pass

    # Shared queries

    def list_by_actor(self, actor_id: str, subject_type: SubjectType = None) -> List[E]:
        """Edges whose source is actor_id, optionally of one subject type."""
        return [
            e for e in self.list()
            if e.key().source == actor_id and _type_matches(e, subject_type)
        ]

    def list_by_subject(self, subject_type: Optional[SubjectType], subject_id: str) -> List[E]:
        """Edges whose target is subject_id. None matches any subject type (subscriptions have none)."""
        return [
            e for e in self.list()
            if e.key().target == subject_id and _type_matches(e, subject_type)
        ]

    def count(self, predicate: Callable[[E], bool] = None) -> int:
        if predicate is None:
            return len(self.list())
        return sum(1 for e in self.list() if predicate(e))


def _type_matches(edge: Edge, subject_type: Optional[SubjectType]) -> bool:
    if subject_type is None:
        return True
    return getattr(edge, "subject_type", None) == subject_type


class Repository(ABC):
    """
    Aggregate repository - provides access to all stores.

    This is what consumers use. It is also the source the pipeline engine
    reads collections from.
    """

    @property
    @abstractmethod
    def users(self) -> UserRepository:
        pass

    @property
    @abstractmethod
    def videos(self) -> VideoRepository:
        pass

    @property
    @abstractmethod
    def comments(self) -> CommentRepository:
        pass

    @property
    @abstractmethod
    def tweets(self) -> TweetRepository:
        pass

    @property
    @abstractmethod
    def likes(self) -> EdgeRepository:
        pass

    @property
    @abstractmethod
    def subscriptions(self) -> EdgeRepository:
        pass

    def collections(self) -> dict:
        return {
            "users": self.users,
            "videos": self.videos,
            "comments": self.comments,
            "tweets": self.tweets,
            "likes": self.likes,
            "subscriptions": self.subscriptions,
        }

    def snapshot(self, collection: str) -> List[dict]:
        """Read one collection as plain records."""
        stores = self.collections()
        if collection not in stores:
            raise KeyError(f"Unknown collection: {collection}")
        return stores[collection].snapshot()
