"""
Edges - directed relationships between entities.

An edge is identified by its key. The edge store keeps at most one edge
per key; presence of the edge is the whole state (liked / subscribed).
"""

from abc import abstractmethod
from datetime import datetime
from enum import Enum
from typing import ClassVar
from pydantic import BaseModel, ConfigDict, Field

from .ids import EntityId

KEY_SEPARATOR = "|||"


class SubjectType(str, Enum):
    """Things that can be liked."""
    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"


class EdgeState(str, Enum):
    """Observable toggle outcomes."""
    PRESENT = "present"
    ABSENT = "absent"


class EdgeKey(BaseModel):
    """
    Identity of an edge.

    Subclasses name the fields that make up the key and which of them is
    the actor (source) and the subject (target).
    """
    model_config = ConfigDict(frozen=True)

    collection: ClassVar[str] = ""
    key_fields: ClassVar[tuple[str, ...]] = ()
    source_field: ClassVar[str] = ""
    target_field: ClassVar[str] = ""

    @property
    def source(self) -> str:
        return getattr(self, self.source_field)

    @property
    def target(self) -> str:
        return getattr(self, self.target_field)

    def storage_key(self) -> str:
        """Flat string form used as the uniqueness key in every backend."""
        parts = []
        for name in self.key_fields:
            value = getattr(self, name)
            parts.append(value.value if isinstance(value, Enum) else str(value))
        return KEY_SEPARATOR.join(parts)

    @abstractmethod
    def to_edge(self) -> "Edge":
        """Build the persisted edge for this key."""


class Edge(BaseModel):
    """A persisted edge: key fields plus creation time."""
    model_config = ConfigDict(frozen=True)

    key_class: ClassVar[type[EdgeKey]] = EdgeKey

    created_at: datetime = Field(default_factory=datetime.now)

    def key(self) -> EdgeKey:
        return self.key_class(**{name: getattr(self, name) for name in self.key_class.key_fields})


class LikeKey(EdgeKey):
    """(subject_type, subject_id, liked_by)."""
    collection: ClassVar[str] = "likes"
    key_fields: ClassVar[tuple[str, ...]] = ("subject_type", "subject_id", "liked_by")
    source_field: ClassVar[str] = "liked_by"
    target_field: ClassVar[str] = "subject_id"

    subject_type: SubjectType
    subject_id: EntityId
    liked_by: EntityId

    def to_edge(self) -> "Like":
        return Like(**self.model_dump())


class SubscriptionKey(EdgeKey):
    """(subscriber, channel). Self-subscription is rejected at toggle time."""
    collection: ClassVar[str] = "subscriptions"
    key_fields: ClassVar[tuple[str, ...]] = ("subscriber", "channel")
    source_field: ClassVar[str] = "subscriber"
    target_field: ClassVar[str] = "channel"

    subscriber: EntityId
    channel: EntityId

    def to_edge(self) -> "Subscription":
        return Subscription(**self.model_dump())


class Like(Edge):
    key_class: ClassVar[type[EdgeKey]] = LikeKey

    subject_type: SubjectType
    subject_id: EntityId
    liked_by: EntityId


class Subscription(Edge):
    key_class: ClassVar[type[EdgeKey]] = SubscriptionKey

    subscriber: EntityId
    channel: EntityId


class UpsertResult(BaseModel):
    created: bool


class RemoveResult(BaseModel):
    removed: bool
