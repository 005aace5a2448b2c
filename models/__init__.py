"""
Domain models - single source of truth for all records.

Design principles:
- Every record defined once
- Validation at the boundary
- Backend-agnostic (repository handles persistence)
"""

from .ids import EntityId, new_id, parse_id, is_valid_id
from .base import BaseEntity, TimestampMixin
from .entities import User, Video, Comment, Tweet, MediaHandle
from .edges import (
    SubjectType,
    EdgeState,
    EdgeKey,
    Edge,
    LikeKey,
    SubscriptionKey,
    Like,
    Subscription,
    UpsertResult,
    RemoveResult,
)
from .views import ToggleResult, Page, ChannelProfile, ChannelStats

__all__ = [
    # Ids
    "EntityId",
    "new_id",
    "parse_id",
    "is_valid_id",
    # Base
    "BaseEntity",
    "TimestampMixin",
    # Entities
    "User",
    "Video",
    "Comment",
    "Tweet",
    "MediaHandle",
    # Edges
    "SubjectType",
    "EdgeState",
    "EdgeKey",
    "Edge",
    "LikeKey",
    "SubscriptionKey",
    "Like",
    "Subscription",
    "UpsertResult",
    "RemoveResult",
    # Views
    "ToggleResult",
    "Page",
    "ChannelProfile",
    "ChannelStats",
]
