"""
Core records - users, videos, comments, tweets.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .base import BaseEntity
from .ids import EntityId


class MediaHandle(BaseModel):
    """A blob stored by the external blob store."""
    url: str
    handle: str


class User(BaseEntity):
    """
    Public channel profile of an account.

    Credentials live with the identity provider, never here.
    """
    username: str = Field(min_length=1)
    fullname: str = ""
    email: str = ""

    avatar: Optional[str] = None         # URL
    avatar_handle: Optional[str] = None  # Blob store handle for cleanup
    cover_image: Optional[str] = None
    cover_image_handle: Optional[str] = None

    # Most recent first. Re-watching a video adds it again.
    watch_history: list[EntityId] = Field(default_factory=list)

    @field_validator("username")
    @classmethod
    def lowercase_username(cls, value: str) -> str:
        return value.lower()

    def record_watch(self, video_id: str) -> None:
        """Push a video to the front of the watch history."""
        self.watch_history = [video_id] + self.watch_history


class Video(BaseEntity):
    """A published (or draft) video owned by one channel."""
    owner: EntityId = Field(frozen=True)
    title: str = Field(min_length=1)
    description: str = ""

    video_file: Optional[MediaHandle] = None
    thumbnail: Optional[MediaHandle] = None
    duration: float = Field(default=0.0, ge=0.0)
    views: int = Field(default=0, ge=0)
    is_published: bool = True

    def toggle_publish(self) -> bool:
        """Flip publish status. Returns the new value."""
        self.is_published = not self.is_published
        self.touch()
        return self.is_published

    def add_view(self) -> None:
        self.views += 1


class Comment(BaseEntity):
    """A comment on a video. No edit history is kept."""
    content: str = Field(min_length=1)
    video_id: EntityId
    owner: EntityId


class Tweet(BaseEntity):
    """A short text post on a channel."""
    content: str = Field(min_length=1)
    owner: EntityId
