"""
Response shapes produced by the view builder and the toggle protocol.
"""

import math
from typing import Any, Optional
from pydantic import BaseModel, Field, computed_field

from .edges import EdgeState


class ToggleResult(BaseModel):
    """Store-confirmed end state of a toggle."""
    state: EdgeState

    @property
    def present(self) -> bool:
        return self.state == EdgeState.PRESENT


class Page(BaseModel):
    """One window of a paginated feed plus the total it was cut from."""
    items: list[dict[str, Any]] = Field(default_factory=list)
    page: int
    limit: int
    total: int = 0

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.limit)


class ChannelProfile(BaseModel):
    """A channel with its subscription counters, relative to a viewer."""
    id: str
    username: str
    fullname: str = ""
    email: str = ""
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


class ChannelStats(BaseModel):
    """Dashboard counters for one channel."""
    total_subscribers: int = 0
    total_videos: int = 0
    total_views: int = 0
    total_likes: int = 0
