"""
View builder - the derived read models, all composed from pipelines.

Three recurring shapes:
- counted profile: one entity plus counters computed from edges
- paginated feed: entities joined with an {username, avatar} author
- nested history: referenced entities in reference order, each with owner

No view treats an empty result as an error. NotFoundError is only raised
when the entity a view is *about* (a channel, a video) does not exist.
"""

import logging
from typing import Optional

from errors import NotFoundError, ValidationError
from models import ChannelProfile, ChannelStats, Page, SubjectType
from pipeline import (
    AnyOf,
    Deadline,
    First,
    Membership,
    Pagination,
    Pipeline,
    Search,
    Size,
    Sum,
    default_deadline,
    paginated,
    unpack_page,
)
from repositories import Repository

logger = logging.getLogger(__name__)

AUTHOR_FIELDS = ["username", "avatar"]
OWNER_FIELDS = ["id", "username", "fullname", "avatar"]
VIDEO_FIELDS = [
    "id",
    "title",
    "description",
    "thumbnail",
    "video_file",
    "duration",
    "views",
    "is_published",
    "created_at",
    "updated_at",
]
PROFILE_FIELDS = [
    "id",
    "username",
    "fullname",
    "email",
    "avatar",
    "cover_image",
    "subscribers_count",
    "channels_subscribed_to_count",
    "is_subscribed",
]
VIDEO_SORT_FIELDS = {"created_at", "updated_at", "title", "views", "duration"}


def with_author(pipeline: Pipeline, field: str = "owner") -> Pipeline:
    """Replace a user id field with the {username, avatar} projection (or None)."""
    return (
        pipeline
        .join("users", field, "id", field, Pipeline().project(AUTHOR_FIELDS))
        .unwind(field, preserve_empty=True)
    )


def _deadline(deadline: Optional[Deadline]) -> Optional[Deadline]:
    return deadline if deadline is not None else default_deadline()


def _page(repo: Repository, pipeline: Pipeline, pagination: Pagination, items: Pipeline,
          deadline: Deadline = None) -> Page:
    rows = paginated(pipeline, pagination, items).run(repo, deadline=_deadline(deadline))
    records, total = unpack_page(rows)
    return Page(items=records, page=pagination.page, limit=pagination.limit, total=total)


# === Counted profile views ===

def _profile(repo: Repository, criteria: dict, viewer_id: Optional[str], deadline: Deadline = None) -> ChannelProfile:
    rows = (
        Pipeline("users")
        .match(criteria)
        .join("subscriptions", "id", "channel", "subscribers")
        .join("subscriptions", "id", "subscriber", "subscribed_to")
        .add_fields({
            "subscribers_count": Size("subscribers"),
            "channels_subscribed_to_count": Size("subscribed_to"),
            "is_subscribed": Membership(viewer_id, "subscribers.subscriber"),
        })
        .project(PROFILE_FIELDS)
        .run(repo, deadline=_deadline(deadline))
    )
    if not rows:
        raise NotFoundError("Channel not found")
    return ChannelProfile.model_validate(rows[0])


def channel_profile(repo: Repository, username: str, viewer_id: str = None, deadline: Deadline = None) -> ChannelProfile:
    """Profile by username, with is_subscribed relative to viewer_id."""
    if not username or not username.strip():
        raise ValidationError("Username is required")
    return _profile(repo, {"username": username.strip().lower()}, viewer_id, deadline)


def channel_profile_by_id(repo: Repository, channel_id: str, viewer_id: str = None, deadline: Deadline = None) -> ChannelProfile:
    return _profile(repo, {"id": channel_id}, viewer_id, deadline)


def channel_stats(repo: Repository, channel_id: str, deadline: Deadline = None) -> ChannelStats:
    """Subscriber, video, view and received-like totals for a channel."""
    videos = (
        Pipeline()
        .join("likes", "id", "subject_id", "likes", Pipeline().match({"subject_type": SubjectType.VIDEO.value}))
        .add_fields({"likes_count": Size("likes")})
        .project(["id", "views", "likes_count"])
    )
    rows = (
        Pipeline("users")
        .match({"id": channel_id})
        .join("subscriptions", "id", "channel", "subscribers")
        .join("videos", "id", "owner", "videos", videos)
        .add_fields({
            "total_subscribers": Size("subscribers"),
            "total_videos": Size("videos"),
            "total_views": Sum("videos.views"),
            "total_likes": Sum("videos.likes_count"),
        })
        .project(["total_subscribers", "total_videos", "total_views", "total_likes"])
        .run(repo, deadline=_deadline(deadline))
    )
    if not rows:
        raise NotFoundError("Channel not found")
    return ChannelStats.model_validate(rows[0])


# === Paginated feeds ===

def channel_videos(repo: Repository, channel_id: str, pagination: Pagination, deadline: Deadline = None) -> Page:
    """All of a channel's videos (drafts included), newest first."""
    repo.users.require(channel_id, "Channel")
    pipeline = Pipeline("videos").match({"owner": channel_id}).sort("created_at", "desc")
    return _page(repo, pipeline, pagination, Pipeline().project(VIDEO_FIELDS), deadline)


def list_videos(
    repo: Repository,
    pagination: Pagination,
    query: str = None,
    sort_by: str = "created_at",
    sort_type: str = "desc",
    owner_id: str = None,
    deadline: Deadline = None,
) -> Page:
    """Published videos, optionally filtered by owner and text query."""
    sort_by = sort_by or "created_at"
    if sort_by not in VIDEO_SORT_FIELDS:
        raise ValidationError(f"Cannot sort by {sort_by}")

    pipeline = Pipeline("videos").match({"is_published": True})
    if owner_id:
        pipeline.match({"owner": owner_id})
    if query and query.strip():
        pipeline.match(AnyOf({"title": Search(query)}, {"description": Search(query)}))
    pipeline.sort(sort_by, sort_type or "desc")

    items = with_author(Pipeline().project(VIDEO_FIELDS + ["owner"]))
    return _page(repo, pipeline, pagination, items, deadline)


def video_comments(repo: Repository, video_id: str, pagination: Pagination, deadline: Deadline = None) -> Page:
    """Comments on a video, newest first, each with its author."""
    repo.videos.require(video_id, "Video")
    pipeline = Pipeline("comments").match({"video_id": video_id}).sort("created_at", "desc")
    items = with_author(Pipeline()).project(["id", "content", "created_at", "updated_at", "owner"])
    return _page(repo, pipeline, pagination, items, deadline)


def user_tweets(repo: Repository, user_id: str, pagination: Pagination, deadline: Deadline = None) -> Page:
    repo.users.require(user_id, "User")
    pipeline = Pipeline("tweets").match({"owner": user_id}).sort("created_at", "desc")
    items = with_author(Pipeline()).project(["id", "content", "created_at", "updated_at", "owner"])
    return _page(repo, pipeline, pagination, items, deadline)


# === Nested history and edge lists ===

def watch_history(repo: Repository, user_id: str, deadline: Deadline = None) -> list[dict]:
    """
    Watched videos, most recent first, each with its owner.

    Order follows the user's watch_history list, not the videos
    collection. Deleted videos drop out.
    """
    videos = (
        Pipeline()
        .join("users", "owner", "id", "owner", Pipeline().project(OWNER_FIELDS))
        .add_fields({"owner": First("owner")})
        .project(VIDEO_FIELDS + ["owner"])
    )
    rows = (
        Pipeline("users")
        .match({"id": user_id})
        .join("videos", "watch_history", "id", "watch_history", videos)
        .project(["watch_history"])
        .run(repo, deadline=_deadline(deadline))
    )
    if not rows:
        raise NotFoundError("User not found")
    return rows[0]["watch_history"]


def liked_videos(repo: Repository, actor_id: str, deadline: Deadline = None) -> list[dict]:
    """Videos the actor liked, latest like first. Likes on deleted videos are skipped."""
    video = with_author(Pipeline()).project(VIDEO_FIELDS + ["owner"])
    return (
        Pipeline("likes")
        .match({"liked_by": actor_id, "subject_type": SubjectType.VIDEO.value})
        .sort("created_at", "desc")
        .join("videos", "subject_id", "id", "video", video)
        .unwind("video")
        .project({"liked_at": "created_at", "video": True})
        .run(repo, deadline=_deadline(deadline))
    )


def subject_likes(repo: Repository, subject_type: SubjectType, subject_id: str, deadline: Deadline = None) -> list[dict]:
    """
    Likes on one subject, each with the liker's projection.

    A like whose liker no longer exists is kept with liker = None.
    """
    pipeline = Pipeline("likes").match({"subject_type": SubjectType(subject_type).value, "subject_id": subject_id})
    pipeline.join("users", "liked_by", "id", "liker", Pipeline().project(AUTHOR_FIELDS))
    pipeline.unwind("liker", preserve_empty=True)
    pipeline.project(["liked_by", "liker", "created_at"])
    return pipeline.run(repo, deadline=_deadline(deadline))


def channel_subscribers(repo: Repository, channel_id: str, deadline: Deadline = None) -> list[dict]:
    """Subscribers of a channel, oldest first, with their public profile (or None)."""
    repo.users.require(channel_id, "Channel")
    return (
        Pipeline("subscriptions")
        .match({"channel": channel_id})
        .join("users", "subscriber", "id", "profile", Pipeline().project(OWNER_FIELDS))
        .unwind("profile", preserve_empty=True)
        .project({"subscriber": True, "profile": True, "subscribed_at": "created_at"})
        .run(repo, deadline=_deadline(deadline))
    )


def subscribed_channels(repo: Repository, subscriber_id: str, deadline: Deadline = None) -> list[dict]:
    """Channels a user follows, each with its own subscriber count."""
    channel = (
        Pipeline()
        .join("subscriptions", "id", "channel", "subscribers")
        .add_fields({"subscribers_count": Size("subscribers")})
        .project(OWNER_FIELDS + ["subscribers_count"])
    )
    return (
        Pipeline("subscriptions")
        .match({"subscriber": subscriber_id})
        .join("users", "channel", "id", "channel", channel)
        .unwind("channel")
        .project({"channel": True, "subscribed_at": "created_at"})
        .run(repo, deadline=_deadline(deadline))
    )
