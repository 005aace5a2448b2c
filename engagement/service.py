"""
Entity use cases - lifecycle of users, videos, comments and tweets.

Ids reaching these functions are already validated; actor_id comes from
the identity provider and is trusted. Uploads followed by a metadata write
are not atomic: when the write fails, the blobs uploaded by this call are
deleted again (compensation) and the error is re-raised, never retried.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from models import Comment, MediaHandle, SubjectType, Tweet, User, Video
from repositories import Repository
from .blobs import BlobStore

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return str(value).strip()


def _require_owner(owner_id: str, actor_id: str, what: str) -> None:
    if owner_id != actor_id:
        raise PermissionDenied(f"Only the owner can modify this {what}")


def _compensate(blobs: BlobStore, handles: list[MediaHandle]) -> None:
    """Delete blobs uploaded by a call whose metadata write failed."""
    for media in handles:
        try:
            blobs.delete(media.handle)
            logger.warning("Compensated orphaned blob %s", media.handle)
        except Exception:
            logger.exception("Could not delete orphaned blob %s", media.handle)


def _release(blobs: BlobStore, handle: Optional[str]) -> None:
    """Delete a blob that was replaced or whose record is gone."""
    if not handle:
        return
    try:
        blobs.delete(handle)
    except Exception:
        logger.exception("Could not delete replaced blob %s", handle)


def _apply(store, id: str, mutate: Callable, label: str):
    updated = store.update(id, mutate)
    if updated is None:
        raise NotFoundError(f"{label} not found")
    return updated


# === Users ===

def create_user(repo: Repository, username: str, fullname: str = "", email: str = "",
                avatar: str = None, cover_image: str = None) -> User:
    """Create the public profile for an account registered with the identity provider."""
    username = _require_text(username, "Username is required").lower()
    user = User(username=username, fullname=fullname or "", email=email or "",
                avatar=avatar, cover_image=cover_image)
    if not repo.users.save_if_username_free(user):
        raise ConflictError("Username already taken")
    logger.info("Created user %s (%s)", user.id, username)
    return user


def update_account(repo: Repository, actor_id: str, fullname: str, email: str) -> User:
    fullname = _require_text(fullname, "Fullname and email are required")
    email = _require_text(email, "Fullname and email are required")

    def mutate(user: User) -> None:
        user.fullname = fullname
        user.email = email

    return _apply(repo.users, actor_id, mutate, "User")


def _update_user_media(repo: Repository, blobs: BlobStore, actor_id: str, local_path: Path, field: str) -> User:
    repo.users.require(actor_id, "User")
    media = blobs.upload(local_path)
    previous = {}

    def mutate(user: User) -> None:
        previous["handle"] = getattr(user, f"{field}_handle")
        setattr(user, field, media.url)
        setattr(user, f"{field}_handle", media.handle)

    try:
        user = _apply(repo.users, actor_id, mutate, "User")
    except Exception:
        _compensate(blobs, [media])
        raise

    _release(blobs, previous.get("handle"))
    return user


def update_avatar(repo: Repository, blobs: BlobStore, actor_id: str, local_path: Path) -> User:
    return _update_user_media(repo, blobs, actor_id, local_path, "avatar")


def update_cover_image(repo: Repository, blobs: BlobStore, actor_id: str, local_path: Path) -> User:
    return _update_user_media(repo, blobs, actor_id, local_path, "cover_image")


def record_watch(repo: Repository, user_id: str, video_id: str) -> Video:
    """Count a view and push the video onto the viewer's watch history."""
    video = _apply(repo.videos, video_id, lambda v: v.add_view(), "Video")
    _apply(repo.users, user_id, lambda u: u.record_watch(video_id), "User")
    return video


# === Videos ===

def get_video(repo: Repository, video_id: str, viewer_id: str = None) -> Video:
    """Drafts are only visible to their owner."""
    video = repo.videos.require(video_id, "Video")
    if not video.is_published and video.owner != viewer_id:
        raise NotFoundError("Video not found")
    return video


def publish_video(repo: Repository, blobs: BlobStore, actor_id: str, title: str, description: str,
                  video_path: Path, thumbnail_path: Path, duration: float = 0.0) -> Video:
    """Upload media, then write the video record."""
    title = _require_text(title, "Title and description are required")
    description = _require_text(description, "Title and description are required")
    if not video_path or not thumbnail_path:
        raise ValidationError("Video file and thumbnail file are required")
    repo.users.require(actor_id, "User")

    uploaded: list[MediaHandle] = []
    try:
        video_file = blobs.upload(video_path)
        uploaded.append(video_file)
        thumbnail = blobs.upload(thumbnail_path)
        uploaded.append(thumbnail)

        video = Video(
            owner=actor_id,
            title=title,
            description=description,
            video_file=video_file,
            thumbnail=thumbnail,
            duration=duration or 0.0,
        )
        repo.videos.save(video)
    except Exception:
        _compensate(blobs, uploaded)
        raise

    logger.info("Published video %s for %s", video.id, actor_id)
    return video


def update_video(repo: Repository, blobs: BlobStore, actor_id: str, video_id: str,
                 title: str = None, description: str = None, thumbnail_path: Path = None) -> Video:
    """Change title/description and optionally replace the thumbnail."""
    video = repo.videos.require(video_id, "Video")
    _require_owner(video.owner, actor_id, "video")
    if title is None and description is None and thumbnail_path is None:
        raise ValidationError("Nothing to update")
    if title is not None:
        title = _require_text(title, "Title cannot be empty")

    thumbnail = blobs.upload(thumbnail_path) if thumbnail_path else None
    previous = {}

    def mutate(v: Video) -> None:
        if title is not None:
            v.title = title
        if description is not None:
            v.description = description.strip()
        if thumbnail is not None:
            previous["thumbnail"] = v.thumbnail
            v.thumbnail = thumbnail

    try:
        video = _apply(repo.videos, video_id, mutate, "Video")
    except Exception:
        if thumbnail is not None:
            _compensate(blobs, [thumbnail])
        raise

    old = previous.get("thumbnail")
    if old is not None:
        _release(blobs, old.handle)
    return video


def toggle_publish_status(repo: Repository, actor_id: str, video_id: str) -> Video:
    video = repo.videos.require(video_id, "Video")
    _require_owner(video.owner, actor_id, "video")
    return _apply(repo.videos, video_id, lambda v: v.toggle_publish(), "Video")


def delete_video(repo: Repository, blobs: BlobStore, actor_id: str, video_id: str) -> None:
    """
    Delete a video, its comments, and every like on either.

    Media blobs are released after the records are gone.
    """
    video = repo.videos.require(video_id, "Video")
    _require_owner(video.owner, actor_id, "video")

    repo.videos.delete(video_id)

    comment_ids = {c.id for c in repo.comments.find(lambda c: c.video_id == video_id)}
    for comment_id in comment_ids:
        repo.comments.delete(comment_id)
    removed = repo.likes.remove_where(
        lambda like: (like.subject_type == SubjectType.VIDEO and like.subject_id == video_id)
        or (like.subject_type == SubjectType.COMMENT and like.subject_id in comment_ids)
    )
    logger.info("Deleted video %s (%d comments, %d likes)", video_id, len(comment_ids), removed)

    for media in (video.video_file, video.thumbnail):
        if media is not None:
            _release(blobs, media.handle)


# === Comments ===

def add_comment(repo: Repository, actor_id: str, video_id: str, content: str) -> Comment:
    content = _require_text(content, "Please enter a comment")
    repo.videos.require(video_id, "Video")
    comment = Comment(content=content, video_id=video_id, owner=actor_id)
    repo.comments.save(comment)
    return comment


def update_comment(repo: Repository, actor_id: str, comment_id: str, content: str) -> Comment:
    content = _require_text(content, "Please enter a valid comment")
    comment = repo.comments.require(comment_id, "Comment")
    _require_owner(comment.owner, actor_id, "comment")

    def mutate(c: Comment) -> None:
        c.content = content

    return _apply(repo.comments, comment_id, mutate, "Comment")


def delete_comment(repo: Repository, actor_id: str, comment_id: str) -> Comment:
    comment = repo.comments.require(comment_id, "Comment")
    _require_owner(comment.owner, actor_id, "comment")
    repo.comments.delete(comment_id)
    repo.likes.remove_where(
        lambda like: like.subject_type == SubjectType.COMMENT and like.subject_id == comment_id
    )
    return comment


# === Tweets ===

def create_tweet(repo: Repository, actor_id: str, content: str) -> Tweet:
    content = _require_text(content, "Content is required")
    repo.users.require(actor_id, "User")
    tweet = Tweet(content=content, owner=actor_id)
    repo.tweets.save(tweet)
    return tweet


def update_tweet(repo: Repository, actor_id: str, tweet_id: str, content: str) -> Tweet:
    content = _require_text(content, "The tweet content is required")
    tweet = repo.tweets.require(tweet_id, "Tweet")
    _require_owner(tweet.owner, actor_id, "tweet")

    def mutate(t: Tweet) -> None:
        t.content = content

    return _apply(repo.tweets, tweet_id, mutate, "Tweet")


def delete_tweet(repo: Repository, actor_id: str, tweet_id: str) -> Tweet:
    tweet = repo.tweets.require(tweet_id, "Tweet")
    _require_owner(tweet.owner, actor_id, "tweet")
    repo.tweets.delete(tweet_id)
    repo.likes.remove_where(
        lambda like: like.subject_type == SubjectType.TWEET and like.subject_id == tweet_id
    )
    return tweet
