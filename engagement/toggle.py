"""
Toggle protocol - flip presence of one edge and report the confirmed state.

The decision is made from a read, but the write goes through the store's
idempotent upsert/remove. If another caller wins the race in between,
the store reports created/removed = False and we still converge to the
state the caller asked for, so every caller gets a definite answer and
the store never holds two edges for one key.
"""

import logging

from errors import ValidationError
from models import (
    EdgeKey,
    EdgeState,
    LikeKey,
    SubjectType,
    SubscriptionKey,
    ToggleResult,
)
from repositories import EdgeRepository, Repository

logger = logging.getLogger(__name__)


def toggle(edges: EdgeRepository, key: EdgeKey, self_check: bool = False) -> ToggleResult:
    """
    Flip the edge for `key`.

    With self_check, an edge from an entity to itself is rejected before
    the store is touched.
    """
    if self_check and key.source == key.target:
        raise ValidationError("Source and target must differ")

    if edges.exists(key):
        result = edges.remove_if_present(key)
        if not result.removed:
            logger.debug("Edge %s already removed concurrently", key.storage_key())
        return ToggleResult(state=EdgeState.ABSENT)

    result = edges.upsert_if_absent(key)
    if not result.created:
        logger.debug("Edge %s already created concurrently", key.storage_key())
    return ToggleResult(state=EdgeState.PRESENT)


def _subject_store(repo: Repository, subject_type: SubjectType):
    return {
        SubjectType.VIDEO: repo.videos,
        SubjectType.COMMENT: repo.comments,
        SubjectType.TWEET: repo.tweets,
    }[subject_type]


def parse_subject_type(value) -> SubjectType:
    if isinstance(value, SubjectType):
        return value
    try:
        return SubjectType(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid subject type: {value}")


def toggle_like(repo: Repository, subject_type: SubjectType, subject_id: str, actor_id: str) -> ToggleResult:
    """Like or unlike a video, comment or tweet."""
    subject_type = parse_subject_type(subject_type)
    _subject_store(repo, subject_type).require(subject_id, subject_type.value.capitalize())

    result = toggle(repo.likes, LikeKey(subject_type=subject_type, subject_id=subject_id, liked_by=actor_id))
    logger.info("%s %s %s -> %s", actor_id, subject_type.value, subject_id, result.state.value)
    return result


def toggle_subscription(repo: Repository, channel_id: str, actor_id: str) -> ToggleResult:
    """Subscribe to or unsubscribe from a channel."""
    if channel_id == actor_id:
        raise ValidationError("You cannot subscribe to yourself")
    repo.users.require(channel_id, "Channel")

    result = toggle(
        repo.subscriptions,
        SubscriptionKey(subscriber=actor_id, channel=channel_id),
        self_check=True,
    )
    logger.info("%s subscription to %s -> %s", actor_id, channel_id, result.state.value)
    return result
