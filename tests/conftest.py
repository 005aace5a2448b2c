"""
Root test configuration.

Test organization:
- unit/        Fast, isolated, in-memory store only
- integration/ Component boundaries, real I/O to temp locations

Run specific levels:
    pytest tests/unit -v           # Fast feedback loop
    pytest tests/integration -v    # Before commit
    pytest tests -v                # Everything
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from models import Comment, Tweet, User, Video
from repositories import MemoryRepository


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated tests")
    config.addinivalue_line("markers", "integration: Component boundary tests")
    config.addinivalue_line("markers", "slow: Tests that take > 1s")


@pytest.fixture
def repo():
    """Fresh in-memory repository."""
    return MemoryRepository()


@pytest.fixture
def make_user(repo):
    """Factory saving a user into the repository."""
    def _make(username: str, **fields) -> User:
        user = User(username=username, fullname=fields.pop("fullname", username.title()), **fields)
        repo.users.save(user)
        return user
    return _make


@pytest.fixture
def make_video(repo):
    """Factory saving a video owned by `owner`."""
    def _make(owner: User, title: str = "A video", **fields) -> Video:
        video = Video(owner=owner.id, title=title, **fields)
        repo.videos.save(video)
        return video
    return _make


@pytest.fixture
def make_comment(repo):
    def _make(owner: User, video: Video, content: str = "Nice", **fields) -> Comment:
        comment = Comment(owner=owner.id, video_id=video.id, content=content, **fields)
        repo.comments.save(comment)
        return comment
    return _make


@pytest.fixture
def make_tweet(repo):
    def _make(owner: User, content: str = "Hello", **fields) -> Tweet:
        tweet = Tweet(owner=owner.id, content=content, **fields)
        repo.tweets.save(tweet)
        return tweet
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice", avatar="/blobs/alice.png")


@pytest.fixture
def bob(make_user):
    return make_user("bob", avatar="/blobs/bob.png")


@pytest.fixture
def carol(make_user):
    return make_user("carol")
