"""Unit tests for the derived views."""

import time
from datetime import datetime, timedelta

import pytest

from engagement import toggle_like, toggle_subscription, views
from errors import NotFoundError, ValidationError
from models import SubjectType, new_id
from pipeline import Pagination


BASE_TIME = datetime(2024, 1, 15, 12, 0, 0)


def at(minutes: int) -> datetime:
    """One timestamp per minute after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def page(n=1, limit=10):
    return Pagination(page=n, limit=limit)


class TestVideoComments:

    @pytest.fixture
    def video(self, make_video, alice):
        return make_video(alice)

    @pytest.fixture
    def many_comments(self, video, bob, make_comment):
        return [make_comment(bob, video, f"comment {i}", created_at=at(i)) for i in range(25)]

    def test_page_boundaries(self, repo, video, many_comments):
        first = views.video_comments(repo, video.id, page(1))
        last = views.video_comments(repo, video.id, page(3))
        past = views.video_comments(repo, video.id, page(4))

        assert len(first.items) == 10
        assert len(last.items) == 5
        assert past.items == []
        assert first.total == last.total == past.total == 25
        assert first.total_pages == 3

    def test_newest_first(self, repo, video, many_comments):
        items = views.video_comments(repo, video.id, page(1, 3)).items
        assert [c["content"] for c in items] == ["comment 24", "comment 23", "comment 22"]

    def test_author_projection(self, repo, video, bob, make_comment):
        make_comment(bob, video, "hi")
        item = views.video_comments(repo, video.id, page()).items[0]

        assert item["owner"] == {"username": "bob", "avatar": "/blobs/bob.png"}
        assert set(item) == {"id", "content", "created_at", "updated_at", "owner"}

    def test_deleted_author_kept_as_none(self, repo, video, bob, make_comment):
        make_comment(bob, video, "orphan")
        repo.users.delete(bob.id)

        items = views.video_comments(repo, video.id, page()).items

        assert len(items) == 1
        assert items[0]["content"] == "orphan"
        assert items[0]["owner"] is None

    def test_no_comments_is_empty_page(self, repo, video):
        result = views.video_comments(repo, video.id, page())
        assert (result.items, result.total, result.total_pages) == ([], 0, 0)

    def test_missing_video(self, repo):
        with pytest.raises(NotFoundError):
            views.video_comments(repo, new_id(), page())


class TestChannelProfile:

    def test_zero_state(self, repo, alice):
        profile = views.channel_profile(repo, "alice")

        assert profile.id == alice.id
        assert profile.subscribers_count == 0
        assert profile.channels_subscribed_to_count == 0
        assert profile.is_subscribed is False

    def test_subscribe_unsubscribe_scenario(self, repo, alice, bob):
        toggle_subscription(repo, alice.id, bob.id)

        seen_by_bob = views.channel_profile(repo, "alice", viewer_id=bob.id)
        assert seen_by_bob.subscribers_count == 1
        assert seen_by_bob.is_subscribed is True
        assert views.channel_profile(repo, "bob").channels_subscribed_to_count == 1

        toggle_subscription(repo, alice.id, bob.id)

        seen_by_bob = views.channel_profile(repo, "alice", viewer_id=bob.id)
        assert seen_by_bob.subscribers_count == 0
        assert seen_by_bob.is_subscribed is False
        assert views.channel_profile(repo, "bob").channels_subscribed_to_count == 0

    def test_is_subscribed_is_viewer_relative(self, repo, alice, bob, carol):
        toggle_subscription(repo, alice.id, bob.id)

        assert views.channel_profile(repo, "alice", viewer_id=carol.id).is_subscribed is False
        assert views.channel_profile(repo, "alice").is_subscribed is False

    def test_username_case_insensitive(self, repo, alice):
        assert views.channel_profile(repo, "  ALICE ").id == alice.id

    def test_unknown_channel(self, repo):
        with pytest.raises(NotFoundError):
            views.channel_profile(repo, "nobody")

    def test_username_required(self, repo):
        with pytest.raises(ValidationError):
            views.channel_profile(repo, "   ")

    def test_by_id(self, repo, alice):
        assert views.channel_profile_by_id(repo, alice.id).username == "alice"


class TestChannelStats:

    def test_zero_state(self, repo, alice):
        stats = views.channel_stats(repo, alice.id)
        assert stats.model_dump() == {
            "total_subscribers": 0,
            "total_videos": 0,
            "total_views": 0,
            "total_likes": 0,
        }

    def test_totals(self, repo, alice, bob, carol, make_video, make_comment):
        first = make_video(alice, "one", views=3)
        second = make_video(alice, "two", views=4, is_published=False)
        make_video(bob, "not alice's", views=100)
        comment = make_comment(bob, first)

        toggle_subscription(repo, alice.id, bob.id)
        toggle_like(repo, "video", first.id, bob.id)
        toggle_like(repo, "video", second.id, bob.id)
        toggle_like(repo, "video", second.id, carol.id)
        toggle_like(repo, "comment", comment.id, carol.id)

        stats = views.channel_stats(repo, alice.id)

        assert stats.total_subscribers == 1
        assert stats.total_videos == 2
        assert stats.total_views == 7
        assert stats.total_likes == 3

    def test_unknown_channel(self, repo):
        with pytest.raises(NotFoundError):
            views.channel_stats(repo, new_id())


class TestVideoListings:

    @pytest.fixture
    def catalog(self, alice, bob, make_video):
        return [
            make_video(alice, "Python basics", views=10, created_at=at(1)),
            make_video(alice, "Draft", is_published=False, created_at=at(2)),
            make_video(bob, "Cooking", description="learn python recipes", views=5, created_at=at(3)),
            make_video(bob, "Gardening", views=1, created_at=at(4)),
        ]

    def test_channel_videos_include_drafts(self, repo, alice, catalog):
        result = views.channel_videos(repo, alice.id, page())
        assert [v["title"] for v in result.items] == ["Draft", "Python basics"]
        assert result.total == 2

    def test_channel_videos_empty(self, repo, carol, catalog):
        result = views.channel_videos(repo, carol.id, page())
        assert result.items == [] and result.total == 0

    def test_list_only_published(self, repo, catalog):
        result = views.list_videos(repo, page())
        assert [v["title"] for v in result.items] == ["Gardening", "Cooking", "Python basics"]

    def test_list_search_title_and_description(self, repo, catalog):
        result = views.list_videos(repo, page(), query="PYTHON")
        assert {v["title"] for v in result.items} == {"Python basics", "Cooking"}

    def test_list_sort_by_views(self, repo, catalog):
        result = views.list_videos(repo, page(), sort_by="views", sort_type="asc")
        assert [v["views"] for v in result.items] == [1, 5, 10]

    def test_list_by_owner_with_projection(self, repo, bob, catalog):
        result = views.list_videos(repo, page(), owner_id=bob.id)
        assert result.total == 2
        assert all(v["owner"] == {"username": "bob", "avatar": "/blobs/bob.png"} for v in result.items)

    def test_invalid_sort_field(self, repo, catalog):
        with pytest.raises(ValidationError):
            views.list_videos(repo, page(), sort_by="owner")

    def test_invalid_sort_direction(self, repo, catalog):
        with pytest.raises(ValidationError):
            views.list_videos(repo, page(), sort_type="sideways")


class TestUserTweets:

    def test_newest_first_with_author(self, repo, alice, make_tweet):
        make_tweet(alice, "old", created_at=at(1))
        make_tweet(alice, "new", created_at=at(2))

        result = views.user_tweets(repo, alice.id, page())

        assert [t["content"] for t in result.items] == ["new", "old"]
        assert result.items[0]["owner"]["username"] == "alice"

    def test_missing_user(self, repo):
        with pytest.raises(NotFoundError):
            views.user_tweets(repo, new_id(), page())


class TestWatchHistory:

    def test_reference_order_with_owner(self, repo, alice, bob, make_video):
        first = make_video(alice, "first", created_at=at(1))
        second = make_video(bob, "second", created_at=at(2))
        for video in (second, first, second):
            repo.users.update(alice.id, lambda u, v=video: u.record_watch(v.id))

        history = views.watch_history(repo, alice.id)

        assert [v["title"] for v in history] == ["second", "first", "second"]
        assert history[0]["owner"] == {
            "id": bob.id,
            "username": "bob",
            "fullname": "Bob",
            "avatar": "/blobs/bob.png",
        }

    def test_deleted_video_drops_out(self, repo, alice, make_video):
        kept = make_video(alice, "kept")
        gone = make_video(alice, "gone")
        repo.users.update(alice.id, lambda u: u.record_watch(kept.id))
        repo.users.update(alice.id, lambda u: u.record_watch(gone.id))
        repo.videos.delete(gone.id)

        assert [v["title"] for v in views.watch_history(repo, alice.id)] == ["kept"]

    def test_empty_history(self, repo, alice):
        assert views.watch_history(repo, alice.id) == []

    def test_missing_user(self, repo):
        with pytest.raises(NotFoundError):
            views.watch_history(repo, new_id())


class TestEdgeLists:

    def test_liked_videos_latest_first(self, repo, alice, bob, make_video, make_comment):
        older = make_video(alice, "older")
        newer = make_video(alice, "newer")
        toggle_like(repo, "video", older.id, bob.id)
        time.sleep(0.002)
        toggle_like(repo, "video", newer.id, bob.id)
        toggle_like(repo, "comment", make_comment(alice, older).id, bob.id)

        liked = views.liked_videos(repo, bob.id)

        assert [row["video"]["title"] for row in liked] == ["newer", "older"]
        assert liked[0]["video"]["owner"]["username"] == "alice"
        assert liked[0]["liked_at"] is not None

    def test_liked_videos_skip_deleted(self, repo, alice, bob, make_video):
        video = make_video(alice)
        toggle_like(repo, "video", video.id, bob.id)
        repo.videos.delete(video.id)

        assert views.liked_videos(repo, bob.id) == []

    def test_subject_likes_keep_deleted_liker(self, repo, alice, bob, carol, make_video):
        video = make_video(alice)
        toggle_like(repo, "video", video.id, bob.id)
        toggle_like(repo, "video", video.id, carol.id)
        repo.users.delete(carol.id)

        likes = views.subject_likes(repo, SubjectType.VIDEO, video.id)

        by_liker = {row["liked_by"]: row["liker"] for row in likes}
        assert by_liker[bob.id] == {"username": "bob", "avatar": "/blobs/bob.png"}
        assert by_liker[carol.id] is None

    def test_channel_subscribers(self, repo, alice, bob, carol):
        toggle_subscription(repo, alice.id, bob.id)
        toggle_subscription(repo, alice.id, carol.id)
        repo.users.delete(carol.id)

        subscribers = views.channel_subscribers(repo, alice.id)

        assert len(subscribers) == 2
        profiles = {row["subscriber"]: row["profile"] for row in subscribers}
        assert profiles[bob.id]["username"] == "bob"
        assert profiles[carol.id] is None

    def test_subscribed_channels_with_counts(self, repo, alice, bob, carol):
        toggle_subscription(repo, alice.id, bob.id)
        toggle_subscription(repo, alice.id, carol.id)
        toggle_subscription(repo, carol.id, bob.id)

        channels = views.subscribed_channels(repo, bob.id)

        counts = {row["channel"]["username"]: row["channel"]["subscribers_count"] for row in channels}
        assert counts == {"alice": 2, "carol": 1}

    def test_empty_lists(self, repo, alice):
        assert views.channel_subscribers(repo, alice.id) == []
        assert views.subscribed_channels(repo, alice.id) == []
        assert views.liked_videos(repo, alice.id) == []
