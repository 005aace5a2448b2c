"""
Integration test: HTTP API over an in-memory store and temp blob dir.
"""

import io

import pytest

from app import create_app
from engagement import LocalBlobStore
from models import User, Video, new_id
from repositories import MemoryRepository


@pytest.fixture
def store():
    return MemoryRepository()


@pytest.fixture
def client(store, blob_dir):
    app = create_app(repository=store, blob_store=LocalBlobStore(root=blob_dir))
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def alice(store):
    user = User(username="alice", fullname="Alice", avatar="/blobs/a.png")
    store.users.save(user)
    return user


@pytest.fixture
def bob(store):
    user = User(username="bob", fullname="Bob")
    store.users.save(user)
    return user


@pytest.fixture
def video(store, alice):
    video = Video(owner=alice.id, title="Intro")
    store.videos.save(video)
    return video


def as_user(user):
    return {"X-Actor-Id": user.id}


class TestErrors:

    def test_missing_actor_is_401(self, client, video):
        response = client.post(f"/api/likes/video/{video.id}")
        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized request"}

    def test_malformed_actor_is_400(self, client, video):
        response = client.post(f"/api/likes/video/{video.id}", headers={"X-Actor-Id": "nope"})
        assert response.status_code == 400

    def test_malformed_id_is_400(self, client, bob):
        response = client.post("/api/likes/video/not-an-id", headers=as_user(bob))
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid video id"

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert "error" in response.get_json()

    def test_unexpected_error_is_opaque_500(self, client, store, bob, monkeypatch):
        def explode(collection):
            raise RuntimeError("secret detail")
        monkeypatch.setattr(store, "snapshot", explode)

        response = client.get(f"/api/users/c/{bob.username}")

        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    def test_invalid_pagination_is_400(self, client, video):
        response = client.get(f"/api/videos/{video.id}/comments?limit=0")
        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid limit"}

    def test_large_limit_returns_whole_set(self, client, video, bob):
        for i in range(12):
            client.post(f"/api/videos/{video.id}/comments", json={"content": f"c{i}"}, headers=as_user(bob))

        response = client.get(f"/api/videos/{video.id}/comments?limit=200")

        assert response.status_code == 200
        body = response.get_json()
        assert len(body["items"]) == 12
        assert body["total"] == 12
        assert body["total_pages"] == 1


class TestLikesAndSubscriptions:

    def test_like_toggle(self, client, video, bob):
        first = client.post(f"/api/likes/video/{video.id}", headers=as_user(bob))
        second = client.post(f"/api/likes/video/{video.id}", headers=as_user(bob))

        assert first.get_json() == {"state": "present", "liked": True}
        assert second.get_json() == {"state": "absent", "liked": False}

    def test_like_missing_video_is_404(self, client, bob):
        response = client.post(f"/api/likes/video/{new_id()}", headers=as_user(bob))
        assert response.status_code == 404
        assert response.get_json() == {"error": "Video not found"}

    def test_liked_videos(self, client, video, bob):
        client.post(f"/api/likes/video/{video.id}", headers=as_user(bob))

        response = client.get("/api/likes/videos", headers=as_user(bob))

        assert [row["video"]["id"] for row in response.get_json()] == [video.id]

    def test_subject_likes(self, client, video, bob):
        client.post(f"/api/likes/video/{video.id}", headers=as_user(bob))

        response = client.get(f"/api/likes/video/{video.id}")

        assert response.get_json()[0]["liker"]["username"] == "bob"

    def test_subscription_scenario(self, client, alice, bob):
        response = client.post(f"/api/subscriptions/{alice.id}", headers=as_user(bob))
        assert response.get_json()["state"] == "present"

        profile = client.get("/api/users/c/alice", headers=as_user(bob)).get_json()
        assert profile["subscribers_count"] == 1
        assert profile["is_subscribed"] is True

        subscribers = client.get(f"/api/subscriptions/{alice.id}/subscribers").get_json()
        assert [row["subscriber"] for row in subscribers] == [bob.id]

        channels = client.get(f"/api/subscriptions/users/{bob.id}").get_json()
        assert channels[0]["channel"]["username"] == "alice"

        client.post(f"/api/subscriptions/{alice.id}", headers=as_user(bob))
        profile = client.get("/api/users/c/alice", headers=as_user(bob)).get_json()
        assert profile["subscribers_count"] == 0
        assert profile["is_subscribed"] is False

    def test_self_subscription_is_400(self, client, alice):
        response = client.post(f"/api/subscriptions/{alice.id}", headers=as_user(alice))
        assert response.status_code == 400
        assert response.get_json() == {"error": "You cannot subscribe to yourself"}


class TestComments:

    def test_comment_feed(self, client, video, bob):
        for i in range(25):
            response = client.post(
                f"/api/videos/{video.id}/comments",
                json={"content": f"comment {i}"},
                headers=as_user(bob),
            )
            assert response.status_code == 201

        first = client.get(f"/api/videos/{video.id}/comments").get_json()
        last = client.get(f"/api/videos/{video.id}/comments?page=3&limit=10").get_json()
        past = client.get(f"/api/videos/{video.id}/comments?page=4").get_json()

        assert len(first["items"]) == 10
        assert first["total"] == 25
        assert first["total_pages"] == 3
        assert first["items"][0]["owner"] == {"username": "bob", "avatar": None}
        assert len(last["items"]) == 5
        assert past["items"] == []

    def test_edit_and_delete(self, client, video, alice, bob):
        comment = client.post(
            f"/api/videos/{video.id}/comments", json={"content": "hi"}, headers=as_user(bob)
        ).get_json()

        forbidden = client.patch(f"/api/comments/{comment['id']}", json={"content": "x"}, headers=as_user(alice))
        edited = client.patch(f"/api/comments/{comment['id']}", json={"content": "edited"}, headers=as_user(bob))
        deleted = client.delete(f"/api/comments/{comment['id']}", headers=as_user(bob))

        assert forbidden.status_code == 403
        assert edited.get_json()["content"] == "edited"
        assert deleted.get_json() == {"success": True}

    def test_empty_comment_is_400(self, client, video, bob):
        response = client.post(f"/api/videos/{video.id}/comments", json={"content": " "}, headers=as_user(bob))
        assert response.status_code == 400


class TestVideos:

    def upload(self, client, user, **fields):
        data = {
            "title": "My video",
            "description": "About things",
            "duration": "3.5",
            "videoFile": (io.BytesIO(b"video"), "clip.mp4"),
            "thumbnail": (io.BytesIO(b"image"), "thumb.png"),
        }
        data.update(fields)
        return client.post("/api/videos", data=data, headers=as_user(user), content_type="multipart/form-data")

    def test_publish_and_fetch(self, client, alice, bob, blob_dir):
        response = self.upload(client, alice)
        assert response.status_code == 201
        video = response.get_json()
        assert video["duration"] == 3.5
        assert (blob_dir / video["video_file"]["handle"]).exists()

        fetched = client.get(f"/api/videos/{video['id']}", headers=as_user(bob)).get_json()
        assert fetched["views"] == 1

        history = client.get("/api/users/history", headers=as_user(bob)).get_json()
        assert [v["id"] for v in history] == [video["id"]]

    def test_publish_requires_files(self, client, alice):
        response = client.post(
            "/api/videos",
            data={"title": "t", "description": "d"},
            headers=as_user(alice),
            content_type="multipart/form-data",
        )
        assert response.status_code == 400

    def test_invalid_duration(self, client, alice):
        assert self.upload(client, alice, duration="long").status_code == 400

    def test_list_and_search(self, client, alice):
        self.upload(client, alice, title="Python tips")
        self.upload(client, alice, title="Cooking")

        result = client.get("/api/videos?query=python").get_json()

        assert [v["title"] for v in result["items"]] == ["Python tips"]
        assert result["items"][0]["owner"]["username"] == "alice"

    def test_draft_visibility(self, client, alice, bob):
        video = self.upload(client, alice).get_json()

        toggled = client.patch(f"/api/videos/toggle/publish/{video['id']}", headers=as_user(alice))
        assert toggled.get_json()["is_published"] is False

        assert client.get(f"/api/videos/{video['id']}", headers=as_user(bob)).status_code == 404
        assert client.get(f"/api/videos/{video['id']}", headers=as_user(alice)).status_code == 200
        assert client.get("/api/videos").get_json()["total"] == 0

    def test_update_and_delete(self, client, alice, bob, blob_dir):
        video = self.upload(client, alice).get_json()

        forbidden = client.patch(f"/api/videos/{video['id']}", json={"title": "x"}, headers=as_user(bob))
        updated = client.patch(f"/api/videos/{video['id']}", json={"title": "Renamed"}, headers=as_user(alice))
        deleted = client.delete(f"/api/videos/{video['id']}", headers=as_user(alice))

        assert forbidden.status_code == 403
        assert updated.get_json()["title"] == "Renamed"
        assert deleted.status_code == 200
        assert list(blob_dir.iterdir()) == []


class TestUsersAndDashboard:

    def test_create_user(self, client):
        response = client.post("/api/users", json={"username": "Dana", "fullname": "Dana D"})
        assert response.status_code == 201
        assert response.get_json()["username"] == "dana"
        assert "avatar_handle" not in response.get_json()

        duplicate = client.post("/api/users", json={"username": "dana"})
        assert duplicate.status_code == 409

    def test_current_and_account(self, client, alice):
        assert client.get("/api/users/current", headers=as_user(alice)).get_json()["username"] == "alice"

        response = client.patch(
            "/api/users/account",
            json={"fullname": "Alice A", "email": "a@example.com"},
            headers=as_user(alice),
        )
        assert response.get_json()["email"] == "a@example.com"

    def test_avatar_upload(self, client, alice, blob_dir):
        response = client.patch(
            "/api/users/avatar",
            data={"avatar": (io.BytesIO(b"img"), "me.png")},
            headers=as_user(alice),
            content_type="multipart/form-data",
        )
        assert response.status_code == 200
        assert response.get_json()["avatar"].endswith(".png")
        assert len(list(blob_dir.iterdir())) == 1

    def test_unknown_channel_is_404(self, client):
        response = client.get("/api/users/c/nobody")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Channel not found"}

    def test_dashboard_zero_state(self, client, bob):
        stats = client.get("/api/dashboard/stats", headers=as_user(bob)).get_json()
        videos = client.get("/api/dashboard/videos", headers=as_user(bob)).get_json()

        assert stats == {"total_subscribers": 0, "total_videos": 0, "total_views": 0, "total_likes": 0}
        assert videos["items"] == [] and videos["total"] == 0

    def test_tweets(self, client, alice):
        created = client.post("/api/tweets", json={"content": "hello"}, headers=as_user(alice))
        assert created.status_code == 201

        feed = client.get(f"/api/tweets/user/{alice.id}").get_json()
        assert [t["content"] for t in feed["items"]] == ["hello"]
        assert feed["items"][0]["owner"]["username"] == "alice"
