"""
User routes - channel profiles, account details and watch history.
"""

from flask import jsonify

from engagement import service, views
from . import users_bp
from .helpers import current_actor, get_blobs, get_repo, json_body, public_user, uploaded_file


@users_bp.route("/api/users", methods=["POST"])
def create_user():
    """Register the public profile for an account."""
    data = json_body()
    user = service.create_user(
        get_repo(),
        username=data.get("username"),
        fullname=data.get("fullname", ""),
        email=data.get("email", ""),
    )
    return jsonify(public_user(user)), 201


@users_bp.route("/api/users/current")
def current_user():
    user = get_repo().users.require(current_actor(), "User")
    return jsonify(public_user(user))


@users_bp.route("/api/users/account", methods=["PATCH"])
def update_account():
    actor_id = current_actor()
    data = json_body()
    user = service.update_account(get_repo(), actor_id, data.get("fullname"), data.get("email"))
    return jsonify(public_user(user))


@users_bp.route("/api/users/avatar", methods=["PATCH"])
def update_avatar():
    actor_id = current_actor()
    with uploaded_file("avatar") as path:
        user = service.update_avatar(get_repo(), get_blobs(), actor_id, path)
    return jsonify(public_user(user))


@users_bp.route("/api/users/cover-image", methods=["PATCH"])
def update_cover_image():
    actor_id = current_actor()
    with uploaded_file("coverImage") as path:
        user = service.update_cover_image(get_repo(), get_blobs(), actor_id, path)
    return jsonify(public_user(user))


@users_bp.route("/api/users/c/<username>")
def channel_profile(username):
    """Channel profile with subscriber counters relative to the caller."""
    profile = views.channel_profile(get_repo(), username, viewer_id=current_actor(required=False))
    return jsonify(profile.model_dump(mode="json"))


@users_bp.route("/api/users/history")
def watch_history():
    return jsonify(views.watch_history(get_repo(), current_actor()))
