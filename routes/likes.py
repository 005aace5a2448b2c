"""
Like routes - toggle likes and list them.
"""

from flask import jsonify

from engagement import parse_subject_type, toggle_like, views
from models import parse_id
from . import likes_bp
from .helpers import current_actor, get_repo


@likes_bp.route("/api/likes/<subject_type>/<subject_id>", methods=["POST"])
def toggle_subject_like(subject_type, subject_id):
    """Like or unlike a video, comment or tweet."""
    actor_id = current_actor()
    kind = parse_subject_type(subject_type)
    result = toggle_like(get_repo(), kind, parse_id(subject_id, f"{kind.value} id"), actor_id)
    return jsonify({"state": result.state.value, "liked": result.present})


@likes_bp.route("/api/likes/<subject_type>/<subject_id>")
def list_subject_likes(subject_type, subject_id):
    """Who liked a subject."""
    kind = parse_subject_type(subject_type)
    likes = views.subject_likes(get_repo(), kind, parse_id(subject_id, f"{kind.value} id"))
    return jsonify(likes)


@likes_bp.route("/api/likes/videos")
def list_liked_videos():
    """Videos the caller liked, latest first."""
    return jsonify(views.liked_videos(get_repo(), current_actor()))
