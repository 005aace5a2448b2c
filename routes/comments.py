"""
Comment routes.
"""

from flask import jsonify

from engagement import service, views
from models import parse_id
from . import comments_bp
from .helpers import current_actor, dump, get_repo, json_body, pagination_args


@comments_bp.route("/api/videos/<video_id>/comments")
def list_comments(video_id):
    """Paginated comments on a video, newest first."""
    page = views.video_comments(get_repo(), parse_id(video_id, "video id"), pagination_args())
    return jsonify(page.model_dump(mode="json"))


@comments_bp.route("/api/videos/<video_id>/comments", methods=["POST"])
def add_comment(video_id):
    actor_id = current_actor()
    data = json_body()
    comment = service.add_comment(get_repo(), actor_id, parse_id(video_id, "video id"), data.get("content"))
    return jsonify(dump(comment)), 201


@comments_bp.route("/api/comments/<comment_id>", methods=["PATCH"])
def update_comment(comment_id):
    actor_id = current_actor()
    data = json_body()
    comment = service.update_comment(get_repo(), actor_id, parse_id(comment_id, "comment id"), data.get("content"))
    return jsonify(dump(comment))


@comments_bp.route("/api/comments/<comment_id>", methods=["DELETE"])
def delete_comment(comment_id):
    service.delete_comment(get_repo(), current_actor(), parse_id(comment_id, "comment id"))
    return jsonify({"success": True})
