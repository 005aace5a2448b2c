"""
Video routes - listing, publishing and owner-only edits.

Uploads arrive as multipart form data (videoFile, thumbnail); text fields
may come from the form or a JSON body.
"""

from flask import jsonify, request

from engagement import service, views
from errors import ValidationError
from models import parse_id
from . import videos_bp
from .helpers import (
    current_actor,
    dump,
    form_value,
    get_blobs,
    get_repo,
    pagination_args,
    uploaded_file,
)


@videos_bp.route("/api/videos")
def list_videos():
    """Published videos with optional search, sort and owner filter."""
    owner = request.args.get("user_id")
    page = views.list_videos(
        get_repo(),
        pagination_args(),
        query=request.args.get("query"),
        sort_by=request.args.get("sort_by", "created_at"),
        sort_type=request.args.get("sort_type", "desc"),
        owner_id=parse_id(owner, "user id") if owner else None,
    )
    return jsonify(page.model_dump(mode="json"))


@videos_bp.route("/api/videos", methods=["POST"])
def publish_video():
    """Upload a video with its thumbnail."""
    actor_id = current_actor()
    try:
        duration = float(form_value("duration") or 0)
    except (TypeError, ValueError):
        raise ValidationError("Invalid duration")

    with uploaded_file("videoFile") as video_path, uploaded_file("thumbnail") as thumbnail_path:
        video = service.publish_video(
            get_repo(),
            get_blobs(),
            actor_id,
            title=form_value("title"),
            description=form_value("description"),
            video_path=video_path,
            thumbnail_path=thumbnail_path,
            duration=duration,
        )
    return jsonify(dump(video)), 201


@videos_bp.route("/api/videos/<video_id>")
def get_video(video_id):
    """
    A single video.

    When the caller is identified, the view is counted and the video is
    pushed onto their watch history.
    """
    repo = get_repo()
    video_id = parse_id(video_id, "video id")
    viewer_id = current_actor(required=False)

    video = service.get_video(repo, video_id, viewer_id)
    if viewer_id:
        video = service.record_watch(repo, viewer_id, video_id)
    return jsonify(dump(video))


@videos_bp.route("/api/videos/<video_id>", methods=["PATCH"])
def update_video(video_id):
    actor_id = current_actor()
    with uploaded_file("thumbnail", required=False) as thumbnail_path:
        video = service.update_video(
            get_repo(),
            get_blobs(),
            actor_id,
            parse_id(video_id, "video id"),
            title=form_value("title"),
            description=form_value("description"),
            thumbnail_path=thumbnail_path,
        )
    return jsonify(dump(video))


@videos_bp.route("/api/videos/<video_id>", methods=["DELETE"])
def delete_video(video_id):
    service.delete_video(get_repo(), get_blobs(), current_actor(), parse_id(video_id, "video id"))
    return jsonify({"success": True})


@videos_bp.route("/api/videos/toggle/publish/<video_id>", methods=["PATCH"])
def toggle_publish(video_id):
    video = service.toggle_publish_status(get_repo(), current_actor(), parse_id(video_id, "video id"))
    return jsonify({"id": video.id, "is_published": video.is_published})
