"""
Dashboard routes - the caller's own channel.
"""

from flask import jsonify

from engagement import views
from . import dashboard_bp
from .helpers import current_actor, get_repo, pagination_args


@dashboard_bp.route("/api/dashboard/stats")
def channel_stats():
    """Subscriber, video, view and like totals."""
    stats = views.channel_stats(get_repo(), current_actor())
    return jsonify(stats.model_dump(mode="json"))


@dashboard_bp.route("/api/dashboard/videos")
def channel_videos():
    """All of the caller's videos, drafts included."""
    page = views.channel_videos(get_repo(), current_actor(), pagination_args())
    return jsonify(page.model_dump(mode="json"))
