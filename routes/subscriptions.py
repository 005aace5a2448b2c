"""
Subscription routes.
"""

from flask import jsonify

from engagement import toggle_subscription, views
from models import parse_id
from . import subscriptions_bp
from .helpers import current_actor, get_repo


@subscriptions_bp.route("/api/subscriptions/<channel_id>", methods=["POST"])
def toggle_channel_subscription(channel_id):
    """Subscribe to or unsubscribe from a channel."""
    actor_id = current_actor()
    result = toggle_subscription(get_repo(), parse_id(channel_id, "channel id"), actor_id)
    return jsonify({"state": result.state.value, "subscribed": result.present})


@subscriptions_bp.route("/api/subscriptions/<channel_id>/subscribers")
def list_channel_subscribers(channel_id):
    subscribers = views.channel_subscribers(get_repo(), parse_id(channel_id, "channel id"))
    return jsonify(subscribers)


@subscriptions_bp.route("/api/subscriptions/users/<subscriber_id>")
def list_subscribed_channels(subscriber_id):
    channels = views.subscribed_channels(get_repo(), parse_id(subscriber_id, "subscriber id"))
    return jsonify(channels)
