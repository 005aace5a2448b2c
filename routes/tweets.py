"""
Tweet routes.
"""

from flask import jsonify

from engagement import service, views
from models import parse_id
from . import tweets_bp
from .helpers import current_actor, dump, get_repo, json_body, pagination_args


@tweets_bp.route("/api/tweets", methods=["POST"])
def create_tweet():
    actor_id = current_actor()
    tweet = service.create_tweet(get_repo(), actor_id, json_body().get("content"))
    return jsonify(dump(tweet)), 201


@tweets_bp.route("/api/tweets/user/<user_id>")
def list_user_tweets(user_id):
    """Paginated tweets of one user, newest first."""
    page = views.user_tweets(get_repo(), parse_id(user_id, "user id"), pagination_args())
    return jsonify(page.model_dump(mode="json"))


@tweets_bp.route("/api/tweets/<tweet_id>", methods=["PATCH"])
def update_tweet(tweet_id):
    actor_id = current_actor()
    tweet = service.update_tweet(get_repo(), actor_id, parse_id(tweet_id, "tweet id"), json_body().get("content"))
    return jsonify(dump(tweet))


@tweets_bp.route("/api/tweets/<tweet_id>", methods=["DELETE"])
def delete_tweet(tweet_id):
    service.delete_tweet(get_repo(), current_actor(), parse_id(tweet_id, "tweet id"))
    return jsonify({"success": True})
