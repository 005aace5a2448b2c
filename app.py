#!/usr/bin/env python3
"""
Engagement Graph API

Flask app exposing likes, subscriptions, feeds and channel views.
"""

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import STORE_BACKEND, configure_logging
from engagement import BlobStore, LocalBlobStore
from errors import EngagementError
from repositories import Repository, get_repository
from routes import ALL_BLUEPRINTS
from routes.helpers import BLOB_STORE_KEY, REPOSITORY_KEY

logger = logging.getLogger(__name__)


def create_app(repository: Repository = None, blob_store: BlobStore = None) -> Flask:
    """
    Build the Flask app.

    Without arguments the repository comes from STORE_BACKEND and blobs
    go to a LocalBlobStore under BLOB_DIR.
    """
    app = Flask(__name__)

    app.extensions[REPOSITORY_KEY] = repository or get_repository()
    app.extensions[BLOB_STORE_KEY] = blob_store or LocalBlobStore()

    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.errorhandler(EngagementError)
    def handle_engagement_error(e):
        if e.status_code >= 500:
            logger.warning("%s: %s", e.__class__.__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    @app.route("/")
    def index():
        return jsonify({"service": "engagement-graph", "status": "ok"})

    return app


app = create_app()


if __name__ == "__main__":
    configure_logging()
    print("\n" + "="*60)
    print("  Engagement Graph API")
    print("="*60)
    print(f"  Store backend: {STORE_BACKEND}")
    print("  Listening on http://localhost:5001")
    print("="*60 + "\n")
    app.run(debug=True, port=5001)
