"""
Flask blueprints for the engagement API.
"""

from flask import Blueprint

# Create blueprints
likes_bp = Blueprint('likes', __name__)
subscriptions_bp = Blueprint('subscriptions', __name__)
videos_bp = Blueprint('videos', __name__)
comments_bp = Blueprint('comments', __name__)
tweets_bp = Blueprint('tweets', __name__)
users_bp = Blueprint('users', __name__)
dashboard_bp = Blueprint('dashboard', __name__)

ALL_BLUEPRINTS = [
    likes_bp,
    subscriptions_bp,
    videos_bp,
    comments_bp,
    tweets_bp,
    users_bp,
    dashboard_bp,
]

# Import routes to register them
from . import likes
from . import subscriptions
from . import videos
from . import comments
from . import tweets
from . import users
from . import dashboard
