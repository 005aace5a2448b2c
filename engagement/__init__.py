"""
Engagement core - toggles, derived views and entity use cases.

Everything here works against a Repository and, for media, a BlobStore.
"""

from .blobs import BlobStore, LocalBlobStore
from .toggle import toggle, toggle_like, toggle_subscription, parse_subject_type
from . import service
from . import views

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "toggle",
    "toggle_like",
    "toggle_subscription",
    "parse_subject_type",
    "service",
    "views",
]
