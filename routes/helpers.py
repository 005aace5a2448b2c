"""
Shared helpers for the engagement routes.
"""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from flask import current_app, request
from werkzeug.utils import secure_filename

from engagement import BlobStore
from errors import AuthenticationRequired, ValidationError
from models import parse_id
from pipeline import Pagination
from repositories import Repository

ACTOR_HEADER = "X-Actor-Id"

REPOSITORY_KEY = "engagement.repository"
BLOB_STORE_KEY = "engagement.blobs"


def get_repo() -> Repository:
    return current_app.extensions[REPOSITORY_KEY]


def get_blobs() -> BlobStore:
    return current_app.extensions[BLOB_STORE_KEY]


def current_actor(required: bool = True) -> Optional[str]:
    """
    Actor id from the identity header.

    The identity provider has already authenticated the caller; we only
    check the id is well formed.
    """
    raw = request.headers.get(ACTOR_HEADER, "").strip()
    if not raw:
        if required:
            raise AuthenticationRequired("Unauthorized request")
        return None
    return parse_id(raw, "actor id")


def pagination_args() -> Pagination:
    return Pagination.from_params(request.args.get("page"), request.args.get("limit"))


def json_body() -> dict:
    """Request JSON as a dict. Missing or non-object bodies become {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def form_value(name: str) -> Optional[str]:
    """Look a field up in the form first, then in the JSON body."""
    if name in request.form:
        return request.form[name]
    return json_body().get(name)


@contextmanager
def uploaded_file(field: str, required: bool = True) -> Iterator[Optional[Path]]:
    """
    Save a multipart upload to a temp file for the blob store.

    The temp file is removed on exit if the blob store has not already
    consumed it.
    """
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        if required:
            raise ValidationError(f"{field} is required")
        yield None
        return

    suffix = Path(secure_filename(storage.filename)).suffix
    fd, name = tempfile.mkstemp(prefix="upload-", suffix=suffix)
    os.close(fd)
    path = Path(name)
    try:
        storage.save(path)
        yield path
    finally:
        path.unlink(missing_ok=True)


def dump(model) -> dict:
    """JSON-safe dict for a pydantic record."""
    return model.model_dump(mode="json")


def public_user(user) -> dict:
    """A user without blob store bookkeeping."""
    return user.model_dump(mode="json", exclude={"avatar_handle", "cover_image_handle"})
