"""
Entity identifiers.

Ids are 24 lowercase hex characters. They are validated once, where they
enter the system (route parameters, actor header, model load); everything
past that point trusts them.
"""

import re
import secrets
from typing import Annotated

from pydantic import AfterValidator

from errors import ValidationError

ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_id() -> str:
    """Generate a fresh entity id."""
    return secrets.token_hex(12)


def is_valid_id(value) -> bool:
    return isinstance(value, str) and bool(ID_PATTERN.match(value))


def parse_id(value, field: str = "id") -> str:
    """
    Normalize and validate a raw identifier.

    Raises ValidationError for anything that is not a well-formed id.
    """
    if isinstance(value, str):
        value = value.strip().lower()
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {field}")
    return value


def _check_id(value: str) -> str:
    value = value.strip().lower()
    if not ID_PATTERN.match(value):
        raise ValueError("must be a 24 character hex id")
    return value


EntityId = Annotated[str, AfterValidator(_check_id)]
