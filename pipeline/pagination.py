"""
Pagination - 1-based page windows over pipeline output.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from errors import ValidationError
from .engine import Pipeline
from .stages import Skip, Limit, Stage


class Pagination(BaseModel):
    """page >= 1, limit >= 1. Limits above MAX_PAGE_LIMIT are clamped, not rejected."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return min(v, MAX_PAGE_LIMIT)

    @classmethod
    def from_params(cls, page: Any = None, limit: Any = None) -> "Pagination":
        """Build from raw (often string) query values. None means default."""
        data = {}
        if page not in (None, ""):
            data["page"] = page
        if limit not in (None, ""):
            data["limit"] = limit
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            field = e.errors()[0]["loc"][0] if e.errors() else "pagination"
            raise ValidationError(f"Invalid {field}") from e

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def stages(self) -> list[Stage]:
        return [Skip(self.skip), Limit(self.limit)]


def paginated(
    pipeline: Pipeline,
    pagination: Pagination,
    item_stages: Optional[Pipeline] = None,
) -> Pipeline:
    """
    Append a facet producing {"items": [...], "total": [{"count": n}]}.

    item_stages run after the window is cut, so joins and projections
    only touch the records on the page.
    """
    items = Pipeline(stages=pagination.stages())
    if item_stages is not None:
        items.extend(item_stages.stages)
    return pipeline.facet({"items": items, "total": Pipeline().count()})


def unpack_page(rows: list[dict]) -> tuple[list[dict], int]:
    """Split the facet bundle produced by paginated()."""
    bundle = rows[0] if rows else {"items": [], "total": []}
    total = bundle["total"][0]["count"] if bundle["total"] else 0
    return bundle["items"], total
