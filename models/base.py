"""
Base entity classes.
"""

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from .ids import EntityId, new_id


class TimestampMixin(BaseModel):
    """Mixin for created/updated timestamps."""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class BaseEntity(TimestampMixin):
    """
    Base for all persistent entities.

    Ids are generated on creation and validated on load.
    """
    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",  # Ignore unknown fields from older records
        str_strip_whitespace=True,
    )

    id: EntityId = Field(default_factory=new_id)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.now()
