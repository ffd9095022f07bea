"""
Base schemas and mixins for all models.
"""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )

    def to_document(self) -> dict:
        """Serialize to the JSON-safe dict stored in the document store."""
        return self.model_dump(mode="json")


class TimestampMixin(BaseModel):
    """Add timestamps to stored documents."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
