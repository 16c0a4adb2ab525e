"""Record schemas for request/response validation."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Record(BaseModel):
    """A catalog record: stable ID plus attribute values."""

    id: str
    data: dict[str, Any] = Field(default_factory=dict)


class RecordCreate(BaseModel):
    """Schema for submitting a new record from the creation form."""

    data: dict[str, Any] = Field(..., description="Raw attribute values")


class RecordResponse(BaseModel):
    """Schema for a created or previewed record."""

    id: Optional[str] = None
    data: dict[str, Any]
    derived: dict[str, Optional[float]] = Field(
        default_factory=dict, description="Derived attributes; null where a formula failed"
    )
