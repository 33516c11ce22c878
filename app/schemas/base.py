"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that use `from_attributes=True` MUST inherit from BaseResponseSchema.
"""

from datetime import datetime
from typing import ClassVar, FrozenSet, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, model_validator


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class BrandResponse(BaseResponseSchema):
            id: UUID
            name: str
            image: Optional[str] = None
    """
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            UUID: str,
            datetime: lambda v: v.isoformat() if v else None,
        },
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Unknown keys sent by older clients are ignored.
    """
    model_config = ConfigDict(
        extra='ignore',
    )


class BaseUpdateSchema(BaseModel):
    """
    Base class for partial updates; every field is optional.

    Fields named in ``required_fields`` back NOT NULL columns: they may be
    left out of the payload, but an explicit ``null`` is rejected.
    """
    model_config = ConfigDict(
        extra='ignore',
    )

    required_fields: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_required(self):
        cleared = sorted(
            name for name in self.model_fields_set
            if name in self.required_fields and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class LookupItem(BaseResponseSchema):
    """Dropdown entry."""
    id: UUID
    name: str


class MessageResponse(BaseModel):
    message: str


OptionalUUID = Optional[UUID]
