"""
Schema base classes shared by request and response models.
"""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Response models built straight from ORM rows."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PatchSchema(BaseModel):
    """
    Base for PATCH bodies. Every field is optional and only the fields present
    in the request are applied (see ``changes``). Unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
