"""
Schemas for store settings and admin authentication.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from storefront.core.security import MIN_PASSWORD_LENGTH
from .base import BaseSchema, PatchSchema


class StoreRead(BaseSchema):
    id: str
    name: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class StoreSettingsUpdate(PatchSchema):
    store_name: Optional[str] = None
    cash_app_handle: Optional[str] = None
    venmo_handle: Optional[str] = None
    pickup_instructions: Optional[str] = None
    hide_when_zero: Optional[bool] = None
    owner_pass: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH)


class LoginRequest(BaseModel):
    password: Optional[str] = None


class PasswordChange(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    current_password: Optional[str] = None
