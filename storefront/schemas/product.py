"""
Schemas for product-related API endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator

from .base import BaseSchema, PatchSchema


class ProductBase(BaseSchema):
    """Base model for product data common to all operations"""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)
    image_url: Optional[str] = None

    @field_validator('metadata', mode='before')
    @classmethod
    def validate_metadata(cls, v):
        if v is None:
            return {}
        return v


class ProductCreate(ProductBase):
    # Admin-supplied id; generated from the name when omitted
    id: Optional[str] = Field(default=None, min_length=1)
    stock_qty: int = Field(default=0, ge=0)


class ProductUpdate(PatchSchema):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None
    # Routed to the stock adjustment path, never written directly
    stock_qty: Optional[int] = Field(default=None, ge=0)
    stock_meta: Optional[Dict[str, Any]] = None


class ProductRead(BaseSchema):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    stock_qty: int
    is_active: bool
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("meta", "metadata"))
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
