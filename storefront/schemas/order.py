"""
Schemas for order placement and order administration.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from storefront.core.enums import OrderStatus
from .base import BaseSchema, PatchSchema


class CartItem(BaseModel):
    """A single cart entry. Accepts the id/qty spellings older clients send."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    product_id: str = Field(min_length=1, validation_alias=AliasChoices("product_id", "id"))
    quantity: StrictInt = Field(gt=0, validation_alias=AliasChoices("quantity", "qty"))


class OrderMetadata(BaseModel):
    """Customer and payment details stored with the order as submitted."""
    model_config = ConfigDict(extra="allow")

    payment_type: Optional[str] = None
    payment_ref: Optional[str] = None
    customer_name: Optional[str] = None
    currency: Optional[str] = None
    subtotal: Optional[Decimal] = None
    customer: Optional[Dict[str, Any]] = None


class OrderCreate(OrderMetadata):
    # Validated by the order engine; a bad cart is an invalid_cart error
    cart: Any = None

    def metadata(self) -> OrderMetadata:
        return OrderMetadata.model_validate(self.model_dump(exclude={"cart"}))


class OrderPlaced(BaseModel):
    order_id: str
    status: OrderStatus
    total: Decimal


class OrderLineRead(BaseSchema):
    id: int
    product_id: str
    qty: int
    unit_price: Decimal
    meta: Optional[Dict[str, Any]] = None


class OrderRead(BaseSchema):
    id: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    payment_type: Optional[str] = None
    payment_ref: Optional[str] = None
    customer_name: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    items: List[OrderLineRead] = Field(default_factory=list, validation_alias=AliasChoices("lines", "items"))


class OrderUpdate(PatchSchema):
    status: Optional[OrderStatus] = None
    payment_ref: Optional[str] = None
    customer_name: Optional[str] = None
