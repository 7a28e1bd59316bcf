"""
Catalog model.

A product row carries the live stock level. Stock only changes together with
an InventoryEvent written in the same transaction, so the ledger always
reconciles with stock_qty.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from ..database import Base
from .types import JSONType, utcnow


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_qty >= 0", name="ck_products_stock_qty_non_negative"),
    )

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    stock_qty = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSONType, nullable=False, default=dict)
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Historical order lines block deletion at the database level (ON DELETE RESTRICT)
    order_lines = relationship("OrderLine", back_populates="product", passive_deletes="all")
    # Ledger rows outlive the product: no foreign key and no delete cascade
    inventory_events = relationship(
        "InventoryEvent",
        primaryjoin="Product.id == foreign(InventoryEvent.product_id)",
        back_populates="product",
        passive_deletes="all",
        order_by="InventoryEvent.id",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock_qty={self.stock_qty} price={self.price}>"
