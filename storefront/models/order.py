# storefront/models/order.py
import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from ..database import Base
from storefront.core.enums import OrderStatus
from .types import JSONType, utcnow


def new_order_id() -> str:
    return str(uuid.uuid4())


class Order(Base):
    """Order header. Written once by order placement; only status and payment fields change later."""
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=new_order_id)
    payload = Column(JSONType, nullable=False, default=dict)  # cart, subtotal, currency as submitted
    payment_type = Column(String, nullable=True)
    payment_ref = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    status = Column(String, nullable=False, default=OrderStatus.CREATED.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
        lazy="selectin",
    )
    inventory_events = relationship("InventoryEvent", back_populates="order")

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status} lines={len(self.lines or [])}>"


class OrderLine(Base):
    """One cart entry of an order, with the unit price captured at order time."""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_order_items_qty_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    qty = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    meta = Column(JSONType, nullable=True)

    order = relationship("Order", back_populates="lines")
    product = relationship("Product", back_populates="order_lines")

    @property
    def line_total(self):
        return self.unit_price * self.qty

    def __repr__(self) -> str:
        return f"<OrderLine order={self.order_id} product={self.product_id} qty={self.qty} unit_price={self.unit_price}>"
