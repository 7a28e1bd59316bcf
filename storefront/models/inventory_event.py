# storefront/models/inventory_event.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from storefront.database import Base
from .types import JSONType, utcnow


class InventoryEvent(Base):
    """
    Append-only stock ledger entry, kept after its product is deleted.
    For any product, stock_qty == sum(delta) over its events.
    """
    __tablename__ = "inventory_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String, nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    reason = Column(String, nullable=False, index=True)  # sale, manual_adjust, initial, set, delete
    order_id = Column(String, ForeignKey("orders.id"), nullable=True, index=True)
    meta = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    product = relationship(
        "Product",
        primaryjoin="Product.id == foreign(InventoryEvent.product_id)",
        back_populates="inventory_events",
    )
    order = relationship("Order", back_populates="inventory_events")

    def __repr__(self):
        return (f"<InventoryEvent(id={self.id}, product_id='{self.product_id}', delta={self.delta}, "
                f"reason='{self.reason}', order_id={self.order_id})>")
