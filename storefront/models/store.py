# storefront/models/store.py
from sqlalchemy import Column, DateTime, String, func

from storefront.database import Base
from .types import JSONType, utcnow

DEFAULT_STORE_ID = "default"


class Store(Base):
    """Single-row store configuration. settings holds the owner password hash and payment handles."""
    __tablename__ = "stores"

    id = Column(String, primary_key=True, default=DEFAULT_STORE_ID)
    name = Column(String, nullable=True)
    settings = Column(JSONType, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)
