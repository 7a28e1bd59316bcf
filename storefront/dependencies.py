from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import Settings, get_settings
from storefront.database import Database
from storefront.services.inventory_service import InventoryService
from storefront.services.order_service import OrderQueryService, OrderService
from storefront.services.product_service import ProductService
from storefront.services.store_service import StoreService


def get_database(request: Request) -> Database:
    """The Database handle opened in the application lifespan."""
    return request.app.state.database


async def get_db(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_order_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(
        database,
        timeout=settings.ORDER_TIMEOUT_SECONDS,
        lock_timeout_ms=settings.LOCK_TIMEOUT_MS,
        default_currency=settings.DEFAULT_CURRENCY,
    )


def get_inventory_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> InventoryService:
    return InventoryService(database, lock_timeout_ms=settings.LOCK_TIMEOUT_MS)


def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_order_query_service(db: AsyncSession = Depends(get_db)) -> OrderQueryService:
    return OrderQueryService(db)


def get_store_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> StoreService:
    return StoreService(db, settings)
