import logging

from fastapi import APIRouter, Depends
from sqlalchemy import inspect

from storefront.core.config import Settings, get_settings
from storefront.database import Database
from storefront.dependencies import get_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/")
async def root(settings: Settings = Depends(get_settings)):
    return {"ok": True, "service": settings.STORE_NAME, "status": "up"}


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Basic health check"""
    return {"status": "healthy", "service": settings.STORE_NAME}


@router.get("/health/db")
async def database_health(database: Database = Depends(get_database)):
    """Check database connectivity and tables"""
    try:
        await database.ping()
        async with database.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: sorted(inspect(sync_conn).get_table_names()))

        return {
            "status": "healthy",
            "database": "connected",
            "dialect": database.engine.dialect.name,
            "tables_count": len(tables),
            "tables": tables,
        }
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return {
            "status": "unhealthy",
            "database": "error",
            "error": str(e),
        }
