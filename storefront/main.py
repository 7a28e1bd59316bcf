# storefront/main.py

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.core.config import get_settings
from storefront.core.exceptions import BaseServiceError
from storefront.core.logging_config import configure_logging
from storefront.database import Database
from storefront.routes import auth, health, inventory, orders, products, store

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "auth_required",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    # Tests may install an already-open handle before startup
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database.from_settings(settings).open()
        app.state.database = database
        if settings.CREATE_TABLES_ON_STARTUP:
            await database.create_all()
            logger.info("Database tables created")
    logger.info("Storefront API starting (%s)", settings.ENVIRONMENT)

    try:
        yield  # This is where the app runs
    finally:
        if owns_database:
            await database.close()
            app.state.database = None
        logger.info("Storefront API stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.STORE_NAME} API",
        description="Orders and inventory for a small storefront",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add middleware to handle HTTPS behind proxy
    @app.middleware("http")
    async def proxy_headers_middleware(request: Request, call_next):
        forwarded_proto = request.headers.get("x-forwarded-proto")
        if forwarded_proto == "https":
            request.scope["scheme"] = "https"
        return await call_next(request)

    @app.exception_handler(BaseServiceError)
    async def service_error_handler(request: Request, exc: BaseServiceError):
        content = {"ok": False, "error": exc.code, "detail": exc.message}
        product_id = getattr(exc, "product_id", None)
        if product_id is not None:
            content["product_id"] = product_id
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "http_error")
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": code, "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "validation_error", "detail": errors},
        )

    app.include_router(health.router)  # Health check should be accessible without auth
    app.include_router(store.router)
    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(inventory.router)
    app.include_router(orders.router)

    if settings.FRONTEND_DIR:
        frontend_dir = Path(settings.FRONTEND_DIR).expanduser()
        if frontend_dir.is_dir():
            app.mount("/app", StaticFiles(directory=str(frontend_dir), html=True), name="frontend")
        else:
            logger.warning("FRONTEND_DIR %s does not exist; not serving the frontend", frontend_dir)

    return app


app = create_app()
