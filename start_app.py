#!/usr/bin/env python
"""Run the storefront API under uvicorn on the port the host assigns."""
import os

import uvicorn

from storefront.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    port = int(os.environ.get("PORT", 8000))

    print(f"Starting {settings.STORE_NAME} API on port {port} ({settings.ENVIRONMENT})")

    uvicorn.run(
        "storefront.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        reload=settings.DEBUG and not settings.is_production,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
    )
