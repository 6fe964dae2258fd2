"""
AutoScrape API - main application.

Serves stored vehicles, scraping sessions, dashboard statistics, extension
settings and Facebook Marketplace descriptions.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import config
from .database import get_db_connection
from .routes import (
    dashboard_router,
    facebook_router,
    scraping_router,
    settings_router,
    vehicles_router,
)

ROUTERS = (vehicles_router, scraping_router, dashboard_router, facebook_router, settings_router)


def _log_handlers():
    handlers = [logging.StreamHandler(sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))
    return handlers


logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_log_handlers()
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the vehicle schema before serving; log shutdown."""
    try:
        config.validate()
    except Exception as e:
        logger.error(f"Could not prepare database {config.DB_PATH}: {e}")
        raise
    logger.info(f">>> AutoScrape API ready, vehicles in {config.DB_PATH}")
    yield
    logger.info(">>> AutoScrape API stopped")


app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    lifespan=lifespan
)

# the browser extension calls from its own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)

for router in ROUTERS:
    app.include_router(router)


@app.exception_handler(Exception)
async def unhandled_error(request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
async def health():
    """Report whether the vehicle database answers."""
    try:
        with get_db_connection() as conn:
            vehicles = conn.execute("SELECT COUNT(*) FROM vehicles").fetchone()[0]
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")

    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "database": "connected",
        "vehicles": vehicles,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, log_level=config.LOG_LEVEL.lower())
