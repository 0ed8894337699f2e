"""
Yeoyeo listings API - main application.

Serves the listings spreadsheet through a fault-tolerant CSV proxy and the
listing board search built on top of it.
"""
import asyncio
import logging
import sys
from contextlib import asynccontextmanager, suppress

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listings.history import JsonFileStorage, SearchHistory
from listings.source import ListingBoard, ListingSource

from .cache import CsvCache
from .config import config
from .proxy import SheetsProxy, build_api_reader
from .routes import backup_router, history_router, listings_router, sheets_router

# Configure logging
_handlers = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    _handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers
)

logger = logging.getLogger(__name__)

IN_PROCESS_BASE_URL = "http://yeoyeo.internal"

def build_listing_source(app: FastAPI, client: httpx.AsyncClient) -> ListingSource:
    """Read listings from a configured proxy URL, or from this app in-process."""
    if config.LISTINGS_SOURCE_URL:
        return ListingSource(
            config.LISTINGS_SOURCE_URL,
            config.LISTINGS_BACKUP_URL or config.LISTINGS_SOURCE_URL.replace(
                "/api/sheets", "/data/listings-backup.json"
            ),
            client=client
        )

    local_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=IN_PROCESS_BASE_URL,
        timeout=config.HTTP_TIMEOUT
    )
    return ListingSource("/api/sheets", "/data/listings-backup.json", client=local_client)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Yeoyeo listings API...")
    config.validate()

    client = httpx.AsyncClient(timeout=config.HTTP_TIMEOUT)
    app.state.proxy = SheetsProxy(
        cache=CsvCache(ttl_seconds=config.CACHE_TTL_SECONDS),
        client=client,
        export_url=config.export_url(),
        backup_path=config.BACKUP_JSON_PATH,
        api_reader=build_api_reader(config, client),
        retry_attempts=config.EXPORT_RETRY_ATTEMPTS,
        retry_max_wait=config.EXPORT_RETRY_MAX_WAIT,
        user_agent=config.USER_AGENT
    )
    source = build_listing_source(app, client)
    app.state.board = ListingBoard(source)
    app.state.history = SearchHistory(JsonFileStorage(config.SEARCH_HISTORY_PATH))

    refresh_task = asyncio.create_task(app.state.board.run_forever(config.REFRESH_INTERVAL_SECONDS))
    logger.info(f"Sheet export: {config.export_url()}")
    logger.info("API startup complete")
    try:
        yield
    finally:
        # Shutdown
        logger.info("Shutting down Yeoyeo listings API...")
        refresh_task.cancel()
        with suppress(asyncio.CancelledError):
            await refresh_task
        if source.client is not client:
            await source.client.aclose()
        await client.aclose()

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
    expose_headers=["X-Data-Source"],
)

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    board = getattr(app.state, "board", None)
    return {
        "status": "healthy",
        "version": config.API_VERSION,
        "listings": len(board.listings) if board is not None else 0,
        "refreshed_at": board.refreshed_at if board is not None else None
    }

# Include routers
app.include_router(sheets_router)
app.include_router(backup_router)
app.include_router(listings_router)
app.include_router(history_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )
