"""
Video Catalog - FastAPI Backend
Main application entry point with health check and API routing.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    videos,
    users,
    library,
    search,
)

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Video Catalog API...")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    if not settings.WEB_SCRAPER_URL:
        print("🔎 WEB_SCRAPER_URL not set; video pages will be fetched directly.")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Video Catalog API",
    description="Ingest, curate and browse long and short videos from external URLs",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {success: false, error: <reason>}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(videos.router, prefix="/videos", tags=["Videos"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(library.router, prefix="/users", tags=["Library"])
app.include_router(search.router, prefix="/search", tags=["Search"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Video Catalog API",
        "version": "0.1.0",
        "status": "running"
    }
