"""
FastAPI application entry point for the CookBook backend.

This module initializes the FastAPI app with middleware, CORS, logging,
static image serving, and registers all API routers.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session

from cookbook import __version__
from cookbook.config import settings
from cookbook.database import get_db, init_db
from cookbook.dependencies import limiter
from cookbook.logger import setup_logging
from cookbook.routers import auth, recipes, screens, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    setup_logging()
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI app
app = FastAPI(
    title="CookBook API",
    description="API for sharing recipes and keeping favorites",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(recipes.router, prefix="/api/recipes", tags=["recipes"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(screens.router, prefix="/api/screens", tags=["screens"])

# Uploaded recipe images
storage_dir = Path(settings.STORAGE_DIR)
storage_dir.mkdir(parents=True, exist_ok=True)
app.mount("/storage", StaticFiles(directory=str(storage_dir)), name="storage")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "details": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint for health check."""
    return {"message": "CookBook API", "status": "running"}


@app.get("/health")
async def health(db: Session = Depends(get_db)):
    """Health check endpoint, including a database round trip."""
    db.execute(text("SELECT 1"))
    return {"status": "healthy", "database": "ok", "version": __version__}


def main():
    import uvicorn

    uvicorn.run("cookbook.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
