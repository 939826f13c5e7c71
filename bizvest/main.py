"""
Bizvest API - Main Application

SECURITY FEATURES:
- Conditional API docs (disabled in production)
- Structured logging without sensitive data
- Production-hardened configuration
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
import logging

from bizvest.api.router import api_router
from bizvest.config import settings
from bizvest.database import init_db
from bizvest.exceptions import register_exception_handlers
from bizvest.middleware import CorrelationIdMiddleware, CorrelationLogFilter, ServerTimingMiddleware
from bizvest.services.ai_gateway import AIGateway
# Import all models to register them with SQLAlchemy metadata before init_db()
from bizvest import models  # noqa: F401

# Configure secure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s/%(request_id)s] %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(CorrelationLogFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Bizvest API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    # SECURITY: Don't log full database URL, just prefix
    if settings.DATABASE_URL:
        logger.info(f"Database URL prefix: {settings.DATABASE_URL[:30]}...")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # SECURITY: Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - some features may not work")

    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.state.ai_gateway = AIGateway()
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set - AI endpoints will fail")
    yield
    # Shutdown
    await app.state.ai_gateway.close()
    logger.info("Shutting down Bizvest API...")


# SECURITY: Conditionally enable docs based on settings
docs_url = "/docs" if settings.DOCS_ENABLED else None
redoc_url = "/redoc" if settings.DOCS_ENABLED else None

app = FastAPI(
    title="Bizvest API",
    description="Small-business investment marketplace",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Starlette runs the last-added middleware first
app.add_middleware(ServerTimingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# SECURITY: Restrict origins to known frontend URLs
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router)

# Uploaded legal documents
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bizvest.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.DEBUG,
    )
