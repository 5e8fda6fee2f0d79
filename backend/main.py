"""
E-SERBISYO push notification engine - Main FastAPI Application
"""

import asyncio
import os
import subprocess
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text

from push_engine.api.v1.api import api_router
from push_engine.core.config import settings
from push_engine.core.database import close_db, engine, init_db
from push_engine.core.exceptions import setup_exception_handlers
from push_engine.core.log_config import configure_logging
from push_engine.domains.notifications.channels import PushClients


async def wait_for_database(max_retries: int = 30, retry_delay: int = 2):
    """Wait for database to be ready"""
    logger.info("Waiting for database to be ready...")

    for attempt in range(max_retries):
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database is ready!")
            return True
        except Exception as e:
            logger.warning(f"Database not ready (attempt {attempt + 1}/{max_retries}): {e}")
            if attempt < max_retries - 1:
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Database failed to become ready after maximum retries")
                return False

    return False


def _should_skip_migrations() -> bool:
    """Check the RUN_MIGRATIONS flag to determine if migrations should be skipped."""
    value = os.getenv("RUN_MIGRATIONS", "true").strip().lower()
    return value in {"0", "false", "off", "no"}


async def apply_migrations() -> bool:
    """Apply database migrations"""
    if _should_skip_migrations():
        logger.warning("RUN_MIGRATIONS flag disabled, skipping alembic upgrade.")
        return True

    logger.info("Applying database migrations...")
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=str(Path(__file__).resolve().parent),
        check=False,
    )

    if result.returncode == 0:
        if result.stdout.strip():
            logger.info(f"Alembic output:\n{result.stdout.strip()}")
        logger.info("Database migrations applied successfully.")
        return True

    logger.error(f"Alembic upgrade failed with return code {result.returncode}")
    if result.stderr.strip():
        logger.error(f"Alembic stderr:\n{result.stderr.strip()}")
    return False


configure_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Push notification delivery for the E-SERBISYO community app",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
)

# Setup CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup exception handlers
setup_exception_handlers(app)

# Include API routers
app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    logger.info(f"Starting {settings.APP_NAME}...")

    db_ready = await wait_for_database()
    if not db_ready:
        logger.error("Database is not ready; aborting startup.")
        raise RuntimeError("Database connection failed during startup")

    migrations_ok = await apply_migrations()
    if not migrations_ok:
        logger.error("Database migrations failed; aborting startup.")
        raise RuntimeError("Database migrations failed during startup")

    await init_db()
    app.state.push_clients = PushClients.from_settings()

    logger.info("Application startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME}...")
    push_clients = getattr(app.state, "push_clients", None)
    if push_clients is not None:
        await push_clients.aclose()
    await close_db()


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "service": "push-engine-api",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
        }
    )


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    logger.info(f"Starting server on port {port} ({settings.ENVIRONMENT})")

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.ENVIRONMENT == "development",
        log_level="info"
    )
