"""
QnA Education API application.

Startup checks the database, creates the stored admin record and opens
the Redis session pool; shutdown releases storage and Redis clients.
Every service error leaves the API as ``{"message", "error"}``.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.exceptions import AppError
from app.db.database import AsyncSessionLocal, check_db_connection
from app.db.redis import check_redis_connection, get_redis_pool, close_redis_pool
from app.middleware.logging import LoggingMiddleware
from app.services.auth_service import AuthService
from app.storage import get_storage
from app.storage.local import PUBLIC_MOUNT
from app.api.v1.router import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================================
# Lifespan
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} (debug={settings.DEBUG})")

    # Startup problems are logged, not fatal: /health reports them
    try:
        if await check_db_connection():
            logger.info("Database reachable")
        else:
            logger.warning("Database check failed")
        async with AsyncSessionLocal() as db:
            await AuthService(db).ensure_admin_user()
    except Exception as e:
        logger.error(f"Database startup failed: {e}")

    try:
        get_redis_pool()
        if await check_redis_connection():
            logger.info("Session store reachable")
        else:
            logger.warning("Session store check failed; logins will not work")
    except Exception as e:
        logger.error(f"Session store startup failed: {e}")

    yield

    await get_storage().close()
    await close_redis_pool()
    logger.info(f"{settings.PROJECT_NAME} stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Questions and answers by class, with moderated resources and books.",
    version=API_VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Credentialed requests cannot use a "*" origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

if settings.DEBUG:
    app.add_middleware(LoggingMiddleware)


# ============================================================
# Health
# ============================================================
@app.get("/", tags=["Health"])
async def root():
    return {
        "name": settings.PROJECT_NAME,
        "version": API_VERSION,
        "status": "running",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Database and session store reachability."""
    try:
        checks = {
            "database": await check_db_connection(),
            "redis": await check_redis_connection(),
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})

    body = {name: "connected" if ok else "disconnected" for name, ok in checks.items()}
    body["status"] = "healthy" if all(checks.values()) else "degraded"
    return body


# ============================================================
# Routes
# ============================================================
app.include_router(api_router, prefix=settings.API_PREFIX)

if settings.STORAGE_BACKEND == "local":
    app.mount(PUBLIC_MOUNT, StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


# ============================================================
# Errors
# ============================================================
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message} ({exc.error})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "error": exc.error}
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "error": str(exc)}
    )
