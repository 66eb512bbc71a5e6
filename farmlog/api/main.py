from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
import time

from farmlog.api.core.database import engine, Base
from farmlog.api.config import settings
from farmlog.errors import BadRequestError, FarmLogError, StorageError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting FarmLog API...")

    # Test database connection and make sure the schema exists
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("✅ Database connected")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        # Don't raise - allow API to start even if DB is temporarily unavailable

    yield

    # Shutdown
    logger.info("Shutting down FarmLog API...")
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="FarmLog API",
    description="Farm activity log: per-user task records for fields and plots",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# GZip compression for responses
app.add_middleware(GZipMiddleware, minimum_size=1000)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
    return response


def _error_response(error: FarmLogError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == 401 else None
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)


@app.exception_handler(FarmLogError)
async def farmlog_exception_handler(request: Request, exc: FarmLogError):
    if isinstance(exc, StorageError):
        logger.error(f"Storage error: {exc}")
        return _error_response(StorageError("Internal server error"))
    return _error_response(exc)


# Malformed bodies are a 400, not FastAPI's default 422
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = "Invalid request body"
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        detail = f"{loc}: {errors[0].get('msg')}" if loc else errors[0].get("msg", detail)
    return _error_response(BadRequestError(detail))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error: {exc}", exc_info=True)
    return _error_response(StorageError("Internal server error"))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "server_error",
            "detail": str(exc) if settings.DEBUG else "Internal server error"
        }
    )


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint for monitoring"""
    db_status = "connected"

    # Test database
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "version": settings.APP_VERSION,
        "database": db_status
    }


# API prefix
API_PREFIX = "/api"

# Import routers
from farmlog.api.routers import auth, tasks

# Include routers
app.include_router(
    auth.router,
    prefix=f"{API_PREFIX}/auth",
    tags=["Authentication"]
)
app.include_router(
    tasks.router,
    prefix=f"{API_PREFIX}/tasks",
    tags=["Tasks"]
)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """API root endpoint"""
    return {
        "message": "Welcome to FarmLog API",
        "docs": "/api/docs",
        "version": settings.APP_VERSION,
        "endpoints": {
            "health": "/health",
            "docs": "/api/docs",
            "auth": f"{API_PREFIX}/auth",
            "tasks": f"{API_PREFIX}/tasks"
        }
    }


def run():
    """Console entry point for the API server"""
    import uvicorn
    uvicorn.run(
        "farmlog.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )


if __name__ == "__main__":
    run()
