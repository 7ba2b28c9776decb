from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import DBAPIError, OperationalError
from contextlib import asynccontextmanager
import logging
import time
import uuid

from .config import settings
from .database import create_tables, dispose_engine, init_engine
from .exceptions import ReservationError, Unavailable
from .schemas.response import error_body
from .utils.logging_config import setup_logging, set_request_context, clear_request_context, get_logger

# Import all routers
from .routers import availability, bookings, health, units

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    logger.info("Starting reservation backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"CORS Origins: {settings.cors_origins}")

    init_engine()
    create_tables()
    logger.info("Database ready")

    yield

    logger.info("Shutting down reservation backend")
    dispose_engine()


# Create FastAPI app
app = FastAPI(
    title="Hotel Reservations API",
    description="Hotel, apartment and room bookings with hierarchical conflict detection",
    version="1.0.0",
    lifespan=lifespan
)


# ================================
# CORS MIDDLEWARE - MUST BE FIRST!
# ================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            logger.api_request(
                request.method,
                request.url.path,
                response.status_code,
                round((time.perf_counter() - start) * 1000, 2)
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


# Add other middleware AFTER CORS
app.add_middleware(RequestIdMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


# ================================
# ERROR ENVELOPE
# ================================

@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    data = {"error": exc.error_code}
    if exc.details:
        data.update(exc.details)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message, data))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None
    message = f"Invalid value for {field}: {first.get('msg', 'invalid input')}" if field else "Invalid input"
    return JSONResponse(
        status_code=400,
        content=error_body(400, message, {"error": "invalid_input", "field": field})
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_error_handler(request: Request, exc: DBAPIError):
    # Driver text stays in the logs
    logger.error(f"Database failure on {request.method} {request.url.path}: {exc}")
    unavailable = Unavailable("Service temporarily unavailable, please retry")
    return JSONResponse(
        status_code=unavailable.status_code,
        content=error_body(unavailable.status_code, unavailable.message, {"error": unavailable.error_code})
    )


# Include routers
app.include_router(health.router)
app.include_router(units.router)
app.include_router(availability.router)
app.include_router(bookings.router)


@app.get("")
@app.get("/")
async def root():
    return {
        "message": "Hotel Reservations API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "running"
    }
