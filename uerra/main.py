"""
UERRA Emergency Reporting - FastAPI Application Entry Point

Citizens report emergencies (category, description, location, optional
photo); responder agencies triage the reports assigned to them; admins
manage categories, agencies and users.

DESIGN PRINCIPLES:
- Only citizens submit reports; the role check runs before anything else
- Every submission answers with a tagged result, never a bare exception
- Each report's history is an append-only list of updates
- The backend client is injected, never imported as a global
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uerra.core.errors import ReportingError
from uerra.core.logging_config import setup_logging
from uerra.core.settings import settings
from uerra.config.firebase import get_backend
from uerra.routes import admin, agencies, auth, categories, health, map, reports, triage


setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Citizen emergency reporting and agency triage API",
    debug=settings.DEBUG
)


@app.exception_handler(ReportingError)
async def reporting_error_handler(request: Request, exc: ReportingError):
    """Map domain errors to their HTTP status with the user-facing message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_type}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.error_type}: {exc.message}")

    content = {"detail": exc.message, "error": exc.error_type}
    messages = getattr(exc, "messages", None)
    if messages:
        content["messages"] = messages
    allowed = getattr(exc, "allowed", None)
    if allowed:
        content["allowed"] = allowed
    return JSONResponse(status_code=exc.status_code, content=content)


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request validation errors and answer 422."""
    logger.info(f"Request validation failed on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )


# CORS configuration - dashboard origins come from settings, never "*"
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize the backend client on application startup.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        get_backend()
    except RuntimeError as e:
        logger.warning(f"Backend initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(triage.router)
app.include_router(categories.router)
app.include_router(agencies.router)
app.include_router(admin.router)
app.include_router(map.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }
