"""
rndvx FastAPI Application

Main entry point for the rndvx API: group meetings with quorum-based
confirmation, invites, recurring series and location votes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Common library imports
from common.database import MongoDB
from common.utils import success_response, error_response
from common.utils.exceptions import APIException, ErrorKind

# App-specific imports
from rndvx.config import settings
from rndvx.database import ensure_indexes

# Import routers
from rndvx.routers import (
    auth_router,
    users_router,
    meetings_router,
    invites_router,
    groups_router,
    places_router,
)

# Import service initialization
from rndvx.dependencies import (
    init_all_services,
    get_notifier,
    get_recurrence_service,
)
from jobs.scheduler import MeetingScheduler

logger = logging.getLogger(__name__)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections,
    service initialization and the background scheduler.
    """
    # Startup
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting rndvx API...")

    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    logger.info(f"Connected to database: {settings.MONGODB_DATABASE}")

    await ensure_indexes(main_db.db)

    # Initialize all services
    init_all_services(db=main_db.db, settings=settings)
    logger.info("All services initialized")

    scheduler = None
    if settings.SCHEDULER_ENABLED and not settings.is_test():
        scheduler = MeetingScheduler(
            db=main_db.db,
            notifier=get_notifier(),
            recurrence_service=get_recurrence_service(),
            settings=settings,
        )
        scheduler.start()
    app.state.scheduler = scheduler

    logger.info("rndvx API started")

    yield

    # Shutdown
    logger.info("Shutting down rndvx API...")
    if scheduler is not None:
        scheduler.stop()
    await get_notifier().drain()
    await main_db.disconnect()
    logger.info("rndvx API shut down complete")


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="rndvx API",
    description="Group meeting coordination with quorum-based confirmation",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Map domain error kinds to HTTP status codes."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            exc.message,
            kind=exc.kind.value,
            code=exc.code,
            details=exc.details,
        ),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body/query validation failures are plain 400s."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_response(
            "Validation failed",
            kind=ErrorKind.VALIDATION.value,
            code="VALIDATION_ERROR",
            details={"errors": errors},
        ),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything unexpected is a 500; the real message is hidden in production."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = "Internal server error" if settings.is_production() else str(exc)
    return JSONResponse(
        status_code=500,
        content=error_response(
            message,
            kind=ErrorKind.INTERNAL.value,
            code="INTERNAL_ERROR",
        ),
    )


# =============================================================================
# Include Routers (all under /api prefix)
# =============================================================================
API_PREFIX = "/api"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(meetings_router, prefix=API_PREFIX)
app.include_router(invites_router, prefix=API_PREFIX)
app.include_router(groups_router, prefix=API_PREFIX)
app.include_router(places_router, prefix=API_PREFIX)


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
@app.get(f"{API_PREFIX}/health", tags=["Health"], include_in_schema=False)
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "database": await main_db.ping(),
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
