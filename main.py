"""
Main application entry point for the Birdwatching Events API.

This module initializes the FastAPI application, configures logging and
CORS, renders domain failures as JSON errors, and includes routers for
users, events, sightings, the catalog and reports.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- app.database: Database engine
- app.models: SQLAlchemy models
- app.errors: Domain failure taxonomy
- app.users, app.events, app.sightings, app.catalog, app.reports: Routers
- app.core: Application settings
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.database import engine
from app import models, users, events, sightings, catalog, reports
from app.errors import Contention, ServiceError
from app.core import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables (for development only)
models.Base.metadata.create_all(bind=engine)

# Initialize FastAPI application
app = FastAPI(title="Birdwatching Events API")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """
    Render a domain failure as a JSON error response.

    Contention responses carry a ``Retry-After`` header because the whole
    operation can be retried by the caller.

    Returns:
        JSONResponse: ``{"detail": message, "error": kind}`` with the
        failure's HTTP status.
    """
    logger.warning(
        "%s %s rejected (%s): %s", request.method, request.url.path, exc.error, exc.message
    )
    headers = {"Retry-After": "1"} if isinstance(exc, Contention) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.error},
        headers=headers,
    )


# Include routers for application areas
app.include_router(users.router)
app.include_router(events.router)
app.include_router(sightings.router)
app.include_router(catalog.router)
app.include_router(reports.router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns a simple JSON message directing users to the Swagger UI.

    Returns:
        dict: JSON message with information about the API
    """
    return {"msg": "Birdwatching Events API. Visit /docs for Swagger UI"}
