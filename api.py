"""
fitcheck FastAPI Application

Main entry point for the fitcheck API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Common library imports
from common.database import MongoDB
from common.utils import success_response

# App-specific imports
from fitcheck.config import settings
from fitcheck.dependencies import Services, build_mongo_services

# Import routers
from fitcheck.routers import (
    member_router,
    checkin_router,
    community_router,
    coach_router,
    media_router,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION = "1.0.0"


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built services (tests). When omitted the lifespan
            connects to MongoDB and wires services from settings.
    """
    database = MongoDB()

    # =========================================================================
    # Application Lifespan
    # =========================================================================
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Handles startup and shutdown tasks like database connections
        and service initialization.
        """
        if services is not None:
            app.state.services = services
            yield
            return

        # Startup
        print("Starting fitcheck API...")
        settings.validate_required()

        await database.connect(
            uri=settings.MONGODB_URI,
            database_name=settings.MONGODB_DATABASE,
            timeout_ms=settings.MONGODB_TIMEOUT_MS,
        )
        print(f"Connected to database: {settings.MONGODB_DATABASE}")

        app.state.services = build_mongo_services(database.db, settings)
        await app.state.services.store.ensure_indexes()
        print("All services initialized successfully!")

        yield

        # Shutdown
        print("Shutting down fitcheck API...")
        await database.disconnect()
        print("fitcheck API shut down complete.")

    app = FastAPI(
        title="fitcheck API",
        description="Daily fitness check-ins, streaks and community engagement",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development() else None,
        redoc_url="/redoc" if settings.is_development() else None,
    )

    # =========================================================================
    # CORS Middleware
    # =========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Request validation errors use the same detail shape as APIException
    # =========================================================================
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", [])), "message": e.get("msg")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={"detail": {
                "message": "Validation error",
                "code": "VALIDATION_ERROR",
                "details": {"errors": errors},
            }},
        )

    # =========================================================================
    # Include Routers (all under /api/v1 prefix)
    # =========================================================================
    app.include_router(member_router, prefix=API_PREFIX, tags=["Member"])
    app.include_router(checkin_router, prefix=API_PREFIX, tags=["Check-in"])
    app.include_router(community_router, prefix=API_PREFIX, tags=["Community"])
    app.include_router(coach_router, prefix=API_PREFIX, tags=["Coach"])
    app.include_router(media_router, prefix=API_PREFIX, tags=["Media"])

    # =========================================================================
    # Health Check Endpoint
    # =========================================================================
    @app.get(f"{API_PREFIX}/health", tags=["Health"])
    async def health():
        """
        Health check endpoint.

        Returns the status of the API and database connection.
        """
        return success_response({
            "status": "ok",
            "version": VERSION,
            "database": await database.ping() if services is None else True,
        })

    return app


app = create_app()


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
