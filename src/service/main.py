from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .repositories import Repository, get_repository
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Account registration and session management."},
    {"name": "tasks", "description": "CRUD operations on the authenticated account's tasks."},
]


# PUBLIC_INTERFACE
def create_app(repository: Optional[Repository] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the service application.

    Args:
        repository: Storage backend; defaults to the one selected by PERSISTENCE_BACKEND.
        settings: Service settings; defaults to the environment.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Taskpad Service",
        description="Account, session and task persistence for the taskpad client.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.repository = repository if repository is not None else get_repository()

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers for consistent JSON on validation errors
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        logger.debug("Validation failed on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_errors(exc),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(tasks_router.router)
    logger.info("Service ready backend=%s", settings.persistence_backend)
    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with any non-JSON context (e.g. the raised ValueError) stringified."""
    errors = []
    for err in exc.errors():
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        errors.append(item)
    return errors


app = create_app()
