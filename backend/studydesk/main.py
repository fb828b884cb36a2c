"""
StudyDesk FastAPI Application Entry Point.

Run with: uvicorn studydesk.main:app --reload (from backend/)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studydesk.api.routes import (
    assignments,
    auth,
    dashboard,
    exams,
    notes,
    profile,
    subjects,
)
from studydesk.config import get_settings, sanitize_error
from studydesk.errors import AuthError, NotConfigured, RemoteFailure, Unauthenticated, ValidationFailure
from studydesk.logging_config import init_logging
from studydesk.sync.workspace import build_workspace

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    init_logging(settings)
    workspace = getattr(app.state, "workspace", None)
    owned = workspace is None
    if owned:
        workspace = build_workspace(settings)
        app.state.workspace = workspace

    workspace.start()
    if owned:
        # Resolves the initial identity; signed out without a refresh token
        await workspace.auth.restore(settings.firebase_refresh_token)
    logger.info("%s started (%s)", settings.app_name, settings.environment)

    yield

    # Shutdown
    await workspace.dispose()
    if owned:
        await workspace.auth.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Student planner API: subjects, assignments, exams and notes",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR MAPPING
# =============================================================================


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": exc.message})


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message, "errors": exc.errors},
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "kind": exc.kind},
    )


@app.exception_handler(NotConfigured)
async def not_configured_handler(request: Request, exc: NotConfigured) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": exc.message})


@app.exception_handler(RemoteFailure)
async def remote_failure_handler(request: Request, exc: RemoteFailure) -> JSONResponse:
    logger.error("Remote failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": sanitize_error(exc, generic_message="Upstream service error. Please try again.")},
    )


# Include routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(subjects.router)
app.include_router(assignments.router)
app.include_router(exams.router)
app.include_router(dashboard.router)
app.include_router(notes.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
