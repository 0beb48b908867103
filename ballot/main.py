"""Ballot FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ballot import __version__
from ballot.api.routes import router as api_router
from ballot.config import get_settings
from ballot.lib.exceptions import (
    AlreadyRegisteredError,
    AlreadyVotedError,
    BallotError,
    DuplicateProposalError,
    EmptyProposalError,
    HasNotVotedError,
    InvalidPhaseTransitionError,
    NoProposalsError,
    NotAVoterError,
    ProposalNotFoundError,
    SessionNotResettableError,
    SessionPersistenceError,
    TallyNotDoneError,
    UnauthorizedError,
)
from ballot.lib.models import HealthResponse
from ballot.lib.persistence import close_session_store, get_session_store

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Status code per error kind; anything unlisted is a 500
ERROR_STATUS: dict[type[BallotError], int] = {
    UnauthorizedError: 403,
    NotAVoterError: 404,
    ProposalNotFoundError: 404,
    EmptyProposalError: 422,
    InvalidPhaseTransitionError: 409,
    TallyNotDoneError: 409,
    SessionNotResettableError: 409,
    AlreadyRegisteredError: 409,
    AlreadyVotedError: 409,
    DuplicateProposalError: 409,
    NoProposalsError: 409,
    HasNotVotedError: 409,
}


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    settings = get_settings()

    # Startup
    logger.info("Starting Ballot...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Administrator: {settings.admin_identity}")

    store = await get_session_store()
    logger.info(f"Session store initialized: {store.get_stats()}")

    yield

    # Shutdown
    logger.info("Shutting down Ballot...")
    await close_session_store()
    logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ballot",
        description="Permissioned proposal voting workflow",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", version=__version__)

    return app


# =============================================================================
# Exception Handlers
# =============================================================================


def status_for(exc: BallotError) -> int:
    """HTTP status for a workflow error, most specific class first."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(SessionPersistenceError)
    async def persistence_error_handler(
        request: Request, exc: SessionPersistenceError
    ) -> JSONResponse:
        logger.error(f"Persistence error: {exc.message}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Session state could not be saved", "error": exc.message},
        )

    @app.exception_handler(BallotError)
    async def ballot_error_handler(request: Request, exc: BallotError) -> JSONResponse:
        caller = request.headers.get("X-Caller-Id", "<anonymous>")
        logger.debug(
            f"{request.method} {request.url.path} rejected for {caller}: {exc.message}"
        )
        content = {
            "detail": exc.message,
            "error": type(exc).__name__,
            **exc.details,
        }
        for attr in ("required_phase", "actual_phase"):
            value = getattr(exc, attr, None)
            if value is not None:
                content[attr] = value
        return JSONResponse(status_code=status_for(exc), content=content)


# =============================================================================
# Application Instance
# =============================================================================


app = create_app()
