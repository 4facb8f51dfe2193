"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import webhooks
from app.config import Settings, get_settings
from app.models.api_response import ErrorResponse, utc_timestamp
from app.models.error import NotFoundError, PipelineError
from app.services.chunk_reviewer import ChunkReviewer
from app.services.comment_publisher import CommentPublisher
from app.services.event_dispatcher import EventDispatcher
from app.services.github_client import GitHubClient
from app.services.pr_reviewer import PullRequestReviewer
from app.services.review_orchestrator import ReviewOrchestrator
from app.services.signature_verifier import SignatureVerifier
from app.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

VERSION = "0.1.0"


def build_event_dispatcher(
    settings: Settings,
    reviewer: Optional[ChunkReviewer] = None,
    github_client: Optional[GitHubClient] = None,
) -> EventDispatcher:
    """Wire the review pipeline from one settings instance."""
    github_client = github_client or GitHubClient(settings)
    reviewer = reviewer or ChunkReviewer(settings)
    orchestrator = ReviewOrchestrator(
        reviewer,
        batch_size=settings.review_batch_size,
        batch_delay_seconds=settings.review_batch_delay_seconds,
    )
    pr_reviewer = PullRequestReviewer(
        settings,
        github_client=github_client,
        orchestrator=orchestrator,
        publisher=CommentPublisher(github_client),
    )
    return EventDispatcher(pr_reviewer)


def create_app(
    settings: Optional[Settings] = None,
    event_dispatcher: Optional[EventDispatcher] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings instance; read from the environment when omitted
        event_dispatcher: Pre-built dispatcher (tests inject fakes)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting GitHub PR Review Agent API")
        yield
        logger.info("Shutting down GitHub PR Review Agent API")

    app = FastAPI(
        title="GitHub PR Review Agent",
        description="AI code review for GitHub pull requests",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.signature_verifier = SignatureVerifier(settings)
    app.state.event_dispatcher = event_dispatcher or build_event_dispatcher(settings)

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.error}: {exc.message}", extra={"path": request.url.path})
        body = ErrorResponse(error=exc.error, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = NotFoundError.error if exc.status_code == 404 else "Request failed"
        message = f"{request.method} {request.url.path}: {exc.detail}"
        body = ErrorResponse(error=error, message=message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "ok", "version": VERSION, "timestamp": utc_timestamp()}

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "GitHub PR Review Agent API",
            "version": VERSION,
            "webhook": "/webhook/github",
            "docs": "/docs",
        }

    app.include_router(webhooks.router)

    return app


setup_logging(get_settings().log_level)

app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
