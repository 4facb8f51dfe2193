"""API response data models."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PullRequestRef(BaseModel):
    """Short pull request identity echoed back to the webhook sender."""

    number: int
    title: str
    state: str


class ReviewReport(BaseModel):
    """Outcome of one review pipeline run."""

    model_config = ConfigDict(populate_by_name=True)

    status: str  # 'completed' or 'skipped'
    total_chunks: int = Field(0, alias="totalChunks")
    reviewed_chunks: int = Field(0, alias="reviewedChunks")
    failed_chunks: int = Field(0, alias="failedChunks")
    high_severity_chunks: int = Field(0, alias="highSeverityChunks")
    medium_severity_chunks: int = Field(0, alias="mediumSeverityChunks")
    comments_posted: int = Field(0, alias="commentsPosted")
    reason: Optional[str] = None


class WebhookResponse(BaseModel):
    """Response from webhook handler."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    processed: Optional[bool] = None
    zen: Optional[str] = None
    pull_request: Optional[PullRequestRef] = Field(None, alias="pullRequest")
    review: Optional[ReviewReport] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseModel):
    """Body returned for failed requests."""

    error: str
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)


class PublishResult(BaseModel):
    """Result of comment publishing operation."""

    success: bool
    published_count: int
    failed_count: int
    errors: List[str] = []
