"""Data models for the GitHub PR Review Agent."""

from .api_response import (
    ErrorResponse,
    PublishResult,
    PullRequestRef,
    ReviewReport,
    WebhookResponse,
)
from .diff import (
    Chunk,
    ChunkContext,
    FileDelta,
    FileStatus,
    Hunk,
    LineChange,
    LineChangeKind,
    ReviewResult,
    ReviewStatus,
)
from .error import (
    EventValidationError,
    InternalError,
    NotFoundError,
    PipelineError,
    UnauthorizedError,
    UpstreamFailure,
)
from .pr_event import (
    PullRequestInfo,
    RepositoryInfo,
    UserInfo,
    extract_pull_request_info,
)
from .review import (
    Comment,
    CommentSeverity,
    ReviewContext,
    ReviewOutcome,
    ReviewRating,
    ReviewSummary,
)

__all__ = [
    # Diff models
    "FileStatus",
    "FileDelta",
    "LineChangeKind",
    "LineChange",
    "Hunk",
    "ChunkContext",
    "Chunk",
    "ReviewStatus",
    "ReviewResult",
    # Review models
    "CommentSeverity",
    "Comment",
    "ReviewRating",
    "ReviewOutcome",
    "ReviewContext",
    "ReviewSummary",
    # PR event models
    "UserInfo",
    "RepositoryInfo",
    "PullRequestInfo",
    "extract_pull_request_info",
    # Error models
    "PipelineError",
    "UnauthorizedError",
    "EventValidationError",
    "NotFoundError",
    "InternalError",
    "UpstreamFailure",
    # API response models
    "WebhookResponse",
    "ErrorResponse",
    "PullRequestRef",
    "ReviewReport",
    "PublishResult",
]
