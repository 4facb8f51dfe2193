"""Review result data models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class CommentSeverity(str, Enum):
    """Severity level of a review comment."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_RANK = {
    CommentSeverity.LOW: 0,
    CommentSeverity.MEDIUM: 1,
    CommentSeverity.HIGH: 2,
}


class ReviewRating(str, Enum):
    """Overall rating the reviewer gives a chunk."""

    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"
    NEEDS_ATTENTION = "needs_attention"


class Comment(BaseModel):
    """Line-anchored review comment."""

    content: str
    severity: CommentSeverity = CommentSeverity.LOW
    line: int
    path: str


class ReviewOutcome(BaseModel):
    """Per-chunk result of one reviewer call."""

    success: bool
    comments: List[Comment] = []
    rating: Optional[ReviewRating] = None
    error: Optional[str] = None
    suggestions: List[str] = []
    risks: List[str] = []

    @classmethod
    def failure(cls, error: str) -> "ReviewOutcome":
        return cls(success=False, error=error, comments=[])


class ReviewContext(BaseModel):
    """Pull request context shared by every chunk review of one event."""

    title: str
    author: str
    source_branch: str
    target_branch: str
    pr_number: Optional[int] = None
    repository: Optional[str] = None
    head_sha: Optional[str] = None


class ReviewSummary(BaseModel):
    """Aggregated counts plus the rendered summary comment body."""

    total_chunks: int
    reviewed_chunks: int
    failed_chunks: int
    high_severity_chunks: int
    medium_severity_chunks: int
    findings: List[str] = []
    suggestions: List[str] = []
    warnings: List[str] = []
    body: str = ""
