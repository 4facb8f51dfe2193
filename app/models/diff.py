"""Unified diff data models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .review import Comment, ReviewOutcome, ReviewRating

# Chunks with more changed lines than this are flagged significant
SIGNIFICANT_CHANGE_THRESHOLD = 5


class FileStatus(str, Enum):
    """How a file is touched by a diff."""

    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


class LineChangeKind(str, Enum):
    """Kind of a single line inside a hunk."""

    ADDED = "added"
    DELETED = "deleted"
    CONTEXT = "context"


class ReviewStatus(str, Enum):
    """Review state of a chunk."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    FAILED = "failed"


class FileDelta(BaseModel):
    """One file touched in a diff."""

    old_path: Optional[str] = None
    new_path: Optional[str] = None
    status: FileStatus = FileStatus.MODIFIED

    @property
    def path(self) -> Optional[str]:
        return self.new_path or self.old_path


class LineChange(BaseModel):
    """Individual line inside a hunk."""

    kind: LineChangeKind
    content: str
    old_line_number: Optional[int] = None  # None for added lines
    new_line_number: Optional[int] = None  # None for deleted lines
    line_number: int  # new, else old, else hunk.new_start + index


class Hunk(BaseModel):
    """Contiguous change region within a file."""

    old_start: int = Field(ge=0)
    old_count: int = Field(ge=0)
    new_start: int = Field(ge=0)
    new_count: int = Field(ge=0)
    changes: List[LineChange] = []


class ChunkContext(BaseModel):
    """Summary of a hunk's lines partitioned by kind."""

    added_lines: List[str] = []
    deleted_lines: List[str] = []
    context_lines: List[str] = []
    total_changes: int = 0
    is_significant: bool = False

    @classmethod
    def from_changes(cls, changes: List[LineChange]) -> "ChunkContext":
        added = [c.content for c in changes if c.kind == LineChangeKind.ADDED]
        deleted = [c.content for c in changes if c.kind == LineChangeKind.DELETED]
        context = [c.content for c in changes if c.kind == LineChangeKind.CONTEXT]
        total = len(added) + len(deleted)
        return cls(
            added_lines=added,
            deleted_lines=deleted,
            context_lines=context,
            total_changes=total,
            is_significant=total > SIGNIFICANT_CHANGE_THRESHOLD,
        )


class Chunk(BaseModel):
    """
    Review-addressable unit: one file plus one hunk of changed lines.

    ``review_status``, ``ai_comments`` and ``rating`` start empty and are
    filled in by the result aggregator once the review batch has settled.
    """

    file: FileDelta
    hunk: Hunk
    context: ChunkContext
    review_status: ReviewStatus = ReviewStatus.PENDING
    ai_comments: List[Comment] = []
    rating: Optional[ReviewRating] = None

    @property
    def file_path(self) -> Optional[str]:
        return self.file.path

    @property
    def old_start(self) -> int:
        return self.hunk.old_start

    @property
    def new_start(self) -> int:
        return self.hunk.new_start

    @property
    def changes(self) -> List[LineChange]:
        return self.hunk.changes


class ReviewResult(BaseModel):
    """A chunk paired with the outcome of its review."""

    chunk: Chunk
    outcome: ReviewOutcome
