"""
Result Aggregator component.

Merges review outcomes back onto their chunks, renders the summary comment
and picks the chunks that get line-anchored comments.
"""

from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional, Tuple

from app.models.diff import Chunk, ReviewResult, ReviewStatus
from app.models.review import (
    SEVERITY_RANK,
    Comment,
    CommentSeverity,
    ReviewContext,
    ReviewSummary,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

MAX_FINDINGS = 10
MAX_SUGGESTIONS = 3
DISCLAIMER = (
    "*This report was generated by an AI reviewer and is for reference only. "
    "Please combine it with a human review.*"
)


def _chunk_key(chunk: Chunk) -> Tuple[Optional[str], int]:
    return chunk.file_path, chunk.new_start


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def merge(chunks: List[Chunk], results: List[ReviewResult]) -> List[Chunk]:
    """
    Annotate chunks with their review outcomes.

    Outcomes are matched by file path and starting line. Matched successes
    mark the chunk ``reviewed`` and copy comments and rating; failures and
    chunks without a matching outcome are marked ``failed``.

    Args:
        chunks: Chunks to annotate (mutated in place)
        results: Orchestrator output

    Returns:
        The same chunks, annotated
    """
    by_key: Dict[Tuple[Optional[str], int], Deque[ReviewResult]] = defaultdict(deque)
    for result in results:
        by_key[_chunk_key(result.chunk)].append(result)

    for chunk in chunks:
        pending = by_key.get(_chunk_key(chunk))
        result = pending.popleft() if pending else None

        if result is not None and result.outcome.success:
            chunk.review_status = ReviewStatus.REVIEWED
            chunk.ai_comments = list(result.outcome.comments)
            chunk.rating = result.outcome.rating
        else:
            if result is None:
                logger.warning(f"No review outcome for chunk {chunk.file_path}:{chunk.new_start}")
            chunk.review_status = ReviewStatus.FAILED
            chunk.ai_comments = []
            chunk.rating = None

    return chunks


def _has_severity(result: ReviewResult, severity: CommentSeverity) -> bool:
    return any(c.severity == severity for c in result.outcome.comments)


def summarize(
    results: List[ReviewResult],
    context: ReviewContext,
    warnings: Optional[List[str]] = None,
) -> ReviewSummary:
    """
    Build the review summary.

    Args:
        results: Orchestrator output
        context: Pull request context
        warnings: Extra notes (e.g. PR size) to include

    Returns:
        ReviewSummary with counts and the rendered markdown body
    """
    successful = [r for r in results if r.outcome.success]
    total = len(results)
    reviewed = len(successful)
    high = sum(1 for r in successful if _has_severity(r, CommentSeverity.HIGH))
    medium = sum(1 for r in successful if _has_severity(r, CommentSeverity.MEDIUM))

    findings: List[str] = []
    for result in successful:
        for comment in result.outcome.comments:
            if comment.severity == CommentSeverity.HIGH:
                findings.append(f"**{comment.path}:{comment.line}**: {_first_line(comment.content)}")
    findings = findings[:MAX_FINDINGS]

    suggestions = [
        _first_line(s)
        for r in successful
        for s in r.outcome.suggestions
        if s and s.strip()
    ][:MAX_SUGGESTIONS]

    warnings = list(warnings or [])

    lines = [
        "## AI Code Review Report",
        "",
    ]
    if context.pr_number is not None:
        lines += [f"Pull request #{context.pr_number}: {context.title}", ""]

    lines += [
        "### Review Statistics",
        f"- **Reviewed chunks**: {reviewed}/{total}",
        f"- **Failed chunks**: {total - reviewed}/{total}",
        f"- **High priority issues**: {high}",
        f"- **Medium priority issues**: {medium}",
        "",
        "### Key Findings",
    ]

    if findings:
        lines.append("")
        lines.append("#### Issues needing attention")
        lines.extend(f"- {finding}" for finding in findings)
    else:
        lines.append("- No high priority issues found.")

    if suggestions:
        lines.append("")
        lines.append("#### Improvement suggestions")
        lines.extend(f"- {suggestion}" for suggestion in suggestions)

    if warnings:
        lines.append("")
        lines.append("#### Notes")
        lines.extend(f"- {warning}" for warning in warnings)

    lines += ["", "---", DISCLAIMER]

    return ReviewSummary(
        total_chunks=total,
        reviewed_chunks=reviewed,
        failed_chunks=total - reviewed,
        high_severity_chunks=high,
        medium_severity_chunks=medium,
        findings=findings,
        suggestions=suggestions,
        warnings=warnings,
        body="\n".join(lines),
    )


def _max_severity(comments: List[Comment]) -> int:
    return max((SEVERITY_RANK[c.severity] for c in comments), default=-1)


def select_line_comments(
    chunks: List[Chunk],
    max_chunks: int = 5,
    per_chunk: int = 2,
) -> List[Comment]:
    """
    Pick the line comments to post.

    Only reviewed chunks that exist on the new side of the diff qualify.
    Chunks are ranked by their most severe comment (stable, so diff order
    breaks ties); each contributes at most ``per_chunk`` comments.
    """
    candidates = [
        chunk for chunk in chunks
        if chunk.review_status == ReviewStatus.REVIEWED
        and chunk.ai_comments
        and chunk.file.new_path
    ]
    candidates.sort(key=lambda c: _max_severity(c.ai_comments), reverse=True)

    selected: List[Comment] = []
    for chunk in candidates[:max_chunks]:
        selected.extend(chunk.ai_comments[:per_chunk])
    return selected
