"""
Pull request review pipeline.

diff fetch -> diff parse -> batched chunk review -> merge -> summary ->
comment delivery, for one pull request event.
"""

from typing import List, Optional

from app.config import Settings
from app.models.api_response import ReviewReport
from app.models.pr_event import PullRequestInfo
from app.services.comment_publisher import CommentPublisher
from app.services.diff_parser import DiffParser
from app.services.github_client import GitHubClient
from app.services.result_aggregator import merge, select_line_comments, summarize
from app.services.review_orchestrator import ReviewOrchestrator
from app.utils.logging import get_logger
from app.utils.metrics import ReviewMetrics, emit_metric, track_api_call

logger = get_logger(__name__)

LARGE_PR_FILE_COUNT = 10
LARGE_PR_LINE_COUNT = 500


def size_warnings(pr: PullRequestInfo) -> List[str]:
    """Notes for pull requests that are large enough to deserve splitting."""
    warnings = []
    if pr.changed_files > LARGE_PR_FILE_COUNT:
        warnings.append(
            f"This PR changes {pr.changed_files} files; consider splitting it into smaller PRs."
        )
    if pr.additions + pr.deletions > LARGE_PR_LINE_COUNT:
        warnings.append(
            f"This PR contains a large amount of changes (+{pr.additions} -{pr.deletions}); review carefully."
        )
    return warnings


class PullRequestReviewer:
    """Runs the full AI review for one pull request."""

    def __init__(
        self,
        settings: Settings,
        github_client: GitHubClient,
        orchestrator: ReviewOrchestrator,
        publisher: CommentPublisher,
        parser: Optional[DiffParser] = None,
    ):
        self.github = github_client
        self.orchestrator = orchestrator
        self.publisher = publisher
        self.parser = parser or DiffParser(strict=settings.strict_diff_parsing)
        self.max_line_comment_chunks = settings.max_line_comment_chunks
        self.max_comments_per_chunk = settings.max_comments_per_chunk

    async def review(self, pr: PullRequestInfo) -> ReviewReport:
        """
        Review a pull request and post the results.

        Diff fetch failures and empty diffs skip the review; they never
        raise. Per-chunk reviewer failures are recorded in the report.

        Args:
            pr: Pull request info extracted from the event

        Returns:
            ReviewReport describing what happened
        """
        log = logger.with_context(pr_number=pr.number, repository=pr.repository.full_name)
        metrics = ReviewMetrics(pr.number, pr.repository.full_name)
        metrics.start()

        log.info(f"Starting code review for PR #{pr.number}")

        warnings = size_warnings(pr)
        for warning in warnings:
            log.warning(warning)

        if not pr.diff_url:
            return self._skip(metrics, log, "Pull request has no diff URL")

        try:
            async with track_api_call(metrics, "github", log, endpoint=pr.diff_url, method="GET"):
                diff_text = await self.github.fetch_diff(pr.diff_url)
        except Exception as e:
            return self._skip(metrics, log, f"Failed to fetch diff: {e}")

        chunks = self.parser.parse(diff_text)
        log.info(f"Parsed diff into {len(chunks)} chunks")
        if not chunks:
            return self._skip(metrics, log, "Diff contains no reviewable chunks")

        context = pr.to_review_context()
        results = await self.orchestrator.review_all(chunks, context, metrics=metrics)

        merge(chunks, results)
        summary = summarize(results, context, warnings=warnings)
        metrics.record_chunks(summary.total_chunks, summary.reviewed_chunks, summary.failed_chunks)

        comments_posted = 0
        summary_result = await self.publisher.publish_summary(pr, summary)
        comments_posted += summary_result.published_count

        line_comments = select_line_comments(
            chunks,
            max_chunks=self.max_line_comment_chunks,
            per_chunk=self.max_comments_per_chunk,
        )
        line_result = await self.publisher.publish_line_comments(pr, line_comments)
        comments_posted += line_result.published_count
        metrics.record_comments_posted(comments_posted)

        metrics.complete("completed")
        emit_metric("review.chunks_failed", summary.failed_chunks, pr_number=pr.number)
        log.info(f"Code review completed for PR #{pr.number}: {summary.reviewed_chunks}/{summary.total_chunks} chunks reviewed")

        return ReviewReport(
            status="completed",
            total_chunks=summary.total_chunks,
            reviewed_chunks=summary.reviewed_chunks,
            failed_chunks=summary.failed_chunks,
            high_severity_chunks=summary.high_severity_chunks,
            medium_severity_chunks=summary.medium_severity_chunks,
            comments_posted=comments_posted,
        )

    def _skip(self, metrics: ReviewMetrics, log, reason: str) -> ReviewReport:
        log.warning(f"Skipping review: {reason}")
        metrics.complete("skipped", error_message=reason)
        return ReviewReport(status="skipped", reason=reason)
