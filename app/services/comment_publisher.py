"""
Comment Publisher component.

Posts the review summary and line-level comments to a GitHub pull request.
Each comment is posted independently; a failed post is counted and logged,
never raised.
"""

from typing import List, Optional

from app.models.api_response import PublishResult
from app.models.pr_event import PullRequestInfo
from app.models.review import Comment, ReviewSummary
from app.services.github_client import GitHubClient
from app.utils.logging import get_logger

logger = get_logger(__name__)

SEVERITY_LABEL = {
    "high": "🔴 **High priority**",
    "medium": "⚠️ **Medium priority**",
    "low": "ℹ️ **Low priority**",
}


class CommentPublisher:
    """Publishes review comments to GitHub pull requests."""

    def __init__(self, github_client: GitHubClient):
        self.github = github_client

    @property
    def enabled(self) -> bool:
        return self.github.has_token

    async def publish_summary(self, pr: PullRequestInfo, summary: ReviewSummary) -> PublishResult:
        """
        Publish the summary comment to the PR conversation.

        Args:
            pr: Pull request info
            summary: Aggregated review summary

        Returns:
            PublishResult with success status
        """
        if not self.enabled:
            logger.warning(f"Skipping summary comment for PR #{pr.number}: no GitHub token")
            return PublishResult(success=False, published_count=0, failed_count=0, errors=["GitHub token not configured"])

        logger.info(f"Publishing summary comment to PR #{pr.number}")

        try:
            await self.github.add_issue_comment(
                pr.repository.owner, pr.repository.name, pr.number, summary.body
            )
            return PublishResult(success=True, published_count=1, failed_count=0, errors=[])

        except Exception as e:
            logger.error(f"Failed to publish summary comment: {e}", exc_info=True)
            return PublishResult(success=False, published_count=0, failed_count=1, errors=[str(e)])

    async def publish_line_comments(self, pr: PullRequestInfo, comments: List[Comment]) -> PublishResult:
        """
        Publish line-level comments anchored at the PR head commit.

        Args:
            pr: Pull request info
            comments: Comments selected by the aggregator

        Returns:
            PublishResult with success status and counts
        """
        if not comments:
            return PublishResult(success=True, published_count=0, failed_count=0, errors=[])

        if not self.enabled:
            logger.warning(f"Skipping {len(comments)} line comments for PR #{pr.number}: no GitHub token")
            return PublishResult(success=False, published_count=0, failed_count=0, errors=["GitHub token not configured"])

        head_sha = pr.head_sha or await self._resolve_head_sha(pr)
        if not head_sha:
            logger.warning(f"Skipping {len(comments)} line comments for PR #{pr.number}: head commit unknown")
            return PublishResult(success=False, published_count=0, failed_count=0, errors=["Head commit SHA missing"])

        logger.info(f"Publishing {len(comments)} line comments to PR #{pr.number}")

        published_count = 0
        failed_count = 0
        errors = []

        for comment in comments:
            try:
                await self.github.add_review_comment(
                    pr.repository.owner,
                    pr.repository.name,
                    pr.number,
                    head_sha,
                    comment.path,
                    comment.line,
                    self._format_line_comment(comment),
                )
                published_count += 1

            except Exception as e:
                logger.error(f"Failed to publish comment for {comment.path}:{comment.line}: {e}")
                failed_count += 1
                errors.append(f"{comment.path}:{comment.line} - {e}")

        logger.info(f"Published {published_count}/{len(comments)} line comments successfully")

        return PublishResult(
            success=failed_count == 0,
            published_count=published_count,
            failed_count=failed_count,
            errors=errors,
        )

    async def _resolve_head_sha(self, pr: PullRequestInfo) -> Optional[str]:
        # webhook payloads can omit head.sha; the REST resource always carries it
        try:
            data = await self.github.get_pull_request(pr.repository.owner, pr.repository.name, pr.number)
        except Exception as e:
            logger.error(f"Failed to look up head commit for PR #{pr.number}: {e}")
            return None
        return (data.get("head") or {}).get("sha")

    def _format_line_comment(self, comment: Comment) -> str:
        label = SEVERITY_LABEL.get(comment.severity.value, "•")
        return "\n".join([f"{label} (AI review)", "", comment.content])
