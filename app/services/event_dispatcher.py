"""
Event Dispatcher component.

Routes a verified GitHub webhook delivery to its handler. Keeps no state
between deliveries.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from app.models.api_response import PullRequestRef, ReviewReport, WebhookResponse
from app.models.error import InternalError
from app.models.pr_event import PullRequestInfo, extract_pull_request_info
from app.services.pr_reviewer import PullRequestReviewer
from app.utils.logging import get_logger, log_pr_event

logger = get_logger(__name__)


class EventDispatcher:
    """Maps ``X-GitHub-Event`` / ``action`` pairs to handlers."""

    def __init__(self, pr_reviewer: PullRequestReviewer):
        self.pr_reviewer = pr_reviewer
        self._action_handlers: Dict[str, Callable[[PullRequestInfo], Awaitable[Optional[ReviewReport]]]] = {
            "opened": self._handle_opened,
            "closed": self._handle_closed,
            "reopened": self._handle_reopened,
            "synchronize": self._handle_synchronize,
            "ready_for_review": self._handle_ready_for_review,
        }

    async def dispatch(self, event_type: Optional[str], payload: Dict[str, Any]) -> WebhookResponse:
        """
        Dispatch one event.

        Args:
            event_type: ``X-GitHub-Event`` header value
            payload: Decoded event body

        Returns:
            WebhookResponse for the transport layer

        Raises:
            InternalError: If required fields cannot be extracted
        """
        logger.info(f"Received GitHub event: {event_type}")

        if event_type == "ping":
            return WebhookResponse(message="Webhook received successfully", zen=payload.get("zen"))

        if event_type == "pull_request":
            return await self._handle_pull_request(payload)

        logger.info(f"Unhandled event type: {event_type}")
        return WebhookResponse(
            message=f"Event {event_type} received but not processed",
            processed=False,
        )

    async def _handle_pull_request(self, payload: Dict[str, Any]) -> WebhookResponse:
        action = payload.get("action")

        try:
            pr = extract_pull_request_info(payload)
        except Exception as e:
            logger.error(f"Failed to extract pull request info: {e}", exc_info=True)
            raise InternalError(f"Failed to extract pull request info: {e}") from e

        log_pr_event(logger, pr_number=pr.number, repository=pr.repository.full_name, action=str(action))

        handler = self._action_handlers.get(action)
        review = None
        if handler is not None:
            review = await handler(pr)
        else:
            logger.info(f"Pull request action '{action}' received but not specially handled")

        return WebhookResponse(
            message=f"Pull request {action} event processed successfully",
            processed=True,
            pull_request=PullRequestRef(number=pr.number, title=pr.title, state=pr.state),
            review=review,
        )

    async def _handle_opened(self, pr: PullRequestInfo) -> ReviewReport:
        logger.info(
            f"New pull request #{pr.number}: {pr.title} by {pr.author.login} "
            f"({pr.source_branch} -> {pr.target_branch}, +{pr.additions} -{pr.deletions}, {pr.changed_files} files)"
        )
        return await self.pr_reviewer.review(pr)

    async def _handle_closed(self, pr: PullRequestInfo) -> None:
        logger.info(f"Pull request #{pr.number} closed: {pr.title} by {pr.author.login}")

    async def _handle_reopened(self, pr: PullRequestInfo) -> None:
        logger.info(f"Pull request #{pr.number} reopened: {pr.title} by {pr.author.login}")

    async def _handle_synchronize(self, pr: PullRequestInfo) -> ReviewReport:
        logger.info(f"Pull request #{pr.number} synchronized with new commits, re-reviewing")
        return await self.pr_reviewer.review(pr)

    async def _handle_ready_for_review(self, pr: PullRequestInfo) -> ReviewReport:
        logger.info(f"Pull request #{pr.number} is ready for review")
        return await self.pr_reviewer.review(pr)
