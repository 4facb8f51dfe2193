"""
Review Orchestrator component.

Fans chunk reviews out to the external reviewer in fixed-size batches.
Calls within a batch run concurrently; batches run one after another with
a fixed delay in between, which is the only throttle against the reviewer's
rate limits. A failing call only fails its own chunk.
"""

import asyncio
from typing import List, Optional, Protocol

from app.models.diff import Chunk, ReviewResult
from app.models.error import UpstreamFailure
from app.models.review import ReviewContext, ReviewOutcome
from app.utils.logging import get_logger
from app.utils.metrics import ReviewMetrics, track_api_call

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 3
DEFAULT_BATCH_DELAY_SECONDS = 1.0


class ChunkReviewerProtocol(Protocol):
    is_configured: bool

    async def review_chunk(self, chunk: Chunk, context: ReviewContext) -> ReviewOutcome:
        ...


class ReviewOrchestrator:
    """Runs chunk reviews under a concurrency cap with partial-failure isolation."""

    def __init__(
        self,
        reviewer: ChunkReviewerProtocol,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
    ):
        """
        Initialize the orchestrator.

        Args:
            reviewer: Object exposing ``review_chunk(chunk, context)``
            batch_size: Number of concurrent reviewer calls per batch
            batch_delay_seconds: Pause between consecutive batches
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.reviewer = reviewer
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds

    def make_batches(self, chunks: List[Chunk]) -> List[List[Chunk]]:
        """Split chunks into ordered batches of ``batch_size``."""
        return [
            chunks[i:i + self.batch_size]
            for i in range(0, len(chunks), self.batch_size)
        ]

    async def review_all(
        self,
        chunks: List[Chunk],
        context: ReviewContext,
        metrics: Optional[ReviewMetrics] = None,
    ) -> List[ReviewResult]:
        """
        Review every chunk and pair it with its outcome.

        Args:
            chunks: Chunks in diff order
            context: Pull request context
            metrics: Optional metrics collector for reviewer latency

        Returns:
            One ReviewResult per chunk, in input order
        """
        batches = self.make_batches(chunks)
        results: List[ReviewResult] = []

        logger.info(
            f"Starting review of {len(chunks)} chunks in {len(batches)} batches",
            extra={"pr_number": context.pr_number, "repository": context.repository},
        )

        for index, batch in enumerate(batches):
            settled = await asyncio.gather(
                *(self._review_one(chunk, context, metrics) for chunk in batch),
                return_exceptions=True,
            )

            # gather preserves argument order, so position identifies the chunk
            for chunk, outcome in zip(batch, settled):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    failure = UpstreamFailure(str(outcome) or type(outcome).__name__)
                    logger.error(
                        f"{failure.error} for {chunk.file_path}:{chunk.new_start}: {failure.message}",
                        extra={"chunk": f"{chunk.file_path}:{chunk.new_start}"},
                    )
                    outcome = ReviewOutcome.failure(failure.message)
                results.append(ReviewResult(chunk=chunk, outcome=outcome))

            if index < len(batches) - 1:
                await asyncio.sleep(self.batch_delay_seconds)

        self._log_completion(results, context)
        return results

    async def _review_one(
        self,
        chunk: Chunk,
        context: ReviewContext,
        metrics: Optional[ReviewMetrics],
    ) -> ReviewOutcome:
        # an unconfigured reviewer answers locally; there is no call to time
        if not self.reviewer.is_configured:
            return await self.reviewer.review_chunk(chunk, context)

        async with track_api_call(
            metrics,
            "reviewer",
            logger,
            endpoint=f"{chunk.file_path}:{chunk.new_start}",
            method="REVIEW",
        ):
            return await self.reviewer.review_chunk(chunk, context)

    def _log_completion(self, results: List[ReviewResult], context: ReviewContext) -> None:
        total = len(results)
        succeeded = sum(1 for r in results if r.outcome.success)
        failed = total - succeeded
        errors = [r.outcome.error for r in results if not r.outcome.success]

        if failed:
            logger.warning(
                f"Partial failure in chunk review: {succeeded}/{total} succeeded, {failed} failed",
                extra={
                    "pr_number": context.pr_number,
                    "repository": context.repository,
                    "total_items": total,
                    "successful_items": succeeded,
                    "failed_items": failed,
                    "errors": errors[:10],
                },
            )
        else:
            logger.info(
                f"Chunk review completed successfully: {succeeded}/{total}",
                extra={"pr_number": context.pr_number, "repository": context.repository},
            )
