"""
Chunk Reviewer component.

Sends one diff chunk at a time to an OpenAI-compatible chat completion
endpoint (DeepSeek by default) and structures the answer into a
:class:`ReviewOutcome`.
"""

from typing import Optional

from openai import AsyncOpenAI

from app.config import Settings
from app.models.diff import Chunk, LineChangeKind
from app.models.review import ReviewContext, ReviewOutcome
from app.services.response_structurer import ResponseStructurer, get_response_structurer
from app.utils.logging import get_logger

logger = get_logger(__name__)

MISSING_API_KEY_ERROR = "Reviewer API key not configured"

DIFF_PREFIX = {
    LineChangeKind.ADDED: "+",
    LineChangeKind.DELETED: "-",
    LineChangeKind.CONTEXT: " ",
}

SYSTEM_PROMPT = """You are a senior software architect and code review expert with more than ten years of experience. Your task is to review code changes professionally.

## Review criteria
1. **Conventions**: follow industry best practices and coding standards
2. **Performance**: identify performance problems and optimization opportunities
3. **Security**: look for vulnerabilities and risky patterns
4. **Maintainability**: assess readability, extensibility and testability
5. **Correctness**: verify the logic is correct and complete
6. **Design**: suggest suitable design patterns and architectural improvements

## Output format
For each code change chunk, provide:
1. **Overall Assessment**: one of "good", "needs improvement" or "needs attention"
2. **Specific Suggestions**: concrete improvement suggestions, with code examples
3. **Risk Assessment**: potential risks and security concerns
4. **Optimization Suggestions**: performance and quality optimizations

Use a markdown heading for each of the four sections. Stay professional, constructive and friendly."""


def build_review_prompt(chunk: Chunk, context: ReviewContext) -> str:
    """
    Build the per-chunk user prompt.

    Args:
        chunk: Chunk to review
        context: Pull request context

    Returns:
        Prompt text
    """
    chunk_context = chunk.context
    diff_body = "\n".join(
        f"{DIFF_PREFIX[change.kind]} {change.content}" for change in chunk.changes
    )

    return f"""Please review the following code change:

## Pull Request
- Title: {context.title}
- Author: {context.author}
- Branch: {context.source_branch} -> {context.target_branch}

## File
- File: {chunk.file_path}
- Status: {chunk.file.status.value}
- Changed lines: +{len(chunk_context.added_lines)} -{len(chunk_context.deleted_lines)}

## Code change
```diff
{diff_body}
```

## Context
- Added lines: {len(chunk_context.added_lines)}
- Deleted lines: {len(chunk_context.deleted_lines)}
- Significant change: {'yes' if chunk_context.is_significant else 'no'}

Review the change above, focusing on code quality, security, performance and maintainability."""


class ChunkReviewer:
    """Reviews individual chunks through the external reviewer."""

    def __init__(
        self,
        settings: Settings,
        structurer: Optional[ResponseStructurer] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the reviewer client.

        Args:
            settings: Application settings
            structurer: Response structurer; defaults to the configured output mode
            client: Pre-built OpenAI client (tests inject a mock)
        """
        self.model = settings.review_model
        self.timeout_seconds = settings.reviewer_timeout_seconds
        self.structurer = structurer or get_response_structurer(settings.review_output_mode)

        self.client = client
        if self.client is None and settings.deepseek_api_key:
            self.client = AsyncOpenAI(
                api_key=settings.deepseek_api_key,
                base_url=settings.deepseek_base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
            logger.info(f"Initialized reviewer client for {settings.deepseek_base_url}")

        if self.client is None:
            logger.warning("Reviewer API key not configured, chunk reviews will be skipped")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def system_prompt(self) -> str:
        return SYSTEM_PROMPT + self.structurer.system_prompt_suffix

    async def review_chunk(self, chunk: Chunk, context: ReviewContext) -> ReviewOutcome:
        """
        Review one chunk.

        Args:
            chunk: Chunk to review
            context: Pull request context

        Returns:
            Success outcome; a failure outcome only when no credential is configured

        Raises:
            Exception: Any reviewer or structuring error; the orchestrator
                converts it into a failed outcome
        """
        if not self.is_configured:
            return ReviewOutcome.failure(MISSING_API_KEY_ERROR)

        logger.info(
            f"Reviewing chunk {chunk.file_path}:{chunk.new_start}",
            extra={"chunk": f"{chunk.file_path}:{chunk.new_start}"},
        )

        request = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt()},
                {"role": "user", "content": build_review_prompt(chunk, context)},
            ],
            "temperature": 0.3,
            "max_tokens": 2000,
            "timeout": self.timeout_seconds,
        }
        if self.structurer.response_format:
            request["response_format"] = self.structurer.response_format

        response = await self.client.chat.completions.create(**request)

        text = (response.choices[0].message.content or "").strip()
        structured = self.structurer.structure(text, chunk)

        return ReviewOutcome(
            success=True,
            comments=structured.comments,
            rating=structured.rating,
            suggestions=structured.suggestions,
            risks=structured.risks,
        )
