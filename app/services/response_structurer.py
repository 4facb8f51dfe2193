"""
Response structurers.

The reviewer returns free-form text. A :class:`ResponseStructurer` turns it
into comments, a rating, suggestions and risks for one chunk. The heuristic
structurer reads markdown headings; the JSON structurer asks the model for a
constrained object and validates it.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from app.models.diff import Chunk
from app.models.review import Comment, CommentSeverity, ReviewRating

SECTION_SPLIT_RE = re.compile(r"#{1,3}\s+")

RATING_SEVERITY = {
    ReviewRating.NEEDS_ATTENTION: CommentSeverity.HIGH,
    ReviewRating.NEEDS_IMPROVEMENT: CommentSeverity.MEDIUM,
    ReviewRating.GOOD: CommentSeverity.LOW,
}


class ResponseStructureError(ValueError):
    """Reviewer output could not be structured."""


class StructuredReview(BaseModel):
    """Structured form of one reviewer response."""

    comments: List[Comment] = []
    rating: ReviewRating = ReviewRating.GOOD
    suggestions: List[str] = []
    risks: List[str] = []


class ResponseStructurer(ABC):
    """Base interface for turning reviewer text into a structured review."""

    name: str = "base"

    @property
    def system_prompt_suffix(self) -> str:
        """Extra instructions appended to the reviewer's system prompt."""
        return ""

    @property
    def response_format(self) -> Optional[Dict[str, Any]]:
        """``response_format`` passed to the chat completion call, if any."""
        return None

    @abstractmethod
    def structure(self, text: str, chunk: Chunk) -> StructuredReview:
        """
        Structure a reviewer response for a chunk.

        Args:
            text: Raw reviewer output
            chunk: Chunk the response is about

        Returns:
            StructuredReview

        Raises:
            ResponseStructureError: If the text cannot be structured
        """


class HeuristicResponseStructurer(ResponseStructurer):
    """
    Heading and keyword based structuring.

    Matches the headings requested by the reviewer system prompt. The whole
    response becomes a single comment anchored at the chunk's first new line.
    """

    name = "heuristic"

    ASSESSMENT_MARKERS = ("overall assessment", "overall evaluation")
    ATTENTION_MARKERS = ("needs attention", "has issues", "problematic")
    IMPROVEMENT_MARKERS = ("needs improvement",)
    SUGGESTION_MARKERS = ("suggestion",)
    RISK_MARKERS = ("risk", "security")

    def structure(self, text: str, chunk: Chunk) -> StructuredReview:
        rating = ReviewRating.GOOD
        suggestions: List[str] = []
        risks: List[str] = []

        for section in SECTION_SPLIT_RE.split(text):
            content = section.strip()
            if not content:
                continue
            lowered = content.lower()

            if _contains_any(lowered, self.ASSESSMENT_MARKERS):
                if _contains_any(lowered, self.ATTENTION_MARKERS):
                    rating = ReviewRating.NEEDS_ATTENTION
                elif _contains_any(lowered, self.IMPROVEMENT_MARKERS):
                    rating = ReviewRating.NEEDS_IMPROVEMENT

            if _contains_any(lowered, self.SUGGESTION_MARKERS):
                suggestions.append(content)

            if _contains_any(lowered, self.RISK_MARKERS):
                risks.append(content)

        comment = Comment(
            content=text,
            severity=RATING_SEVERITY[rating],
            line=chunk.new_start,
            path=chunk.file_path or "",
        )
        return StructuredReview(
            comments=[comment],
            rating=rating,
            suggestions=suggestions,
            risks=risks,
        )


class _JsonComment(BaseModel):
    content: str
    severity: CommentSeverity = CommentSeverity.LOW
    line: Optional[int] = None


class _JsonReview(BaseModel):
    rating: ReviewRating
    comments: List[_JsonComment] = []
    suggestions: List[str] = []
    risks: List[str] = []


class JsonResponseStructurer(ResponseStructurer):
    """Strict mode: the reviewer must answer with a JSON object."""

    name = "json"

    @property
    def system_prompt_suffix(self) -> str:
        return (
            "\n\nRespond ONLY with a JSON object of the form:\n"
            '{"rating": "good" | "needs_improvement" | "needs_attention", '
            '"comments": [{"content": str, "severity": "low" | "medium" | "high", "line": int}], '
            '"suggestions": [str], "risks": [str]}\n'
            "Line numbers refer to the new version of the file."
        )

    @property
    def response_format(self) -> Optional[Dict[str, Any]]:
        return {"type": "json_object"}

    def structure(self, text: str, chunk: Chunk) -> StructuredReview:
        try:
            review = _JsonReview.model_validate(json.loads(_strip_code_fence(text)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ResponseStructureError(f"Reviewer returned invalid JSON review: {e}") from e

        path = chunk.file_path or ""
        comments = [
            Comment(
                content=c.content,
                severity=c.severity,
                line=c.line if c.line is not None else chunk.new_start,
                path=path,
            )
            for c in review.comments
        ]
        return StructuredReview(
            comments=comments,
            rating=review.rating,
            suggestions=review.suggestions,
            risks=review.risks,
        )


STRUCTURERS = {
    HeuristicResponseStructurer.name: HeuristicResponseStructurer,
    JsonResponseStructurer.name: JsonResponseStructurer,
}


def get_response_structurer(mode: str) -> ResponseStructurer:
    """
    Build the structurer for a configured output mode.

    Raises:
        ValueError: For unknown modes
    """
    try:
        return STRUCTURERS[mode.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown review output mode '{mode}', expected one of: {', '.join(STRUCTURERS)}"
        ) from None


def _contains_any(text: str, markers) -> bool:
    return any(marker in text for marker in markers)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped
