"""Business logic services package."""

from app.services.chunk_reviewer import ChunkReviewer, build_review_prompt
from app.services.comment_publisher import CommentPublisher
from app.services.diff_parser import DiffParseError, DiffParser, parse_diff
from app.services.event_dispatcher import EventDispatcher
from app.services.github_client import GitHubAPIError, GitHubClient
from app.services.pr_reviewer import PullRequestReviewer
from app.services.response_structurer import (
    HeuristicResponseStructurer,
    JsonResponseStructurer,
    ResponseStructureError,
    ResponseStructurer,
    get_response_structurer,
)
from app.services.review_orchestrator import ReviewOrchestrator
from app.services.signature_verifier import SignatureVerifier, verify_signature

__all__ = [
    'ChunkReviewer',
    'build_review_prompt',
    'CommentPublisher',
    'DiffParser',
    'DiffParseError',
    'parse_diff',
    'EventDispatcher',
    'GitHubClient',
    'GitHubAPIError',
    'PullRequestReviewer',
    'ResponseStructurer',
    'HeuristicResponseStructurer',
    'JsonResponseStructurer',
    'ResponseStructureError',
    'get_response_structurer',
    'ReviewOrchestrator',
    'SignatureVerifier',
    'verify_signature',
]
