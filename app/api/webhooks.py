"""
Webhook endpoints for GitHub deliveries.
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request

from app.models.api_response import WebhookResponse
from app.models.error import EventValidationError, InternalError, PipelineError
from app.services.event_dispatcher import EventDispatcher
from app.services.signature_verifier import SignatureVerifier
from app.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


def get_signature_verifier(request: Request) -> SignatureVerifier:
    return request.app.state.signature_verifier


def get_event_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.event_dispatcher


def decode_payload(raw_body: bytes) -> Dict[str, Any]:
    """
    Decode a JSON webhook body.

    Raises:
        EventValidationError: If the body is not a JSON object
    """
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise EventValidationError(f"Malformed JSON payload: {e}") from e

    if not isinstance(payload, dict):
        raise EventValidationError("Event payload must be a JSON object")
    return payload


@router.post(
    "/github",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
)
async def handle_github_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None, alias="X-GitHub-Event"),
    x_hub_signature_256: Optional[str] = Header(None, alias="X-Hub-Signature-256"),
    x_github_delivery: Optional[str] = Header(None, alias="X-GitHub-Delivery"),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> WebhookResponse:
    """
    Receive and process GitHub webhook events.

    This endpoint:
    1. Validates the HMAC-SHA256 signature against the raw body
    2. Decodes the JSON payload
    3. Dispatches by ``X-GitHub-Event`` and ``action``
    4. Runs the AI review for review-triggering pull request actions

    Raises:
        UnauthorizedError: If signature validation fails
        EventValidationError: If the payload is not a JSON object
        InternalError: For unexpected failures while processing
    """
    log = logger.with_context(delivery_id=x_github_delivery)

    raw_body = await request.body()
    verifier.authenticate(raw_body, x_hub_signature_256)

    payload = decode_payload(raw_body)
    log.info(f"Received GitHub event: {x_github_event}")

    try:
        return await dispatcher.dispatch(x_github_event, payload)
    except PipelineError:
        raise
    except Exception as e:
        log_error_with_context(log, f"Error handling webhook: {e}", e, event_type=x_github_event)
        raise InternalError(str(e)) from e
