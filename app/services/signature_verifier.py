"""
Webhook signature verification.

GitHub signs every delivery with ``X-Hub-Signature-256: sha256=<hex>``,
an HMAC-SHA256 of the raw request body keyed by the webhook secret.
"""

import hashlib
import hmac
from typing import Optional

from app.config import Settings
from app.models.error import UnauthorizedError
from app.utils.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature GitHub would send for ``raw_body``."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(raw_body: bytes, provided_signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify webhook signature for security.

    Args:
        raw_body: Raw request payload
        provided_signature: Value of the signature header
        secret: Shared webhook secret

    Returns:
        True if the signature matches, False otherwise. Never raises.
    """
    if not provided_signature or not secret:
        return False

    expected = compute_signature(raw_body, secret).encode("utf-8")
    provided = provided_signature.encode("utf-8")

    # compare_digest requires equal lengths to stay constant-time
    if len(provided) != len(expected):
        return False

    return hmac.compare_digest(provided, expected)


class SignatureVerifier:
    """Gate that authenticates webhook deliveries before dispatch."""

    def __init__(self, settings: Settings):
        self.secret = settings.github_webhook_secret
        self.allow_unsigned = settings.allow_unsigned_webhooks

    def authenticate(self, raw_body: bytes, signature: Optional[str]) -> None:
        """
        Authenticate a delivery.

        Args:
            raw_body: Raw request payload
            signature: ``X-Hub-Signature-256`` header value (may be missing)

        Raises:
            UnauthorizedError: If the delivery cannot be authenticated
        """
        if not self.secret:
            if self.allow_unsigned:
                logger.warning("Webhook secret not configured, skipping signature verification")
                return
            logger.error("Webhook secret not configured, rejecting delivery")
            raise UnauthorizedError("Webhook secret is not configured")

        if not signature:
            logger.warning("Missing webhook signature header")
            raise UnauthorizedError("Missing webhook signature")

        if not verify_signature(raw_body, signature, self.secret):
            logger.warning("Invalid webhook signature received")
            raise UnauthorizedError("Invalid webhook signature")

        logger.debug("Webhook signature verified")
