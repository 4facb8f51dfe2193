"""
Unit tests for webhook signature verification.
"""

import hashlib
import hmac

import pytest

from app.config import Settings
from app.models.error import UnauthorizedError
from app.services.signature_verifier import (
    SignatureVerifier,
    compute_signature,
    verify_signature,
)


BODY = b'{"zen": "hello"}'


def generate_signature(payload: bytes, secret: str) -> str:
    """Generate webhook signature."""
    return "sha256=" + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def test_compute_signature_matches_github_format():
    """Test signature has the sha256= prefix and a hex digest."""
    signature = compute_signature(BODY, "s3cret")

    assert signature == generate_signature(BODY, "s3cret")
    assert signature.startswith("sha256=")
    assert len(signature) == len("sha256=") + 64


def test_verify_valid_signature():
    """Test a correctly signed body verifies."""
    assert verify_signature(BODY, generate_signature(BODY, "s3cret"), "s3cret") is True


@pytest.mark.parametrize("signature", [
    None,
    "",
    "sha256=deadbeef",
    "not-a-signature",
    generate_signature(BODY, "other-secret"),
    generate_signature(b"tampered", "s3cret"),
    generate_signature(BODY, "s3cret").replace("sha256=", "sha1="),
])
def test_verify_rejects_bad_signatures(signature):
    """Test missing, truncated or mismatched signatures never verify."""
    assert verify_signature(BODY, signature, "s3cret") is False


def test_verify_without_secret_fails_closed():
    """Test an unset secret never verifies."""
    signature = generate_signature(BODY, "")

    assert verify_signature(BODY, signature, None) is False
    assert verify_signature(BODY, signature, "") is False


def test_authenticate_accepts_valid_signature(settings):
    """Test the gate lets a signed delivery through."""
    verifier = SignatureVerifier(settings)

    verifier.authenticate(BODY, generate_signature(BODY, "test_secret"))


def test_authenticate_rejects_missing_signature(settings):
    """Test the gate rejects deliveries without a signature header."""
    verifier = SignatureVerifier(settings)

    with pytest.raises(UnauthorizedError) as exc_info:
        verifier.authenticate(BODY, None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.error == "Unauthorized"


def test_authenticate_rejects_invalid_signature(settings):
    """Test the gate rejects deliveries signed with another secret."""
    verifier = SignatureVerifier(settings)

    with pytest.raises(UnauthorizedError, match="Invalid webhook signature"):
        verifier.authenticate(BODY, generate_signature(BODY, "wrong"))


def test_authenticate_without_secret_rejects_by_default():
    """Test a missing secret rejects every delivery unless opted out."""
    verifier = SignatureVerifier(Settings(_env_file=None, github_webhook_secret=None))

    with pytest.raises(UnauthorizedError):
        verifier.authenticate(BODY, generate_signature(BODY, ""))


def test_authenticate_without_secret_allowed_when_configured():
    """Test unsigned deliveries pass when explicitly allowed."""
    verifier = SignatureVerifier(Settings(
        _env_file=None,
        github_webhook_secret=None,
        allow_unsigned_webhooks=True,
    ))

    verifier.authenticate(BODY, None)
