"""Webhook signature verification (HMAC-SHA256 over the raw request body)"""

import hashlib
import hmac
from typing import Optional

from ravehub_gateway.config import settings
from ravehub_gateway.domain.exceptions import InvalidSignatureError


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(secret: str, body: bytes, signature: Optional[str]) -> None:
    """
    Check the X-Signature header against the raw body.

    With no secret configured the check is skipped only when signatures are
    not required (local development).

    Raises:
        InvalidSignatureError: reason in the message (missing_secret,
            missing_signature, invalid_signature)
    """
    if not secret:
        if settings.webhook_signature_required:
            raise InvalidSignatureError("missing_secret")
        return

    if not signature:
        raise InvalidSignatureError("missing_signature")

    expected = compute_signature(secret, body)
    if not hmac.compare_digest(signature.strip().lower(), expected):
        raise InvalidSignatureError("invalid_signature")
