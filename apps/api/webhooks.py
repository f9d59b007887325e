"""
Webhook signature verification for inbound payment confirmations.
"""

from __future__ import annotations

import hashlib
import hmac

from apps.common.types import WebhookSignature


def verify_hmac_signature(
    payload_body: bytes, signature: WebhookSignature, secret: str, algorithm: str = "sha256"
) -> bool:
    """
    🔐 Verify HMAC signature for webhook authenticity

    Signature is the hex digest of the raw request body keyed with the shared secret.
    """
    if not signature or not secret:
        return False

    mac = hmac.new(secret.encode("utf-8"), payload_body, getattr(hashlib, algorithm))
    expected_signature = mac.hexdigest()

    # Timing-safe comparison
    return hmac.compare_digest(signature, expected_signature)
