"""Shopify webhook signatures: base64(HMAC-SHA256(secret, raw body))."""

from __future__ import annotations

import base64
import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(raw_body: bytes, received: str, secret: str) -> bool:
    """Constant-time comparison of *received* with the expected signature.

    An empty secret never verifies.
    """
    if not secret:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest((received or "").strip(), expected)
