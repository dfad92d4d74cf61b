"""
Security utilities for webhook signature verification.
Computes HMAC-SHA256 digests over raw request bodies and compares them in constant time.
"""

import hashlib
import hmac
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


def compute_signature(body: Union[bytes, str], secret: str) -> str:
    """Return the hex HMAC-SHA256 digest of ``body`` keyed with ``secret``."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(
    body: Union[bytes, str],
    signature: Optional[str],
    secret: Optional[str]
) -> bool:
    """
    Verify a webhook signature against the exact raw body.

    Fails closed: a missing secret, a missing signature or a signature that
    is not ASCII hex is a mismatch.
    """
    if not secret:
        logger.error("Webhook secret is not configured; rejecting signature")
        return False
    if not signature:
        return False

    candidate = signature.strip().lower()
    if not candidate.isascii():
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected.encode("ascii"), candidate.encode("ascii"))
