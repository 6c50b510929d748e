"""
Stripe webhook signature verification.

Stripe signs ``"{timestamp}.{raw_body}"`` with HMAC-SHA256 using the
endpoint secret and sends ``Stripe-Signature: t=<timestamp>,v1=<hex>``.
Several ``v1`` entries may be present while a secret is being rolled.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from join_date.services.errors import InvalidSignatureError

STRIPE_SIGNATURE_HEADER = "stripe-signature"
SIGNATURE_SCHEME = "v1"

__all__ = [
    "STRIPE_SIGNATURE_HEADER",
    "compute_signature",
    "parse_signature_header",
    "verify_stripe_signature",
]


def compute_signature(secret: str, timestamp: int, payload: bytes) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def parse_signature_header(header: str | None) -> tuple[int, list[str]]:
    """
    Split a Stripe-Signature header into its timestamp and v1 signatures.

    Raises:
        InvalidSignatureError: If the header is missing or malformed
    """
    if not header:
        raise InvalidSignatureError("Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise InvalidSignatureError("Invalid timestamp in Stripe-Signature header") from None
        elif key == SIGNATURE_SCHEME:
            signatures.append(value)

    if timestamp is None or not signatures:
        raise InvalidSignatureError("Malformed Stripe-Signature header")

    return timestamp, signatures


def verify_stripe_signature(
    payload: bytes,
    header: str | None,
    secret: str,
    tolerance: int = 300,
    now: float | None = None,
) -> None:
    """
    Verify a Stripe webhook signature.

    Args:
        payload: Raw request body, exactly as received
        header: Stripe-Signature header value
        secret: Endpoint signing secret (whsec_...)
        tolerance: Maximum age of the signature in seconds; 0 disables the check
        now: Current time override

    Raises:
        InvalidSignatureError: If no v1 signature matches or the timestamp is too old
    """
    timestamp, signatures = parse_signature_header(header)
    expected = compute_signature(secret, timestamp, payload)

    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise InvalidSignatureError("Invalid Stripe signature")

    current = time.time() if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise InvalidSignatureError("Stripe signature timestamp outside tolerance")
