"""
Webhook signature validation - verify incoming Eventbrite webhooks are authentic.

Eventbrite signs the raw request body with HMAC-SHA256 and sends the hex
digest as ``X-Eventbrite-Signature: sha256=<hex>``. Validation MUST run on
the raw bytes; re-serialized JSON will not hash to the same digest.
"""
import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-eventbrite-signature"
SIGNATURE_SCHEME = "sha256"


class SignatureError(Exception):
    """Signature missing, malformed, or not matching the body."""


def compute_hmac_sha256(secret: str, body: bytes) -> bytes:
    """Raw HMAC-SHA256 digest of the body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()


def compute_payload_hash(body: bytes) -> str:
    """Compute SHA-256 hash of raw payload for log correlation."""
    return hashlib.sha256(body).hexdigest()


def parse_signature_header(header: str) -> Optional[bytes]:
    """
    Split ``sha256=<hex>`` into its digest bytes.
    Returns None for any other scheme, an empty digest, or non-hex digits.
    """
    scheme, _, signature = header.strip().partition("=")
    if scheme != SIGNATURE_SCHEME or not signature:
        return None
    try:
        return bytes.fromhex(signature)
    except ValueError:
        return None


def verify_eventbrite_signature(
    body: bytes,
    header: Optional[str],
    secret: Optional[str],
) -> None:
    """
    Verify an Eventbrite webhook signature, raising SignatureError on failure.

    With no secret configured verification is disabled and this returns
    without checking anything.
    """
    if not secret:
        logger.debug("Eventbrite webhook secret not configured - signature check disabled")
        return

    if not header:
        raise SignatureError("Missing Eventbrite signature.")

    provided = parse_signature_header(header)
    if provided is None:
        raise SignatureError("Invalid Eventbrite signature format.")

    expected = compute_hmac_sha256(secret, body)
    # compare_digest returns False on length mismatch without leaking timing
    if not hmac.compare_digest(provided, expected):
        raise SignatureError("Eventbrite signature mismatch.")
