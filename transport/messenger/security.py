"""
Messenger Signature Verification

SECURITY BOUNDARY - Verify the X-Hub-Signature HMAC on inbound deliveries.
Pure functions over their inputs. No retries. No logic.
"""

import hashlib
import hmac
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature"
SIGNATURE_ALGORITHM = "sha1"


class VerificationError(Exception):
    """Webhook handshake or signature verification failed."""
    pass


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def verify_signature(
    raw_body: bytes,
    signature_header: Optional[str],
    secret: Union[str, bytes],
) -> bool:
    """
    Verify the legacy HMAC-SHA1 signature of a webhook delivery.

    The platform sends:
    - X-Hub-Signature: sha1=<hex digest>
    - the raw request body

    We compute HMAC(secret, body) and compare in constant time.
    Fails closed: a missing or malformed header, an unsupported algorithm,
    an empty secret or a mismatch all return False. Never raises.

    Args:
        raw_body: Request body exactly as received
        signature_header: Value of X-Hub-Signature (None if absent)
        secret: App secret shared with the platform

    Returns:
        True only if the signature matches
    """

    if not signature_header:
        logger.warning("No signature header found")
        return False

    if not secret:
        logger.error("Signature secret is empty; rejecting delivery")
        return False

    parts = signature_header.split("=")
    if len(parts) != 2:
        logger.warning("Signature does not have the expected format")
        return False

    algorithm, digest = parts
    if algorithm != SIGNATURE_ALGORITHM:
        logger.warning(f"Signature algorithm not supported: {algorithm}")
        return False

    expected = hmac.new(
        key=_to_bytes(secret),
        msg=raw_body,
        digestmod=hashlib.sha1,
    ).hexdigest()

    # Compare (constant-time to prevent timing attacks)
    return hmac.compare_digest(expected.encode("ascii"), digest.encode("utf-8"))


def sign_body(raw_body: bytes, secret: Union[str, bytes]) -> str:
    """Build the X-Hub-Signature value the platform would send for raw_body."""
    digest = hmac.new(_to_bytes(secret), raw_body, hashlib.sha1).hexdigest()
    return f"{SIGNATURE_ALGORITHM}={digest}"


def verify_webhook_challenge(
    hub_verify_token: Optional[str],
    hub_challenge: Optional[str],
    expected_token: str,
) -> str:
    """
    Verify the subscription handshake.

    The platform calls GET / with:
    - hub.verify_token=configured_token
    - hub.challenge=random_string

    Returns:
        The challenge string to echo back ("" if none was sent)

    Raises:
        VerificationError: Token missing or wrong
    """

    if not hub_verify_token or not expected_token:
        raise VerificationError("Missing hub.verify_token")

    if not hmac.compare_digest(_to_bytes(hub_verify_token), _to_bytes(expected_token)):
        raise VerificationError("Invalid hub.verify_token")

    return hub_challenge or ""
