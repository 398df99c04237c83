"""
Messenger Webhook Receiver

FastAPI router for the single webhook route.
GET  / : subscription handshake (hub.verify_token / hub.challenge)
POST / : event delivery (X-Hub-Signature, JSON envelope)
Other methods get 405 from the router.

Update Flow:
  webhook → verify_signature → decode_envelope → Dispatcher.relay → 200
"""

import logging
import time

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import PlainTextResponse

from transport.messenger.decode import DecodeError, decode_envelope
from transport.messenger.security import (
    SIGNATURE_HEADER,
    VerificationError,
    verify_signature,
    verify_webhook_challenge,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messenger Webhook"])


# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/", response_class=PlainTextResponse)
async def messenger_webhook_challenge(request: Request) -> str:
    """
    Verify webhook subscription challenge.

    Returns:
        The challenge string (plain text)

    Raises:
        HTTPException(403): Invalid token
    """

    params = request.query_params
    config = request.app.state.config

    try:
        return verify_webhook_challenge(
            params.get("hub.verify_token"),
            params.get("hub.challenge"),
            config.verify_token,
        )
    except VerificationError as e:
        logger.warning(f"Webhook challenge rejected: {e}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


# ============================================================================
# WEBHOOK RECEIVER (Event processing)
# ============================================================================

@router.post("/")
async def messenger_webhook_receiver(request: Request) -> Response:
    """
    Receive Messenger events via webhook.

    Flow:
    1. Read raw body and bind the request deadline
    2. Verify signature (403 if missing or invalid)
    3. Decode envelope (400 if malformed)
    4. Dispatch and send per event (failures logged, not surfaced)

    Returns:
        Empty 200 once processed, even if individual sends failed
    """

    state = request.app.state
    deadline = time.monotonic() + state.config.request_timeout_seconds

    body = await request.body()

    # Security boundary
    if not verify_signature(body, request.headers.get(SIGNATURE_HEADER), state.config.app_secret):
        logger.warning("Invalid signature")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")

    try:
        envelope = decode_envelope(body)
    except DecodeError as e:
        logger.warning(f"Error decoding message: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    report = await state.dispatcher.relay(envelope, state.sender, deadline=deadline)
    logger.info(
        "Webhook delivery processed",
        extra={
            "events": report.events,
            "echoes_skipped": report.echoes_skipped,
            "payloads_sent": report.payloads_sent,
            "events_failed": report.events_failed,
        },
    )

    # Always 200 so the platform does not redeliver
    return Response(status_code=status.HTTP_200_OK)
