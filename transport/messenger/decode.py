"""
Messenger Event Decoding

PURE CONVERSION - NO DISPATCH, NO SENDS

Parses the raw webhook body into an InboundEnvelope.
Unknown fields are ignored. No semantic checks: an empty entry list
is a valid envelope.
"""

import json

from pydantic import ValidationError

from .schemas import InboundEnvelope


class DecodeError(Exception):
    """Webhook body is not a well-formed envelope."""
    pass


def decode_envelope(raw_body: bytes) -> InboundEnvelope:
    """
    Decode a webhook delivery.

    Args:
        raw_body: Request body bytes

    Returns:
        InboundEnvelope with entries and events in delivery order

    Raises:
        DecodeError: Invalid JSON, non-object body, missing "entry" list,
            or fields of the wrong shape
    """

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise DecodeError(f"Invalid JSON payload: {e}")

    if not isinstance(payload, dict):
        raise DecodeError("Envelope must be a JSON object")

    if not isinstance(payload.get("entry"), list):
        raise DecodeError("Envelope is missing the 'entry' list")

    try:
        return InboundEnvelope.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"Invalid envelope structure: {e.error_count()} error(s): {e}")
