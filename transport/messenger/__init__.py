"""Messenger Transport Layer - Module Exports"""

from .decode import DecodeError, decode_envelope
from .dispatch import Dispatcher, RelayReport, prefix_transform
from .schemas import (
    Attachment,
    AttachmentPayload,
    Entry,
    InboundEnvelope,
    MessageBody,
    MessagingEvent,
    OutboundPayload,
    TextPayload,
    User,
    parse_outbound_payload,
)
from .security import VerificationError, sign_body, verify_signature, verify_webhook_challenge
from .sender import MessengerSender, SendError

__all__ = [
    # Schemas
    "InboundEnvelope",
    "Entry",
    "MessagingEvent",
    "MessageBody",
    "Attachment",
    "User",
    "OutboundPayload",
    "TextPayload",
    "AttachmentPayload",
    "parse_outbound_payload",
    # Decoding
    "decode_envelope",
    "DecodeError",
    # Security
    "verify_signature",
    "verify_webhook_challenge",
    "sign_body",
    "VerificationError",
    # Dispatch
    "Dispatcher",
    "RelayReport",
    "prefix_transform",
    # Sender
    "MessengerSender",
    "SendError",
]
