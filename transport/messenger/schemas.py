"""
Messenger Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the inbound webhook envelope and the outbound Send API payloads.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


SUPPORTED_ATTACHMENT_TYPES = ("image", "audio", "video", "file")

AttachmentType = Literal["image", "audio", "video", "file"]


# ============================================================================
# INBOUND WEBHOOK ENVELOPE (INPUT)
# ============================================================================

class User(BaseModel):
    """Page-scoped participant reference."""
    id: str


class AttachmentPayloadIn(BaseModel):
    url: Optional[str] = None


class Attachment(BaseModel):
    """Attachment on an inbound message. Type is kept as sent."""
    type: str
    payload: Optional[AttachmentPayloadIn] = None

    @property
    def url(self) -> Optional[str]:
        return self.payload.url if self.payload else None


class MessageBody(BaseModel):
    """Message content of a single messaging event."""
    mid: Optional[str] = None
    text: Optional[str] = None
    attachments: list[Attachment] = Field(default_factory=list)
    is_echo: bool = False

    @field_validator("attachments", mode="before")
    @classmethod
    def _null_attachments(cls, value):
        return [] if value is None else value


class MessagingEvent(BaseModel):
    """
    One messaging event inside an entry.

    Delivery and read receipts carry no "message" object; they decode
    with an empty body.
    """
    sender: User
    recipient: User
    timestamp: int = 0
    message: MessageBody = Field(default_factory=MessageBody)

    @field_validator("message", mode="before")
    @classmethod
    def _null_message(cls, value):
        return {} if value is None else value


class Entry(BaseModel):
    id: str
    time: int = 0
    messaging: list[MessagingEvent] = Field(default_factory=list)

    @field_validator("messaging", mode="before")
    @classmethod
    def _null_messaging(cls, value):
        return [] if value is None else value


class InboundEnvelope(BaseModel):
    """
    Full webhook delivery.

    ref: https://developers.facebook.com/docs/messenger-platform/webhooks
    """

    object: Optional[str] = Field(None, description="Usually 'page'")
    entry: list[Entry] = Field(..., description="Webhook entries")

    def events(self) -> list[MessagingEvent]:
        """All messaging events in delivery order."""
        return [event for entry in self.entry for event in entry.messaging]


# ============================================================================
# SEND API PAYLOADS (OUTPUT)
# ============================================================================

class TextPayload(BaseModel):
    """Text reply. Empty text is rejected at construction."""

    kind: Literal["text"] = "text"
    recipient_id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)

    class Config:
        frozen = True

    def to_wire(self) -> dict:
        return {
            "recipient": {"id": self.recipient_id},
            "message": {"text": self.text},
        }


class AttachmentPayload(BaseModel):
    """Media forward by URL."""

    kind: Literal["attachment"] = "attachment"
    recipient_id: str = Field(..., min_length=1)
    attachment_type: AttachmentType
    url: str = Field(..., min_length=1)

    class Config:
        frozen = True

    def to_wire(self) -> dict:
        return {
            "recipient": {"id": self.recipient_id},
            "message": {
                "attachment": {
                    "type": self.attachment_type,
                    "payload": {"url": self.url},
                }
            },
        }


OutboundPayload = Union[TextPayload, AttachmentPayload]


def parse_outbound_payload(data: dict) -> OutboundPayload:
    """
    Rebuild an OutboundPayload from its Send API wire form.

    Raises:
        ValueError: A required key is missing, or the message carries
            neither or both of text/attachment
        pydantic.ValidationError: Field values are invalid
    """
    try:
        recipient_id = data["recipient"]["id"]
        message = data["message"]

        has_text = "text" in message
        has_attachment = "attachment" in message
        if has_text == has_attachment:
            raise ValueError("message must carry exactly one of 'text' or 'attachment'")

        if has_text:
            return TextPayload(recipient_id=recipient_id, text=message["text"])

        attachment = message["attachment"]
        attachment_type = attachment["type"]
        url = attachment["payload"]["url"]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid Send API payload: missing or malformed {e}")

    return AttachmentPayload(
        recipient_id=recipient_id,
        attachment_type=attachment_type,
        url=url,
    )
