"""
Messenger Dispatcher

Turns decoded messaging events into outbound payloads and relays them.

Policy, per event:
1. Echoes of the page's own sends produce nothing.
2. Non-empty text produces one text reply (text_transform applied).
3. image/audio/video/file attachments are forwarded by URL; images use
   the configured placeholder URL when one is set.
4. Other attachment types are logged and dropped.

A failed text reply abandons the rest of that event; a failed attachment
forward skips only itself. Other events always run.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError

from config import RelayConfig

from .schemas import (
    SUPPORTED_ATTACHMENT_TYPES,
    AttachmentPayload,
    InboundEnvelope,
    MessagingEvent,
    OutboundPayload,
    TextPayload,
)
from .sender import MessengerSender, SendError

logger = logging.getLogger(__name__)

TextTransform = Callable[[str], str]


def prefix_transform(prefix: str) -> TextTransform:
    """Reply with the inbound text behind a fixed prefix."""

    def transform(text: str) -> str:
        return prefix + text

    return transform


@dataclass
class RelayReport:
    """Outcome of relaying one envelope."""

    events: int = 0
    echoes_skipped: int = 0
    payloads_sent: int = 0
    events_failed: int = 0


class Dispatcher:
    """Reply policy bound to one RelayConfig."""

    def __init__(
        self,
        config: RelayConfig,
        text_transform: Optional[TextTransform] = None,
    ) -> None:
        self._config = config
        self._text_transform = text_transform or prefix_transform(config.response_text_prefix)

    def dispatch(self, event: MessagingEvent) -> list[OutboundPayload]:
        """
        Build the outbound payloads for one event.

        Pure: no sends, no state. Order is text reply first, then one
        forward per supported attachment in inbound order.
        """

        message = event.message
        sender_id = event.sender.id

        if message.is_echo:
            logger.debug("Ignoring echo message", extra={"mid": message.mid})
            return []

        if not sender_id:
            logger.warning("Event has no sender id; nothing to reply to", extra={"mid": message.mid})
            return []

        payloads: list[OutboundPayload] = []

        if message.text:
            reply = self._text_transform(message.text)
            try:
                payloads.append(TextPayload(recipient_id=sender_id, text=reply))
            except ValidationError:
                logger.warning(
                    "Text transform produced an empty reply; skipping",
                    extra={"sender_id": sender_id, "mid": message.mid},
                )

        for attachment in message.attachments:
            if attachment.type not in SUPPORTED_ATTACHMENT_TYPES:
                logger.info(f"Received an unsupported attachment: {attachment.type}")
                continue

            url = attachment.url
            if attachment.type == "image" and self._config.image_placeholder_url:
                url = self._config.image_placeholder_url

            if not url:
                logger.warning(
                    f"Skipping {attachment.type} attachment without a URL",
                    extra={"sender_id": sender_id, "mid": message.mid},
                )
                continue

            payloads.append(
                AttachmentPayload(
                    recipient_id=sender_id,
                    attachment_type=attachment.type,
                    url=url,
                )
            )

        return payloads

    async def relay(
        self,
        envelope: InboundEnvelope,
        sender: MessengerSender,
        deadline: Optional[float] = None,
    ) -> RelayReport:
        """
        Dispatch and send every event of an envelope, in order.

        Args:
            envelope: Decoded delivery
            sender: Send API client
            deadline: time.monotonic() value after which no further sends
                are attempted (None for no deadline)

        Returns:
            RelayReport with per-envelope counters
        """

        report = RelayReport()

        for event in envelope.events():
            report.events += 1

            if event.message.is_echo:
                report.echoes_skipped += 1

            failed = False
            for payload in self.dispatch(event):
                try:
                    await sender.send(payload, timeout=self._remaining(deadline))
                except SendError as e:
                    logger.error(
                        f"Failed to send {payload.kind}: {e}",
                        extra={
                            "sender_id": event.sender.id,
                            "mid": event.message.mid,
                            "status_code": e.status_code,
                        },
                    )
                    failed = True
                    # A failed text reply abandons the event; a failed
                    # attachment only skips itself
                    if payload.kind == "text":
                        break
                    continue
                report.payloads_sent += 1

            if failed:
                report.events_failed += 1

        return report

    def _remaining(self, deadline: Optional[float]) -> float:
        budget = self._config.send_timeout_seconds
        if deadline is None:
            return budget
        return min(budget, deadline - time.monotonic())
