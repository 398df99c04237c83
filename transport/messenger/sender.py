"""
Messenger Response Sender

Posts outbound payloads to the Send API.
One attempt per call. No formatting intelligence. No retries.
"""

import asyncio
import logging
from typing import Optional

import httpx

from config import RelayConfig

from .schemas import OutboundPayload

logger = logging.getLogger(__name__)


class SendError(Exception):
    """
    Send API call failed.

    status_code is None for transport errors (connection, timeout,
    deadline already passed).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MessengerSender:
    """
    Send API client bound to one RelayConfig.

    A new httpx.AsyncClient is opened per call; pass `transport` to
    route requests elsewhere (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        config: RelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def send(self, payload: OutboundPayload, timeout: Optional[float] = None) -> None:
        """
        POST one payload to {base_url}/me/messages.

        Args:
            payload: TextPayload or AttachmentPayload
            timeout: Seconds allowed for this call; defaults to
                send_timeout_seconds

        Raises:
            SendError: Non-2xx response, transport error or timeout
        """

        if timeout is None:
            timeout = self._config.send_timeout_seconds
        if timeout <= 0:
            raise SendError("Request deadline exceeded before send")

        body = payload.to_wire()
        logger.debug(
            f"Sending {payload.kind} payload",
            extra={"recipient_id": payload.recipient_id, "payload": body},
        )

        try:
            # httpx timeouts are per phase; wait_for caps the whole call
            response = await asyncio.wait_for(self._post(body, timeout), timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Send API call exceeded its {timeout:.2f}s deadline",
                extra={"recipient_id": payload.recipient_id},
            )
            raise SendError(f"Send API call exceeded its {timeout:.2f}s deadline")
        except httpx.TimeoutException as e:
            logger.error(
                f"Send API request timed out after {timeout:.2f}s",
                extra={"recipient_id": payload.recipient_id},
            )
            raise SendError(f"Send API request timed out: {e}")
        except httpx.RequestError as e:
            logger.error(
                f"HTTP request failed: {e}",
                exc_info=True,
                extra={"recipient_id": payload.recipient_id, "error": str(e)},
            )
            raise SendError(f"HTTP request failed: {e}")

        if not response.is_success:
            error_text = response.text
            logger.error(
                f"Send API error: {response.status_code} - {error_text}",
                extra={
                    "status_code": response.status_code,
                    "error_body": error_text,
                },
            )
            raise SendError(
                f"Send API returned {response.status_code}",
                status_code=response.status_code,
                body=error_text,
            )

        logger.info(
            f"{payload.kind.capitalize()} sent to {payload.recipient_id}",
            extra={"recipient_id": payload.recipient_id},
        )

    async def _post(self, body: dict, timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.post(
                self._config.messages_url,
                params={"access_token": self._config.access_token},
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=timeout,
            )
