"""
Messenger Sender Tests

Send API request shape and response interpretation, via httpx.MockTransport.
"""

import asyncio
import json
import time

import httpx
import pytest

from transport.messenger.schemas import AttachmentPayload, TextPayload
from transport.messenger.sender import MessengerSender, SendError


class TestSendRequest:
    """Outbound request shape."""

    @pytest.mark.asyncio
    async def test_text_request(self, relay_config, send_api):
        sender = MessengerSender(relay_config, transport=send_api.transport)

        await sender.send(TextPayload(recipient_id="U1", text="echo: hi"))

        assert len(send_api.requests) == 1
        request = send_api.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v18.0/me/messages"
        assert request.url.params["access_token"] == relay_config.access_token
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "recipient": {"id": "U1"},
            "message": {"text": "echo: hi"},
        }

    @pytest.mark.asyncio
    async def test_attachment_request(self, relay_config, send_api):
        sender = MessengerSender(relay_config, transport=send_api.transport)
        payload = AttachmentPayload(recipient_id="U1", attachment_type="file", url="https://cdn.test/f.pdf")

        await sender.send(payload)

        assert json.loads(send_api.requests[0].content) == payload.to_wire()


class TestSendErrors:
    """Response interpretation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 403, 500, 302])
    async def test_non_2xx_raises_with_status_and_body(self, relay_config, send_api_factory, status_code):
        stub = send_api_factory(status_code=status_code, body={"error": {"message": "nope"}})
        sender = MessengerSender(relay_config, transport=stub.transport)

        with pytest.raises(SendError) as exc_info:
            await sender.send(TextPayload(recipient_id="U1", text="hi"))

        assert exc_info.value.status_code == status_code
        assert "nope" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_2xx_other_than_200_accepted(self, relay_config, send_api_factory):
        stub = send_api_factory(status_code=202)
        sender = MessengerSender(relay_config, transport=stub.transport)

        await sender.send(TextPayload(recipient_id="U1", text="hi"))

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, relay_config):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        sender = MessengerSender(relay_config, transport=httpx.MockTransport(refuse))

        with pytest.raises(SendError) as exc_info:
            await sender.send(TextPayload(recipient_id="U1", text="hi"))

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_raises(self, relay_config):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        sender = MessengerSender(relay_config, transport=httpx.MockTransport(slow))

        with pytest.raises(SendError):
            await sender.send(TextPayload(recipient_id="U1", text="hi"))

    @pytest.mark.asyncio
    async def test_expired_deadline_skips_network(self, relay_config, send_api):
        sender = MessengerSender(relay_config, transport=send_api.transport)

        with pytest.raises(SendError):
            await sender.send(TextPayload(recipient_id="U1", text="hi"), timeout=0)

        assert send_api.requests == []


class TestSendDeadline:
    """The timeout caps the whole call, not each connect/read phase."""

    @pytest.mark.asyncio
    async def test_slow_trickling_response_cut_at_deadline(self, relay_config):
        async def trickle():
            for _ in range(30):
                await asyncio.sleep(0.1)
                yield b"x"

        async def respond_slowly(request):
            return httpx.Response(200, content=trickle())

        sender = MessengerSender(relay_config, transport=httpx.MockTransport(respond_slowly))

        started = time.monotonic()
        with pytest.raises(SendError) as exc_info:
            await sender.send(TextPayload(recipient_id="U1", text="hi"), timeout=0.3)

        assert time.monotonic() - started < 1.5
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_stalled_server_cut_at_deadline(self, relay_config):
        async def stall(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        sender = MessengerSender(relay_config, transport=httpx.MockTransport(stall))

        started = time.monotonic()
        with pytest.raises(SendError):
            await sender.send(TextPayload(recipient_id="U1", text="hi"), timeout=0.2)

        assert time.monotonic() - started < 1.5
