"""
Push stream tests over raw ASGI.

httpx buffers whole responses, so the never-ending SSE responses are
driven by hand: the request body is delivered once, then ``receive``
blocks until the test signals ``http.disconnect``.
"""
import asyncio
import json

import pytest


class StreamConnection:
    def __init__(self, app, path: str) -> None:
        self.sent: asyncio.Queue = asyncio.Queue()
        self.disconnected = asyncio.Event()
        self._request_delivered = False
        scope = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.3"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": path,
            "raw_path": path.encode("ascii"),
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"test"), (b"accept", b"text/event-stream")],
            "client": ("127.0.0.1", 50000),
            "server": ("test", 80),
        }
        self.task = asyncio.create_task(app(scope, self._receive, self._send))

    async def _receive(self) -> dict:
        if not self._request_delivered:
            self._request_delivered = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await self.disconnected.wait()
        return {"type": "http.disconnect"}

    async def _send(self, message: dict) -> None:
        await self.sent.put(message)

    async def start(self) -> dict:
        return await asyncio.wait_for(self.sent.get(), 2)

    async def next_chunk(self) -> bytes:
        message = await asyncio.wait_for(self.sent.get(), 2)
        assert message["type"] == "http.response.body"
        return message["body"]

    async def close(self) -> None:
        self.disconnected.set()
        await asyncio.wait_for(self.task, 2)


def decode_frame(chunk: bytes) -> dict:
    text = chunk.decode("utf-8")
    assert text.startswith("data: ")
    assert text.endswith("\n\n")
    return json.loads(text[len("data: "):])


class TestOrderStream:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_connected_client_receives_placed_order(self, app, client, ctx, sample_order) -> None:
        stream = StreamConnection(app, "/admin/notifications")

        start = await stream.start()
        assert start["type"] == "http.response.start"
        assert start["status"] == 200
        headers = {k.decode(): v.decode() for k, v in start["headers"]}
        assert headers["content-type"].startswith("text/event-stream")
        assert headers["cache-control"] == "no-cache"
        assert await stream.next_chunk() == b": connected\n\n"
        assert len(ctx.order_feed) == 1

        response = await client.post("/order", json=sample_order)
        order_id = response.json()["order"]["orderId"]

        event = decode_frame(await stream.next_chunk())
        assert event["orderId"] == order_id
        assert event["kiosk"] == 3
        assert event["producten"] == [{"item": "Cola", "quantity": 2}]
        assert stream.sent.empty()

        await stream.close()
        assert len(ctx.order_feed) == 0


class TestPaymentStream:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_connected_client_receives_status_change(self, app, client, ctx) -> None:
        stream = StreamConnection(app, "/payment/notifications")
        assert (await stream.start())["status"] == 200
        assert await stream.next_chunk() == b": connected\n\n"

        await client.post("/payment/cancel", json={"orderId": "ORD-3"})

        event = decode_frame(await stream.next_chunk())
        assert event == {"orderId": "ORD-3", "status": "cancelled", "message": "Payment cancelled"}
        assert stream.sent.empty()

        await stream.close()
        assert len(ctx.payment_feed) == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_order_and_payment_feeds_are_independent(self, app, client, ctx, sample_order) -> None:
        stream = StreamConnection(app, "/payment/notifications")
        await stream.start()
        await stream.next_chunk()

        await client.post("/order", json=sample_order)
        assert stream.sent.empty()
        assert len(ctx.order_feed) == 0

        await stream.close()
