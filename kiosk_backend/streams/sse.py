from typing import AsyncIterator

from fastapi.responses import StreamingResponse
import structlog

from ..feeds import SubscriberRegistry

logger = structlog.get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEPALIVE_FRAME = ": keep-alive\n\n"


async def event_stream(registry: SubscriberRegistry, keepalive: float = 0) -> AsyncIterator[str]:
    """Yield SSE frames for one new subscriber until it is dropped or the client goes away.

    Starlette cancels the generator on disconnect, so removal happens in
    ``finally``; it is a no-op if a failed write already removed it.
    """
    subscriber = registry.register()
    try:
        yield ": connected\n\n"
        while True:
            frame = await subscriber.receive(timeout=keepalive)
            if frame is None:
                break
            yield frame or KEEPALIVE_FRAME
    finally:
        registry.unregister(subscriber)
        logger.debug("event_stream_closed", feed=registry.feed, subscriber_id=subscriber.id)


def sse_response(registry: SubscriberRegistry, keepalive: float = 0) -> StreamingResponse:
    return StreamingResponse(
        event_stream(registry, keepalive),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
