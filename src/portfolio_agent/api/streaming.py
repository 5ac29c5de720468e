"""Server-sent event framing for relay output.

Every event is framed as::

    event: <type>
    data: <json>

(blank line terminated) and handed to the response as its own chunk, so the
browser can render text as soon as it arrives.
"""

import json
from collections.abc import AsyncIterator

from portfolio_agent.domain.chat.events import StreamEvent
from portfolio_agent.shared.exceptions import StreamTransportError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Disable proxy buffering (nginx) so frames are flushed immediately
    "X-Accel-Buffering": "no",
}


def format_sse(event: str, data: object) -> bytes:
    return f"event: {event}\ndata: {json.dumps(data, separators=(',', ':'))}\n\n".encode()


class StreamFramer:
    """Serializes stream events into SSE frames, one frame per event."""

    def __init__(self) -> None:
        self.started = False
        self.closed = False
        self.frames_written = 0

    def write(self, event: StreamEvent) -> bytes:
        """Frame one event. Once this has been called, headers are committed."""
        if self.closed:
            raise StreamTransportError(
                "Cannot write to a closed stream", details={"event": event.type}
            )
        self.started = True
        self.frames_written += 1
        return format_sse(event.type, event.payload())

    def close(self) -> None:
        self.closed = True

    async def frames(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[bytes]:
        """Frame ``events`` in order, closing the framer when they run out.

        If the client disconnects, the response cancels this generator; the
        ``finally`` closes the source so the relay drops its provider stream.
        """
        try:
            async for event in events:
                yield self.write(event)
        finally:
            self.close()
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
            logger.debug("stream_closed", frames=self.frames_written)
