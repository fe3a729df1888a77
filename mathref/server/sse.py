from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Set

from sse_starlette import JSONServerSentEvent
from starlette.requests import Request


class IndexEventBus:
    """Fan out index notifications to every connected Server-Sent Events client."""

    def __init__(self, *, heartbeat_interval: float | None = None) -> None:
        self._subscribers: Set[asyncio.Queue[JSONServerSentEvent | None]] = set()
        self._heartbeat = heartbeat_interval

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, data: Optional[dict]) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(JSONServerSentEvent(data=data, event=event))

    def close(self) -> None:
        """Stop every stream."""

        for queue in list(self._subscribers):
            queue.put_nowait(None)

    def open(self) -> asyncio.Queue[JSONServerSentEvent | None]:
        queue: asyncio.Queue[JSONServerSentEvent | None] = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def release(self, queue: asyncio.Queue[JSONServerSentEvent | None]) -> None:
        self._subscribers.discard(queue)

    async def subscribe(self, request: Request) -> AsyncIterator[JSONServerSentEvent]:
        """Yield events until the client disconnects or the bus closes."""

        queue = self.open()
        timeout = self._heartbeat if self._heartbeat and self._heartbeat > 0 else None
        try:
            while True:
                try:
                    if timeout is None:
                        item = await queue.get()
                    else:
                        item = await asyncio.wait_for(queue.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    yield JSONServerSentEvent(
                        data={"ts": datetime.now(timezone.utc).isoformat()},
                        event="heartbeat",
                    )
                    continue

                if item is None:
                    break

                yield item

                if await request.is_disconnected():
                    break
        finally:
            self.release(queue)


__all__ = ["IndexEventBus"]
