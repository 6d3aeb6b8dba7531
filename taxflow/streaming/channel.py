"""
Bounded event channel between the import engine and its consumer.

The engine publishes typed events, the consumer iterates them in order.
When the buffer is full the engine waits, so a slow consumer throttles the
import instead of growing memory.
"""

import asyncio

from .events import ImportEventBase

_CLOSED = object()


class ChannelClosed(RuntimeError):
    """Publishing to a closed channel."""


class EventChannel:
    """
    Single-producer, single-consumer FIFO of import events.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def publish(self, event: ImportEventBase) -> None:
        """
        Push an event, waiting while the buffer is full.

        Raises:
            ChannelClosed: If close() was already called
        """
        if self._closed:
            raise ChannelClosed("Cannot publish to a closed event channel")
        await self._queue.put(event)

    async def close(self) -> None:
        """Mark end of stream; iteration stops after buffered events."""
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ImportEventBase:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return item
