"""Progress reporting for chunked historical fetches."""

import asyncio
import inspect
from typing import AsyncIterator, Awaitable, Callable, Union

from forexnepal.domain.models.rates import ProgressEvent

_CLOSED = object()


class ProgressChannel:
    """Queue the orchestrator publishes chunk progress to; consumers ``async for`` over it.

    Iteration ends once the producer calls ``close()``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def publish(self, event: ProgressEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


ProgressSink = Union[ProgressChannel, Callable[[ProgressEvent], Union[None, Awaitable[None]]]]


async def publish(sink: ProgressSink | None, event: ProgressEvent) -> None:
    if sink is None:
        return
    if isinstance(sink, ProgressChannel):
        sink.publish(event)
        return
    result = sink(event)
    if inspect.isawaitable(result):
        await result
