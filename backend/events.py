"""In-process fan-out of backend notifications to subscribers."""

import asyncio
import logging
from typing import AsyncIterator, Optional

from models.events import InboundEvent, ProgressEvent, StreamingEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class EventBus:
    """Delivers every emitted event, in order, to every open subscription.

    Subscriptions are registered when :meth:`subscribe` is called, not when
    iteration starts, so nothing emitted in between is lost.
    """

    def __init__(self):
        self._queues: list[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def subscribe(self) -> AsyncIterator[InboundEvent]:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        return self._iterate(queue)

    async def _iterate(self, queue: asyncio.Queue) -> AsyncIterator[InboundEvent]:
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def emit(self, event: InboundEvent) -> None:
        for queue in self._queues:
            queue.put_nowait(event)

    def emit_progress(
        self,
        novel_id: str,
        chapter_id: Optional[int],
        status: str,
        current: int,
        total: int,
        message: str,
    ) -> None:
        self.emit(InboundEvent.analysis_progress(
            ProgressEvent(novel_id, chapter_id, status, current, total, message)
        ))

    def emit_batch(
        self,
        novel_id: str,
        chapter_id: Optional[int],
        status: str,
        current: int,
        total: int,
        message: str,
    ) -> None:
        logger.debug("batch_progress %s chapter=%s %d/%d", status, chapter_id, current, total)
        self.emit(InboundEvent.batch_progress(
            ProgressEvent(novel_id, chapter_id, status, current, total, message)
        ))

    def emit_streaming(self, chapter_id: int, chunk: str, full_content: str) -> None:
        self.emit(InboundEvent.streaming(
            StreamingEvent(chapter_id=chapter_id, full_content=full_content, chunk=chunk)
        ))

    def close(self) -> None:
        """End every open subscription after the events already queued."""
        for queue in list(self._queues):
            queue.put_nowait(_CLOSED)
