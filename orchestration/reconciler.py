"""Folds backend notifications into the shared analysis state."""

import logging
from typing import AsyncIterator

from config.exceptions import AnalysisCoreError
from models.enums import (
    BATCH_TERMINAL_STATUSES,
    Channel,
    ProgressStatus,
    TaskOrigin,
    UNIT_SETTLED_STATUSES,
)
from models.events import InboundEvent, ProgressEvent, StreamingEvent
from orchestration.catalog import ChapterCatalog
from orchestration.store import AnalysisStore

logger = logging.getLogger(__name__)


class EventReconciler:
    """The only writer that applies notifications to the store.

    Each event is applied to completion before the next one is read, so
    the channel-to-state mapping lives entirely in :meth:`apply`.
    """

    def __init__(self, store: AnalysisStore, catalog: ChapterCatalog):
        self.store = store
        self.catalog = catalog

    def apply(self, event: InboundEvent) -> None:
        if event.channel == Channel.ANALYSIS_PROGRESS:
            self._apply_progress(event.payload)
        elif event.channel == Channel.BATCH_PROGRESS:
            self._apply_batch(event.payload)
        elif event.channel == Channel.ANALYSIS_STREAMING:
            self._apply_streaming(event.payload)
        else:
            raise ValueError(f"Unhandled channel: {event.channel}")

    async def run(self, events: AsyncIterator[InboundEvent]) -> int:
        """Apply every event from a subscription until it ends.

        Returns:
            Number of events applied.
        """
        applied = 0
        async for event in events:
            try:
                self.apply(event)
            except AnalysisCoreError as e:
                logger.warning("Skipping %s event: %s", event.channel.value, e)
                continue
            except Exception:
                logger.exception("Failed to apply %s event; skipping", event.channel.value)
                continue
            applied += 1
        logger.debug("Event subscription ended after %d events", applied)
        return applied

    def _apply_progress(self, event: ProgressEvent) -> None:
        self.store.set_progress(event)

    def _apply_batch(self, event: ProgressEvent) -> None:
        status = event.status
        batch = self.store.batch
        closed = batch is not None and batch.terminal

        if status in BATCH_TERMINAL_STATUSES:
            self.store.close_batch(event)
            self.catalog.request_refresh(event.novel_id)
            logger.info("Batch for %s ended: %s", event.novel_id, status)
            return

        if status == ProgressStatus.BATCH_ANALYZING:
            if closed:
                # Cancelled or finished: late dispatches do not start fresh units
                logger.info(
                    "Ignoring dispatch of chapter %s after batch reached %s",
                    event.chapter_id, batch.status,
                )
                return
            self.store.update_batch(event)
            if event.chapter_id is not None:
                self.store.begin_task(event.chapter_id, TaskOrigin.BATCH)
            return

        if status in UNIT_SETTLED_STATUSES and event.chapter_id is not None:
            # After a terminal status the unit is still freed, but the
            # terminal message stays on display
            if batch is not None and not closed:
                self.store.update_batch(event)
            self.store.settle_task(event.chapter_id)
            if status == ProgressStatus.ERROR:
                logger.warning("Batch unit %d failed: %s", event.chapter_id, event.message)
            self.catalog.request_refresh(event.novel_id)
            return

        if batch is None or closed:
            logger.debug("Ignoring batch status %s with no open batch", status)
            return
        self.store.update_batch(event)

    def _apply_streaming(self, event: StreamingEvent) -> None:
        if not self.store.apply_stream(event.chapter_id, event.full_content):
            logger.debug("Dropping streamed content for idle chapter %d", event.chapter_id)
