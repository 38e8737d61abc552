"""Batch analysis start and cooperative cancellation."""

import logging
from typing import Optional

from backend.protocol import AnalysisBackend
from config.exceptions import BatchAlreadyRunningError, BatchRequestError, CancelRequestError
from models.batch import BatchAck
from orchestration.catalog import ChapterCatalog
from orchestration.store import AnalysisStore

logger = logging.getLogger(__name__)


class BatchController:
    """Thin initiator for multi-chapter runs.

    The backend decides the processing order and reports every step on the
    batch channel; the reconciler turns those reports into state. This class
    only opens the batch view, sends the start and cancel requests, and
    cleans up when a request fails.
    """

    def __init__(self, store: AnalysisStore, backend: AnalysisBackend, catalog: ChapterCatalog):
        self.store = store
        self.backend = backend
        self.catalog = catalog

    async def start_batch(self, novel_id: str, chapter_ids: Optional[list[int]] = None) -> BatchAck:
        """Start a batch over ``chapter_ids``, or every unanalyzed chapter if omitted.

        Raises:
            BatchAlreadyRunningError: If another batch has not reached a terminal status.
            BatchRequestError: If the backend rejects the start request.
        """
        active = self.store.batch
        if self.store.batch_active():
            logger.warning("Refusing batch for %s: batch for %s still active", novel_id, active.novel_id)
            raise BatchAlreadyRunningError(novel_id, active.novel_id)

        self.store.open_batch(novel_id, chapter_ids)
        try:
            ack = await self.backend.start_batch(novel_id, chapter_ids)
        except Exception as e:
            logger.error("Batch start for %s failed: %s", novel_id, e)
            self.store.discard_batch()
            self.store.set_error(str(e))
            self.catalog.request_refresh(novel_id)
            raise BatchRequestError(novel_id, f"Batch analysis of novel {novel_id} failed: {e}") from e

        if ack.total == 0:
            logger.info("Batch for %s has nothing to analyze", novel_id)
            self.store.discard_batch()
        else:
            logger.info("Batch for %s accepted: %d chapters", novel_id, ack.total)
        return ack

    async def start_novel_batch(self, novel_id: str) -> BatchAck:
        return await self.start_batch(novel_id)

    async def start_chapter_batch(self, novel_id: str, chapter_ids: list[int]) -> BatchAck:
        return await self.start_batch(novel_id, list(chapter_ids))

    async def cancel_batch(self) -> None:
        """Ask the backend to stop starting new chapters.

        The chapter in flight finishes normally. ``is_cancelling`` stays set
        until a terminal batch status arrives.

        Raises:
            CancelRequestError: If the backend fails the cancellation request.
        """
        if not self.store.request_cancel():
            logger.info("Cancel requested with no active batch")
        try:
            await self.backend.cancel_batch()
        except Exception as e:
            self.store.reset_cancelling()
            self.store.set_error(str(e))
            raise CancelRequestError(f"Batch cancellation failed: {e}") from e
