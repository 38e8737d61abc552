"""Analysis session: wires the store, controllers and reconciler to a backend."""

import asyncio
import logging
from typing import Callable, Iterable, Optional

from backend.protocol import AnalysisBackend
from config.exceptions import SessionStateError
from config.settings import Settings, get_settings
from models.batch import BatchAck, BatchJob
from models.events import ProgressEvent
from models.novel import NovelSummary
from orchestration.batch import BatchController
from orchestration.callbacks import StoreCallback
from orchestration.catalog import ChapterCatalog
from orchestration.reconciler import EventReconciler
from orchestration.single import SingleTaskController
from orchestration.store import AnalysisStore

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Application-lifetime owner of the analysis state.

    Usage::

        async with AnalysisSession(backend) as session:
            await session.select_novel("novel-1")
            await session.analyze(7)
    """

    def __init__(
        self,
        backend: AnalysisBackend,
        settings: Optional[Settings] = None,
        callbacks: Optional[Iterable[StoreCallback]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings or get_settings()
        self.backend = backend
        store_kwargs = {"clock": clock} if clock is not None else {}
        self.store = AnalysisStore(self.settings, callbacks, **store_kwargs)
        self.catalog = ChapterCatalog(self.store, backend)
        self.single = SingleTaskController(self.store, backend, self.catalog)
        self.batches = BatchController(self.store, backend, self.catalog)
        self.reconciler = EventReconciler(self.store, self.catalog)
        self._pump: Optional[asyncio.Task] = None

    # ---- Lifecycle ----

    async def start(self) -> None:
        """Subscribe to backend notifications and start applying them."""
        if self.store.closed:
            raise SessionStateError("Session already closed")
        if self._pump is not None:
            return
        events = self.backend.subscribe()
        self._pump = asyncio.get_running_loop().create_task(
            self.reconciler.run(events), name="analysis-events",
        )
        logger.info("Analysis session started")

    async def close(self) -> None:
        """Stop applying notifications and tear the store down."""
        try:
            if self._pump is not None:
                self._pump.cancel()
                try:
                    await self._pump
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    logger.error("Event pump ended with an error: %s", e)
                finally:
                    self._pump = None
        finally:
            await self.store.close()
        logger.info("Analysis session closed")

    async def __aenter__(self) -> "AnalysisSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_open(self) -> None:
        if self.store.closed:
            raise SessionStateError("Session is closed")

    # ---- Operations ----

    async def analyze(self, chapter_id: int) -> dict:
        self._ensure_open()
        return await self.single.analyze(chapter_id)

    async def start_batch(self, novel_id: str, chapter_ids: Optional[list[int]] = None) -> BatchAck:
        self._ensure_open()
        return await self.batches.start_batch(novel_id, chapter_ids)

    async def cancel_batch(self) -> None:
        self._ensure_open()
        await self.batches.cancel_batch()

    async def select_novel(self, novel_id: str) -> None:
        self._ensure_open()
        await self.catalog.select_novel(novel_id)

    async def fetch_chapters(self, novel_id: str) -> None:
        await self.catalog.fetch_chapters(novel_id)

    async def select_chapter(self, chapter_id: int) -> None:
        await self.catalog.select_chapter(chapter_id)

    def parse_manual_result(self, text: str) -> dict:
        return self.single.parse_manual_result(text)

    async def save_analysis(self, chapter_id: int, analysis: dict) -> None:
        self._ensure_open()
        await self.single.save_analysis(chapter_id, analysis)

    async def parse_manual_summary(self, text: str, novel_id: Optional[str] = None) -> NovelSummary:
        return await self.single.parse_manual_summary(text, novel_id)

    # ---- Queries ----

    def is_busy(self, chapter_id: int) -> bool:
        return self.store.is_busy(chapter_id)

    def stream_content(self, chapter_id: int) -> Optional[str]:
        return self.store.stream_content(chapter_id)

    @property
    def progress(self) -> Optional[ProgressEvent]:
        return self.store.progress

    @property
    def batch(self) -> Optional[BatchJob]:
        return self.store.batch

    @property
    def is_cancelling(self) -> bool:
        return self.store.is_cancelling

    @property
    def error(self) -> Optional[str]:
        return self.store.error
