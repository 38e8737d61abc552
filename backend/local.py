"""In-process analysis backend with cooperative batch cancellation."""

import asyncio
import logging
from typing import AsyncIterator, Optional

from backend.analyzer import ChapterAnalyzer, SdkChapterAnalyzer
from backend.events import EventBus
from backend.repository import InMemoryChapterRepository
from config.exceptions import BackendError
from config.settings import Settings, get_settings
from models.batch import BatchAck
from models.chapter import Chapter, ChapterMeta
from models.enums import ProgressStatus
from models.events import InboundEvent
from models.novel import Novel, NovelSummary

logger = logging.getLogger(__name__)


class LocalAnalysisBackend:
    """Runs analyses in the current event loop and reports through an EventBus.

    Batches keep up to ``batch_concurrency`` chapters in flight. A cancel
    request is a flag checked before each chapter starts: chapters already
    running finish and report normally, the rest are never started, and the
    run ends with ``batch_cancelled`` instead of ``batch_done``. A failed
    chapter is reported with ``error`` and the run continues.
    """

    def __init__(
        self,
        repository: Optional[InMemoryChapterRepository] = None,
        analyzer: Optional[ChapterAnalyzer] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.repository = repository or InMemoryChapterRepository()
        self.analyzer = analyzer or SdkChapterAnalyzer(settings=self.settings)
        self.bus = EventBus()
        self._cancel_requested = False
        self._batch_task: Optional[asyncio.Task] = None

    @property
    def batch_running(self) -> bool:
        return self._batch_task is not None and not self._batch_task.done()

    # ---- Single chapter ----

    async def analyze_chapter(self, chapter_id: int, dimensions: list[str]) -> dict:
        chapter = self.repository.get_chapter(chapter_id)
        try:
            analysis = await self._analyze(chapter, dimensions)
        except Exception as e:
            self.bus.emit_progress(
                chapter.novel_id, chapter.id, ProgressStatus.ERROR, 0, 1, f"分析失败: {e}",
            )
            raise BackendError(f"Analysis of chapter {chapter_id} failed: {e}") from e
        self.bus.emit_progress(chapter.novel_id, chapter.id, ProgressStatus.DONE, 1, 1, "分析完成")
        return analysis

    async def _analyze(self, chapter: Chapter, dimensions: list[str]) -> dict:
        self.bus.emit_progress(
            chapter.novel_id, chapter.id, ProgressStatus.ANALYZING, 0, 1, "正在生成分析...",
        )

        def on_content(chunk: str, full_content: str) -> None:
            self.bus.emit_streaming(chapter.id, chunk, full_content)

        analysis = await self.analyzer(chapter, dimensions, on_content)
        self.repository.save_analysis(chapter.id, analysis)
        return analysis

    # ---- Batch ----

    async def start_batch(self, novel_id: str, chapter_ids: Optional[list[int]] = None) -> BatchAck:
        if self.batch_running:
            raise BackendError("A batch analysis is already running")

        novel = self.repository.get_novel(novel_id)
        metas = self.repository.list_chapter_metas(novel_id)
        if chapter_ids is None:
            targets = [m for m in metas if not m.has_analysis]
        else:
            wanted = set(chapter_ids)
            targets = [m for m in metas if m.id in wanted]

        if not targets:
            logger.info("Batch for %s: nothing to analyze", novel_id)
            return BatchAck(novel_id=novel_id, total=0)

        dimensions = novel.enabled_dimensions or list(self.settings.default_dimensions)
        self._cancel_requested = False
        self._batch_task = asyncio.get_running_loop().create_task(
            self._run_batch(novel_id, targets, dimensions), name=f"batch-{novel_id}",
        )
        logger.info("Batch for %s started: %d chapters", novel_id, len(targets))
        return BatchAck(novel_id=novel_id, total=len(targets))

    async def _run_batch(self, novel_id: str, targets: list[ChapterMeta], dimensions: list[str]) -> None:
        total = len(targets)
        completed = 0
        skipped = 0
        slots = asyncio.Semaphore(self.settings.batch_concurrency)

        async def run_one(meta: ChapterMeta) -> None:
            nonlocal completed, skipped
            async with slots:
                if self._cancel_requested:
                    skipped += 1
                    return
                self.bus.emit_batch(
                    novel_id, meta.id, ProgressStatus.BATCH_ANALYZING, completed, total,
                    f"派发任务: {meta.title} (已完成 {completed}/{total})",
                )
                try:
                    await self._analyze(self.repository.get_chapter(meta.id), dimensions)
                except Exception as e:
                    logger.warning("Batch unit %d failed: %s", meta.id, e)
                    self.bus.emit_batch(
                        novel_id, meta.id, ProgressStatus.ERROR, completed, total,
                        f"分析 {meta.title} 失败: {e}",
                    )
                    return
                completed += 1
                self.bus.emit_batch(
                    novel_id, meta.id, ProgressStatus.CHAPTER_DONE, completed, total,
                    f"已完成: {meta.title} (总计 {completed}/{total})",
                )

        try:
            await asyncio.gather(*(run_one(meta) for meta in targets))
        finally:
            cancelled = self._cancel_requested
            self._cancel_requested = False

        if cancelled and skipped:
            self.bus.emit_batch(
                novel_id, None, ProgressStatus.BATCH_CANCELLED, completed, total,
                f"批量分析已取消 ({completed}/{total})",
            )
        else:
            self.bus.emit_batch(novel_id, None, ProgressStatus.BATCH_DONE, total, total, "批量分析完成")

    async def cancel_batch(self) -> None:
        if not self.batch_running:
            logger.info("Cancel requested with no batch running")
            return
        self._cancel_requested = True
        logger.info("Batch cancellation requested")

    async def wait_for_batch(self) -> None:
        """Wait until the running batch, if any, has reported its terminal status."""
        if self._batch_task is not None:
            await self._batch_task

    # ---- Catalog ----

    async def get_novel(self, novel_id: str) -> Novel:
        return self.repository.get_novel(novel_id)

    async def list_chapters(self, novel_id: str) -> list[ChapterMeta]:
        return self.repository.list_chapter_metas(novel_id)

    async def get_chapter(self, chapter_id: int) -> Chapter:
        return self.repository.get_chapter(chapter_id)

    async def save_analysis(self, chapter_id: int, analysis: dict) -> None:
        self.repository.save_analysis(chapter_id, analysis)

    async def save_summary(self, novel_id: str, summary: NovelSummary) -> None:
        self.repository.save_summary(novel_id, summary)

    # ---- Notifications ----

    def subscribe(self) -> AsyncIterator[InboundEvent]:
        return self.bus.subscribe()

    async def close(self) -> None:
        if self.batch_running:
            self._batch_task.cancel()
            try:
                await self._batch_task
            except asyncio.CancelledError:
                pass
        self.bus.close()
