"""Shared analysis state: busy chapters, stream buffers, progress views.

All mutation goes through the named operations below and runs on the event
loop thread, so each operation completes before the next one starts. Running
the store from several threads needs a lock around every operation.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional

from config.settings import Settings, get_settings
from models.batch import BatchJob
from models.chapter import Chapter, ChapterMeta
from models.enums import ProgressStatus, SINGLE_TERMINAL_STATUSES, TaskOrigin
from models.events import ProgressEvent
from models.novel import Novel
from orchestration.callbacks import StoreCallback
from orchestration.registry import TaskHandle, TaskRegistry
from orchestration.stream_buffer import StreamBuffer

logger = logging.getLogger(__name__)

_PROGRESS_TIMER = "progress"
_BATCH_TIMER = "batch"


class AnalysisStore:
    """Owner of the registry, stream buffer and progress views.

    Created at application start and torn down with :meth:`close`, which
    cancels pending grace timers and background refreshes.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        callbacks: Optional[Iterable[StoreCallback]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self._callbacks: list[StoreCallback] = list(callbacks or [])
        self._registry = TaskRegistry()
        self._streams = StreamBuffer()
        self._progress: Optional[ProgressEvent] = None
        self._batch: Optional[BatchJob] = None
        self._is_cancelling = False
        self._loading = False
        self._error: Optional[str] = None
        self._current_novel: Optional[Novel] = None
        self._chapters: list[ChapterMeta] = []
        self._selected_chapter: Optional[Chapter] = None
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._background: set[asyncio.Task] = set()
        self._closed = False

    # ---- Read access ----

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    @property
    def streams(self) -> StreamBuffer:
        return self._streams

    @property
    def progress(self) -> Optional[ProgressEvent]:
        return self._progress

    @property
    def batch(self) -> Optional[BatchJob]:
        return self._batch

    @property
    def is_cancelling(self) -> bool:
        return self._is_cancelling

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def current_novel(self) -> Optional[Novel]:
        return self._current_novel

    @property
    def chapters(self) -> list[ChapterMeta]:
        return list(self._chapters)

    @property
    def selected_chapter(self) -> Optional[Chapter]:
        return self._selected_chapter

    @property
    def closed(self) -> bool:
        return self._closed

    def is_busy(self, chapter_id: int) -> bool:
        return self._registry.is_busy(chapter_id)

    def stream_content(self, chapter_id: int) -> Optional[str]:
        return self._streams.get(chapter_id)

    def batch_active(self) -> bool:
        """True while a batch is open and has not reached a terminal status."""
        return self._batch is not None and not self._batch.terminal

    def enabled_dimensions(self) -> list[str]:
        novel = self._current_novel
        if novel and novel.enabled_dimensions:
            return list(novel.enabled_dimensions)
        return list(self.settings.default_dimensions)

    def add_callback(self, callback: StoreCallback) -> None:
        self._callbacks.append(callback)

    def _notify(self, hook: str, *args) -> None:
        # Observers never interrupt a state transition
        for cb in self._callbacks:
            try:
                getattr(cb, hook)(*args)
            except Exception as e:
                logger.warning("Callback %s.%s failed (non-fatal): %s", type(cb).__name__, hook, e)

    # ---- Tasks & streams ----

    def begin_task(self, chapter_id: int, origin: TaskOrigin) -> TaskHandle:
        """Mark a chapter busy and give it an empty stream entry.

        A repeated batch start for a chapter that is already busy keeps the
        text streamed so far.
        """
        newly_busy = not self._registry.is_busy(chapter_id)
        handle = self._registry.mark_busy(chapter_id, origin)
        if newly_busy or origin == TaskOrigin.SINGLE:
            self._streams.open(chapter_id)
        if newly_busy:
            self._notify("on_task_started", chapter_id, handle.origin)
        return handle

    def settle_task(self, chapter_id: int) -> bool:
        """Free a chapter and drop its stream entry. Returns False if it was idle."""
        handle = self._registry.mark_free(chapter_id)
        self._streams.discard(chapter_id)
        if handle is None:
            return False
        self._notify("on_task_settled", chapter_id)
        return True

    def settle_origin(self, origin: TaskOrigin) -> list[int]:
        """Free every chapter whose task was started by ``origin``."""
        settled = self._registry.chapters(origin)
        for chapter_id in settled:
            self.settle_task(chapter_id)
        return settled

    def apply_stream(self, chapter_id: int, full_content: str) -> bool:
        """Replace a busy chapter's streamed text. Idle chapters are ignored."""
        if not self._registry.is_busy(chapter_id):
            return False
        self._streams.replace(chapter_id, full_content)
        return True

    # ---- Single-task progress slot ----

    def set_progress(self, event: ProgressEvent) -> None:
        self._progress = event
        self._notify("on_progress", event)
        if event.status in SINGLE_TERMINAL_STATUSES:
            self._arm_grace(_PROGRESS_TIMER, lambda: self._clear_progress(event))

    def _clear_progress(self, expected: ProgressEvent) -> None:
        # A newer event owns the slot now
        if self._progress is not expected:
            return
        self._progress = None
        self._notify("on_progress", None)

    # ---- Batch view ----

    def open_batch(self, novel_id: str, chapter_ids: Optional[list[int]] = None) -> BatchJob:
        self._cancel_timer(_BATCH_TIMER)
        self._batch = BatchJob(novel_id=novel_id, chapter_ids=list(chapter_ids) if chapter_ids is not None else None)
        self._is_cancelling = False
        self._loading = True
        self._error = None
        self._notify_batch()
        return self._batch

    def update_batch(self, event: ProgressEvent) -> BatchJob:
        """Copy a batch event into the view, adopting a batch started elsewhere."""
        batch = self._batch
        if batch is None or batch.terminal:
            self._cancel_timer(_BATCH_TIMER)
            batch = self._batch = BatchJob(novel_id=event.novel_id)
            logger.debug("Adopted batch for novel %s", event.novel_id)
        batch.status = event.status
        batch.current = event.current
        batch.total = event.total
        batch.message = event.message
        batch.chapter_id = event.chapter_id
        if event.status == ProgressStatus.BATCH_ANALYZING and batch.start_time is None:
            batch.start_time = self.clock()
        self._notify_batch()
        return batch

    def close_batch(self, event: ProgressEvent) -> None:
        """Apply a terminal batch event and schedule the view's removal."""
        batch = self._batch
        if batch is None or batch.terminal:
            batch = self._batch = BatchJob(novel_id=event.novel_id)
        batch.status = event.status
        batch.current = event.current
        batch.total = event.total
        batch.message = event.message
        batch.chapter_id = event.chapter_id
        batch.start_time = None
        batch.terminal = True
        self._is_cancelling = False
        self._loading = False
        self.settle_origin(TaskOrigin.BATCH)
        self._notify_batch()
        self._arm_grace(_BATCH_TIMER, lambda: self._clear_batch(batch))

    def request_cancel(self) -> bool:
        """Flag the open batch as cancelling. Returns False when none is active."""
        if not self.batch_active():
            return False
        self._batch.cancel_requested = True
        self._is_cancelling = True
        self._notify_batch()
        return True

    def reset_cancelling(self) -> None:
        self._is_cancelling = False
        if self._batch is not None:
            self._batch.cancel_requested = False
            self._notify_batch()

    def discard_batch(self) -> None:
        """Drop the batch view immediately, freeing its chapters."""
        self._cancel_timer(_BATCH_TIMER)
        self.settle_origin(TaskOrigin.BATCH)
        self._is_cancelling = False
        self._loading = False
        if self._batch is not None:
            self._batch = None
            self._notify("on_batch_cleared")

    def batch_elapsed(self) -> Optional[float]:
        if self._batch is None:
            return None
        return self._batch.elapsed(self.clock())

    def _clear_batch(self, expected: BatchJob) -> None:
        if self._batch is not expected:
            return
        self._batch = None
        self._is_cancelling = False
        self._notify("on_batch_cleared")

    def _notify_batch(self) -> None:
        self._notify("on_batch_progress", self._batch)

    # ---- Flags & catalog ----

    def set_loading(self, loading: bool) -> None:
        self._loading = loading

    def set_error(self, message: Optional[str]) -> None:
        self._error = message
        if message:
            self._notify("on_error", message)

    def set_current_novel(self, novel: Optional[Novel]) -> None:
        self._current_novel = novel
        self._selected_chapter = None
        if novel is None:
            self._chapters = []

    def set_chapters(self, chapters: list[ChapterMeta]) -> None:
        self._chapters = list(chapters)

    def set_selected_chapter(self, chapter: Optional[Chapter]) -> None:
        self._selected_chapter = chapter

    # ---- Timers & background work ----

    def _arm_grace(self, key: str, clear: Callable[[], None]) -> None:
        if self._closed:
            return
        self._cancel_timer(key)
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.settings.grace_delay_seconds, self._fire_timer, key, clear)

    def _fire_timer(self, key: str, clear: Callable[[], None]) -> None:
        self._timers.pop(key, None)
        clear()

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def spawn(self, coro: Awaitable, name: str = "") -> Optional[asyncio.Task]:
        """Run a side effect in the background without blocking the caller."""
        if self._closed:
            coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro, name=name or None)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for background side effects spawned so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending timers and background work. Idempotent."""
        if self._closed:
            return
        self._closed = True
        for key in list(self._timers):
            self._cancel_timer(key)
        pending = list(self._background)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()
        logger.debug("Store closed (%d busy chapters left)", len(self._registry))
