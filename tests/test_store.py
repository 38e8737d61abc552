"""Tests for the shared analysis store: grace clearing and lifecycle."""

import asyncio

import pytest
from unittest.mock import MagicMock

from conftest import progress


class TestTasks:
    def test_begin_task_opens_empty_stream(self, store):
        from models.enums import TaskOrigin
        store.begin_task(7, TaskOrigin.SINGLE)
        assert store.is_busy(7)
        assert store.stream_content(7) == ""

    def test_batch_restart_keeps_streamed_text(self, store):
        from models.enums import TaskOrigin
        store.begin_task(7, TaskOrigin.BATCH)
        store.apply_stream(7, "partial")
        store.begin_task(7, TaskOrigin.BATCH)
        assert store.stream_content(7) == "partial"

    def test_settle_task_frees_and_discards(self, store):
        from models.enums import TaskOrigin
        store.begin_task(7, TaskOrigin.SINGLE)
        assert store.settle_task(7) is True
        assert not store.is_busy(7)
        assert 7 not in store.streams
        assert store.settle_task(7) is False

    def test_apply_stream_ignores_idle_chapter(self, store):
        assert store.apply_stream(7, "text") is False
        assert 7 not in store.streams

    def test_callbacks_notified(self, store):
        from models.enums import TaskOrigin
        callback = MagicMock()
        store.add_callback(callback)
        store.begin_task(7, TaskOrigin.SINGLE)
        store.begin_task(7, TaskOrigin.SINGLE)
        store.settle_task(7)
        callback.on_task_started.assert_called_once_with(7, TaskOrigin.SINGLE)
        callback.on_task_settled.assert_called_once_with(7)

    def test_raising_callback_does_not_interrupt_transition(self, store):
        from models.enums import TaskOrigin
        broken = MagicMock()
        broken.on_task_started.side_effect = RuntimeError("display glitch")
        broken.on_task_settled.side_effect = RuntimeError("display glitch")
        healthy = MagicMock()
        store.add_callback(broken)
        store.add_callback(healthy)

        store.begin_task(7, TaskOrigin.BATCH)
        assert store.is_busy(7)
        assert store.stream_content(7) == ""
        assert store.settle_task(7) is True
        assert not store.is_busy(7)
        healthy.on_task_started.assert_called_once_with(7, TaskOrigin.BATCH)
        healthy.on_task_settled.assert_called_once_with(7)


class TestGraceClearing:
    @pytest.mark.asyncio
    async def test_done_progress_cleared_after_grace(self, store):
        store.set_progress(progress("done", 7, current=1, total=1))
        assert store.progress.status == "done"
        await asyncio.sleep(0.1)
        assert store.progress is None

    @pytest.mark.asyncio
    async def test_non_terminal_progress_not_cleared(self, store):
        store.set_progress(progress("analyzing", 7))
        await asyncio.sleep(0.1)
        assert store.progress is not None

    @pytest.mark.asyncio
    async def test_newer_progress_survives_stale_timer(self, store):
        store.set_progress(progress("done", 7))
        await asyncio.sleep(0.03)
        store.set_progress(progress("analyzing", 8))
        await asyncio.sleep(0.05)
        assert store.progress.chapter_id == 8
        await asyncio.sleep(0.05)
        assert store.progress.chapter_id == 8

    @pytest.mark.asyncio
    async def test_closed_batch_view_cleared_after_grace(self, store):
        store.open_batch("n1")
        store.update_batch(progress("batch_analyzing", 1))
        store.close_batch(progress("batch_done", current=3, total=3))
        assert store.batch.terminal
        assert store.batch.start_time is None
        await asyncio.sleep(0.1)
        assert store.batch is None

    @pytest.mark.asyncio
    async def test_new_batch_not_cleared_by_old_timer(self, store):
        store.open_batch("n1")
        store.close_batch(progress("batch_done"))
        store.open_batch("n1")
        await asyncio.sleep(0.1)
        assert store.batch is not None
        assert not store.batch.terminal


class TestBatchView:
    def test_open_batch_sets_loading(self, store):
        store.set_error("old")
        store.open_batch("n1", [1, 2])
        assert store.loading
        assert store.error is None
        assert store.batch.chapter_ids == [1, 2]
        assert store.batch_active()

    def test_start_time_set_once(self, store, clock):
        store.open_batch("n1")
        store.update_batch(progress("batch_analyzing", 1))
        first = store.batch.start_time
        clock.advance(30)
        store.update_batch(progress("batch_analyzing", 2))
        assert store.batch.start_time == first
        assert store.batch_elapsed() == pytest.approx(30)

    def test_request_cancel_without_batch(self, store):
        assert store.request_cancel() is False
        assert not store.is_cancelling

    def test_discard_batch_frees_batch_tasks_only(self, store):
        from models.enums import TaskOrigin
        store.open_batch("n1")
        store.begin_task(1, TaskOrigin.BATCH)
        store.begin_task(2, TaskOrigin.SINGLE)
        store.discard_batch()
        assert store.batch is None
        assert not store.loading
        assert not store.is_busy(1)
        assert store.is_busy(2)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_cancels_timers(self, store):
        store.set_progress(progress("done", 7))
        await store.close()
        await asyncio.sleep(0.1)
        assert store.progress is not None
        assert store.closed

    @pytest.mark.asyncio
    async def test_spawn_after_close_is_dropped(self, store):
        await store.close()

        async def side_effect():
            return 1

        assert store.spawn(side_effect()) is None

    @pytest.mark.asyncio
    async def test_close_cancels_background_tasks(self, store):
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.Event().wait()

        task = store.spawn(forever(), name="forever")
        await started.wait()
        await store.close()
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, store):
        await store.close()
        await store.close()
