"""Tests for batch start and cancellation requests."""

import pytest
from unittest.mock import AsyncMock


@pytest.fixture
def controller(store, mock_backend, catalog):
    from orchestration.batch import BatchController
    return BatchController(store, mock_backend, catalog)


class TestStartBatch:
    @pytest.mark.asyncio
    async def test_start_opens_view_and_sets_loading(self, controller, store, mock_backend):
        ack = await controller.start_batch("n1")
        assert ack.total == 3
        assert store.batch.novel_id == "n1"
        assert store.batch.chapter_ids is None
        assert store.loading
        mock_backend.start_batch.assert_awaited_once_with("n1", None)

    @pytest.mark.asyncio
    async def test_start_chapter_batch_passes_ids(self, controller, store, mock_backend):
        await controller.start_chapter_batch("n1", [3, 1])
        mock_backend.start_batch.assert_awaited_once_with("n1", [3, 1])
        assert store.batch.chapter_ids == [3, 1]

    @pytest.mark.asyncio
    async def test_second_start_while_active_rejected(self, controller, mock_backend):
        from config.exceptions import BatchAlreadyRunningError
        await controller.start_novel_batch("n1")
        with pytest.raises(BatchAlreadyRunningError) as exc_info:
            await controller.start_batch("n2")
        assert exc_info.value.active_novel_id == "n1"
        assert mock_backend.start_batch.await_count == 1

    @pytest.mark.asyncio
    async def test_start_allowed_after_terminal(self, controller, store):
        from conftest import progress
        await controller.start_batch("n1")
        store.close_batch(progress("batch_done"))
        await controller.start_batch("n1")
        assert not store.batch.terminal

    @pytest.mark.asyncio
    async def test_empty_ack_closes_view(self, controller, store, mock_backend):
        from models.batch import BatchAck
        mock_backend.start_batch = AsyncMock(return_value=BatchAck(novel_id="n1", total=0))
        ack = await controller.start_batch("n1")
        assert ack.total == 0
        assert store.batch is None
        assert not store.loading

    @pytest.mark.asyncio
    async def test_failure_cleans_up(self, controller, store, mock_backend):
        from config.exceptions import BatchRequestError
        from models.enums import TaskOrigin
        from models.novel import Novel

        store.set_current_novel(Novel(id="n1"))
        store.begin_task(4, TaskOrigin.SINGLE)

        async def fail(novel_id, chapter_ids):
            store.begin_task(1, TaskOrigin.BATCH)
            raise RuntimeError("backend offline")

        mock_backend.start_batch = AsyncMock(side_effect=fail)
        with pytest.raises(BatchRequestError) as exc_info:
            await controller.start_batch("n1")

        assert exc_info.value.novel_id == "n1"
        assert store.error == "backend offline"
        assert store.batch is None
        assert not store.loading
        assert not store.is_busy(1)
        assert store.is_busy(4)
        await store.drain()
        mock_backend.list_chapters.assert_awaited_once_with("n1")


class TestCancelBatch:
    @pytest.mark.asyncio
    async def test_cancel_sets_flags(self, controller, store, mock_backend):
        await controller.start_batch("n1")
        await controller.cancel_batch()
        assert store.is_cancelling
        assert store.batch.cancel_requested
        mock_backend.cancel_batch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_without_batch_still_forwarded(self, controller, store, mock_backend):
        await controller.cancel_batch()
        assert not store.is_cancelling
        mock_backend.cancel_batch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_failure_resets_flag(self, controller, store, mock_backend):
        from config.exceptions import CancelRequestError
        await controller.start_batch("n1")
        mock_backend.cancel_batch = AsyncMock(side_effect=RuntimeError("no route"))
        with pytest.raises(CancelRequestError, match="no route"):
            await controller.cancel_batch()
        assert not store.is_cancelling
        assert not store.batch.cancel_requested
        assert store.error == "no route"
