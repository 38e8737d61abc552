"""Tests for store callbacks and progress formatting."""

import io

import pytest


class TestFormatDuration:
    def test_seconds_only(self):
        from orchestration.callbacks import format_duration
        assert format_duration(7) == "0:07"

    def test_minutes(self):
        from orchestration.callbacks import format_duration
        assert format_duration(125.9) == "2:05"

    def test_hours(self):
        from orchestration.callbacks import format_duration
        assert format_duration(3725) == "1:02:05"


class TestProtocol:
    def test_logging_callback_satisfies_protocol(self):
        from orchestration.callbacks import LoggingCallback, StoreCallback
        assert isinstance(LoggingCallback(), StoreCallback)

    def test_rich_callback_satisfies_protocol(self):
        from orchestration.callbacks import RichProgressCallback, StoreCallback
        assert isinstance(RichProgressCallback(), StoreCallback)

    def test_logging_callback_on_store(self, store, caplog):
        import logging
        from orchestration.callbacks import LoggingCallback
        from conftest import progress

        store.add_callback(LoggingCallback())
        with caplog.at_level(logging.INFO):
            store.open_batch("n1")
            store.update_batch(progress("batch_analyzing", 1, message="派发任务: 第一章 (已完成 0/3)"))
            store.set_error("boom")
        assert "派发任务" in caplog.text
        assert "boom" in caplog.text


class TestRichProgressCallback:
    def test_timing_before_start_is_empty(self):
        from orchestration.callbacks import RichProgressCallback
        from models.batch import BatchJob
        cb = RichProgressCallback(clock=lambda: 100.0)
        assert cb.describe_timing(BatchJob(novel_id="n1")) == ""

    def test_timing_while_estimating(self):
        from orchestration.callbacks import RichProgressCallback
        from models.batch import BatchJob
        cb = RichProgressCallback(clock=lambda: 130.0)
        job = BatchJob(novel_id="n1", total=3, start_time=100.0)
        assert cb.describe_timing(job) == "已用: 0:30  预计剩余: 计算中..."

    def test_timing_with_estimate(self):
        from orchestration.callbacks import RichProgressCallback
        from models.batch import BatchJob
        cb = RichProgressCallback(clock=lambda: 160.0)
        job = BatchJob(novel_id="n1", current=1, total=3, start_time=100.0)
        assert cb.describe_timing(job) == "已用: 1:00  预计剩余: 2:00"

    def test_renders_batch_updates(self):
        from rich.console import Console
        from orchestration.callbacks import RichProgressCallback
        from models.batch import BatchJob

        console = Console(file=io.StringIO(), force_terminal=False)
        cb = RichProgressCallback(console=console, clock=lambda: 160.0)
        cb.start()
        try:
            job = BatchJob(novel_id="n1", current=1, total=3, start_time=100.0, message="已完成: 第一章")
            job.cancel_requested = True
            cb.on_batch_progress(job)
            task = cb._progress.tasks[0]
            assert task.completed == 1
            assert task.total == 3
            assert "正在停止" in task.description
            assert "预计剩余" in task.fields["timing"]
        finally:
            cb.stop()

    def test_methods_noop_without_display(self):
        from orchestration.callbacks import RichProgressCallback
        from models.batch import BatchJob
        cb = RichProgressCallback()
        cb.on_batch_progress(BatchJob(novel_id="n1"))
        cb.on_batch_cleared()
        cb.on_error("boom")
