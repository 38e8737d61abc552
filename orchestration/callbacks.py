"""Store callbacks for monitoring and real-time progress reporting."""

import logging
import time
from typing import Callable, Optional, Protocol, runtime_checkable

from models.batch import BatchJob
from models.enums import TaskOrigin
from models.events import ProgressEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class StoreCallback(Protocol):
    """Protocol for store change callbacks.

    Implement this protocol to observe the shared analysis state. Callbacks
    fire after the state has been updated.
    """

    def on_task_started(self, chapter_id: int, origin: TaskOrigin) -> None:
        """Called when a chapter becomes busy."""
        ...

    def on_task_settled(self, chapter_id: int) -> None:
        """Called when a chapter stops being busy, whatever the outcome."""
        ...

    def on_progress(self, event: Optional[ProgressEvent]) -> None:
        """Called when the single-task progress slot changes (None = cleared)."""
        ...

    def on_batch_progress(self, batch: BatchJob) -> None:
        """Called whenever the batch view changes."""
        ...

    def on_batch_cleared(self) -> None:
        """Called when the batch view disappears after its grace window."""
        ...

    def on_error(self, message: str) -> None:
        """Called when an error is stored for display."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_task_started(self, chapter_id: int, origin: TaskOrigin) -> None:
        logger.debug("→ chapter %d busy (%s)", chapter_id, origin.value)

    def on_task_settled(self, chapter_id: int) -> None:
        logger.debug("← chapter %d free", chapter_id)

    def on_progress(self, event: Optional[ProgressEvent]) -> None:
        if event is not None:
            logger.info("Chapter %s: %s %s", event.chapter_id, event.status, event.message)

    def on_batch_progress(self, batch: BatchJob) -> None:
        logger.info(
            "Batch %s: %s %d/%d %s",
            batch.novel_id, batch.status or "starting", batch.current, batch.total, batch.message,
        )

    def on_batch_cleared(self) -> None:
        logger.debug("Batch view cleared")

    def on_error(self, message: str) -> None:
        logger.error("Analysis error: %s", message)


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS, or H:MM:SS past an hour."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class RichProgressCallback:
    """Renders batch progress as a Rich live progress bar in the terminal.

    Shows elapsed time and a linear estimate of the remaining time once at
    least one chapter has finished.
    """

    def __init__(self, console=None, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            clock: Must be the same clock the store stamps start times with.
        """
        self._console = console
        self._clock = clock
        self._progress = None
        self._batch_task_id = None

    def start(self):
        """Start the progress display. Call before starting a batch."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("[dim]{task.fields[timing]}[/]"),
            console=console,
        )
        self._progress.start()
        self._batch_task_id = self._progress.add_task("等待开始...", total=None, timing="")

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def describe_timing(self, batch: BatchJob) -> str:
        now = self._clock()
        elapsed = batch.elapsed(now)
        if elapsed is None:
            return ""
        remaining = batch.estimated_remaining(now)
        remaining_label = format_duration(remaining) if remaining is not None else "计算中..."
        return f"已用: {format_duration(elapsed)}  预计剩余: {remaining_label}"

    def on_task_started(self, chapter_id: int, origin: TaskOrigin) -> None:
        pass

    def on_task_settled(self, chapter_id: int) -> None:
        pass

    def on_progress(self, event: Optional[ProgressEvent]) -> None:
        pass

    def on_batch_progress(self, batch: BatchJob) -> None:
        if not self._progress:
            return
        description = batch.message or "批量分析中..."
        if batch.cancel_requested and not batch.terminal:
            description = f"[yellow]正在停止(等待当前完成)...[/] {description}"
        elif batch.terminal:
            description = f"[bold green]{description}[/]"
        self._progress.update(
            self._batch_task_id,
            description=description,
            completed=batch.current,
            total=batch.total or None,
            timing=self.describe_timing(batch),
        )

    def on_batch_cleared(self) -> None:
        if not self._progress:
            return
        self._progress.update(self._batch_task_id, description="", timing="")

    def on_error(self, message: str) -> None:
        if not self._progress:
            return
        self._progress.update(self._batch_task_id, description=f"[red]错误: {message[:80]}[/]")
