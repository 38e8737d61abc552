"""Task registry: which chapters have an analysis request outstanding."""

from dataclasses import dataclass
from typing import Iterator, Optional

from models.enums import TaskOrigin


@dataclass(frozen=True)
class TaskHandle:
    """An outstanding analysis request for one chapter."""
    chapter_id: int
    origin: TaskOrigin
    status: str = "pending"


class TaskRegistry:
    """Mapping of chapter id to its outstanding task.

    Membership is the single source of truth for "busy". Both mutations are
    idempotent: marking a busy chapter busy keeps its existing handle, and
    freeing an idle chapter does nothing.
    """

    def __init__(self):
        self._tasks: dict[int, TaskHandle] = {}

    def mark_busy(self, chapter_id: int, origin: TaskOrigin = TaskOrigin.SINGLE) -> TaskHandle:
        handle = self._tasks.get(chapter_id)
        if handle is None:
            handle = TaskHandle(chapter_id=chapter_id, origin=origin)
            self._tasks[chapter_id] = handle
        return handle

    def mark_free(self, chapter_id: int) -> Optional[TaskHandle]:
        return self._tasks.pop(chapter_id, None)

    def is_busy(self, chapter_id: int) -> bool:
        return chapter_id in self._tasks

    def get(self, chapter_id: int) -> Optional[TaskHandle]:
        return self._tasks.get(chapter_id)

    def chapters(self, origin: Optional[TaskOrigin] = None) -> list[int]:
        return [cid for cid, handle in self._tasks.items() if origin is None or handle.origin == origin]

    def __contains__(self, chapter_id: int) -> bool:
        return chapter_id in self._tasks

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._tasks))

    def __len__(self) -> int:
        return len(self._tasks)
