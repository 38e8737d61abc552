"""Per-chapter buffer of streamed partial analysis text."""

from typing import Optional


class StreamBuffer:
    """Cumulative streamed text per chapter.

    Every notification carries the full text so far, so ``replace`` overwrites
    the entry; applying the same snapshot twice leaves it unchanged.
    """

    def __init__(self):
        self._content: dict[int, str] = {}

    def open(self, chapter_id: int) -> None:
        self._content[chapter_id] = ""

    def replace(self, chapter_id: int, full_content: str) -> None:
        self._content[chapter_id] = full_content

    def discard(self, chapter_id: int) -> None:
        self._content.pop(chapter_id, None)

    def get(self, chapter_id: int) -> Optional[str]:
        return self._content.get(chapter_id)

    def snapshot(self) -> dict[int, str]:
        return dict(self._content)

    def __contains__(self, chapter_id: int) -> bool:
        return chapter_id in self._content

    def __len__(self) -> int:
        return len(self._content)
