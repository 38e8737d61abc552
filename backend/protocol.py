"""RPC surface of the analysis backend consumed by the orchestration core."""

from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from models.batch import BatchAck
from models.chapter import Chapter, ChapterMeta
from models.events import InboundEvent
from models.novel import Novel, NovelSummary


@runtime_checkable
class AnalysisBackend(Protocol):
    """The analysis service, treated as an opaque asynchronous RPC peer.

    Progress and streamed content are pushed through :meth:`subscribe`; the
    request methods only return final results or acknowledgements.
    """

    async def analyze_chapter(self, chapter_id: int, dimensions: list[str]) -> dict:
        """Analyze one chapter and return its full analysis.

        May emit streaming notifications for ``chapter_id`` before resolving.
        """
        ...

    async def start_batch(self, novel_id: str, chapter_ids: Optional[list[int]] = None) -> BatchAck:
        """Start analyzing several chapters; without ids, every unanalyzed one."""
        ...

    async def cancel_batch(self) -> None:
        """Ask the running batch to stop starting new chapters."""
        ...

    async def get_novel(self, novel_id: str) -> Novel:
        ...

    async def list_chapters(self, novel_id: str) -> list[ChapterMeta]:
        ...

    async def get_chapter(self, chapter_id: int) -> Chapter:
        ...

    async def save_analysis(self, chapter_id: int, analysis: dict) -> None:
        ...

    async def save_summary(self, novel_id: str, summary: NovelSummary) -> None:
        ...

    def subscribe(self) -> AsyncIterator[InboundEvent]:
        """Open a notification subscription covering all three channels."""
        ...
