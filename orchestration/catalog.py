"""Chapter list and detail refreshes shared by the controllers and reconciler."""

import logging

from backend.protocol import AnalysisBackend
from orchestration.store import AnalysisStore

logger = logging.getLogger(__name__)


class ChapterCatalog:
    """Keeps the store's novel, chapter list and selected chapter current.

    Fetch failures are stored as the display error rather than raised, so a
    failed refresh never disturbs the request that triggered it.
    """

    def __init__(self, store: AnalysisStore, backend: AnalysisBackend):
        self.store = store
        self.backend = backend

    async def select_novel(self, novel_id: str) -> None:
        self.store.set_loading(True)
        self.store.set_error(None)
        try:
            novel = await self.backend.get_novel(novel_id)
        except Exception as e:
            logger.error("Failed to load novel %s: %s", novel_id, e)
            self.store.set_loading(False)
            self.store.set_error(str(e))
            return
        self.store.set_current_novel(novel)
        await self.fetch_chapters(novel_id)
        self.store.set_loading(False)

    async def fetch_chapters(self, novel_id: str) -> None:
        try:
            chapters = await self.backend.list_chapters(novel_id)
        except Exception as e:
            logger.error("Failed to list chapters of %s: %s", novel_id, e)
            self.store.set_error(str(e))
            return
        self.store.set_chapters(chapters)

    async def select_chapter(self, chapter_id: int) -> None:
        try:
            chapter = await self.backend.get_chapter(chapter_id)
        except Exception as e:
            logger.error("Failed to load chapter %d: %s", chapter_id, e)
            self.store.set_error(str(e))
            return
        self.store.set_selected_chapter(chapter)

    def request_refresh(self, novel_id: str) -> None:
        """Re-fetch the chapter list in the background if ``novel_id`` is open."""
        novel = self.store.current_novel
        if novel is None or novel.id != novel_id:
            return
        self.store.spawn(self.fetch_chapters(novel_id), name=f"refresh-{novel_id}")
