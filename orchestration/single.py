"""Single-chapter analysis requests and manually supplied results."""

import logging
from datetime import datetime, timezone
from typing import Optional

from backend.protocol import AnalysisBackend
from config.exceptions import (
    AnalysisRequestError,
    ChapterBusyError,
    ManualPayloadError,
)
from models.enums import TaskOrigin
from models.novel import NovelSummary
from orchestration.catalog import ChapterCatalog
from orchestration.store import AnalysisStore
from tools.llm_client import parse_json_response
from tools.text_utils import truncate_for_log

logger = logging.getLogger(__name__)


class SingleTaskController:
    """Starts and settles one analysis request for one chapter."""

    def __init__(self, store: AnalysisStore, backend: AnalysisBackend, catalog: ChapterCatalog):
        self.store = store
        self.backend = backend
        self.catalog = catalog

    async def analyze(self, chapter_id: int) -> dict:
        """Analyze one chapter through the backend.

        The chapter is busy, with an empty stream entry, for exactly as long
        as the request is outstanding.

        Returns:
            The analysis returned by the backend.

        Raises:
            ChapterBusyError: If the chapter is busy and busy starts are rejected.
            AnalysisRequestError: If the backend request fails.
        """
        if self.store.is_busy(chapter_id):
            if self.store.settings.reject_busy_starts:
                raise ChapterBusyError(chapter_id)
            logger.warning("Chapter %d is already being analyzed; starting another request", chapter_id)

        self.store.begin_task(chapter_id, TaskOrigin.SINGLE)
        self.store.set_error(None)
        try:
            analysis = await self.backend.analyze_chapter(chapter_id, self.store.enabled_dimensions())
            await self.catalog.select_chapter(chapter_id)
            novel = self.store.current_novel
            if novel is not None:
                await self.catalog.fetch_chapters(novel.id)
            logger.info("Chapter %d analyzed", chapter_id)
            return analysis
        except AnalysisRequestError as e:
            self.store.set_error(str(e))
            raise
        except Exception as e:
            self.store.set_error(str(e))
            raise AnalysisRequestError(chapter_id, f"Analysis of chapter {chapter_id} failed: {e}") from e
        finally:
            self.store.settle_task(chapter_id)

    def parse_manual_result(self, text: str) -> dict:
        """Parse an analysis pasted in by hand. Never touches busy state.

        Raises:
            ManualPayloadError: If the text holds no JSON object.
        """
        try:
            return parse_json_response(text)
        except ValueError as e:
            logger.warning("Rejected manual analysis payload: %s", truncate_for_log(text))
            raise ManualPayloadError(f"Invalid analysis payload: {e}", raw_payload=text) from e

    async def save_analysis(self, chapter_id: int, analysis: dict) -> None:
        await self.backend.save_analysis(chapter_id, analysis)
        await self.catalog.select_chapter(chapter_id)
        novel = self.store.current_novel
        if novel is not None:
            await self.catalog.fetch_chapters(novel.id)

    async def parse_manual_summary(self, text: str, novel_id: Optional[str] = None) -> NovelSummary:
        """Parse a pasted full-book summary, saving it when ``novel_id`` is given."""
        try:
            data = parse_json_response(text)
        except ValueError as e:
            raise ManualPayloadError(f"Invalid summary payload: {e}", raw_payload=text) from e
        data["created_at"] = datetime.now(timezone.utc).isoformat()
        summary = NovelSummary.from_dict(data)
        if novel_id:
            await self.backend.save_summary(novel_id, summary)
        return summary
