"""In-memory novel and chapter storage for the local backend."""

import logging
from typing import Optional

from config.exceptions import BackendError
from models.chapter import Chapter, ChapterMeta
from models.novel import Novel, NovelSummary
from tools.text_utils import estimate_tokens

logger = logging.getLogger(__name__)


class InMemoryChapterRepository:
    """Holds imported novels, their chapters and saved analyses."""

    def __init__(self):
        self._novels: dict[str, Novel] = {}
        self._chapters: dict[int, Chapter] = {}
        self._summaries: dict[str, NovelSummary] = {}
        self._next_chapter_id = 1

    def add_novel(self, novel: Novel, chapters: list[Chapter]) -> list[int]:
        """Store a novel and its chapters, assigning ids to chapters without one."""
        self._novels[novel.id] = novel
        ids = []
        for index, chapter in enumerate(chapters):
            if chapter.id is None:
                chapter.id = self._next_chapter_id
            self._next_chapter_id = max(self._next_chapter_id, chapter.id + 1)
            chapter.novel_id = novel.id
            chapter.index = chapter.index or index
            self._chapters[chapter.id] = chapter
            ids.append(chapter.id)
        logger.debug("Stored novel %s with %d chapters", novel.id, len(ids))
        return ids

    def get_novel(self, novel_id: str) -> Novel:
        novel = self._novels.get(novel_id)
        if novel is None:
            raise BackendError(f"Novel {novel_id} not found")
        return novel

    def get_chapter(self, chapter_id: int) -> Chapter:
        chapter = self._chapters.get(chapter_id)
        if chapter is None:
            raise BackendError(f"Chapter {chapter_id} not found")
        return chapter

    def list_chapter_metas(self, novel_id: str) -> list[ChapterMeta]:
        self.get_novel(novel_id)
        chapters = [c for c in self._chapters.values() if c.novel_id == novel_id]
        chapters.sort(key=lambda c: c.index)
        return [self._to_meta(c) for c in chapters]

    def save_analysis(self, chapter_id: int, analysis: dict) -> None:
        self.get_chapter(chapter_id).analysis = analysis

    def save_summary(self, novel_id: str, summary: NovelSummary) -> None:
        self.get_novel(novel_id)
        self._summaries[novel_id] = summary

    def get_summary(self, novel_id: str) -> Optional[NovelSummary]:
        return self._summaries.get(novel_id)

    @staticmethod
    def _to_meta(chapter: Chapter) -> ChapterMeta:
        return ChapterMeta(
            id=chapter.id,
            index=chapter.index,
            title=chapter.title,
            has_analysis=chapter.analysis is not None,
            token_estimate=estimate_tokens(chapter.content),
        )
