"""Shared pytest fixtures for the analysis orchestration test suite."""

import pytest
from unittest.mock import MagicMock, AsyncMock


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with a short grace delay and tmp log dir."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        log_dir=tmp_path / "logs",
        grace_delay_seconds=0.05,
        batch_concurrency=3,
    )


# ---------------------------------------------------------------------------
# Clock fixture
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Backend mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_backend():
    """Return a MagicMock backend whose RPCs are AsyncMocks."""
    from models.batch import BatchAck
    from models.chapter import Chapter, ChapterMeta
    from models.novel import Novel

    backend = MagicMock()
    backend.analyze_chapter = AsyncMock(return_value={"plot": "主角离家"})
    backend.start_batch = AsyncMock(return_value=BatchAck(novel_id="n1", total=3))
    backend.cancel_batch = AsyncMock(return_value=None)
    backend.get_novel = AsyncMock(return_value=Novel(id="n1", title="测试小说", enabled_dimensions=["plot"]))
    backend.list_chapters = AsyncMock(return_value=[
        ChapterMeta(id=1, index=0, title="第一章"),
        ChapterMeta(id=2, index=1, title="第二章"),
    ])
    backend.get_chapter = AsyncMock(return_value=Chapter(id=1, novel_id="n1", title="第一章", content="内容"))
    backend.save_analysis = AsyncMock(return_value=None)
    backend.save_summary = AsyncMock(return_value=None)
    return backend


@pytest.fixture
def mock_llm():
    """Return an AsyncMock replacing AgentSDKClient."""
    llm = AsyncMock()
    llm.chat_json.return_value = {"plot": "主角离家", "characters": []}
    llm.get_usage_summary.return_value = {"total_calls": 1}
    return llm


# ---------------------------------------------------------------------------
# Orchestration fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(settings, clock):
    from orchestration.store import AnalysisStore
    return AnalysisStore(settings, clock=clock)


@pytest.fixture
def catalog(store, mock_backend):
    from orchestration.catalog import ChapterCatalog
    return ChapterCatalog(store, mock_backend)


@pytest.fixture
def reconciler(store, catalog):
    from orchestration.reconciler import EventReconciler
    return EventReconciler(store, catalog)


# ---------------------------------------------------------------------------
# Local backend fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def repository():
    """Return a repository holding one novel with three chapters."""
    from backend.repository import InMemoryChapterRepository
    from models.chapter import Chapter
    from models.novel import Novel

    repo = InMemoryChapterRepository()
    repo.add_novel(
        Novel(id="n1", title="测试小说", enabled_dimensions=["plot", "characters"]),
        [
            Chapter(title="第一章", content="这是第一章的内容。" * 10),
            Chapter(title="第二章", content="这是第二章的内容。" * 10),
            Chapter(title="第三章", content="这是第三章的内容。" * 10),
        ],
    )
    return repo


def progress(status, chapter_id=None, novel_id="n1", current=0, total=3, message=""):
    """Build a ProgressEvent for tests."""
    from models.events import ProgressEvent
    return ProgressEvent(novel_id, chapter_id, status, current, total, message)


def batch_event(status, chapter_id=None, **kwargs):
    from models.events import InboundEvent
    return InboundEvent.batch_progress(progress(status, chapter_id, **kwargs))


def progress_event(status, chapter_id=None, **kwargs):
    from models.events import InboundEvent
    return InboundEvent.analysis_progress(progress(status, chapter_id, **kwargs))


def stream_event(chapter_id, full_content, chunk=""):
    from models.events import InboundEvent, StreamingEvent
    return InboundEvent.streaming(StreamingEvent(chapter_id, full_content, chunk))
