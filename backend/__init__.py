"""Backend package: RPC protocol and the in-process reference backend."""

from backend.protocol import AnalysisBackend
from backend.events import EventBus
from backend.repository import InMemoryChapterRepository
from backend.analyzer import ChapterAnalyzer, SdkChapterAnalyzer
from backend.local import LocalAnalysisBackend

__all__ = [
    "AnalysisBackend",
    "EventBus",
    "InMemoryChapterRepository",
    "ChapterAnalyzer",
    "SdkChapterAnalyzer",
    "LocalAnalysisBackend",
]
