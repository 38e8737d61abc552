"""Models package: events, batch view, chapter/novel records and enums."""

from models.enums import (
    ProgressStatus,
    Channel,
    TaskOrigin,
    AnalysisDimension,
    SINGLE_TERMINAL_STATUSES,
    BATCH_TERMINAL_STATUSES,
    UNIT_SETTLED_STATUSES,
)
from models.events import ProgressEvent, StreamingEvent, InboundEvent
from models.batch import BatchAck, BatchJob
from models.novel import Novel, NovelSummary
from models.chapter import Chapter, ChapterMeta

__all__ = [
    "ProgressStatus",
    "Channel",
    "TaskOrigin",
    "AnalysisDimension",
    "SINGLE_TERMINAL_STATUSES",
    "BATCH_TERMINAL_STATUSES",
    "UNIT_SETTLED_STATUSES",
    "ProgressEvent",
    "StreamingEvent",
    "InboundEvent",
    "BatchAck",
    "BatchJob",
    "Novel",
    "NovelSummary",
    "Chapter",
    "ChapterMeta",
]
