"""Enumerations for analysis progress tracking."""

from enum import Enum


class ProgressStatus(str, Enum):
    # Single-task channel
    ANALYZING = "analyzing"
    ANALYZING_SEGMENT = "analyzing_segment"
    MERGING_SEGMENTS = "merging_segments"
    DONE = "done"
    ERROR = "error"
    # Batch channel
    BATCH_ANALYZING = "batch_analyzing"
    CHAPTER_DONE = "chapter_done"
    BATCH_DONE = "batch_done"
    BATCH_CANCELLED = "batch_cancelled"


# Plain string values: events carry raw status strings
SINGLE_TERMINAL_STATUSES = frozenset({ProgressStatus.DONE.value, ProgressStatus.ERROR.value})
BATCH_TERMINAL_STATUSES = frozenset({ProgressStatus.BATCH_DONE.value, ProgressStatus.BATCH_CANCELLED.value})
UNIT_SETTLED_STATUSES = frozenset({ProgressStatus.CHAPTER_DONE.value, ProgressStatus.ERROR.value})


class Channel(str, Enum):
    ANALYSIS_PROGRESS = "analysis_progress"
    BATCH_PROGRESS = "batch_progress"
    ANALYSIS_STREAMING = "analysis_streaming"


class TaskOrigin(str, Enum):
    SINGLE = "single"
    BATCH = "batch"


class AnalysisDimension(str, Enum):
    CHARACTERS = "characters"
    PLOT = "plot"
    FORESHADOWING = "foreshadowing"
    WRITING_TECHNIQUE = "writing_technique"
    RHETORIC = "rhetoric"
    EMOTION = "emotion"
    THEMES = "themes"
    WORLDBUILDING = "worldbuilding"
