"""Orchestration package: task registry, stream buffer, controllers and reconciler."""

from orchestration.registry import TaskHandle, TaskRegistry
from orchestration.stream_buffer import StreamBuffer
from orchestration.store import AnalysisStore
from orchestration.catalog import ChapterCatalog
from orchestration.single import SingleTaskController
from orchestration.batch import BatchController
from orchestration.reconciler import EventReconciler
from orchestration.callbacks import StoreCallback, LoggingCallback, RichProgressCallback
from orchestration.session import AnalysisSession

__all__ = [
    "TaskHandle",
    "TaskRegistry",
    "StreamBuffer",
    "AnalysisStore",
    "ChapterCatalog",
    "SingleTaskController",
    "BatchController",
    "EventReconciler",
    "StoreCallback",
    "LoggingCallback",
    "RichProgressCallback",
    "AnalysisSession",
]
