"""Configuration package: settings, logging and exceptions."""

from config.exceptions import (
    AnalysisCoreError,
    BackendError,
    AnalysisRequestError,
    BatchRequestError,
    CancelRequestError,
    LLMError,
    LLMResponseParseError,
    OrchestrationError,
    ChapterBusyError,
    BatchAlreadyRunningError,
    SessionStateError,
    ValidationError,
    ManualPayloadError,
    EventPayloadError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "AnalysisCoreError",
    "BackendError",
    "AnalysisRequestError",
    "BatchRequestError",
    "CancelRequestError",
    "LLMError",
    "LLMResponseParseError",
    "OrchestrationError",
    "ChapterBusyError",
    "BatchAlreadyRunningError",
    "SessionStateError",
    "ValidationError",
    "ManualPayloadError",
    "EventPayloadError",
    "InvalidConfigError",
]
