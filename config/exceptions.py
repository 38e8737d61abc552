"""Custom exception hierarchy for the analysis orchestration core."""

from typing import Optional


class AnalysisCoreError(Exception):
    """Base exception for all orchestration core errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- Backend Errors ----

class BackendError(AnalysisCoreError):
    """Base exception for failed calls to the analysis backend."""


class AnalysisRequestError(BackendError):
    """A single-chapter analysis request was rejected."""

    def __init__(self, chapter_id: int, message: str = ""):
        super().__init__(message or f"Analysis of chapter {chapter_id} failed", {"chapter_id": chapter_id})
        self.chapter_id = chapter_id


class BatchRequestError(BackendError):
    """A batch start request was rejected."""

    def __init__(self, novel_id: str, message: str = ""):
        super().__init__(message or f"Batch analysis of novel {novel_id} failed", {"novel_id": novel_id})
        self.novel_id = novel_id


class CancelRequestError(BackendError):
    """The backend refused or failed a batch cancellation request."""


# ---- LLM Errors ----

class LLMError(AnalysisCoreError):
    """Base exception for LLM API errors."""


class LLMResponseParseError(LLMError):
    """Failed to parse LLM response."""

    def __init__(self, message: str = "Failed to parse LLM response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


# ---- Orchestration Errors ----

class OrchestrationError(AnalysisCoreError):
    """Base exception for request coordination errors."""


class ChapterBusyError(OrchestrationError):
    """An analysis was started on a chapter that already has one outstanding."""

    def __init__(self, chapter_id: int):
        super().__init__(f"Chapter {chapter_id} is already being analyzed", {"chapter_id": chapter_id})
        self.chapter_id = chapter_id


class BatchAlreadyRunningError(OrchestrationError):
    """A batch was started while another one is still active."""

    def __init__(self, novel_id: str, active_novel_id: str):
        super().__init__(
            "Another batch analysis is still active",
            {"novel_id": novel_id, "active_novel_id": active_novel_id},
        )
        self.novel_id = novel_id
        self.active_novel_id = active_novel_id


class SessionStateError(OrchestrationError):
    """Session used outside of its start/close lifecycle."""


# ---- Validation Errors ----

class ValidationError(AnalysisCoreError):
    """Input validation failed."""


class ManualPayloadError(ValidationError):
    """A manually supplied analysis payload could not be parsed."""

    def __init__(self, message: str, raw_payload: str = ""):
        details = {"raw_payload": raw_payload[:200]} if raw_payload else {}
        super().__init__(message, details)
        self.raw_payload = raw_payload


class EventPayloadError(ValidationError):
    """A notification payload is missing fields or has the wrong shape."""

    def __init__(self, channel: str, message: str):
        super().__init__(message, {"channel": channel})
        self.channel = channel


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
