"""Batch job view and acknowledgement."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BatchAck:
    """Backend acknowledgement of a batch start; ``total`` is the unit count."""
    novel_id: str
    total: int


@dataclass
class BatchJob:
    """Progress and timing view of the single active batch run."""
    novel_id: str
    chapter_ids: Optional[list[int]] = None  # None = backend picks unanalyzed chapters
    status: Optional[str] = None  # None until the first batch event arrives
    current: int = 0
    total: int = 0
    message: str = ""
    chapter_id: Optional[int] = None
    start_time: Optional[float] = None
    cancel_requested: bool = False
    terminal: bool = False

    def elapsed(self, now: float) -> Optional[float]:
        if self.start_time is None:
            return None
        return max(0.0, now - self.start_time)

    def estimated_remaining(self, now: float) -> Optional[float]:
        """Linear estimate from the average time per finished unit."""
        elapsed = self.elapsed(now)
        if elapsed is None or self.current <= 0:
            return None
        estimated_total = elapsed / self.current * self.total
        return max(0.0, estimated_total - elapsed)
