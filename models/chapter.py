"""Chapter data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ChapterMeta:
    """Summary row of a chapter, as shown in chapter lists."""
    id: int
    index: int = 0
    title: str = ""
    has_analysis: bool = False
    token_estimate: int = 0


@dataclass
class Chapter:
    """A chapter with its text and, once analyzed, its analysis payload."""
    id: Optional[int] = None
    novel_id: str = ""
    index: int = 0
    title: str = ""
    content: str = ""
    analysis: Optional[dict] = None
