"""Novel data models."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Novel:
    """Represents an imported work and the dimensions it is analyzed on."""
    id: str = ""
    title: str = ""
    enabled_dimensions: list[str] = field(default_factory=list)
    created_at: Optional[str] = None


@dataclass
class NovelSummary:
    """Full-book summary, either generated or pasted in by hand."""
    created_at: str = ""
    overall_plot: Optional[str] = None
    character_arcs: list[dict] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)
    writing_style: Optional[str] = None
    worldbuilding: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "NovelSummary":
        return cls(
            created_at=str(data.get("created_at") or ""),
            overall_plot=data.get("overall_plot"),
            character_arcs=list(data.get("character_arcs") or []),
            themes=list(data.get("themes") or []),
            writing_style=data.get("writing_style"),
            worldbuilding=data.get("worldbuilding"),
        )
