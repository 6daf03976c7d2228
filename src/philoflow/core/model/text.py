"""Token-based base text part."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

from .items import BASE_TEXT_ROLE_ID, Part


@dataclass
class TextLine:
    """A line of base text with its 1-based ordinal."""

    y: int
    text: str

    def get_tokens(self) -> List[str]:
        """Return the line's space-separated tokens."""
        return self.text.split(" ")

    def to_dict(self) -> Dict[str, Any]:
        return {"y": self.y, "text": self.text}


@dataclass
class TextPart(Part):
    """Base text made of lines of space-separated tokens."""

    TYPE_ID: ClassVar[str] = "it.vedph.token-text"

    role_id: Optional[str] = BASE_TEXT_ROLE_ID
    citation: str = ""
    lines: List[TextLine] = field(default_factory=list)

    def add_line(self, text: str) -> TextLine:
        """Append a line numbering it after the last one."""
        line = TextLine(y=len(self.lines) + 1, text=text)
        self.lines.append(line)
        return line

    def get_text(self) -> str:
        """Return the whole text with lines separated by LF."""
        return "\n".join(line.text for line in self.lines)

    def _payload(self) -> Dict[str, Any]:
        return {
            "citation": self.citation,
            "lines": [line.to_dict() for line in self.lines],
        }


__all__ = ["TextLine", "TextPart"]
