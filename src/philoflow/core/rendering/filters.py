"""Text filters applied to the output of renderers.

Each renderer owns an ordered pipeline of filters; the output of a filter
is the input of the next one. Filters may read the rendering context (for
instance to fill templates) but never change it.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .context import RenderingContext
from .templates import TemplateFiller


class TextFilter(ABC):
    """Abstract base class for text filters.

    Example:
        class UpperFilter(TextFilter):
            def apply(self, text, context=None):
                return text.upper()
    """

    disabled: bool = False

    @abstractmethod
    def apply(self, text: str, context: Optional[RenderingContext] = None) -> str:
        """Return the filtered text."""
        ...

    def get_name(self) -> str:
        """Get filter name for logging/debugging."""
        return self.__class__.__name__


class TextFilterPipeline:
    """Execute a sequence of text filters.

    Example:
        pipeline = TextFilterPipeline([AppenderTextFilter("\\n")])
        result = pipeline.execute(text, context)
    """

    def __init__(self, filters: Optional[Sequence[TextFilter]] = None) -> None:
        self.filters: List[TextFilter] = list(filters or [])

    def __len__(self) -> int:
        return len(self.filters)

    def execute(self, text: str, context: Optional[RenderingContext] = None) -> str:
        result = text
        for text_filter in self.filters:
            if not text_filter.disabled:
                result = text_filter.apply(result, context)
        return result

    def add_filter(self, text_filter: TextFilter) -> None:
        self.filters.append(text_filter)

    def insert_filter(self, index: int, text_filter: TextFilter) -> None:
        self.filters.insert(index, text_filter)


class AppenderTextFilter(TextFilter):
    """Append a fixed text to any non-empty input."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def apply(self, text: str, context: Optional[RenderingContext] = None) -> str:
        if not text or not self.text:
            return text
        return text + self.text


@dataclass
class Replacement:
    """A find/replace pair, literal or regular expression."""

    find: str
    replace: str
    is_regex: bool = False

    def __post_init__(self) -> None:
        self._regex = re.compile(self.find) if self.is_regex else None

    def apply(self, text: str) -> str:
        if self._regex is not None:
            return self._regex.sub(self.replace, text)
        return text.replace(self.find, self.replace)


class ReplacerTextFilter(TextFilter):
    """Apply a list of find/replace operations in order."""

    def __init__(self, replacements: Iterable[Replacement] = ()) -> None:
        self.replacements = list(replacements)

    def apply(self, text: str, context: Optional[RenderingContext] = None) -> str:
        for replacement in self.replacements:
            text = replacement.apply(text)
        return text


class TemplateTextFilter(TextFilter):
    """Fill ``{{name}}`` placeholders in the text from the context data.

    Raises:
        TemplateFillError: for placeholders missing from the context data.
    """

    def __init__(self, filler: Optional[TemplateFiller] = None) -> None:
        self.filler = filler or TemplateFiller()

    def apply(self, text: str, context: Optional[RenderingContext] = None) -> str:
        if context is None:
            return text
        return self.filler.fill(text, context.data)


__all__ = [
    "TextFilter",
    "TextFilterPipeline",
    "AppenderTextFilter",
    "Replacement",
    "ReplacerTextFilter",
    "TemplateTextFilter",
]
