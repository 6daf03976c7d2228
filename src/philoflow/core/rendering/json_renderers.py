"""JSON renderers: render the serialized form of a part.

A renderer receives the part serialized as JSON, the rendering context and,
when the item has a base text, the root of its text tree. It returns text;
the composer decides where that text goes (context data, flows).
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from philoflow.core.text import TextTreeNode

from .context import RenderingContext
from .filters import TextFilter, TextFilterPipeline
from .templates import TemplateFiller

logger = logging.getLogger(__name__)


class JsonRenderer(ABC):
    """Abstract base class for part renderers.

    Subclasses implement :meth:`do_render`; :meth:`render` adds the filter
    pipeline. Renderers may read the context and add data to it, but must
    not change its grouping state or write flows.
    """

    def __init__(self, filters: Optional[Sequence[TextFilter]] = None) -> None:
        self.filters = TextFilterPipeline(filters)

    @abstractmethod
    def do_render(
        self,
        json_text: str,
        context: RenderingContext,
        tree: Optional[TextTreeNode] = None,
    ) -> str:
        ...

    def render(
        self,
        json_text: str,
        context: RenderingContext,
        tree: Optional[TextTreeNode] = None,
    ) -> str:
        """Render the JSON code of a part and apply the filters to the result."""
        if json_text is None:
            raise ValueError("JSON text is required")
        result = self.do_render(json_text, context, tree)
        return self.filters.execute(result or "", context)

    def get_name(self) -> str:
        return self.__class__.__name__


class NullJsonRenderer(JsonRenderer):
    """Renderer returning the received JSON unchanged."""

    def do_render(self, json_text: str, context: RenderingContext,
                  tree: Optional[TextTreeNode] = None) -> str:
        return json_text or ""


def flatten_json(value: Any, prefix: str = "", result: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Flatten nested JSON into dot-separated keys (lists by index)."""
    result = {} if result is None else result
    if isinstance(value, dict):
        for key, child in value.items():
            flatten_json(child, f"{prefix}.{key}" if prefix else str(key), result)
    elif isinstance(value, list):
        result[f"{prefix}.count" if prefix else "count"] = len(value)
        for i, child in enumerate(value):
            flatten_json(child, f"{prefix}.{i}" if prefix else str(i), result)
    elif prefix:
        result[prefix] = "" if value is None else value
    return result


class TemplateJsonRenderer(JsonRenderer):
    """Fill a template with the part's properties and the context data.

    Part properties are flattened into dot-separated names prefixed with
    ``part.`` (e.g. ``{{part.citation}}``, ``{{part.lines.0.text}}``);
    context data is available under its own keys.
    """

    def __init__(self, template: str = "", filters: Optional[Sequence[TextFilter]] = None) -> None:
        super().__init__(filters)
        self.template = template
        self.filler = TemplateFiller()

    def do_render(self, json_text: str, context: RenderingContext,
                  tree: Optional[TextTreeNode] = None) -> str:
        data: Dict[str, Any] = dict(context.data)
        data.update(flatten_json(json.loads(json_text), "part"))
        return self.filler.fill(self.template, data)


__all__ = ["JsonRenderer", "NullJsonRenderer", "TemplateJsonRenderer", "flatten_json"]
