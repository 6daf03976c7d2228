"""Rendering: context, templates, renderer registry, renderers and filters.

- context: rendering context, group state and output flows
- templates: ``{{name}}`` template filling
- registry: part type/role to JSON renderer bindings
- json_renderers, tei: part renderers (TEI standoff)
- tree_renderers, tei: text tree renderers with group wrapping (plain text,
  TEI standoff and TEI with inline apparatus)
- filters: text filters applied to renderer output
- suppliers: per-item context data suppliers
"""
from __future__ import annotations

from .context import FlowSet, GroupState, IdMap, RenderingContext
from .filters import (
    AppenderTextFilter,
    Replacement,
    ReplacerTextFilter,
    TemplateTextFilter,
    TextFilter,
    TextFilterPipeline,
)
from .json_renderers import JsonRenderer, NullJsonRenderer, TemplateJsonRenderer, flatten_json
from .registry import KEY_SEPARATOR, RendererRegistry, make_key, split_key
from .suppliers import FlagRendererContextSupplier, RendererContextSupplier
from .tei import (
    TeiAppLinearTextTreeRenderer,
    TeiOffApparatusJsonRenderer,
    TeiOffCommentJsonRenderer,
    TeiOffLinearTextTreeRenderer,
    assign_segment_ids,
    find_fragment_bounds,
)
from .templates import FillReport, TemplateFiller, fill_template
from .tree_renderers import GroupTextTreeRenderer, PlainTextTreeRenderer, TextTreeRenderer

__all__ = [
    "FlowSet",
    "GroupState",
    "IdMap",
    "RenderingContext",
    "FillReport",
    "TemplateFiller",
    "fill_template",
    "TextFilter",
    "TextFilterPipeline",
    "AppenderTextFilter",
    "Replacement",
    "ReplacerTextFilter",
    "TemplateTextFilter",
    "JsonRenderer",
    "NullJsonRenderer",
    "TemplateJsonRenderer",
    "flatten_json",
    "KEY_SEPARATOR",
    "RendererRegistry",
    "make_key",
    "split_key",
    "RendererContextSupplier",
    "FlagRendererContextSupplier",
    "TextTreeRenderer",
    "GroupTextTreeRenderer",
    "PlainTextTreeRenderer",
    "TeiOffLinearTextTreeRenderer",
    "TeiAppLinearTextTreeRenderer",
    "TeiOffApparatusJsonRenderer",
    "TeiOffCommentJsonRenderer",
    "assign_segment_ids",
    "find_fragment_bounds",
]
