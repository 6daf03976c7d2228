"""Rendering settings: loading, defaults and schema validation.

Settings are YAML (or JSON) documents like:

    composer:
      tag: it.vedph.item-composer.tei-off
      options: {textFlow: text}
    textTreeRenderer:
      tag: it.vedph.text-tree-renderer.tei-off-linear
    jsonRenderers:
      "it.vedph.token-text-layer:fr.it.vedph.comment":
        tag: it.vedph.json-renderer.tei-off.comment

They are merged over the bundled defaults (``data/config/defaults.yaml``)
and validated against ``data/schemas/composer.schema.yaml``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from jsonschema import Draft202012Validator

from philoflow.core.exceptions import ConfigurationError
from philoflow.core.utils import PathLike, deep_merge, read_document
from philoflow.data import CONFIG_DIR, SCHEMAS_DIR, read_yaml

logger = logging.getLogger(__name__)

SCHEMA_NAME = "composer.schema.yaml"
DEFAULTS_NAME = "defaults.yaml"

# Settings holding a single component
COMPONENT_KEYS = ("composer", "textTreeRenderer")


@dataclass
class ComponentSpec:
    """A component to build: its tag and its options."""

    tag: str
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComponentSpec":
        return cls(tag=data["tag"], options=dict(data.get("options") or {}))


@dataclass
class RenderingSettings:
    """Parsed rendering settings."""

    composer: Optional[ComponentSpec] = None
    text_tree_renderer: Optional[ComponentSpec] = None
    json_renderers: Dict[str, ComponentSpec] = field(default_factory=dict)
    text_tree_filters: List[ComponentSpec] = field(default_factory=list)
    context_suppliers: List[ComponentSpec] = field(default_factory=list)
    layer_type_ids: List[str] = field(default_factory=list)
    max_workers: int = 1


def get_defaults() -> Dict[str, Any]:
    return read_yaml(CONFIG_DIR, DEFAULTS_NAME)


def merge_settings(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge settings over a base (e.g. the defaults).

    Settings are deep merged, except that components are replaced as a
    whole: options of a base component never leak into another one.
    """
    merged = deep_merge(dict(base), dict(override))
    for key in COMPONENT_KEYS:
        if isinstance(override.get(key), Mapping):
            merged[key] = dict(override[key])
    renderers = override.get("jsonRenderers")
    if isinstance(renderers, Mapping) and isinstance(base.get("jsonRenderers"), Mapping):
        merged["jsonRenderers"] = {**base["jsonRenderers"], **renderers}
    return merged


def validate_settings(data: Mapping[str, Any]) -> List[str]:
    """Validate settings against the bundled schema.

    Returns:
        Error messages, prefixed with the path of the invalid value; empty
        when the settings are valid.
    """
    validator = Draft202012Validator(read_yaml(SCHEMAS_DIR, SCHEMA_NAME))
    errors: List[str] = []
    for error in sorted(validator.iter_errors(data), key=lambda e: str(list(e.path))):
        if error.path:
            errors.append(".".join(str(p) for p in error.path) + f": {error.message}")
        else:
            errors.append(error.message)
    return errors


def parse_settings(data: Optional[Mapping[str, Any]], *, use_defaults: bool = True) -> RenderingSettings:
    """Parse settings from their dictionary form.

    Raises:
        ConfigurationError: if the merged settings do not match the schema.
    """
    if data is not None and not isinstance(data, Mapping):
        raise ConfigurationError("Settings must be a mapping",
                                 context={"type": type(data).__name__})
    merged: Dict[str, Any] = dict(data or {})
    if use_defaults:
        merged = merge_settings(get_defaults(), merged)

    errors = validate_settings(merged)
    if errors:
        raise ConfigurationError("Invalid rendering settings: " + "; ".join(errors),
                                 context={"errors": errors})

    composer = merged.get("composer")
    renderer = merged.get("textTreeRenderer")
    return RenderingSettings(
        composer=ComponentSpec.from_dict(composer) if composer else None,
        text_tree_renderer=ComponentSpec.from_dict(renderer) if renderer else None,
        json_renderers={key: ComponentSpec.from_dict(spec)
                        for key, spec in (merged.get("jsonRenderers") or {}).items()},
        text_tree_filters=[ComponentSpec.from_dict(s) for s in merged.get("textTreeFilters") or []],
        context_suppliers=[ComponentSpec.from_dict(s) for s in merged.get("contextSuppliers") or []],
        layer_type_ids=list(merged.get("layerTypeIds") or []),
        max_workers=int(merged.get("maxWorkers") or 1),
    )


def load_settings(path: PathLike, *, use_defaults: bool = True) -> RenderingSettings:
    """Load settings from a YAML or JSON file.

    Raises:
        ConfigurationError: if the file cannot be read or is invalid.
    """
    try:
        data = read_document(path)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read settings: {exc}", context={"path": str(path)}) from exc
    logger.debug("Loaded settings from %s", path)
    try:
        return parse_settings(data, use_defaults=use_defaults)
    except ConfigurationError as exc:
        raise exc.with_context(path=str(path))


__all__ = [
    "ComponentSpec",
    "RenderingSettings",
    "get_defaults",
    "merge_settings",
    "validate_settings",
    "parse_settings",
    "load_settings",
]
