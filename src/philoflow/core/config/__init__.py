"""Configuration: rendering settings and the factory building composers from them."""
from __future__ import annotations

from .factory import ComponentCatalog, RenderingFactory, create_default_catalog, to_snake_case
from .settings import (
    ComponentSpec,
    RenderingSettings,
    get_defaults,
    merge_settings,
    load_settings,
    parse_settings,
    validate_settings,
)

__all__ = [
    "ComponentSpec",
    "RenderingSettings",
    "get_defaults",
    "merge_settings",
    "load_settings",
    "parse_settings",
    "validate_settings",
    "ComponentCatalog",
    "RenderingFactory",
    "create_default_catalog",
    "to_snake_case",
]
