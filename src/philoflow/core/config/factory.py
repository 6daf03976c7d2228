"""Build wired composers from rendering settings.

Components are identified by tags; the catalog maps each tag to the class
to instantiate, passing the component options as keyword arguments (option
names are converted from camelCase):

    factory = RenderingFactory(load_settings("render.yaml"))
    composer = factory.build_composer()
    flows = composer.compose_all(load_items("items.json"))

Nested options are built too: ``filters`` lists text filter components,
``replacements`` lists ``{find, replace, isRegex}`` mappings.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from philoflow.core.composition import (
    ItemComposer,
    PlainTextItemComposer,
    TeiItemComposer,
    TeiOffItemComposer,
)
from philoflow.core.exceptions import ConfigurationError
from philoflow.core.rendering import (
    AppenderTextFilter,
    FlagRendererContextSupplier,
    JsonRenderer,
    NullJsonRenderer,
    PlainTextTreeRenderer,
    RendererContextSupplier,
    RendererRegistry,
    Replacement,
    ReplacerTextFilter,
    TeiAppLinearTextTreeRenderer,
    TeiOffApparatusJsonRenderer,
    TeiOffCommentJsonRenderer,
    TeiOffLinearTextTreeRenderer,
    TemplateJsonRenderer,
    TemplateTextFilter,
    TextFilter,
    TextTreeRenderer,
)
from philoflow.core.text import BlockLinearTextTreeFilter, MergeLinearTextTreeFilter, TextTreeFilter

from .settings import ComponentSpec, RenderingSettings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(name: str) -> str:
    """Convert a camelCase option name to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class ComponentCatalog:
    """Registry of component classes by tag.

    Example:
        catalog = ComponentCatalog()

        @catalog.register("my.text-filter")
        class MyFilter(TextFilter):
            ...
    """

    def __init__(self) -> None:
        self._classes: Dict[str, type] = {}

    def register(self, tag: str) -> Callable[[T], T]:
        def decorator(cls: T) -> T:
            self.add(tag, cls)
            return cls
        return decorator

    def add(self, tag: str, cls: type) -> None:
        if not tag:
            raise ValueError("Component tag must not be empty")
        self._classes[tag] = cls

    def get(self, tag: str) -> type:
        """Return the class registered for a tag.

        Raises:
            ConfigurationError: if no class is registered for the tag.
        """
        cls = self._classes.get(tag)
        if cls is None:
            raise ConfigurationError(f"Unknown component tag: {tag}", context={"tag": tag})
        return cls

    def __contains__(self, tag: str) -> bool:
        return tag in self._classes

    def list_tags(self) -> List[str]:
        return sorted(self._classes)


def create_default_catalog() -> ComponentCatalog:
    """Return a catalog with all the built-in components."""
    catalog = ComponentCatalog()
    # composers
    catalog.add("it.vedph.item-composer.tei-off", TeiOffItemComposer)
    catalog.add("it.vedph.item-composer.tei", TeiItemComposer)
    catalog.add("it.vedph.item-composer.txt", PlainTextItemComposer)
    # text tree renderers
    catalog.add("it.vedph.text-tree-renderer.tei-off-linear", TeiOffLinearTextTreeRenderer)
    catalog.add("it.vedph.text-tree-renderer.tei-app-linear", TeiAppLinearTextTreeRenderer)
    catalog.add("it.vedph.text-tree-renderer.txt", PlainTextTreeRenderer)
    # JSON renderers
    catalog.add("it.vedph.json-renderer.null", NullJsonRenderer)
    catalog.add("it.vedph.json-renderer.template", TemplateJsonRenderer)
    catalog.add("it.vedph.json-renderer.tei-off.apparatus", TeiOffApparatusJsonRenderer)
    catalog.add("it.vedph.json-renderer.tei-off.comment", TeiOffCommentJsonRenderer)
    # text filters
    catalog.add("it.vedph.text-filter.str.appender", AppenderTextFilter)
    catalog.add("it.vedph.text-filter.str.replacer", ReplacerTextFilter)
    catalog.add("it.vedph.text-filter.str.template", TemplateTextFilter)
    # text tree filters
    catalog.add("it.vedph.text-tree-filter.merge-linear", MergeLinearTextTreeFilter)
    catalog.add("it.vedph.text-tree-filter.block-linear", BlockLinearTextTreeFilter)
    # context suppliers
    catalog.add("it.vedph.renderer-context-supplier.flag", FlagRendererContextSupplier)
    return catalog


class RenderingFactory:
    """Build composers and their components from :class:`RenderingSettings`."""

    def __init__(self, settings: RenderingSettings,
                 catalog: Optional[ComponentCatalog] = None) -> None:
        self.settings = settings
        self.catalog = catalog or create_default_catalog()

    def _convert_options(self, options: Mapping[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        for name, value in options.items():
            key = to_snake_case(name)
            if key == "filters":
                value = self.build_text_filters(value or [])
            elif key == "replacements":
                value = [Replacement(r["find"], r.get("replace", ""), bool(r.get("isRegex", False)))
                         for r in value or []]
            kwargs[key] = value
        return kwargs

    def create(self, spec: ComponentSpec, base: Type[Any],
               **extra: Any) -> Any:
        """Instantiate the component described by ``spec``.

        Raises:
            ConfigurationError: if the tag is unknown, the class is not a
                ``base`` or the options do not fit its constructor.
        """
        cls = self.catalog.get(spec.tag)
        if not issubclass(cls, base):
            raise ConfigurationError(
                f"Component {spec.tag} is not a {base.__name__}",
                context={"tag": spec.tag},
            )
        kwargs = self._convert_options(spec.options)
        kwargs.update(extra)
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigurationError(
                f"Invalid options for {spec.tag}: {exc}", context={"tag": spec.tag}
            ) from exc

    def build_text_filters(self, specs: Iterable[Any]) -> List[TextFilter]:
        return [self.create(s if isinstance(s, ComponentSpec) else ComponentSpec.from_dict(s), TextFilter)
                for s in specs]

    def build_text_tree_renderer(self) -> Optional[TextTreeRenderer]:
        spec = self.settings.text_tree_renderer
        return self.create(spec, TextTreeRenderer) if spec else None

    def build_registry(self) -> RendererRegistry:
        registry = RendererRegistry()
        for key, spec in self.settings.json_renderers.items():
            registry.add_key(key, self.create(spec, JsonRenderer))
        return registry

    def build_text_tree_filters(self) -> List[TextTreeFilter]:
        return [self.create(spec, TextTreeFilter) for spec in self.settings.text_tree_filters]

    def build_context_suppliers(self) -> List[RendererContextSupplier]:
        return [self.create(spec, RendererContextSupplier)
                for spec in self.settings.context_suppliers]

    def build_composer(self) -> ItemComposer:
        """Build the configured composer with all its components.

        Raises:
            ConfigurationError: if no composer is configured or any
                component cannot be built.
        """
        if self.settings.composer is None:
            raise ConfigurationError("No composer configured")
        composer = self.create(
            self.settings.composer,
            ItemComposer,
            registry=self.build_registry(),
            text_tree_renderer=self.build_text_tree_renderer(),
            text_tree_filters=self.build_text_tree_filters(),
            context_suppliers=self.build_context_suppliers(),
            layer_type_ids=self.settings.layer_type_ids,
            max_workers=self.settings.max_workers,
        )
        logger.debug("Built composer %s with renderers %s",
                     self.settings.composer.tag, composer.registry.list_keys())
        return composer


__all__ = ["ComponentCatalog", "RenderingFactory", "create_default_catalog", "to_snake_case"]
