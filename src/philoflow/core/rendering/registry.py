"""Registry binding part types (and roles) to JSON renderers.

Renderers are registered under a composite key ``type_id:role_id``; a
registration without role is the base binding for the whole type, used
when no role-specific renderer exists:

    registry = RendererRegistry()
    registry.add(NullJsonRenderer(), "it.vedph.token-text")
    registry.add(TeiOffApparatusJsonRenderer(),
                 "it.vedph.token-text-layer", "fr.it.vedph.apparatus")

or, for renderer classes:

    @registry.register("it.vedph.note")
    class NoteRenderer(JsonRenderer):
        ...
"""
from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from philoflow.core.exceptions import UnregisteredRendererError
from philoflow.core.model import Part

from .json_renderers import JsonRenderer

# Separator between type and role id in renderer keys
KEY_SEPARATOR = ":"

R = TypeVar("R", bound=Union[JsonRenderer, type])


def make_key(type_id: str, role_id: Optional[str] = None) -> str:
    """Build a registry key from a type id and an optional role id."""
    return f"{type_id}{KEY_SEPARATOR}{role_id}" if role_id else type_id


def split_key(key: str) -> Tuple[str, Optional[str]]:
    """Split a registry key into type id and role id (None for base keys)."""
    type_id, sep, role_id = key.partition(KEY_SEPARATOR)
    return type_id, (role_id if sep else None)


class RendererRegistry:
    """Registry of JSON renderers keyed by part type and role."""

    def __init__(self) -> None:
        self._renderers: Dict[str, JsonRenderer] = {}

    def register(self, type_id: str, role_id: Optional[str] = None) -> Callable[[R], R]:
        """Decorator registering a renderer class (instantiated with no args) or instance."""
        def decorator(renderer: R) -> R:
            instance = renderer() if isinstance(renderer, type) else renderer
            self.add(instance, type_id, role_id)
            return renderer
        return decorator

    def add(self, renderer: JsonRenderer, type_id: str, role_id: Optional[str] = None) -> None:
        """Bind a renderer to a part type and optional role, replacing any previous one."""
        if not type_id:
            raise ValueError("Renderer type id must not be empty")
        self._renderers[make_key(type_id, role_id)] = renderer

    def add_key(self, key: str, renderer: JsonRenderer) -> None:
        """Bind a renderer to a ``type`` or ``type:role`` key."""
        type_id, role_id = split_key(key)
        self.add(renderer, type_id, role_id)

    def get(self, type_id: str, role_id: Optional[str] = None) -> Optional[JsonRenderer]:
        """Get the renderer for type and role, falling back to the type-only binding."""
        if role_id:
            renderer = self._renderers.get(make_key(type_id, role_id))
            if renderer is not None:
                return renderer
        return self._renderers.get(type_id)

    def resolve(self, part: Part) -> JsonRenderer:
        """Return the renderer for a part.

        Raises:
            UnregisteredRendererError: if neither the ``type:role`` nor the
                ``type`` key is bound.
        """
        renderer = self.get(part.type_id, part.role_id)
        if renderer is None:
            raise UnregisteredRendererError(
                part.type_id, part.role_id, context={"part_id": part.id}
            )
        return renderer

    def __contains__(self, key: str) -> bool:
        return key in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._renderers)

    def list_keys(self) -> List[str]:
        """List all registered keys."""
        return sorted(self._renderers)

    def clear(self) -> None:
        self._renderers.clear()


__all__ = ["KEY_SEPARATOR", "RendererRegistry", "make_key", "split_key"]
