"""Rendering context shared by all the components of a composition run.

The context is created by a composer and threaded explicitly through every
renderer, filter and supplier call. It holds:
- the template data bag (string-keyed)
- the item being rendered and the layer types selected for rendering
- the item grouping state
- the output flows accumulated so far
- id maps and counters for stable numbering across flows
"""
from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from philoflow.core.model import Item, Part


@dataclass
class GroupState:
    """Item grouping state.

    ``open_group_id`` is None while no group is open (the initial state);
    ``last_group_id`` is the group of the last composed item, used to detect
    changes. A change increments ``ordinal`` and leaves a pending transition
    which is wrapped around the next rendered output.
    """

    last_group_id: Optional[str] = None
    open_group_id: Optional[str] = None
    ordinal: int = 0
    pending: bool = False
    pending_group_id: Optional[str] = None
    # data of the last item rendered in the open group, used to fill its tail
    last_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.open_group_id is not None

    def snapshot(self) -> "GroupState":
        return copy.deepcopy(self)


class IdMap:
    """Two-way map between source ids (e.g. ``itemId/nodeId``) and numbers.

    Mapping is idempotent: the same source id always gets the same number.
    """

    def __init__(self) -> None:
        self._source_map: Dict[str, int] = {}
        self._target_map: Dict[int, str] = {}
        self._max_id = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._target_map)

    def reset(self, seed: bool = False) -> None:
        """Clear the map; with ``seed`` also restart numbering from 1."""
        with self._lock:
            if seed:
                self._max_id = 0
            self._source_map.clear()
            self._target_map.clear()

    def map_source_id(self, id: str) -> int:
        with self._lock:
            mapped = self._source_map.get(id)
            if mapped is None:
                self._max_id += 1
                mapped = self._max_id
                self._source_map[id] = mapped
                self._target_map[mapped] = id
            return mapped

    def get_mapped_id(self, id: str) -> Optional[int]:
        return self._source_map.get(id)

    def get_source_id(self, id: int) -> Optional[str]:
        return self._target_map.get(id)

    def __repr__(self) -> str:
        return f"IdMap: {len(self)}"


class FlowSet:
    """Named, append-only output channels.

    Writes made while composing an item are staged and become visible only
    when committed; discarding drops them without touching the committed
    content. A flow exists from its first write, even if empty.
    """

    def __init__(self) -> None:
        self._committed: Dict[str, List[str]] = {}
        self._pending: Dict[str, List[str]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._committed or name in self._pending

    def __len__(self) -> int:
        return len(set(self._committed) | set(self._pending))

    @property
    def names(self) -> List[str]:
        names = list(self._committed)
        names.extend(n for n in self._pending if n not in self._committed)
        return names

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def write(self, name: str, content: str) -> None:
        """Stage content for the flow ``name``, creating the flow if needed."""
        if not name:
            raise ValueError("Flow name must not be empty")
        self._pending.setdefault(name, [])
        if content:
            self._pending[name].append(content)

    def commit(self) -> None:
        for name, chunks in self._pending.items():
            self._committed.setdefault(name, []).extend(chunks)
        self._pending.clear()

    def discard(self) -> None:
        self._pending.clear()

    def clear(self) -> None:
        self._committed.clear()
        self._pending.clear()

    def get(self, name: str) -> Optional[str]:
        """Return the committed content of a flow, or None if not committed."""
        chunks = self._committed.get(name)
        return "".join(chunks) if chunks is not None else None

    def to_dict(self) -> Dict[str, str]:
        """Return a snapshot of all the committed flows."""
        return {name: "".join(chunks) for name, chunks in self._committed.items()}


class RenderingContext:
    """Mutable state of a composition run (from open to close)."""

    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}
        self.source: Optional[Item] = None
        self.layer_type_ids: Set[str] = set()
        self.group = GroupState()
        self.flows = FlowSet()
        self.id_maps: Dict[str, IdMap] = {}
        self._counters: Dict[str, int] = {}
        self._lock = threading.RLock()

    # data bag ---------------------------------------------------------------

    def set_data(self, key: str, value: Any) -> None:
        """Set a data value; safe to call from parallel part renderers."""
        with self._lock:
            self.data[key] = value

    def update_data(self, values: Dict[str, Any]) -> None:
        with self._lock:
            self.data.update(values)

    def remove_data(self, key: str) -> None:
        with self._lock:
            self.data.pop(key, None)

    def clear_data(self, excluded_prefix: Optional[str] = None) -> None:
        """Clear data; keys starting with ``excluded_prefix`` are kept."""
        with self._lock:
            if not excluded_prefix:
                self.data.clear()
                return
            for key in [k for k in self.data if not k.startswith(excluded_prefix)]:
                del self.data[key]

    # ids ------------------------------------------------------------------

    def get_next_id_for(self, category: str) -> int:
        """Return a progressive number (from 1) for the given category."""
        with self._lock:
            self._counters[category] = self._counters.get(category, 0) + 1
            return self._counters[category]

    def map_source_id(self, map_name: str, id: str) -> int:
        with self._lock:
            id_map = self.id_maps.setdefault(map_name, IdMap())
        return id_map.map_source_id(id)

    def get_mapped_id(self, map_name: str, id: str) -> Optional[int]:
        id_map = self.id_maps.get(map_name)
        return id_map.get_mapped_id(id) if id_map else None

    def get_source_id(self, map_name: str, id: int) -> Optional[str]:
        id_map = self.id_maps.get(map_name)
        return id_map.get_source_id(id) if id_map else None

    # item -----------------------------------------------------------------

    @property
    def item(self) -> Optional[Item]:
        return self.source

    def get_text_part(self) -> Optional[Part]:
        return self.source.get_text_part() if self.source else None

    def select_layer_types(self, type_ids: Iterable[str]) -> None:
        self.layer_type_ids = set(type_ids)

    def clear(self, seeds: bool = False) -> None:
        """Reset the whole context for a new run."""
        with self._lock:
            self.source = None
            self.data.clear()
            self.group = GroupState()
            self.flows.clear()
            for id_map in self.id_maps.values():
                id_map.reset(seeds)
            self._counters.clear()


__all__ = ["GroupState", "IdMap", "FlowSet", "RenderingContext"]
