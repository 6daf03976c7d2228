"""Items and parts.

An item is one text record being exported. Its parts are an extensible set
of variants (base text, annotation layers, anything else) told apart by
their type id and, when several parts share a type, by their role id.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional

# Role of the part holding the base text annotated by layers
BASE_TEXT_ROLE_ID = "base-text"

# Prefix of the role ids of layer parts (fr.<fragment type id>)
FR_PREFIX = "fr."


def new_id() -> str:
    """Return a new random identifier."""
    return str(uuid.uuid4())


@dataclass
class Part:
    """Base class for all the parts of an item.

    Attributes:
        id: Part identifier
        item_id: Identifier of the owning item
        type_id: Part type identifier, e.g. ``it.vedph.token-text``
        role_id: Optional role identifier disambiguating parts of the same type
        creator_id: Creator identifier
        user_id: Last user identifier
    """

    TYPE_ID: ClassVar[str] = ""

    id: str = field(default_factory=new_id)
    item_id: str = ""
    type_id: str = ""
    role_id: Optional[str] = None
    creator_id: str = ""
    user_id: str = ""

    def __post_init__(self) -> None:
        if not self.type_id:
            self.type_id = self.TYPE_ID

    @property
    def renderer_key(self) -> str:
        """The registry key for this part (``type`` or ``type:role``)."""
        return f"{self.type_id}:{self.role_id}" if self.role_id else self.type_id

    def _payload(self) -> Dict[str, Any]:
        """Return the variant-specific serialized properties."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary consumed by renderers."""
        result: Dict[str, Any] = {
            "id": self.id,
            "itemId": self.item_id,
            "typeId": self.type_id,
            "roleId": self.role_id,
            "creatorId": self.creator_id,
            "userId": self.user_id,
        }
        result.update(self._payload())
        return result

    def __str__(self) -> str:
        return f"{self.renderer_key} {self.id}"


@dataclass
class GenericPart(Part):
    """A part of any type not handled by a dedicated variant.

    Its properties are kept as a raw dictionary; it contributes template
    data but never takes part in text flattening.
    """

    payload: Dict[str, Any] = field(default_factory=dict)

    def _payload(self) -> Dict[str, Any]:
        return dict(self.payload)


@dataclass
class Item:
    """A text record with its parts.

    Items sharing the same ``group_id`` belong to the same output document;
    ``sort_key`` defines their processing order.
    """

    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    facet_id: str = "default"
    group_id: Optional[str] = None
    sort_key: str = ""
    flags: int = 0
    creator_id: str = ""
    user_id: str = ""
    parts: List[Part] = field(default_factory=list)

    def add_part(self, part: Part) -> Part:
        """Add a part, binding it to this item."""
        part.item_id = self.id
        self.parts.append(part)
        return part

    def find_part(self, role_id: Optional[str] = None, type_id: Optional[str] = None) -> Optional[Part]:
        """Return the first part matching the role and/or type id."""
        for part in self.parts:
            if role_id is not None and part.role_id != role_id:
                continue
            if type_id is not None and part.type_id != type_id:
                continue
            return part
        return None

    def get_text_part(self) -> Optional[Part]:
        """Return the base text part if any."""
        return self.find_part(role_id=BASE_TEXT_ROLE_ID)

    def get_layer_parts(self) -> List[Part]:
        """Return the layer parts sorted by role id."""
        layers = [p for p in self.parts if (p.role_id or "").startswith(FR_PREFIX)]
        # sorting keeps fragment ids stable between runs
        return sorted(layers, key=lambda p: p.role_id or "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "facetId": self.facet_id,
            "groupId": self.group_id,
            "sortKey": self.sort_key,
            "flags": self.flags,
            "creatorId": self.creator_id,
            "userId": self.user_id,
            "parts": [p.to_dict() for p in self.parts],
        }


__all__ = [
    "BASE_TEXT_ROLE_ID",
    "FR_PREFIX",
    "Part",
    "GenericPart",
    "Item",
    "new_id",
]
