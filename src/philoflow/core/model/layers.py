"""Layer parts and their fragments.

A layer part collects the fragments of a single kind (apparatus, comment,
...) which annotate the base text. Each fragment is anchored to the text
by its ``location``, a coordinate string like ``1.2`` or ``1.2-2.1``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, List, TypeVar

from .items import FR_PREFIX, Part


@dataclass
class Fragment:
    """Base class for layer fragments."""

    TYPE_ID: ClassVar[str] = ""

    location: str = ""

    def _payload(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"location": self.location}
        result.update(self._payload())
        return result

    def __str__(self) -> str:
        return f"[{self.TYPE_ID or 'fragment'}] {self.location}"


@dataclass
class CommentFragment(Fragment):
    """Free text comment on a span of the base text."""

    TYPE_ID: ClassVar[str] = "fr.it.vedph.comment"

    tag: str = ""
    text: str = ""

    def _payload(self) -> Dict[str, Any]:
        return {"tag": self.tag, "text": self.text}


class ApparatusEntryType(Enum):
    """Type of a critical apparatus entry."""
    REPLACEMENT = "replacement"
    ADDITION_BEFORE = "addition-before"
    ADDITION_AFTER = "addition-after"
    DELETION = "deletion"
    NOTE = "note"


@dataclass
class ApparatusEntry:
    """One variant or note in an apparatus fragment."""

    type: ApparatusEntryType = ApparatusEntryType.REPLACEMENT
    value: str = ""
    note: str = ""
    tag: str = ""
    is_accepted: bool = False
    witnesses: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "value": self.value,
            "note": self.note,
            "tag": self.tag,
            "isAccepted": self.is_accepted,
            "witnesses": list(self.witnesses),
            "authors": list(self.authors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApparatusEntry":
        return cls(
            type=ApparatusEntryType(data.get("type", ApparatusEntryType.REPLACEMENT.value)),
            value=data.get("value") or "",
            note=data.get("note") or "",
            tag=data.get("tag") or "",
            is_accepted=bool(data.get("isAccepted", False)),
            witnesses=list(data.get("witnesses") or []),
            authors=list(data.get("authors") or []),
        )


@dataclass
class ApparatusFragment(Fragment):
    """Critical apparatus fragment."""

    TYPE_ID: ClassVar[str] = "fr.it.vedph.apparatus"

    tag: str = ""
    entries: List[ApparatusEntry] = field(default_factory=list)

    def _payload(self) -> Dict[str, Any]:
        return {"tag": self.tag, "entries": [e.to_dict() for e in self.entries]}


F = TypeVar("F", bound=Fragment)


@dataclass
class LayerPart(Part, Generic[F]):
    """A layer of fragments of one kind attached to the base text.

    The role id defaults to the fragment type id (``fr.<type>``), so that
    several layers of the same part type are told apart by their role.
    """

    TYPE_ID: ClassVar[str] = "it.vedph.token-text-layer"

    fragment_type_id: str = ""
    fragments: List[F] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.fragment_type_id and self.role_id:
            self.fragment_type_id = self.role_id
        if not self.role_id and self.fragment_type_id:
            self.role_id = self.fragment_type_id
        if self.role_id and not self.role_id.startswith(FR_PREFIX):
            raise ValueError(f"Layer role id must start with '{FR_PREFIX}': {self.role_id}")

    @classmethod
    def of(cls, fragment_type: type, **kwargs: Any) -> "LayerPart":
        """Create a layer for fragments of the given class."""
        return cls(fragment_type_id=fragment_type.TYPE_ID, **kwargs)

    def add_fragment(self, fragment: F) -> F:
        self.fragments.append(fragment)
        return fragment

    def get_locations(self) -> List[str]:
        """Return the locations of all fragments, in fragment order."""
        return [fr.location for fr in self.fragments]

    def _payload(self) -> Dict[str, Any]:
        return {"fragments": [fr.to_dict() for fr in self.fragments]}


__all__ = [
    "Fragment",
    "CommentFragment",
    "ApparatusEntryType",
    "ApparatusEntry",
    "ApparatusFragment",
    "LayerPart",
]
