"""
Data model for described sObjects and the relationships found between them.

Describe payloads are parsed into small frozen dataclasses so the traversal
and rendering code never touches raw JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class RelationshipKind(str, Enum):
    LOOKUP = "lookup"
    MASTER_DETAIL = "master-detail"

    @classmethod
    def from_cascade(cls, cascade_delete: bool) -> RelationshipKind:
        return cls.MASTER_DETAIL if cascade_delete else cls.LOOKUP


class TraversalMode(str, Enum):
    EXPAND = "expand"
    ROOTS_ONLY = "roots-only"


# ---------------------------------------------------------------------------
# Describe payload
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    label: str = ""
    type: str = "string"
    nillable: bool = True
    name_field: bool = False
    reference_to: Tuple[str, ...] = ()
    relationship_name: Optional[str] = None
    cascade_delete: bool = False

    @property
    def is_reference(self) -> bool:
        return self.type == "reference" and bool(self.reference_to)

    @property
    def is_identifier(self) -> bool:
        return self.type == "id" or self.name == "Id"

    @classmethod
    def from_describe(cls, raw: Dict[str, Any]) -> FieldDescriptor:
        return cls(
            name=raw.get("name") or "",
            label=raw.get("label") or "",
            type=raw.get("type") or "string",
            nillable=bool(raw.get("nillable", True)),
            name_field=bool(raw.get("nameField", False)),
            reference_to=tuple(str(t) for t in raw.get("referenceTo") or [] if t),
            relationship_name=raw.get("relationshipName") or None,
            cascade_delete=bool(raw.get("cascadeDelete", False)),
        )


@dataclass(frozen=True)
class ChildRelationship:
    child_object: str
    field: str
    relationship_name: Optional[str] = None
    cascade_delete: bool = False
    restricted_delete: bool = False

    @classmethod
    def from_describe(cls, raw: Dict[str, Any]) -> ChildRelationship:
        return cls(
            child_object=raw.get("childSObject") or "",
            field=raw.get("field") or "",
            relationship_name=raw.get("relationshipName") or None,
            cascade_delete=bool(raw.get("cascadeDelete", False)),
            restricted_delete=bool(raw.get("restrictedDelete", False)),
        )


@dataclass(frozen=True)
class SchemaObject:
    name: str
    label: str = ""
    custom: bool = False
    fields: Tuple[FieldDescriptor, ...] = ()
    child_relationships: Tuple[ChildRelationship, ...] = ()

    @classmethod
    def from_describe(cls, raw: Dict[str, Any]) -> SchemaObject:
        """Build from a /sobjects/{name}/describe payload."""
        return cls(
            name=raw.get("name") or "",
            label=raw.get("label") or "",
            custom=bool(raw.get("custom", False)),
            fields=tuple(FieldDescriptor.from_describe(f) for f in raw.get("fields") or []),
            child_relationships=tuple(
                ChildRelationship.from_describe(cr) for cr in raw.get("childRelationships") or []
            ),
        )


# ---------------------------------------------------------------------------
# Traversal output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Relationship:
    """A foreign key from ``from_object`` (the owner) to ``to_object``."""

    from_object: str
    to_object: str
    field: str
    field_label: str = ""
    relationship_name: Optional[str] = None
    kind: RelationshipKind = RelationshipKind.LOOKUP
    required: bool = False
    # "field" = seen on the owning side, "child" = seen as a child relationship
    source: str = "field"

    @property
    def canonical_key(self) -> Tuple[str, ...]:
        return tuple(sorted((self.from_object, self.to_object, self.field)))


@dataclass(frozen=True)
class KeyField:
    name: str
    type: str
    is_primary: bool = False
    is_name: bool = False
    is_foreign: bool = False
    required: bool = False
    reference_to: Optional[str] = None


@dataclass
class RenderObject:
    name: str
    label: str = ""
    custom: bool = False
    fields: List[KeyField] = field(default_factory=list)
