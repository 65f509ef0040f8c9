"""
Mermaid ``erDiagram`` rendering.

Relationship lines read parent-to-child::

    Account ||--o{ Contact : "Contacts"

The referenced (parent) side is ``||`` when the foreign key is required and
``|o`` otherwise; the owning (child) side is ``|{`` for master-detail and
``o{`` for lookups.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Set, Tuple

from .schema import KeyField, Relationship, RelationshipKind, RenderObject

DEFAULT_MAX_FIELDS_PER_OBJECT = 8

_TYPE_MAP = {
    "id": "string",
    "reference": "string",
    "string": "string",
    "textarea": "string",
    "url": "string",
    "email": "string",
    "phone": "string",
    "picklist": "string",
    "multipicklist": "string",
    "combobox": "string",
    "encryptedstring": "string",
    "boolean": "boolean",
    "int": "int",
    "double": "double",
    "currency": "currency",
    "percent": "percent",
    "date": "date",
    "datetime": "datetime",
    "time": "time",
    "base64": "blob",
    "address": "address",
    "location": "location",
}

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def map_field_type(sf_type: str) -> str:
    return _TYPE_MAP.get(sf_type, "string")


def sanitize_name(name: str) -> str:
    """Make an API name safe as a Mermaid identifier (``Foo__c`` -> ``Foo_c``)."""
    if name.endswith("__c"):
        name = name[:-3] + "_c"
    return _UNSAFE.sub("", name.replace("__", "_"))


def relationship_label(rel: Relationship) -> str:
    if rel.relationship_name:
        return rel.relationship_name
    if rel.field.endswith("Id") and len(rel.field) > 2:
        return rel.field[:-2]
    return rel.field


def cardinality(rel: Relationship) -> Tuple[str, str]:
    """Return (referenced side, owning side) Mermaid cardinality markers."""
    left = "||" if rel.required else "|o"
    right = "|{" if rel.kind == RelationshipKind.MASTER_DETAIL else "o{"
    return left, right


def _field_line(f: KeyField) -> str:
    parts = [map_field_type(f.type), sanitize_name(f.name)]
    if f.is_primary:
        parts.append("PK")
    elif f.is_foreign:
        parts.append("FK")
    if f.required:
        parts.append('"required"')
    return " ".join(parts)


def render_entities(
    objects: Iterable[RenderObject], *, compact: bool, max_fields_per_object: int
) -> List[str]:
    lines: List[str] = []
    for obj in objects:
        safe = sanitize_name(obj.name)
        if compact:
            lines.append(f"    {safe}")
            continue
        lines.append(f"    {safe} {{")
        for f in obj.fields[:max_fields_per_object]:
            lines.append(f"        {_field_line(f)}")
        lines.append("    }")
    return lines


def render_relationships(
    relationships: Iterable[Relationship], names: Set[str]
) -> List[str]:
    lines: List[str] = []
    seen: Set[Tuple[str, str, str]] = set()
    for rel in relationships:
        if rel.from_object not in names or rel.to_object not in names:
            continue
        from_name = sanitize_name(rel.from_object)
        to_name = sanitize_name(rel.to_object)
        # distinct API names can sanitize to the same identifier
        key = (from_name, to_name, rel.field)
        if key in seen:
            continue
        seen.add(key)

        left, right = cardinality(rel)
        lines.append(f'    {to_name} {left}--{right} {from_name} : "{relationship_label(rel)}"')
    return lines


def render_mermaid(
    objects: Mapping[str, RenderObject],
    relationships: Iterable[Relationship],
    *,
    compact: bool = False,
    max_fields_per_object: int = DEFAULT_MAX_FIELDS_PER_OBJECT,
) -> str:
    """Render objects and relationships as Mermaid ``erDiagram`` source."""
    lines = ["erDiagram"]
    lines += render_entities(
        objects.values(), compact=compact, max_fields_per_object=max_fields_per_object
    )
    lines.append("")
    lines += render_relationships(relationships, set(objects))
    return "\n".join(lines) + "\n"


def to_markdown(diagram_text: str) -> str:
    """Wrap diagram source in a fenced ``mermaid`` block."""
    return "```mermaid\n" + diagram_text.rstrip("\n") + "\n```\n"
