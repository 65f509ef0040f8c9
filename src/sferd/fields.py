from __future__ import annotations

from typing import List

from .exclusions import DEFAULT_POLICY, ExclusionPolicy
from .schema import KeyField, RenderObject, SchemaObject


def extract_key_fields(obj: SchemaObject, policy: ExclusionPolicy = DEFAULT_POLICY) -> RenderObject:
    """
    Reduce an object's fields to the ones worth drawing.

    Keeps, in describe order:
      - the record Id (primary key)
      - the name field
      - reference fields whose first target is not excluded (foreign keys)

    Each field is taken by the first rule it matches; everything else is
    dropped. Relationship discovery scans the full field list separately.
    """
    keep: List[KeyField] = []

    for f in obj.fields:
        if f.is_identifier:
            keep.append(KeyField(name=f.name, type="id", is_primary=True))
            continue

        if f.name_field:
            keep.append(KeyField(name=f.name, type=f.type, is_name=True))
            continue

        if f.is_reference and not policy.is_excluded(f.reference_to[0]):
            keep.append(
                KeyField(
                    name=f.name,
                    type="reference",
                    is_foreign=True,
                    required=not f.nillable,
                    reference_to=f.reference_to[0],
                )
            )

    return RenderObject(name=obj.name, label=obj.label, custom=obj.custom, fields=keep)
