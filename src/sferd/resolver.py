"""
Collapse relationship candidates into one entry per physical foreign key.

The same foreign key usually shows up twice during traversal: once as a
reference field on the owning object and once as a child relationship on the
referenced object. Both carry the same (from, to, field) triple, compared
order-independently.
"""

from __future__ import annotations

import logging
from typing import Collection, Dict, Iterable, List, Tuple

from .schema import Relationship

_logger = logging.getLogger(__name__)


def resolve_relationships(candidates: Iterable[Relationship]) -> List[Relationship]:
    """
    Return one relationship per canonical key, in first-seen order.

    A candidate read from the owning object's field replaces an earlier
    child-relationship candidate for the same key (keeping its position), so
    kind/required come from the field declaration whichever side was
    described first. Any other duplicate is dropped.
    """
    slots: Dict[Tuple[str, ...], int] = {}
    resolved: List[Relationship] = []

    for rel in candidates:
        key = rel.canonical_key
        idx = slots.get(key)
        if idx is None:
            slots[key] = len(resolved)
            resolved.append(rel)
            continue

        kept = resolved[idx]
        if kept.kind != rel.kind or kept.required != rel.required:
            _logger.debug(
                "Conflicting declarations for %s.%s -> %s: %s/%s (%s) vs %s/%s (%s)",
                rel.from_object,
                rel.field,
                rel.to_object,
                kept.kind.value,
                kept.required,
                kept.source,
                rel.kind.value,
                rel.required,
                rel.source,
            )
        if kept.source == "child" and rel.source == "field":
            resolved[idx] = rel

    return resolved


def filter_to_objects(
    relationships: Iterable[Relationship], names: Collection[str]
) -> List[Relationship]:
    """Drop relationships with an endpoint outside ``names``."""
    return [r for r in relationships if r.from_object in names and r.to_object in names]
