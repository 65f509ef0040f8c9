"""
Breadth-first discovery of related sObjects.

Starting from the root objects, each object is described once, its reference
fields and child relationships become relationship candidates, and (in
expand mode) the objects on the other end are queued one level deeper.
Describes run one at a time, in queue order.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence, Set

from tqdm import tqdm

from .exclusions import DEFAULT_POLICY, ExclusionPolicy
from .fields import extract_key_fields
from .provider import SchemaProvider
from .schema import Relationship, RelationshipKind, RenderObject, TraversalMode

_logger = logging.getLogger(__name__)


@dataclass
class TraversalResult:
    objects: Dict[str, RenderObject] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)
    truncated: bool = False
    # discovered but not described when traversal stopped
    pending: int = 0
    failed: List[str] = field(default_factory=list)


class _Frontier:
    """FIFO work queue; an object keeps the depth it was first queued at."""

    def __init__(self) -> None:
        self._queue: Deque[str] = deque()
        self._depth: Dict[str, int] = {}

    def push(self, name: str, depth: int) -> bool:
        if name in self._depth:
            return False
        self._depth[name] = depth
        self._queue.append(name)
        return True

    def pop(self) -> tuple[str, int]:
        name = self._queue.popleft()
        return name, self._depth.pop(name)

    def __contains__(self, name: object) -> bool:
        return name in self._depth

    def __len__(self) -> int:
        return len(self._queue)


def traverse(
    provider: SchemaProvider,
    roots: Sequence[str],
    *,
    max_depth: int = 2,
    mode: TraversalMode = TraversalMode.EXPAND,
    max_objects: Optional[int] = None,
    policy: ExclusionPolicy = DEFAULT_POLICY,
    show_progress: bool = False,
) -> TraversalResult:
    """Describe ``roots`` and, in expand mode, everything within ``max_depth`` hops."""
    result = TraversalResult()
    frontier = _Frontier()
    failed: Set[str] = set()
    root_set = set(roots)
    roots_only = mode == TraversalMode.ROOTS_ONLY

    for name in roots:
        frontier.push(name, 0)

    def keep(other: str) -> bool:
        return not roots_only or other in root_set

    def enqueue(other: str, depth: int) -> None:
        if roots_only or depth >= max_depth:
            return
        if other in result.objects or other in failed:
            return
        if frontier.push(other, depth + 1):
            _logger.debug("Queued %s at depth %d", other, depth + 1)

    bar = tqdm(desc="Describing objects", unit="obj", disable=not show_progress)
    try:
        while frontier:
            if max_objects is not None and len(result.objects) >= max_objects:
                result.truncated = True
                _logger.info(
                    "Object limit %d reached; %d queued objects not described",
                    max_objects,
                    len(frontier),
                )
                break

            name, depth = frontier.pop()

            if policy.is_excluded(name):
                _logger.debug("Skipping excluded object %s", name)
                continue

            try:
                obj = provider.describe(name)
            except Exception as e:
                _logger.warning("Failed to describe %s: %s", name, e)
                failed.add(name)
                continue

            result.objects[name] = extract_key_fields(obj, policy)
            bar.update(1)

            # Owning side: reference fields on this object
            for f in obj.fields:
                if not f.is_reference:
                    continue
                for target in f.reference_to:
                    if target == name or policy.is_excluded(target) or not keep(target):
                        continue
                    result.relationships.append(
                        Relationship(
                            from_object=name,
                            to_object=target,
                            field=f.name,
                            field_label=f.label,
                            relationship_name=f.relationship_name,
                            kind=RelationshipKind.from_cascade(f.cascade_delete),
                            required=not f.nillable,
                            source="field",
                        )
                    )
                    enqueue(target, depth)

            # Referenced side: objects that point at this one
            for cr in obj.child_relationships:
                child = cr.child_object
                if not child or not cr.field or not cr.relationship_name:
                    continue
                if policy.is_excluded(child) or not keep(child):
                    continue
                result.relationships.append(
                    Relationship(
                        from_object=child,
                        to_object=name,
                        field=cr.field,
                        field_label=cr.field,
                        relationship_name=cr.relationship_name,
                        kind=RelationshipKind.from_cascade(cr.cascade_delete),
                        required=not cr.restricted_delete,
                        source="child",
                    )
                )
                enqueue(child, depth)
    finally:
        bar.close()

    result.pending = len(frontier)
    result.failed = sorted(failed)
    _logger.info(
        "Traversal done: %d described, %d failed, %d pending, %d candidates",
        len(result.objects),
        len(result.failed),
        result.pending,
        len(result.relationships),
    )
    return result
