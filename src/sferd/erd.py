"""
Entry point tying traversal, relationship resolution and rendering together.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .diagram import DEFAULT_MAX_FIELDS_PER_OBJECT, render_mermaid
from .exclusions import DEFAULT_POLICY, ExclusionPolicy, ExclusionRule
from .provider import SchemaProvider
from .resolver import filter_to_objects, resolve_relationships
from .schema import Relationship, TraversalMode
from .traversal import traverse

_logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 2

# Above these, browser-side Mermaid rendering tends to fail
WARN_OBJECTS = 40
WARN_RELATIONSHIPS = 150

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ErdOptions:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_objects: Optional[int] = None  # None = no limit
    max_fields_per_object: int = DEFAULT_MAX_FIELDS_PER_OBJECT
    compact: bool = False
    mode: TraversalMode = TraversalMode.EXPAND
    extra_exclusions: Tuple[str, ...] = ()
    show_progress: bool = False

    def __post_init__(self) -> None:
        self.mode = TraversalMode(self.mode)
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_objects is not None and self.max_objects < 1:
            raise ValueError(f"max_objects must be >= 1, got {self.max_objects}")
        if self.max_fields_per_object < 1:
            raise ValueError(
                f"max_fields_per_object must be >= 1, got {self.max_fields_per_object}"
            )
        self.extra_exclusions = tuple(self.extra_exclusions)
        for pattern in self.extra_exclusions:
            ExclusionRule.parse(pattern)

    @classmethod
    def from_env(cls) -> ErdOptions:
        """Load defaults from SFERD_* environment variables."""
        depth = _env_int("SFERD_MAX_DEPTH")
        fields = _env_int("SFERD_MAX_FIELDS")
        return cls(
            max_depth=DEFAULT_MAX_DEPTH if depth is None else depth,
            max_objects=_env_int("SFERD_MAX_OBJECTS"),
            max_fields_per_object=DEFAULT_MAX_FIELDS_PER_OBJECT if fields is None else fields,
            compact=os.getenv("SFERD_COMPACT", "").strip().lower() in _TRUTHY,
            mode=TraversalMode(os.getenv("SFERD_MODE", TraversalMode.EXPAND.value)),
        )

    def policy(self, base: ExclusionPolicy = DEFAULT_POLICY) -> ExclusionPolicy:
        return base.extended(self.extra_exclusions) if self.extra_exclusions else base


@dataclass
class ErdResult:
    diagram_text: str
    objects_included: List[str] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    truncated: bool = False
    may_exceed_render_limit: bool = False
    total_objects_found: int = 0
    failed_objects: List[str] = field(default_factory=list)

    @property
    def relationship_count(self) -> int:
        return len(self.relationships)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagramText": self.diagram_text,
            "objectsIncluded": list(self.objects_included),
            "relationshipCount": self.relationship_count,
            "truncated": self.truncated,
            "mayExceedRenderLimit": self.may_exceed_render_limit,
            "totalObjectsFound": self.total_objects_found,
        }


def generate_erd(
    provider: SchemaProvider,
    roots: Sequence[str],
    options: Optional[ErdOptions] = None,
    *,
    policy: Optional[ExclusionPolicy] = None,
) -> ErdResult:
    """Traverse from ``roots`` and render the reachable objects as a Mermaid ER diagram."""
    opts = options or ErdOptions()
    pol = policy if policy is not None else opts.policy()

    traversal = traverse(
        provider,
        roots,
        max_depth=opts.max_depth,
        mode=opts.mode,
        max_objects=opts.max_objects,
        policy=pol,
        show_progress=opts.show_progress,
    )

    resolved = resolve_relationships(traversal.relationships)
    final = filter_to_objects(resolved, traversal.objects)
    _logger.debug(
        "Relationships: %d candidates, %d unique, %d drawn",
        len(traversal.relationships),
        len(resolved),
        len(final),
    )

    may_exceed = (
        len(traversal.objects) > WARN_OBJECTS or len(traversal.relationships) > WARN_RELATIONSHIPS
    )
    if may_exceed:
        _logger.warning(
            "Diagram has %d objects / %d relationships and may be too large to render",
            len(traversal.objects),
            len(final),
        )

    text = render_mermaid(
        traversal.objects,
        final,
        compact=opts.compact,
        max_fields_per_object=opts.max_fields_per_object,
    )

    return ErdResult(
        diagram_text=text,
        objects_included=list(traversal.objects),
        relationships=final,
        truncated=traversal.truncated,
        may_exceed_render_limit=may_exceed,
        total_objects_found=len(traversal.objects) + traversal.pending,
        failed_objects=traversal.failed,
    )
