"""
Schema providers: where object descriptions come from.

The traversal only needs ``describe(name)``; anything with that method can be
plugged in (live org, a directory of cached describe JSON, a test double).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Protocol, Union

import requests

from .exceptions import DescribeError
from .schema import SchemaObject

_logger = logging.getLogger(__name__)


class SchemaProvider(Protocol):
    def describe(self, object_name: str) -> SchemaObject: ...


def _parse(object_name: str, payload: Any) -> SchemaObject:
    if not isinstance(payload, dict):
        raise DescribeError(object_name, f"unexpected payload type {type(payload).__name__}")
    obj = SchemaObject.from_describe(payload)
    if not obj.name:
        # Some cached payloads are trimmed; trust the requested name
        obj = SchemaObject(
            name=object_name,
            label=obj.label,
            custom=obj.custom,
            fields=obj.fields,
            child_relationships=obj.child_relationships,
        )
    return obj


class SalesforceSchemaProvider:
    """Describe objects against a connected ``SalesforceAPI``."""

    def __init__(self, api: Any) -> None:
        self.api = api

    def describe_raw(self, object_name: str) -> Dict[str, Any]:
        try:
            return self.api.describe_object(object_name)
        except requests.RequestException as e:
            raise DescribeError(object_name, str(e)) from e

    def describe(self, object_name: str) -> SchemaObject:
        _logger.debug("Describing %s", object_name)
        return _parse(object_name, self.describe_raw(object_name))


class DirectorySchemaProvider:
    """Read ``<Name>.json`` describe payloads from a directory."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def path_for(self, object_name: str) -> Path:
        return self.root / f"{object_name}.json"

    def describe(self, object_name: str) -> SchemaObject:
        path = self.path_for(object_name)
        if not path.is_file():
            raise DescribeError(object_name, f"no cached describe at {path}")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DescribeError(object_name, f"invalid JSON in {path}: {e}") from e
        return _parse(object_name, payload)


def save_describe(root: Path, object_name: str, payload: Dict[str, Any]) -> Path:
    """Write one describe payload where ``DirectorySchemaProvider`` will find it."""
    root.mkdir(parents=True, exist_ok=True)
    out = root / f"{object_name}.json"
    out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out
