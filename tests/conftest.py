from types import SimpleNamespace

import pytest

from sferd.exceptions import DescribeError
from sferd.schema import SchemaObject


def _ref(name, target, *, nillable=True, relationship_name=None, cascade=False, label=None):
    targets = [target] if isinstance(target, str) else list(target)
    return {
        "name": name,
        "label": label or name,
        "type": "reference",
        "nillable": nillable,
        "referenceTo": targets,
        "relationshipName": relationship_name,
        "cascadeDelete": cascade,
    }


def _child(obj, field, relationship_name, *, cascade=False, restricted=False):
    return {
        "childSObject": obj,
        "field": field,
        "relationshipName": relationship_name,
        "cascadeDelete": cascade,
        "restrictedDelete": restricted,
    }


def _describe(name, fields=(), children=(), *, custom=False, name_field="Name"):
    """Minimal describe payload: Id, optional name field, then ``fields``."""
    base = [{"name": "Id", "label": "Record ID", "type": "id", "nillable": False}]
    if name_field:
        base.append(
            {"name": name_field, "label": name_field, "type": "string", "nameField": True}
        )
    return {
        "name": name,
        "label": name,
        "custom": custom,
        "fields": base + list(fields),
        "childRelationships": list(children),
    }


class FakeProvider:
    """In-memory schema provider that records every describe call."""

    def __init__(self, payloads, fail=()):
        self.payloads = {p["name"]: p for p in payloads}
        self.fail = set(fail)
        self.calls = []

    def describe(self, object_name):
        self.calls.append(object_name)
        if object_name in self.fail:
            raise DescribeError(object_name, "simulated failure")
        if object_name not in self.payloads:
            raise DescribeError(object_name, "unknown object")
        return SchemaObject.from_describe(self.payloads[object_name])


@pytest.fixture
def sf():
    """Builders for describe payloads plus the fake provider class."""
    return SimpleNamespace(ref=_ref, child=_child, describe=_describe, provider=FakeProvider)


@pytest.fixture
def account_contact(sf):
    """Account with an owner (User) and a Contacts child relationship."""
    account = sf.describe(
        "Account",
        fields=[sf.ref("OwnerId", "User", nillable=False, relationship_name="Owner")],
        children=[sf.child("Contact", "AccountId", "Contacts", restricted=True)],
    )
    contact = sf.describe(
        "Contact",
        fields=[sf.ref("AccountId", "Account", relationship_name="Account")],
        name_field=None,
    )
    return sf.provider([account, contact])


@pytest.fixture(autouse=True)
def _clean_sferd_env(monkeypatch):
    names = ("SFERD_MAX_DEPTH", "SFERD_MAX_OBJECTS", "SFERD_MAX_FIELDS", "SFERD_COMPACT", "SFERD_MODE")
    for name in names:
        monkeypatch.delenv(name, raising=False)
