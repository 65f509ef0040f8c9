"""
Objects left out of diagrams.

System, audit and housekeeping sObjects (history tables, feeds, sharing rows,
setup metadata) are referenced from almost everywhere and would swamp a
diagram. The policy is an ordered table of prefix/suffix/exact rules checked
first-match-wins; new exclusions are added as rows, not as code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

PREFIX = "prefix"
SUFFIX = "suffix"
EXACT = "exact"


@dataclass(frozen=True)
class ExclusionRule:
    kind: str
    value: str

    def matches(self, name: str) -> bool:
        if self.kind == PREFIX:
            return name.startswith(self.value)
        if self.kind == SUFFIX:
            return name.endswith(self.value)
        return name == self.value

    @classmethod
    def parse(cls, pattern: str) -> ExclusionRule:
        """``Foo*`` -> prefix, ``*Foo`` -> suffix, anything else -> exact."""
        pattern = pattern.strip()
        if not pattern.strip("*"):
            raise ValueError(f"Empty exclusion pattern: {pattern!r}")
        if pattern.endswith("*") and not pattern.startswith("*"):
            return cls(PREFIX, pattern[:-1])
        if pattern.startswith("*") and not pattern.endswith("*"):
            return cls(SUFFIX, pattern[1:])
        if "*" in pattern:
            raise ValueError(f"Unsupported exclusion pattern: {pattern!r}")
        return cls(EXACT, pattern)


@dataclass(frozen=True)
class ExclusionPolicy:
    rules: Tuple[ExclusionRule, ...] = ()

    def matching_rule(self, name: str) -> Optional[ExclusionRule]:
        for rule in self.rules:
            if rule.matches(name):
                return rule
        return None

    def is_excluded(self, name: str) -> bool:
        return self.matching_rule(name) is not None

    def extended(self, patterns: Iterable[str]) -> ExclusionPolicy:
        """Return a copy with user patterns appended after the existing rules."""
        extra = tuple(ExclusionRule.parse(p) for p in patterns)
        return ExclusionPolicy(self.rules + extra)


_DEFAULT_RULES = (
    # Generated companion objects and non-data sObject types
    (SUFFIX, "History"),
    (SUFFIX, "Feed"),
    (SUFFIX, "Share"),
    (SUFFIX, "Tag"),
    (SUFFIX, "ChangeEvent"),
    (SUFFIX, "__mdt"),
    (SUFFIX, "__e"),
    (SUFFIX, "__x"),
    # Files, chatter, approvals, permissions
    (PREFIX, "ContentDocument"),
    (PREFIX, "ContentVersion"),
    (PREFIX, "FeedItem"),
    (PREFIX, "FeedComment"),
    (PREFIX, "PermissionSet"),
    (PREFIX, "ProcessInstance"),
    (PREFIX, "CollaborationGroup"),
    # Setup and audit objects; User is the owner/creator of nearly every record
    (EXACT, "User"),
    (EXACT, "RecordType"),
    (EXACT, "BusinessHours"),
    (EXACT, "Organization"),
    (EXACT, "Profile"),
    (EXACT, "UserRole"),
    (EXACT, "Group"),
    (EXACT, "GroupMember"),
    (EXACT, "SetupAuditTrail"),
    (EXACT, "LoginHistory"),
    (EXACT, "ApexClass"),
    (EXACT, "ApexTrigger"),
    (EXACT, "ApexPage"),
    (EXACT, "ApexComponent"),
    (EXACT, "StaticResource"),
    (EXACT, "Document"),
    (EXACT, "Folder"),
    (EXACT, "EmailTemplate"),
    (EXACT, "Attachment"),
    (EXACT, "Note"),
    (EXACT, "CombinedAttachment"),
    (EXACT, "NoteAndAttachment"),
    (EXACT, "UserRecordAccess"),
    (EXACT, "EntitySubscription"),
    (EXACT, "TopicAssignment"),
    (EXACT, "Idea"),
    (EXACT, "Vote"),
    (EXACT, "IdeaComment"),
)

DEFAULT_POLICY = ExclusionPolicy(tuple(ExclusionRule(kind, value) for kind, value in _DEFAULT_RULES))

# Nothing excluded; handy for fixtures and callers that filter elsewhere
NO_EXCLUSIONS = ExclusionPolicy()
