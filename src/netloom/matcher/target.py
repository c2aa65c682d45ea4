"""Targets: a subject with its ordered peer matchers and provenance."""

from dataclasses import dataclass, field
from enum import Enum

from netloom.matcher.peers import PeerMatcher, PolicyKind
from netloom.matcher.simplify import simplify_peers
from netloom.matcher.subjects import SubjectMatcher, SubjectV1
from netloom.matcher.traffic import InternalPeer


class Direction(Enum):
    """Direction of a target relative to its subject."""

    INGRESS = "Ingress"
    EGRESS = "Egress"


def policy_id(kind: PolicyKind, namespace: str, name: str) -> str:
    """Source id `[kind] namespace/name`; an empty namespace reads as `default`."""
    return f"[{kind.value}] {namespace or 'default'}/{name}"


@dataclass
class Target:
    """Subject plus ordered peers; the unit the evaluator works on."""

    subject: SubjectMatcher
    source_rules: list[str] = field(default_factory=list)
    peers: list[PeerMatcher] = field(default_factory=list)

    def primary_key(self) -> str:
        return self.subject.primary_key()

    def is_v1(self) -> bool:
        """Check whether this target comes from v1 NetworkPolicies."""
        return isinstance(self.subject, SubjectV1)

    def applies_to(self, candidate: InternalPeer) -> bool:
        return self.subject.matches(candidate)

    def combine(self, other: "Target") -> "Target":
        """Merge a target with the same subject: peers are concatenated and sources unioned."""
        if self.primary_key() != other.primary_key():
            raise ValueError(
                f"cannot combine targets with different primary keys: {self.primary_key()} vs {other.primary_key()}"
            )
        sources = list(dict.fromkeys([*self.source_rules, *other.source_rules]))
        return Target(subject=self.subject, source_rules=sources, peers=[*self.peers, *other.peers])

    def simplify(self) -> "Target":
        return Target(subject=self.subject, source_rules=list(self.source_rules), peers=simplify_peers(self.peers))
