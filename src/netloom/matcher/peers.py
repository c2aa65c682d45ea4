"""Verdicts, effects and the namespace, pod and peer matchers."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from netloom.core import selectors
from netloom.core.models.policies import IPBlock, LabelSelector
from netloom.matcher.ports import AllPortMatcher, PortMatcher, Protocol
from netloom.matcher.traffic import TrafficPeer


class Verdict(Enum):
    """Outcome a matching peer contributes."""

    NONE = "None"
    ALLOW = "Allow"
    DENY = "Deny"
    PASS = "Pass"


class PolicyKind(Enum):
    """Policy tier a peer matcher came from."""

    NPV1 = "NPv1"
    ANP = "ANP"
    BANP = "BANP"


@dataclass(frozen=True)
class Effect:
    """Tier, priority and verdict attached to a peer matcher."""

    policy_kind: PolicyKind
    priority: int
    verdict: Verdict

    def to_json(self) -> dict[str, Any]:
        return {"PolicyKind": self.policy_kind.value, "Priority": self.priority, "Verdict": self.verdict.value}


V1_ALLOW = Effect(PolicyKind.NPV1, 0, Verdict.ALLOW)


def _dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


# Namespace matchers


class NamespaceMatcher(ABC):
    """Selects the namespace of the peer end."""

    @abstractmethod
    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        """Check a candidate namespace; subject labels are used by same/not-same label matchers."""
        pass

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def table_lines(self) -> list[str]:
        pass

    def primary_key(self) -> str:
        return _dumps(self.to_json())


@dataclass(frozen=True)
class ExactNamespaceMatcher(NamespaceMatcher):
    """A single namespace by name."""

    namespace: str

    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        return namespace == self.namespace

    def to_json(self) -> dict[str, Any]:
        return {"Type": "exact", "Namespace": self.namespace}

    def table_lines(self) -> list[str]:
        return [self.namespace]


@dataclass(frozen=True)
class AllNamespaceMatcher(NamespaceMatcher):
    """Every namespace."""

    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        return True

    def to_json(self) -> dict[str, Any]:
        return {"Type": "all"}

    def table_lines(self) -> list[str]:
        return ["all"]


@dataclass(frozen=True)
class LabelSelectorNamespaceMatcher(NamespaceMatcher):
    """Namespaces whose labels satisfy a selector."""

    selector: LabelSelector

    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        return selectors.matches(self.selector, namespace_labels)

    def to_json(self) -> dict[str, Any]:
        return {"Type": "label selector", "Selector": selectors.to_json(self.selector)}

    def table_lines(self) -> list[str]:
        return selectors.table_lines(self.selector)


@dataclass(frozen=True)
class SameLabelsNamespaceMatcher(NamespaceMatcher):
    """Namespaces sharing the subject namespace's values for every key."""

    labels: tuple[str, ...]

    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        return selectors.same_labels(list(self.labels), namespace_labels, subject_namespace_labels)

    def to_json(self) -> dict[str, Any]:
        return {"Type": "same labels", "Labels": sorted(self.labels)}

    def table_lines(self) -> list[str]:
        return [f"Same labels - {', '.join(self.labels)}"]


@dataclass(frozen=True)
class NotSameLabelsNamespaceMatcher(NamespaceMatcher):
    """Namespaces carrying every key but differing from the subject namespace on at least one."""

    labels: tuple[str, ...]

    def matches(self, namespace: str, namespace_labels: dict[str, str], subject_namespace_labels: dict[str, str]) -> bool:
        return selectors.not_same_labels(list(self.labels), namespace_labels, subject_namespace_labels)

    def to_json(self) -> dict[str, Any]:
        return {"Type": "not same labels", "Labels": sorted(self.labels)}

    def table_lines(self) -> list[str]:
        return [f"Not Same labels - {', '.join(self.labels)}"]


# Pod matchers


class PodMatcher(ABC):
    """Selects pods within matched namespaces."""

    @abstractmethod
    def matches(self, pod_labels: dict[str, str]) -> bool:
        pass

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def table_lines(self) -> list[str]:
        pass

    def primary_key(self) -> str:
        return _dumps(self.to_json())


@dataclass(frozen=True)
class AllPodMatcher(PodMatcher):
    """Every pod."""

    def matches(self, pod_labels: dict[str, str]) -> bool:
        return True

    def to_json(self) -> dict[str, Any]:
        return {"Type": "all"}

    def table_lines(self) -> list[str]:
        return ["all"]


@dataclass(frozen=True)
class LabelSelectorPodMatcher(PodMatcher):
    """Pods whose labels satisfy a selector."""

    selector: LabelSelector

    def matches(self, pod_labels: dict[str, str]) -> bool:
        return selectors.matches(self.selector, pod_labels)

    def to_json(self) -> dict[str, Any]:
        return {"Type": "label selector", "Selector": selectors.to_json(self.selector)}

    def table_lines(self) -> list[str]:
        return selectors.table_lines(self.selector)


# Peer matchers


class PeerMatcher(ABC):
    """Selects the peer end of a flow together with its port."""

    port: PortMatcher

    @abstractmethod
    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        """Check whether `peer` on the given port is selected for `subject`."""
        pass

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        pass

    @property
    def effect(self) -> Effect:
        """Effect of a match; plain peers come from v1 policies."""
        return V1_ALLOW

    def primary_key(self) -> str:
        return _dumps(self.to_json())


@dataclass(frozen=True)
class AllPeersMatcher(PeerMatcher):
    """Every peer on every port."""

    port: PortMatcher = field(default_factory=AllPortMatcher)

    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        return True

    def to_json(self) -> dict[str, Any]:
        return {"Type": "all peers"}


@dataclass(frozen=True)
class PortsForAllPeersMatcher(PeerMatcher):
    """Every peer, restricted by port."""

    port: PortMatcher

    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        return self.port.matches(port_int, port_name, protocol)

    def to_json(self) -> dict[str, Any]:
        return {"Type": "all peers for port", "Port": self.port.to_json()}


@dataclass(frozen=True)
class IPPeerMatcher(PeerMatcher):
    """Peers whose IP falls in a CIDR block."""

    ip_block: IPBlock
    port: PortMatcher

    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        if not selectors.cidr_contains(self.ip_block, peer.ip):
            return False
        return self.port.matches(port_int, port_name, protocol)

    def ip_key(self) -> str:
        """Identity of the IP block without the port."""
        return f"{self.ip_block.cidr}: [{', '.join(sorted(self.ip_block.except_))}]"

    def to_json(self) -> dict[str, Any]:
        return {
            "Type": "ip",
            "CIDR": self.ip_block.cidr,
            "Except": sorted(self.ip_block.except_),
            "Port": self.port.to_json(),
        }


@dataclass(frozen=True)
class PodPeerMatcher(PeerMatcher):
    """In-cluster peers selected by namespace and pod."""

    namespace: NamespaceMatcher
    pod: PodMatcher
    port: PortMatcher

    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        if peer.internal is None:
            return False
        subject_labels = subject.internal.namespace_labels if subject.internal else {}
        if not self.namespace.matches(peer.internal.namespace, peer.internal.namespace_labels, subject_labels):
            return False
        if not self.pod.matches(peer.internal.pod_labels):
            return False
        return self.port.matches(port_int, port_name, protocol)

    def pod_key(self) -> str:
        """Identity of the namespace/pod selection without the port."""
        return _dumps({"Namespace": self.namespace.to_json(), "Pod": self.pod.to_json()})

    def to_json(self) -> dict[str, Any]:
        return {
            "Type": "pod",
            "Namespace": self.namespace.to_json(),
            "Pod": self.pod.to_json(),
            "Port": self.port.to_json(),
        }


@dataclass(frozen=True)
class PeerMatcherAdmin(PeerMatcher):
    """A pod peer from an ANP or BANP rule, carrying its effect and source policy id."""

    pod_peer: PodPeerMatcher
    admin_effect: Effect
    name: str
    rule_name: str = ""

    @property
    def port(self) -> PortMatcher:  # type: ignore[override]
        return self.pod_peer.port

    @property
    def effect(self) -> Effect:
        return self.admin_effect

    def matches(
        self, subject: TrafficPeer, peer: TrafficPeer, port_int: int, port_name: str, protocol: Protocol
    ) -> bool:
        return self.pod_peer.matches(subject, peer, port_int, port_name, protocol)

    def to_json(self) -> dict[str, Any]:
        return {
            "Type": "admin",
            "Name": self.name,
            "Rule": self.rule_name,
            "Effect": self.admin_effect.to_json(),
            "Peer": self.pod_peer.to_json(),
        }
