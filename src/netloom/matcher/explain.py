"""Explain table: every target's peers, actions and ports."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from netloom.matcher.peers import (
    AllPeersMatcher,
    IPPeerMatcher,
    PeerMatcher,
    PeerMatcherAdmin,
    PodPeerMatcher,
    PolicyKind,
    PortsForAllPeersMatcher,
)
from netloom.matcher.target import Direction, Target
from netloom.utils.tables import render_table

if TYPE_CHECKING:
    from netloom.matcher.policy import Policy

EXPLAIN_HEADERS = ["Type", "Subject", "Source rules", "Peer", "Action", "Port/Protocol"]
V1_ACTION = "NPv1: All peers allowed"


def describe_pod_peer(peer: PodPeerMatcher) -> str:
    """Namespace and pod selection of a pod peer."""
    namespaces = "\n   ".join(peer.namespace.table_lines())
    pods = "\n   ".join(peer.pod.table_lines())
    return f"Namespace:\n   {namespaces}\nPod:\n   {pods}"


def describe_ip_peer(peer: IPPeerMatcher) -> str:
    return f"{peer.ip_block.cidr}\nexcept [{', '.join(peer.ip_block.except_)}]"


@dataclass
class _PolicyEffects:
    name: str
    kind: PolicyKind
    priority: int
    verdicts: list[str] = field(default_factory=list)

    def line(self) -> str:
        text = self.verdicts[0]
        if len(self.verdicts) > 1:
            text += f" (ineffective rules: {', '.join(self.verdicts[1:])})"
        if self.kind == PolicyKind.ANP:
            return f"   pri={self.priority} ({self.name}): {text}"
        return f"   {text}"


@dataclass
class _AdminPeerGroup:
    """Admin peers sharing a port and pod selection, across policies."""

    port: str
    subject: str
    policies: dict[str, _PolicyEffects] = field(default_factory=dict)

    def add(self, peer: PeerMatcherAdmin) -> None:
        effects = self.policies.setdefault(
            peer.name, _PolicyEffects(peer.name, peer.effect.policy_kind, peer.effect.priority)
        )
        effects.verdicts.append(peer.effect.verdict.value)

    def action(self) -> str:
        lines: list[str] = []
        anps = sorted(
            (p for p in self.policies.values() if p.kind == PolicyKind.ANP), key=lambda p: (p.priority, p.name)
        )
        if anps:
            lines.append("ANP:")
            lines.extend(p.line() for p in anps)
        banps = [p for p in self.policies.values() if p.kind == PolicyKind.BANP]
        if banps:
            lines.append("BANP:")
            lines.extend(p.line() for p in banps)
        return "\n".join(lines)


def group_admin_peers(peers: list[PeerMatcher]) -> list[_AdminPeerGroup]:
    """Group admin peers by port and pod selection, sorted by port then subject."""
    groups: dict[str, _AdminPeerGroup] = {}
    for peer in peers:
        if not isinstance(peer, PeerMatcherAdmin):
            continue
        key = peer.port.primary_key() + peer.pod_peer.pod_key()
        if key not in groups:
            groups[key] = _AdminPeerGroup(
                port="\n".join(peer.port.table_lines(admin=True)),
                subject=describe_pod_peer(peer.pod_peer),
            )
        groups[key].add(peer)
    return sorted(groups.values(), key=lambda g: (g.port, g.subject))


def _peer_row(peer: PeerMatcher) -> list[str]:
    ports = "\n".join(peer.port.table_lines())
    if isinstance(peer, AllPeersMatcher):
        return ["all pods, all ips", V1_ACTION, "all ports, all protocols"]
    if isinstance(peer, PortsForAllPeersMatcher):
        return ["all pods, all ips", V1_ACTION, ports]
    if isinstance(peer, IPPeerMatcher):
        return [describe_ip_peer(peer), V1_ACTION, ports]
    if isinstance(peer, PodPeerMatcher):
        return [describe_pod_peer(peer), V1_ACTION, ports]
    raise TypeError(f"invalid peer matcher type {type(peer).__name__}")


def target_rows(direction: Direction, targets: list[Target]) -> list[list[str]]:
    """Rows for one direction's block of the explain table."""
    rows: list[list[str]] = []
    for target in targets:
        prefix = [direction.value, target.subject.target_string(), "\n".join(sorted(target.source_rules))]
        if not target.peers:
            rows.append([*prefix, "no pods, no ips", "NPv1: no peers allowed", "no ports, no protocols"])
            continue
        v1_peers = sorted((p for p in target.peers if not isinstance(p, PeerMatcherAdmin)), key=lambda p: p.primary_key())
        for peer in v1_peers:
            rows.append([*prefix, *_peer_row(peer)])
        for group in group_admin_peers(target.peers):
            rows.append([*prefix, group.subject, group.action(), group.port])
    return rows


def explain_table(policy: "Policy") -> str:
    """Ingress rows, a blank row, then egress rows; repeated leading cells merge."""
    rows = target_rows(Direction.INGRESS, policy.sorted_targets(Direction.INGRESS))
    rows.append([""] * len(EXPLAIN_HEADERS))
    rows.extend(target_rows(Direction.EGRESS, policy.sorted_targets(Direction.EGRESS)))
    return render_table(EXPLAIN_HEADERS, rows, merge_columns=3)
