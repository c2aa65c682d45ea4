"""Peer list simplification: deduplication and port compaction."""

import logging

from netloom.matcher.peers import (
    AllPeersMatcher,
    IPPeerMatcher,
    PeerMatcher,
    PeerMatcherAdmin,
    PodPeerMatcher,
    PortsForAllPeersMatcher,
)
from netloom.matcher.ports import AllPortMatcher, PortMatcher, combine_port_matchers, subtract_port_matchers

logger = logging.getLogger(__name__)


def dedupe_peers(peers: list[PeerMatcher]) -> list[PeerMatcher]:
    """Drop later peers whose canonical JSON equals an earlier one, keeping order."""
    seen: set[str] = set()
    unique: list[PeerMatcher] = []
    for peer in peers:
        key = peer.primary_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(peer)
    return unique


def simplify_v1_peers(peers: list[PeerMatcher]) -> list[PeerMatcher]:
    """Compact v1 peers; every v1 peer allows, so order and grouping carry no meaning."""
    if any(isinstance(p, AllPeersMatcher) for p in peers):
        return [AllPeersMatcher()]

    all_peers_port: PortMatcher | None = None
    ip_peers: dict[str, IPPeerMatcher] = {}
    pod_peers: dict[str, PodPeerMatcher] = {}
    others: list[PeerMatcher] = []

    for peer in peers:
        if isinstance(peer, PortsForAllPeersMatcher):
            all_peers_port = peer.port if all_peers_port is None else combine_port_matchers(all_peers_port, peer.port)
        elif isinstance(peer, IPPeerMatcher):
            key = peer.ip_key()
            existing = ip_peers.get(key)
            port = peer.port if existing is None else combine_port_matchers(existing.port, peer.port)
            ip_peers[key] = IPPeerMatcher(ip_block=peer.ip_block, port=port)
        elif isinstance(peer, PodPeerMatcher):
            key = peer.pod_key()
            existing_pod = pod_peers.get(key)
            port = peer.port if existing_pod is None else combine_port_matchers(existing_pod.port, peer.port)
            pod_peers[key] = PodPeerMatcher(namespace=peer.namespace, pod=peer.pod, port=port)
        else:
            others.append(peer)

    if isinstance(all_peers_port, AllPortMatcher):
        return [AllPeersMatcher()]

    simplified: list[PeerMatcher] = []
    if all_peers_port is not None:
        simplified.append(PortsForAllPeersMatcher(port=all_peers_port))

    for ip_peer in ip_peers.values():
        remaining = ip_peer.port if all_peers_port is None else subtract_port_matchers(ip_peer.port, all_peers_port)
        if remaining is not None:
            simplified.append(IPPeerMatcher(ip_block=ip_peer.ip_block, port=remaining))
    for pod_peer in pod_peers.values():
        remaining = pod_peer.port if all_peers_port is None else subtract_port_matchers(pod_peer.port, all_peers_port)
        if remaining is not None:
            simplified.append(PodPeerMatcher(namespace=pod_peer.namespace, pod=pod_peer.pod, port=remaining))

    return dedupe_peers(simplified + others)


def simplify_peers(peers: list[PeerMatcher]) -> list[PeerMatcher]:
    """Simplify a target's peers without changing its verdicts.

    Admin peers keep their relative order and only lose exact duplicates,
    since the first matching admin rule decides. v1 peers are compacted.
    """
    admin_peers = [p for p in peers if isinstance(p, PeerMatcherAdmin)]
    v1_peers = [p for p in peers if not isinstance(p, PeerMatcherAdmin)]
    simplified = dedupe_peers(admin_peers) + (simplify_v1_peers(v1_peers) if v1_peers else [])
    logger.debug(f"simplified {len(peers)} peers to {len(simplified)}")
    return simplified
