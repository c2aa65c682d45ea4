"""Compile NetworkPolicy, AdminNetworkPolicy and BaselineAdminNetworkPolicy documents into a Policy."""

import logging

from netloom.core import selectors
from netloom.core.models.errors import InvalidPolicyError
from netloom.core.models.policies import (
    AdminAction,
    AdminNetworkPolicy,
    AdminPeer,
    AdminPort,
    AdminRule,
    AdminSubject,
    BaselineAdminNetworkPolicy,
    LabelSelector,
    NamespacedPeer,
    NetworkPolicy,
    NetworkPolicyPeer,
    NetworkPolicyPort,
    NetworkPolicyRule,
    PolicyType,
)
from netloom.matcher.peers import (
    AllNamespaceMatcher,
    AllPeersMatcher,
    AllPodMatcher,
    Effect,
    ExactNamespaceMatcher,
    IPPeerMatcher,
    LabelSelectorNamespaceMatcher,
    LabelSelectorPodMatcher,
    NamespaceMatcher,
    NotSameLabelsNamespaceMatcher,
    PeerMatcher,
    PeerMatcherAdmin,
    PodMatcher,
    PodPeerMatcher,
    PolicyKind,
    PortsForAllPeersMatcher,
    SameLabelsNamespaceMatcher,
    Verdict,
)
from netloom.matcher.policy import Policy
from netloom.matcher.ports import (
    AllPortMatcher,
    PortMatcher,
    PortProtocolMatcher,
    PortRangeMatcher,
    Protocol,
    SpecificPortMatcher,
)
from netloom.matcher.subjects import SubjectAdmin, SubjectV1
from netloom.matcher.target import Direction, Target, policy_id

logger = logging.getLogger(__name__)

MIN_ANP_PRIORITY = 0
MAX_ANP_PRIORITY = 1000
MIN_PORT = 1
MAX_PORT = 65535


def build_network_policies(
    simplify: bool,
    netpols: list[NetworkPolicy],
    anps: list[AdminNetworkPolicy] | None = None,
    banp: BaselineAdminNetworkPolicy | None = None,
) -> Policy:
    """Build a Policy from every tier; targets for the same subject are merged.

    Raises:
        InvalidPolicyError: a document is malformed or two ANPs share a priority.
    """
    anps = anps or []
    check_unique_priorities(anps)

    policy = Policy()
    for netpol in netpols:
        ingress, egress = build_network_policy_targets(netpol)
        if ingress is not None:
            policy.add_target(Direction.INGRESS, ingress)
        if egress is not None:
            policy.add_target(Direction.EGRESS, egress)

    for anp in anps:
        ingress, egress = build_admin_network_policy_targets(anp)
        if ingress is not None:
            policy.add_target(Direction.INGRESS, ingress)
        if egress is not None:
            policy.add_target(Direction.EGRESS, egress)

    if banp is not None:
        ingress, egress = build_baseline_admin_network_policy_targets(banp)
        if ingress is not None:
            policy.add_target(Direction.INGRESS, ingress)
        if egress is not None:
            policy.add_target(Direction.EGRESS, egress)

    logger.info(
        f"built {len(policy.ingress)} ingress and {len(policy.egress)} egress targets from "
        f"{len(netpols)} network policies, {len(anps)} admin network policies and "
        f"{1 if banp else 0} baseline admin network policy"
    )
    if simplify:
        policy.simplify()
    return policy


def check_unique_priorities(anps: list[AdminNetworkPolicy]) -> None:
    """Fail when two admin network policies share a priority."""
    seen: dict[int, str] = {}
    for anp in anps:
        pid = policy_id(PolicyKind.ANP, anp.namespace, anp.name)
        if anp.priority in seen:
            raise InvalidPolicyError(pid, f"priority {anp.priority} is already used by {seen[anp.priority]}")
        seen[anp.priority] = pid


# v1 NetworkPolicy


def build_network_policy_targets(netpol: NetworkPolicy) -> tuple[Target | None, Target | None]:
    """Build the ingress and egress targets of a v1 NetworkPolicy."""
    pid = policy_id(PolicyKind.NPV1, netpol.namespace, netpol.name)
    if not netpol.policy_types:
        raise InvalidPolicyError(pid, "need at least one policy type")

    namespace = netpol.namespace or "default"
    subject = SubjectV1(namespace=namespace, pod_selector=netpol.pod_selector)

    ingress: Target | None = None
    egress: Target | None = None
    for policy_type in netpol.policy_types:
        if policy_type == PolicyType.INGRESS:
            ingress = Target(subject=subject, source_rules=[pid], peers=build_peer_matchers_v1(namespace, netpol.ingress, pid))
        elif policy_type == PolicyType.EGRESS:
            egress = Target(subject=subject, source_rules=[pid], peers=build_peer_matchers_v1(namespace, netpol.egress, pid))
        else:
            raise InvalidPolicyError(pid, f"invalid policy type {policy_type}")
    logger.debug(f"built targets for {pid}")
    return ingress, egress


def build_peer_matchers_v1(policy_namespace: str, rules: list[NetworkPolicyRule], pid: str) -> list[PeerMatcher]:
    """Peers for a list of v1 rules; an empty rule list selects nothing."""
    peers: list[PeerMatcher] = []
    for rule in rules:
        if not rule.ports and not rule.peers:
            peers.append(AllPeersMatcher())
            continue
        port = build_port_matcher_v1(rule.ports, pid)
        if not rule.peers:
            peers.append(PortsForAllPeersMatcher(port=port))
            continue
        for peer in rule.peers:
            peers.append(build_peer_matcher_v1(policy_namespace, peer, port, pid))
    return peers


def build_peer_matcher_v1(policy_namespace: str, peer: NetworkPolicyPeer, port: PortMatcher, pid: str) -> PeerMatcher:
    """An IP peer for ipBlock, otherwise a pod peer."""
    if peer.ip_block is not None:
        if peer.namespace_selector is not None or peer.pod_selector is not None:
            raise InvalidPolicyError(pid, "ipBlock cannot be combined with namespaceSelector or podSelector")
        selectors.validate_ip_block(peer.ip_block, pid)
        return IPPeerMatcher(ip_block=peer.ip_block, port=port)

    if peer.namespace_selector is None and peer.pod_selector is None:
        raise InvalidPolicyError(pid, "peer must set ipBlock, namespaceSelector or podSelector")

    namespace: NamespaceMatcher
    if peer.namespace_selector is None:
        namespace = ExactNamespaceMatcher(namespace=policy_namespace)
    elif selectors.is_empty(peer.namespace_selector):
        namespace = AllNamespaceMatcher()
    else:
        namespace = LabelSelectorNamespaceMatcher(selector=peer.namespace_selector)

    return PodPeerMatcher(namespace=namespace, pod=build_pod_matcher(peer.pod_selector), port=port)


def build_pod_matcher(selector: LabelSelector | None) -> PodMatcher:
    if selector is None or selectors.is_empty(selector):
        return AllPodMatcher()
    return LabelSelectorPodMatcher(selector=selector)


def parse_policy_protocol(protocol: str | None, pid: str) -> Protocol:
    """Protocol of a port entry; TCP when unset."""
    if protocol is None or protocol == "":
        return Protocol.TCP
    for candidate in (Protocol.TCP, Protocol.UDP, Protocol.SCTP):
        if protocol == candidate.value:
            return candidate
    raise InvalidPolicyError(pid, f"invalid protocol '{protocol}'")


def _check_port_number(port: int, pid: str) -> None:
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPolicyError(pid, f"port {port} outside [{MIN_PORT}, {MAX_PORT}]")


def build_port_matcher_v1(ports: list[NetworkPolicyPort], pid: str) -> PortMatcher:
    """Port matcher for a v1 rule; no ports means all ports."""
    if not ports:
        return AllPortMatcher()
    pairs: list[PortProtocolMatcher] = []
    ranges: list[PortRangeMatcher] = []
    for port in ports:
        protocol = parse_policy_protocol(port.protocol, pid)
        if port.end_port is not None:
            if not isinstance(port.port, int):
                raise InvalidPolicyError(pid, "endPort requires a numeric port")
            _check_port_number(port.port, pid)
            _check_port_number(port.end_port, pid)
            if port.end_port < port.port:
                raise InvalidPolicyError(pid, f"endPort {port.end_port} is less than port {port.port}")
            ranges.append(PortRangeMatcher(from_port=port.port, to_port=port.end_port, protocol=protocol))
        elif isinstance(port.port, int):
            _check_port_number(port.port, pid)
            pairs.append(PortProtocolMatcher(port=port.port, protocol=protocol))
        elif isinstance(port.port, str):
            if not port.port:
                raise InvalidPolicyError(pid, "named port must not be empty")
            pairs.append(PortProtocolMatcher(port=port.port, protocol=protocol))
        else:
            pairs.append(PortProtocolMatcher(port=None, protocol=protocol))
    return SpecificPortMatcher(ports=tuple(pairs), port_ranges=tuple(ranges))


# AdminNetworkPolicy and BaselineAdminNetworkPolicy


def verdict_from_action(action: str, kind: PolicyKind, pid: str) -> Verdict:
    """Map an admin rule action to a verdict; Pass is only valid for ANPs."""
    allowed = {AdminAction.ALLOW.value: Verdict.ALLOW, AdminAction.DENY.value: Verdict.DENY}
    if kind == PolicyKind.ANP:
        allowed[AdminAction.PASS.value] = Verdict.PASS
    if action not in allowed:
        raise InvalidPolicyError(pid, f"invalid action '{action}', expected one of {', '.join(allowed)}")
    return allowed[action]


def build_admin_subject(subject: AdminSubject, pid: str) -> SubjectAdmin:
    """Subject matcher for an admin policy; exactly one of namespaces or pods."""
    if (subject.namespaces is None) == (subject.pods is None):
        raise InvalidPolicyError(pid, "subject must set exactly one of namespaces or pods")
    return SubjectAdmin.from_subject(subject)


def build_admin_namespace_matcher(namespaces: NamespacedPeer, pid: str) -> NamespaceMatcher:
    """Exactly one of namespaceSelector, sameLabels or notSameLabels."""
    set_fields = [
        f is not None for f in (namespaces.namespace_selector, namespaces.same_labels, namespaces.not_same_labels)
    ]
    if sum(set_fields) != 1:
        raise InvalidPolicyError(pid, "namespaces must set exactly one of namespaceSelector, sameLabels or notSameLabels")
    if namespaces.namespace_selector is not None:
        if selectors.is_empty(namespaces.namespace_selector):
            return AllNamespaceMatcher()
        return LabelSelectorNamespaceMatcher(selector=namespaces.namespace_selector)
    if namespaces.same_labels is not None:
        return SameLabelsNamespaceMatcher(labels=tuple(namespaces.same_labels))
    assert namespaces.not_same_labels is not None
    return NotSameLabelsNamespaceMatcher(labels=tuple(namespaces.not_same_labels))


def build_admin_peer_matcher(peer: AdminPeer, port: PortMatcher, pid: str) -> PodPeerMatcher:
    """Pod peer for an admin rule entry; exactly one of namespaces or pods."""
    if (peer.namespaces is None) == (peer.pods is None):
        raise InvalidPolicyError(pid, "peer must set exactly one of namespaces or pods")
    if peer.namespaces is not None:
        return PodPeerMatcher(
            namespace=build_admin_namespace_matcher(peer.namespaces, pid), pod=AllPodMatcher(), port=port
        )
    assert peer.pods is not None
    return PodPeerMatcher(
        namespace=build_admin_namespace_matcher(peer.pods.namespaces, pid),
        pod=build_pod_matcher(peer.pods.pod_selector),
        port=port,
    )


def build_admin_port_matcher(ports: list[AdminPort] | None, pid: str) -> PortMatcher:
    """Port matcher for an admin rule; absent or empty ports means all ports."""
    if not ports:
        return AllPortMatcher()
    pairs: list[PortProtocolMatcher] = []
    ranges: list[PortRangeMatcher] = []
    for port in ports:
        set_fields = [f is not None for f in (port.port_number, port.named_port, port.port_range)]
        if sum(set_fields) != 1:
            raise InvalidPolicyError(pid, "port must set exactly one of portNumber, namedPort or portRange")
        if port.port_number is not None:
            _check_port_number(port.port_number.port, pid)
            protocol = parse_policy_protocol(port.port_number.protocol, pid)
            pairs.append(PortProtocolMatcher(port=port.port_number.port, protocol=protocol))
        elif port.named_port is not None:
            if not port.named_port:
                raise InvalidPolicyError(pid, "named port must not be empty")
            pairs.append(PortProtocolMatcher(port=port.named_port, protocol=Protocol.from_named_port(port.named_port)))
        else:
            port_range = port.port_range
            assert port_range is not None
            _check_port_number(port_range.start, pid)
            _check_port_number(port_range.end, pid)
            if port_range.start >= port_range.end:
                raise InvalidPolicyError(pid, f"port range start {port_range.start} must be less than end {port_range.end}")
            protocol = parse_policy_protocol(port_range.protocol, pid)
            ranges.append(PortRangeMatcher(from_port=port_range.start, to_port=port_range.end, protocol=protocol))
    return SpecificPortMatcher(ports=tuple(pairs), port_ranges=tuple(ranges))


def build_admin_peers(rules: list[AdminRule], kind: PolicyKind, priority: int, pid: str) -> list[PeerMatcher]:
    """One admin peer per rule entry, in rule then peer declaration order."""
    peers: list[PeerMatcher] = []
    for rule in rules:
        effect = Effect(policy_kind=kind, priority=priority, verdict=verdict_from_action(rule.action, kind, pid))
        if not rule.peers:
            raise InvalidPolicyError(pid, f"rule '{rule.name}' must have at least one peer")
        port = build_admin_port_matcher(rule.ports, pid)
        for peer in rule.peers:
            peers.append(
                PeerMatcherAdmin(
                    pod_peer=build_admin_peer_matcher(peer, port, pid),
                    admin_effect=effect,
                    name=pid,
                    rule_name=rule.name,
                )
            )
    return peers


def _build_admin_targets(
    subject: AdminSubject,
    ingress_rules: list[AdminRule],
    egress_rules: list[AdminRule],
    kind: PolicyKind,
    priority: int,
    pid: str,
) -> tuple[Target | None, Target | None]:
    if not ingress_rules and not egress_rules:
        raise InvalidPolicyError(pid, "need at least one ingress or egress rule")
    subject_matcher = build_admin_subject(subject, pid)

    ingress: Target | None = None
    egress: Target | None = None
    if ingress_rules:
        ingress = Target(subject=subject_matcher, source_rules=[pid], peers=build_admin_peers(ingress_rules, kind, priority, pid))
    if egress_rules:
        egress = Target(subject=subject_matcher, source_rules=[pid], peers=build_admin_peers(egress_rules, kind, priority, pid))
    logger.debug(f"built targets for {pid}")
    return ingress, egress


def build_admin_network_policy_targets(anp: AdminNetworkPolicy) -> tuple[Target | None, Target | None]:
    """Build the ingress and egress targets of an ANP."""
    pid = policy_id(PolicyKind.ANP, anp.namespace, anp.name)
    if not MIN_ANP_PRIORITY <= anp.priority <= MAX_ANP_PRIORITY:
        raise InvalidPolicyError(pid, f"priority {anp.priority} outside [{MIN_ANP_PRIORITY}, {MAX_ANP_PRIORITY}]")
    return _build_admin_targets(anp.subject, anp.ingress, anp.egress, PolicyKind.ANP, anp.priority, pid)


def build_baseline_admin_network_policy_targets(
    banp: BaselineAdminNetworkPolicy,
) -> tuple[Target | None, Target | None]:
    """Build the ingress and egress targets of the BANP."""
    pid = policy_id(PolicyKind.BANP, banp.namespace, banp.name)
    return _build_admin_targets(banp.subject, banp.ingress, banp.egress, PolicyKind.BANP, 0, pid)
