"""Convert Kubernetes objects to netloom models."""

from typing import Any

from netloom.core.models import (
    AdminNetworkPolicy,
    AdminPeer,
    AdminPort,
    AdminPortNumber,
    AdminPortRange,
    AdminRule,
    AdminSubject,
    BaselineAdminNetworkPolicy,
    ClusterPod,
    ContainerPort,
    IPBlock,
    LabelSelector,
    LabelSelectorRequirement,
    Namespace,
    NamespacedPeer,
    NamespacedPodPeer,
    NamespacedPodSubject,
    NetworkPolicy,
    NetworkPolicyPeer,
    NetworkPolicyPort,
    NetworkPolicyRule,
    OwnerReference,
    PolicyType,
    SelectorOperator,
)
from netloom.core.models.errors import InvalidPolicyError

_NAMESPACED_PEER_KEYS = {"namespaceSelector", "sameLabels", "notSameLabels"}


class PolicyConverter:
    """Convert camelCase Kubernetes objects (API payloads or YAML documents) to netloom models."""

    def convert_network_policy(self, k8s_object: dict[str, Any]) -> NetworkPolicy:
        """Convert a networking.k8s.io/v1 NetworkPolicy."""
        metadata = k8s_object.get("metadata") or {}
        spec = k8s_object.get("spec") or {}
        pid = f"[NPv1] {metadata.get('namespace') or 'default'}/{metadata.get('name', '')}"

        ingress = [self._parse_v1_rule(rule, "from", pid) for rule in spec.get("ingress") or []]
        egress = [self._parse_v1_rule(rule, "to", pid) for rule in spec.get("egress") or []]

        policy_types = [self._parse_policy_type(t, pid) for t in spec.get("policyTypes") or []]
        if not policy_types:
            # apiserver defaulting: Ingress always, Egress when egress rules are present
            policy_types = [PolicyType.INGRESS]
            if spec.get("egress"):
                policy_types.append(PolicyType.EGRESS)

        return NetworkPolicy(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            pod_selector=self._parse_selector(spec.get("podSelector"), pid) or LabelSelector(),
            policy_types=policy_types,
            ingress=ingress,
            egress=egress,
        )

    def convert_admin_network_policy(self, k8s_object: dict[str, Any]) -> AdminNetworkPolicy:
        """Convert a policy.networking.k8s.io AdminNetworkPolicy."""
        metadata = k8s_object.get("metadata") or {}
        spec = k8s_object.get("spec") or {}
        pid = f"[ANP] {metadata.get('namespace') or 'default'}/{metadata.get('name', '')}"

        priority = spec.get("priority")
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise InvalidPolicyError(pid, f"priority must be an integer, got {priority!r}")

        return AdminNetworkPolicy(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            priority=priority,
            subject=self._parse_admin_subject(spec.get("subject"), pid),
            ingress=[self._parse_admin_rule(rule, "from", pid) for rule in spec.get("ingress") or []],
            egress=[self._parse_admin_rule(rule, "to", pid) for rule in spec.get("egress") or []],
        )

    def convert_baseline_admin_network_policy(self, k8s_object: dict[str, Any]) -> BaselineAdminNetworkPolicy:
        """Convert a policy.networking.k8s.io BaselineAdminNetworkPolicy."""
        metadata = k8s_object.get("metadata") or {}
        spec = k8s_object.get("spec") or {}
        pid = f"[BANP] {metadata.get('namespace') or 'default'}/{metadata.get('name', '')}"

        return BaselineAdminNetworkPolicy(
            name=metadata.get("name", "default"),
            namespace=metadata.get("namespace", ""),
            subject=self._parse_admin_subject(spec.get("subject"), pid),
            ingress=[self._parse_admin_rule(rule, "from", pid) for rule in spec.get("ingress") or []],
            egress=[self._parse_admin_rule(rule, "to", pid) for rule in spec.get("egress") or []],
        )

    def convert_namespace(self, k8s_object: dict[str, Any]) -> Namespace:
        """Convert a core/v1 Namespace."""
        metadata = k8s_object.get("metadata") or {}
        return Namespace(name=metadata.get("name", ""), labels=dict(metadata.get("labels") or {}))

    def convert_pod(self, k8s_object: dict[str, Any]) -> ClusterPod:
        """Convert a core/v1 Pod."""
        metadata = k8s_object.get("metadata") or {}
        spec = k8s_object.get("spec") or {}
        status = k8s_object.get("status") or {}

        container_ports = []
        container_names = []
        for container in spec.get("containers") or []:
            container_names.append(container.get("name", ""))
            for port in container.get("ports") or []:
                container_ports.append(
                    ContainerPort(
                        container=container.get("name", ""),
                        port=int(port.get("containerPort", 0)),
                        protocol=port.get("protocol") or "TCP",
                        name=port.get("name") or "",
                    )
                )

        return ClusterPod(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            labels=dict(metadata.get("labels") or {}),
            ip=status.get("podIP") or "",
            host_ip=status.get("hostIP") or "",
            phase=status.get("phase") or "",
            owner_references=self.convert_owner_references(k8s_object),
            container_ports=container_ports,
            container_names=container_names,
        )

    def convert_owner_references(self, k8s_object: dict[str, Any]) -> list[OwnerReference]:
        metadata = k8s_object.get("metadata") or {}
        return [
            OwnerReference(kind=ref.get("kind", ""), name=ref.get("name", ""))
            for ref in metadata.get("ownerReferences") or []
        ]

    def _parse_selector(self, selector: Any, pid: str) -> LabelSelector | None:
        """Parse a label selector; None stays None so callers can tell absent from empty."""
        if selector is None:
            return None
        if not isinstance(selector, dict):
            raise InvalidPolicyError(pid, f"label selector must be a mapping, got {type(selector).__name__}")

        expressions = []
        for expression in selector.get("matchExpressions") or []:
            try:
                operator = SelectorOperator(expression.get("operator"))
            except ValueError as e:
                raise InvalidPolicyError(pid, f"invalid selector operator {expression.get('operator')!r}") from e
            expressions.append(
                LabelSelectorRequirement(
                    key=expression.get("key", ""),
                    operator=operator,
                    values=tuple(str(v) for v in expression.get("values") or []),
                )
            )
        labels = {str(k): str(v) for k, v in (selector.get("matchLabels") or {}).items()}
        return LabelSelector(match_labels=labels, match_expressions=tuple(expressions))

    def _parse_policy_type(self, value: Any, pid: str) -> PolicyType:
        try:
            return PolicyType(value)
        except ValueError as e:
            raise InvalidPolicyError(pid, f"invalid policy type {value!r}") from e

    def _parse_v1_rule(self, rule: dict[str, Any], peers_key: str, pid: str) -> NetworkPolicyRule:
        if not isinstance(rule, dict):
            raise InvalidPolicyError(pid, f"rule must be a mapping, got {type(rule).__name__}")
        return NetworkPolicyRule(
            ports=[self._parse_v1_port(port, pid) for port in rule.get("ports") or []],
            peers=[self._parse_v1_peer(peer, pid) for peer in rule.get(peers_key) or []],
        )

    def _parse_v1_port(self, port: dict[str, Any], pid: str) -> NetworkPolicyPort:
        if not isinstance(port, dict):
            raise InvalidPolicyError(pid, f"port must be a mapping, got {type(port).__name__}")
        value = port.get("port")
        if value is not None and not isinstance(value, (int, str)):
            raise InvalidPolicyError(pid, f"port must be an integer or a name, got {value!r}")
        end_port = port.get("endPort")
        if end_port is not None and not isinstance(end_port, int):
            raise InvalidPolicyError(pid, f"endPort must be an integer, got {end_port!r}")
        return NetworkPolicyPort(protocol=port.get("protocol"), port=value, end_port=end_port)

    def _parse_v1_peer(self, peer: dict[str, Any], pid: str) -> NetworkPolicyPeer:
        if not isinstance(peer, dict):
            raise InvalidPolicyError(pid, f"peer must be a mapping, got {type(peer).__name__}")
        ip_block = None
        if peer.get("ipBlock") is not None:
            block = peer["ipBlock"]
            if "cidr" not in block:
                raise InvalidPolicyError(pid, "ipBlock requires a cidr")
            ip_block = IPBlock(cidr=str(block["cidr"]), except_=tuple(str(e) for e in block.get("except") or []))
        return NetworkPolicyPeer(
            pod_selector=self._parse_selector(peer.get("podSelector"), pid),
            namespace_selector=self._parse_selector(peer.get("namespaceSelector"), pid),
            ip_block=ip_block,
        )

    def _parse_admin_subject(self, subject: Any, pid: str) -> AdminSubject:
        if not isinstance(subject, dict):
            raise InvalidPolicyError(pid, "subject is required")
        pods = subject.get("pods")
        return AdminSubject(
            namespaces=self._parse_selector(subject.get("namespaces"), pid),
            pods=(
                NamespacedPodSubject(
                    namespace_selector=self._parse_selector(pods.get("namespaceSelector"), pid) or LabelSelector(),
                    pod_selector=self._parse_selector(pods.get("podSelector"), pid) or LabelSelector(),
                )
                if isinstance(pods, dict)
                else None
            ),
        )

    def _parse_namespaced_peer(self, namespaces: Any, pid: str) -> NamespacedPeer:
        """Accept both `{namespaceSelector|sameLabels|notSameLabels}` and a bare label selector."""
        if not isinstance(namespaces, dict):
            raise InvalidPolicyError(pid, "namespaces must be a mapping")
        if not _NAMESPACED_PEER_KEYS & namespaces.keys():
            return NamespacedPeer(namespace_selector=self._parse_selector(namespaces, pid))
        same = namespaces.get("sameLabels")
        not_same = namespaces.get("notSameLabels")
        return NamespacedPeer(
            namespace_selector=self._parse_selector(namespaces.get("namespaceSelector"), pid),
            same_labels=[str(k) for k in same] if same is not None else None,
            not_same_labels=[str(k) for k in not_same] if not_same is not None else None,
        )

    def _parse_admin_peer(self, peer: dict[str, Any], pid: str) -> AdminPeer:
        if not isinstance(peer, dict):
            raise InvalidPolicyError(pid, f"peer must be a mapping, got {type(peer).__name__}")
        pods = peer.get("pods")
        pods_peer = None
        if pods is not None:
            if not isinstance(pods, dict):
                raise InvalidPolicyError(pid, "pods must be a mapping")
            namespaces = pods.get("namespaces", pods.get("namespaceSelector"))
            pods_peer = NamespacedPodPeer(
                namespaces=self._parse_namespaced_peer(namespaces if namespaces is not None else {}, pid),
                pod_selector=self._parse_selector(pods.get("podSelector"), pid) or LabelSelector(),
            )
        namespaces_peer = None
        if peer.get("namespaces") is not None:
            namespaces_peer = self._parse_namespaced_peer(peer["namespaces"], pid)
        return AdminPeer(namespaces=namespaces_peer, pods=pods_peer)

    def _parse_admin_port(self, port: dict[str, Any], pid: str) -> AdminPort:
        if not isinstance(port, dict):
            raise InvalidPolicyError(pid, f"port must be a mapping, got {type(port).__name__}")
        admin_port = AdminPort()
        try:
            if port.get("portNumber") is not None:
                number = port["portNumber"]
                admin_port.port_number = AdminPortNumber(port=int(number["port"]), protocol=number.get("protocol"))
            if port.get("namedPort") is not None:
                admin_port.named_port = str(port["namedPort"])
            if port.get("portRange") is not None:
                port_range = port["portRange"]
                admin_port.port_range = AdminPortRange(
                    start=int(port_range["start"]), end=int(port_range["end"]), protocol=port_range.get("protocol")
                )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidPolicyError(pid, f"invalid port {port!r}") from e
        return admin_port

    def _parse_admin_rule(self, rule: dict[str, Any], peers_key: str, pid: str) -> AdminRule:
        if not isinstance(rule, dict):
            raise InvalidPolicyError(pid, f"rule must be a mapping, got {type(rule).__name__}")
        ports = rule.get("ports")
        return AdminRule(
            name=rule.get("name", ""),
            action=str(rule.get("action", "")),
            peers=[self._parse_admin_peer(peer, pid) for peer in rule.get(peers_key) or []],
            ports=[self._parse_admin_port(port, pid) for port in ports] if ports is not None else None,
        )
