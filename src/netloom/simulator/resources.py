"""Simulated namespaces, pods and containers."""

from dataclasses import dataclass, field
from typing import Any

from netloom.core.models import ClusterPod, Namespace
from netloom.core.models.errors import InvalidTrafficError, PolicyFileError, ResolutionError
from netloom.matcher.ports import Protocol
from netloom.matcher.traffic import InternalPeer, TrafficPeer
from netloom.utils.tables import render_table


@dataclass
class Container:
    """A container serving one port."""

    name: str
    port: int
    protocol: Protocol
    port_name: str

    @classmethod
    def default(cls, port: int, protocol: Protocol) -> "Container":
        """Container named after its port and protocol, e.g. `cont-80-tcp` serving `serve-80-tcp`."""
        suffix = f"{port}-{protocol.value.lower()}"
        return cls(name=f"cont-{suffix}", port=port, protocol=protocol, port_name=f"serve-{suffix}")


@dataclass
class Pod:
    """A simulated pod."""

    namespace: str
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    ip: str = ""
    local_node_ip: str = ""
    containers: list[Container] = field(default_factory=list)

    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def resolve_named_port(self, port_name: str, protocol: Protocol) -> Container:
        """Container exposing the named port on the protocol."""
        for container in self.containers:
            if container.port_name == port_name and container.protocol == protocol:
                return container
        raise ResolutionError(
            ResolutionError.NAMED_PORT, f"pod {self.key()} does not expose named port '{port_name}' on {protocol.value}"
        )

    def resolve_numbered_port(self, port: int, protocol: Protocol) -> Container:
        """Container serving the port on the protocol."""
        for container in self.containers:
            if container.port == port and container.protocol == protocol:
                return container
        raise ResolutionError(
            ResolutionError.PORT_PROTOCOL, f"pod {self.key()} does not serve port {port} on {protocol.value}"
        )

    def traffic_peer(self, namespace_labels: dict[str, str]) -> TrafficPeer:
        return TrafficPeer(
            ip=self.ip,
            internal=InternalPeer(
                namespace=self.namespace,
                namespace_labels=dict(namespace_labels),
                pod_labels=dict(self.labels),
                workload=self.key(),
            ),
        )


@dataclass
class Resources:
    """Namespaces (name to labels) and the pods in them."""

    namespaces: dict[str, dict[str, str]] = field(default_factory=dict)
    pods: list[Pod] = field(default_factory=list)

    @classmethod
    def default(
        cls,
        namespaces: list[str],
        pod_names: list[str],
        ports: list[int],
        protocols: list[Protocol],
    ) -> "Resources":
        """Every namespace gets every pod, every pod serves every port and protocol.

        Namespaces are labelled `ns: <name>` and pods `pod: <name>`.
        """
        resources = cls()
        for ns_index, namespace in enumerate(namespaces):
            resources.namespaces[namespace] = {"ns": namespace}
            for pod_index, pod_name in enumerate(pod_names):
                resources.pods.append(
                    Pod(
                        namespace=namespace,
                        name=pod_name,
                        labels={"pod": pod_name},
                        ip=f"192.168.{ns_index + 1}.{pod_index + 1}",
                        local_node_ip="10.0.0.1",
                        containers=[Container.default(port, protocol) for port in ports for protocol in protocols],
                    )
                )
        return resources

    @classmethod
    def from_cluster(cls, namespaces: list[Namespace], pods: list[ClusterPod]) -> "Resources":
        """Simulated resources mirroring live pods; each declared container port becomes a container."""
        resources = cls(namespaces={ns.name: dict(ns.labels) for ns in namespaces})
        for cluster_pod in pods:
            if cluster_pod.namespace not in resources.namespaces:
                continue
            containers = []
            for cport in cluster_pod.container_ports:
                try:
                    protocol = Protocol.parse(cport.protocol or "TCP")
                except InvalidTrafficError:
                    continue
                containers.append(Container(name=cport.container, port=cport.port, protocol=protocol, port_name=cport.name))
            resources.pods.append(
                Pod(
                    namespace=cluster_pod.namespace,
                    name=cluster_pod.name,
                    labels=dict(cluster_pod.labels),
                    ip=cluster_pod.ip,
                    local_node_ip=cluster_pod.host_ip,
                    containers=containers,
                )
            )
        return resources

    @classmethod
    def from_dict(cls, obj: dict[str, Any], source: str = "<resources>") -> "Resources":
        """Build from `{namespaces: {name: labels}, pods: [{namespace, name, labels, ip, nodeIP, containers}]}`."""
        try:
            resources = cls(namespaces={str(k): dict(v or {}) for k, v in (obj.get("namespaces") or {}).items()})
            for pod_obj in obj.get("pods") or []:
                containers = [
                    Container(
                        name=str(c.get("name", "")),
                        port=int(c["port"]),
                        protocol=Protocol.parse(str(c.get("protocol", "TCP"))),
                        port_name=str(c.get("portName", "")),
                    )
                    for c in pod_obj.get("containers") or []
                ]
                resources.pods.append(
                    Pod(
                        namespace=str(pod_obj["namespace"]),
                        name=str(pod_obj["name"]),
                        labels=dict(pod_obj.get("labels") or {}),
                        ip=str(pod_obj.get("ip", "")),
                        local_node_ip=str(pod_obj.get("nodeIP", "")),
                        containers=containers,
                    )
                )
        except (AttributeError, KeyError, TypeError, ValueError, InvalidTrafficError) as e:
            raise PolicyFileError(source, f"invalid resources: {e}") from e
        for pod in resources.pods:
            if pod.namespace not in resources.namespaces:
                raise PolicyFileError(source, f"pod {pod.key()} references unknown namespace {pod.namespace}")
        return resources

    def sorted_pods(self) -> list[Pod]:
        return sorted(self.pods, key=lambda p: (p.namespace, p.name))

    def namespace_labels(self, namespace: str) -> dict[str, str]:
        return self.namespaces.get(namespace, {})

    def get_pod(self, namespace: str, name: str) -> Pod:
        for pod in self.pods:
            if pod.namespace == namespace and pod.name == name:
                return pod
        raise KeyError(f"pod {namespace}/{name} not found")

    def render_table(self) -> str:
        """One row per container, grouped by namespace and pod."""
        rows = []
        for pod in self.sorted_pods():
            ns_labels = "\n".join(f"{k}: {v}" for k, v in sorted(self.namespace_labels(pod.namespace).items()))
            pod_labels = "\n".join(f"{k}: {v}" for k, v in sorted(pod.labels.items()))
            ips = f"pod: {pod.ip}\nnode: {pod.local_node_ip}"
            containers = pod.containers or [None]
            for container in containers:
                ports = (
                    f"{container.name}, port {container.port_name}: {container.port} on {container.protocol.value}"
                    if container
                    else "no containers"
                )
                rows.append([pod.namespace, ns_labels, pod.name, pod_labels, ips, ports])
        return render_table(
            ["Namespace", "NS Labels", "Pod", "Pod Labels", "IPs", "Containers/Ports"], rows, merge_columns=4
        )
