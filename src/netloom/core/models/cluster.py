"""Cluster, namespace and pod models as read from Kubernetes."""

from dataclasses import dataclass, field


@dataclass
class Namespace:
    """Represents a Kubernetes namespace."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class OwnerReference:
    """Controller that owns an object."""

    kind: str
    name: str


@dataclass
class ContainerPort:
    """A port declared by one of a pod's containers."""

    container: str
    port: int
    protocol: str = "TCP"
    name: str = ""


@dataclass
class ClusterPod:
    """A pod as read from the cluster."""

    name: str
    namespace: str
    labels: dict[str, str] = field(default_factory=dict)
    ip: str = ""
    host_ip: str = ""
    phase: str = ""
    owner_references: list[OwnerReference] = field(default_factory=list)
    container_ports: list[ContainerPort] = field(default_factory=list)
    container_names: list[str] = field(default_factory=list)

    def get_full_name(self) -> str:
        """Get the namespace/name form."""
        return f"{self.namespace}/{self.name}"

    def is_running(self) -> bool:
        """Check whether the pod is running."""
        return self.phase == "Running"
