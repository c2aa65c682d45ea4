"""Core interfaces for netloom."""

from abc import ABC, abstractmethod
from typing import Any

from netloom.core.models import ClusterPod, Namespace, OwnerReference


class ClusterClient(ABC):
    """Interface for reading policies and workloads from a cluster."""

    @abstractmethod
    async def get_namespaces(self) -> list[Namespace]:
        """Get all namespaces in the cluster."""
        pass

    @abstractmethod
    async def get_pods(self, namespace: str | None = None) -> list[ClusterPod]:
        """Get pods in a namespace, or in all namespaces if not specified."""
        pass

    @abstractmethod
    async def get_network_policies(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """Get v1 NetworkPolicy objects as camelCase dictionaries."""
        pass

    @abstractmethod
    async def get_admin_network_policies(self) -> list[dict[str, Any]]:
        """Get AdminNetworkPolicy objects; empty when the CRD is not installed."""
        pass

    @abstractmethod
    async def get_baseline_admin_network_policies(self) -> list[dict[str, Any]]:
        """Get BaselineAdminNetworkPolicy objects; empty when the CRD is not installed."""
        pass

    @abstractmethod
    async def get_owner_references(self, kind: str, namespace: str, name: str) -> list[OwnerReference]:
        """Get the owners of a ReplicaSet or other controller object."""
        pass

    async def close(self) -> None:
        """Release client resources."""
        pass
