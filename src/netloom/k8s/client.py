"""Kubernetes client implementation."""

import asyncio
import logging
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from netloom.core.interfaces import ClusterClient
from netloom.core.models import ClusterPod, Namespace, OwnerReference
from netloom.k8s.converter import PolicyConverter

logger = logging.getLogger(__name__)

POLICY_API_GROUP = "policy.networking.k8s.io"
POLICY_API_VERSION = "v1alpha1"


class K8sClient(ClusterClient):
    """Kubernetes client implementation."""

    def __init__(self, kubeconfig_path: str | None = None, context: str | None = None):
        """Initialize Kubernetes client."""
        self.kubeconfig_path = kubeconfig_path
        self.context = context
        self.converter = PolicyConverter()
        self._api_client: client.ApiClient | None = None
        self._core_v1: client.CoreV1Api | None = None
        self._networking_v1: client.NetworkingV1Api | None = None
        self._custom_objects: client.CustomObjectsApi | None = None
        self._apps_v1: client.AppsV1Api | None = None

    async def _ensure_connected(self) -> None:
        """Ensure client is connected."""
        if self._api_client is None:
            try:
                if self.kubeconfig_path or self.context:
                    config.load_kube_config(config_file=self.kubeconfig_path, context=self.context)
                else:
                    # Try in-cluster config first, then default kubeconfig
                    try:
                        config.load_incluster_config()
                    except config.ConfigException:
                        config.load_kube_config()

                self._api_client = client.ApiClient()
                self._core_v1 = client.CoreV1Api(self._api_client)
                self._networking_v1 = client.NetworkingV1Api(self._api_client)
                self._custom_objects = client.CustomObjectsApi(self._api_client)
                self._apps_v1 = client.AppsV1Api(self._api_client)

            except Exception as e:
                raise ConnectionError(f"Failed to connect to Kubernetes cluster: {e}") from e

    async def _run(self, func: Callable[[], Any]) -> Any:
        """Run a blocking API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def _to_dicts(self, items: list[Any]) -> list[dict[str, Any]]:
        """Serialize API models to camelCase dictionaries."""
        assert self._api_client is not None
        return [self._api_client.sanitize_for_serialization(item) for item in items]

    async def get_namespaces(self) -> list[Namespace]:
        """Get all namespaces in the cluster."""
        await self._ensure_connected()

        try:
            assert self._core_v1 is not None
            response = await self._run(self._core_v1.list_namespace)
            return [self.converter.convert_namespace(obj) for obj in self._to_dicts(response.items)]

        except ApiException as e:
            raise RuntimeError(f"Failed to get namespaces: {e}") from e

    async def get_pods(self, namespace: str | None = None) -> list[ClusterPod]:
        """Get pods in a namespace, or in all namespaces if not specified."""
        await self._ensure_connected()

        try:
            assert self._core_v1 is not None
            core_v1 = self._core_v1

            def list_pods() -> Any:
                if namespace:
                    return core_v1.list_namespaced_pod(namespace=namespace)
                return core_v1.list_pod_for_all_namespaces()

            response = await self._run(list_pods)
            return [self.converter.convert_pod(obj) for obj in self._to_dicts(response.items)]

        except ApiException as e:
            raise RuntimeError(f"Failed to get pods: {e}") from e

    async def get_network_policies(self, namespace: str | None = None) -> list[dict[str, Any]]:
        """Get v1 NetworkPolicies in a namespace, or in all namespaces if not specified."""
        await self._ensure_connected()

        try:
            assert self._networking_v1 is not None
            networking_v1 = self._networking_v1

            def list_policies() -> Any:
                if namespace:
                    return networking_v1.list_namespaced_network_policy(namespace=namespace)
                return networking_v1.list_network_policy_for_all_namespaces()

            response = await self._run(list_policies)
            return self._to_dicts(response.items)

        except ApiException as e:
            raise RuntimeError(f"Failed to get network policies: {e}") from e

    async def _list_cluster_custom_objects(self, plural: str) -> list[dict[str, Any]]:
        await self._ensure_connected()

        try:
            assert self._custom_objects is not None
            custom_objects = self._custom_objects
            response = await self._run(
                lambda: custom_objects.list_cluster_custom_object(
                    group=POLICY_API_GROUP, version=POLICY_API_VERSION, plural=plural
                )
            )
            items = response.get("items", [])
            return items if isinstance(items, list) else []

        except ApiException as e:
            if e.status == 404:
                # CRD not installed
                logger.debug(f"{plural}.{POLICY_API_GROUP} not found in cluster")
                return []
            raise RuntimeError(f"Failed to get {plural}: {e}") from e

    async def get_admin_network_policies(self) -> list[dict[str, Any]]:
        """Get AdminNetworkPolicies."""
        return await self._list_cluster_custom_objects("adminnetworkpolicies")

    async def get_baseline_admin_network_policies(self) -> list[dict[str, Any]]:
        """Get BaselineAdminNetworkPolicies."""
        return await self._list_cluster_custom_objects("baselineadminnetworkpolicies")

    async def get_owner_references(self, kind: str, namespace: str, name: str) -> list[OwnerReference]:
        """Get the owners of an apps/v1 controller object."""
        await self._ensure_connected()

        readers = {
            "replicaset": "read_namespaced_replica_set",
            "deployment": "read_namespaced_deployment",
            "daemonset": "read_namespaced_daemon_set",
            "statefulset": "read_namespaced_stateful_set",
        }
        method = readers.get(kind.lower())
        if method is None:
            raise ValueError(f"Unsupported owner kind: {kind}")

        try:
            read = getattr(self._apps_v1, method)
            response = await self._run(lambda: read(name=name, namespace=namespace))
            return self.converter.convert_owner_references(self._api_client.sanitize_for_serialization(response))

        except ApiException as e:
            if e.status == 404:
                return []
            raise RuntimeError(f"Failed to get {kind} {namespace}/{name}: {e}") from e

    async def close(self) -> None:
        """Close the client connection."""
        if self._api_client and hasattr(self._api_client, "close"):
            if asyncio.iscoroutinefunction(self._api_client.close):
                await self._api_client.close()
            else:
                self._api_client.close()
        self._api_client = None
        self._core_v1 = None
        self._networking_v1 = None
        self._custom_objects = None
        self._apps_v1 = None
