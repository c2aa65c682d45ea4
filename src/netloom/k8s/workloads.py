"""Resolve `<namespace>/<kind>/<name>` workloads to traffic peers."""

import logging

from netloom.core.interfaces import ClusterClient
from netloom.core.models import ClusterPod
from netloom.core.models.errors import ExternalFetchError, InvalidTrafficError
from netloom.matcher.traffic import InternalPeer, TrafficPeer, Workload, parse_workload

logger = logging.getLogger(__name__)


class WorkloadResolver:
    """Find a representative pod for a workload and describe it as a traffic peer."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster
        self._namespace_labels: dict[str, dict[str, str]] | None = None

    async def namespace_labels(self, namespace: str) -> dict[str, str]:
        if self._namespace_labels is None:
            try:
                cluster_namespaces = await self.cluster.get_namespaces()
            except RuntimeError as e:
                raise ExternalFetchError("namespaces", e) from e
            self._namespace_labels = {ns.name: ns.labels for ns in cluster_namespaces}
        if namespace not in self._namespace_labels:
            raise InvalidTrafficError(f"namespace {namespace} not found")
        return self._namespace_labels[namespace]

    async def _is_owned_by(self, pod: ClusterPod, workload: Workload) -> bool:
        for owner in pod.owner_references:
            owner_kind = owner.kind.lower()
            if owner_kind == workload.kind:
                return owner.name == workload.name
            if owner_kind == "replicaset" and workload.kind == "deployment":
                parents = await self.cluster.get_owner_references("replicaset", pod.namespace, owner.name)
                if any(p.kind.lower() == "deployment" and p.name == workload.name for p in parents):
                    return True
        return False

    async def find_pods(self, workload: Workload) -> list[ClusterPod]:
        """Pods belonging to the workload, running pods first."""
        pods = await self.cluster.get_pods(workload.namespace)
        if workload.kind == "pod":
            matched = [pod for pod in pods if pod.name == workload.name]
        else:
            matched = [pod for pod in pods if await self._is_owned_by(pod, workload)]
        return sorted(matched, key=lambda p: (not p.is_running(), p.name))

    async def resolve(self, workload: str | Workload) -> TrafficPeer:
        """Traffic peer for the first pod of the workload."""
        if isinstance(workload, str):
            workload = parse_workload(workload)
        try:
            pods = await self.find_pods(workload)
        except RuntimeError as e:
            raise ExternalFetchError(f"pods of {workload}", e) from e
        if not pods:
            raise InvalidTrafficError(f"no pods found for workload {workload}")
        pod = pods[0]
        logger.debug(f"resolved workload {workload} to pod {pod.get_full_name()} ({pod.ip})")
        return TrafficPeer(
            ip=pod.ip,
            internal=InternalPeer(
                namespace=pod.namespace,
                namespace_labels=dict(await self.namespace_labels(pod.namespace)),
                pod_labels=dict(pod.labels),
                workload=str(workload),
            ),
        )
