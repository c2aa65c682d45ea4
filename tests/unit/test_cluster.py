"""Unit tests for cluster reads and workload resolution."""

import asyncio

import pytest

from netloom.cli.commands import AnalyzeArgs, analyze_async
from netloom.core.interfaces import ClusterClient
from netloom.core.models import ClusterPod, ContainerPort, Namespace, OwnerReference
from netloom.core.models.errors import ExternalFetchError, InvalidTrafficError
from netloom.k8s.reader import (
    ADMIN_NETWORK_POLICIES,
    BASELINE_ADMIN_NETWORK_POLICIES,
    read_policies_from_cluster,
    read_resources_from_cluster,
)
from netloom.k8s.workloads import WorkloadResolver
from netloom.matcher import parse_workload


def netpol(name, namespace):
    return {"metadata": {"name": name, "namespace": namespace}, "spec": {"podSelector": {}}}


class FakeCluster(ClusterClient):
    """In-memory cluster; a tier set to an exception raises it, a tier set to a float sleeps that long."""

    def __init__(self):
        self.namespaces = [Namespace("x", {"ns": "x"}), Namespace("y", {"ns": "y"})]
        self.pods = [
            ClusterPod(
                name="web-5d9-abc",
                namespace="x",
                labels={"app": "web"},
                ip="10.1.0.4",
                host_ip="172.16.0.1",
                phase="Pending",
                owner_references=[OwnerReference("ReplicaSet", "web-5d9")],
                container_ports=[ContainerPort("web", 8080, "TCP", "http"), ContainerPort("web", 9090, "ICMP")],
            ),
            ClusterPod(
                name="web-5d9-def",
                namespace="x",
                labels={"app": "web"},
                ip="10.1.0.5",
                phase="Running",
                owner_references=[OwnerReference("ReplicaSet", "web-5d9")],
            ),
            ClusterPod(
                name="db-0",
                namespace="y",
                labels={"app": "db"},
                ip="10.2.0.4",
                phase="Running",
                owner_references=[OwnerReference("StatefulSet", "db")],
            ),
        ]
        self.network_policies = {"x": [netpol("deny-all", "x")], "y": [netpol("allow-all", "y")]}
        self.admin = [
            {"metadata": {"name": "anp"}, "spec": {"priority": 1, "subject": {"namespaces": {}}}},
        ]
        self.baseline = [{"metadata": {"name": "default"}, "spec": {"subject": {"namespaces": {}}}}]
        self.owners = {("x", "web-5d9"): [OwnerReference("Deployment", "web")]}
        self.failures = {}
        self.closed = False

    def _check(self, call):
        if call in self.failures:
            raise self.failures[call]

    async def _tier(self, value):
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, float):
            await asyncio.sleep(value)
            return []
        return value

    async def get_namespaces(self):
        self._check("namespaces")
        return self.namespaces

    async def get_pods(self, namespace=None):
        self._check("pods")
        return [pod for pod in self.pods if namespace is None or pod.namespace == namespace]

    async def get_network_policies(self, namespace=None):
        if namespace is None:
            return [p for policies in self.network_policies.values() for p in policies]
        return self.network_policies.get(namespace, [])

    async def get_admin_network_policies(self):
        return await self._tier(self.admin)

    async def get_baseline_admin_network_policies(self):
        return await self._tier(self.baseline)

    async def get_owner_references(self, kind, namespace, name):
        self._check("owners")
        return self.owners.get((namespace, name), [])

    async def close(self):
        self.closed = True


class TestReadPoliciesFromCluster:
    """Concurrent reads of the three tiers."""

    def test_all_tiers(self):
        result = asyncio.run(read_policies_from_cluster(FakeCluster()))

        assert result.is_complete()
        assert sorted(np.name for np in result.documents.network_policies) == ["allow-all", "deny-all"]
        assert [anp.name for anp in result.documents.admin_network_policies] == ["anp"]
        assert result.documents.baseline_admin_network_policy.name == "default"

    def test_selected_namespaces(self):
        result = asyncio.run(read_policies_from_cluster(FakeCluster(), namespaces=["y"]))

        assert [np.name for np in result.documents.network_policies] == ["allow-all"]

    def test_without_admin_tiers(self):
        result = asyncio.run(read_policies_from_cluster(FakeCluster(), include_admin=False))

        assert result.documents.admin_network_policies == []
        assert result.documents.baseline_admin_network_policy is None
        assert result.is_complete()

    def test_failed_tier_keeps_others(self):
        cluster = FakeCluster()
        cluster.baseline = RuntimeError("forbidden")

        result = asyncio.run(read_policies_from_cluster(cluster))

        assert len(result.errors) == 1
        error = result.errors[0]
        assert isinstance(error, ExternalFetchError)
        assert error.tier == BASELINE_ADMIN_NETWORK_POLICIES
        assert str(error) == "unable to read baseline admin network policies from cluster: forbidden"
        assert len(result.documents.network_policies) == 2
        assert len(result.documents.admin_network_policies) == 1

    def test_timeout(self):
        cluster = FakeCluster()
        cluster.admin = 5.0

        result = asyncio.run(read_policies_from_cluster(cluster, timeout=0.01))

        assert [e.tier for e in result.errors] == [ADMIN_NETWORK_POLICIES]
        assert "deadline of 0.01s exceeded" in str(result.errors[0])


class TestReadResourcesFromCluster:
    """Simulator resources mirroring live pods."""

    def test_all_namespaces(self):
        resources = asyncio.run(read_resources_from_cluster(FakeCluster()))

        pod = resources.get_pod("x", "web-5d9-abc")
        assert len(resources.pods) == 3
        assert resources.namespace_labels("y") == {"ns": "y"}
        assert pod.local_node_ip == "172.16.0.1"
        # unsupported protocols are skipped
        assert [(c.name, c.port, c.port_name) for c in pod.containers] == [("web", 8080, "http")]

    def test_selected_namespaces(self):
        resources = asyncio.run(read_resources_from_cluster(FakeCluster(), ["y"]))

        assert [pod.key() for pod in resources.pods] == ["y/db-0"]
        assert list(resources.namespaces) == ["y"]

    @pytest.mark.parametrize("call, what", [("namespaces", "namespaces"), ("pods", "pods")])
    def test_failed_read(self, call, what):
        cluster = FakeCluster()
        cluster.failures[call] = RuntimeError("Failed to get pods: (403) Forbidden")

        with pytest.raises(ExternalFetchError, match=f"unable to read {what} from cluster: Failed to get pods") as exc_info:
            asyncio.run(read_resources_from_cluster(cluster, ["x"]))
        assert exc_info.value.tier == what


class TestWorkloadResolver:
    """Workload identifiers to traffic peers."""

    def test_deployment_prefers_running_pod(self):
        peer = asyncio.run(WorkloadResolver(FakeCluster()).resolve("x/deployment/web"))

        assert peer.ip == "10.1.0.5"
        assert peer.internal.namespace_labels == {"ns": "x"}
        assert peer.internal.pod_labels == {"app": "web"}
        assert peer.internal.workload == "x/deployment/web"

    def test_replicaset(self):
        peer = asyncio.run(WorkloadResolver(FakeCluster()).resolve("x/replicaset/web-5d9"))

        assert peer.ip == "10.1.0.5"

    def test_statefulset(self):
        peer = asyncio.run(WorkloadResolver(FakeCluster()).resolve("y/statefulset/db"))

        assert peer.ip == "10.2.0.4"

    def test_pod(self):
        peer = asyncio.run(WorkloadResolver(FakeCluster()).resolve("x/pod/web-5d9-abc"))

        assert peer.ip == "10.1.0.4"

    def test_no_pods(self):
        with pytest.raises(InvalidTrafficError, match="no pods found for workload x/deployment/api"):
            asyncio.run(WorkloadResolver(FakeCluster()).resolve("x/deployment/api"))

    def test_unknown_namespace(self):
        cluster = FakeCluster()
        cluster.namespaces = [Namespace("y")]

        with pytest.raises(InvalidTrafficError, match="namespace x not found"):
            asyncio.run(WorkloadResolver(cluster).resolve("x/pod/web-5d9-abc"))

    def test_failed_owner_lookup(self):
        cluster = FakeCluster()
        cluster.failures["owners"] = RuntimeError("Failed to get replicaset x/web-5d9: (403) Forbidden")

        with pytest.raises(ExternalFetchError, match="unable to read pods of x/deployment/web from cluster"):
            asyncio.run(WorkloadResolver(cluster).resolve("x/deployment/web"))

    def test_failed_namespace_lookup(self):
        cluster = FakeCluster()
        cluster.failures["namespaces"] = RuntimeError("Failed to get namespaces: (403) Forbidden")

        with pytest.raises(ExternalFetchError, match="unable to read namespaces from cluster"):
            asyncio.run(WorkloadResolver(cluster).resolve("x/pod/web-5d9-abc"))


class TestAnalyzeWithFailingCluster:
    """Cluster read failures end the command with a single error line."""

    def test_probe_resources(self, capsys):
        cluster = FakeCluster()
        cluster.failures["pods"] = RuntimeError("Failed to get pods: (403) Forbidden")

        with pytest.raises(SystemExit) as exc_info:
            asyncio.run(analyze_async(AnalyzeArgs(modes=["probe"], namespaces=["x"]), cluster))

        assert exc_info.value.code == 1
        assert "Error: unable to read pods from cluster" in capsys.readouterr().out

    def test_workload_traffic(self, capsys):
        cluster = FakeCluster()
        cluster.failures["owners"] = RuntimeError("Failed to get replicaset x/web-5d9: (403) Forbidden")
        args = AnalyzeArgs(
            modes=["walkthrough"],
            namespaces=["x"],
            source_workload_traffic="x/deployment/web",
            destination_workload_traffic="y/statefulset/db",
            port=80,
            protocol="TCP",
        )

        with pytest.raises(SystemExit) as exc_info:
            asyncio.run(analyze_async(args, cluster))

        assert exc_info.value.code == 1
        assert "unable to read pods of x/deployment/web from cluster" in capsys.readouterr().out


class TestParseWorkload:
    """Workload identifier parsing."""

    def test_valid(self):
        workload = parse_workload("x/daemonset/agent")

        assert (workload.namespace, workload.kind, workload.name) == ("x", "daemonset", "agent")
        assert str(workload) == "x/daemonset/agent"

    @pytest.mark.parametrize("value", ["x/deployment", "x/Deployment/web", "/pod/a", "x/pod/a/b"])
    def test_malformed(self, value):
        with pytest.raises(InvalidTrafficError, match="malformed workload identifier"):
            parse_workload(value)

    def test_unsupported_kind(self):
        with pytest.raises(InvalidTrafficError, match="unsupported workload kind 'job'"):
            parse_workload("x/job/migrate")
