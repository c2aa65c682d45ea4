"""Unit tests for policy conversion and file loading."""

import logging

import pytest

from netloom.core.models import PolicyType
from netloom.core.models.errors import InvalidPolicyError, InvalidTrafficError, PolicyFileError
from netloom.examples import example_policies
from netloom.k8s.converter import PolicyConverter
from netloom.k8s.loader import (
    PolicyDocumentReader,
    policy_files,
    read_policies_from_path,
    read_resources_from_path,
    read_traffic_from_path,
)
from netloom.matcher import Direction, Protocol, build_network_policies

NETPOL = """
apiVersion: networking.k8s.io/v1
kind: NetworkPolicy
metadata:
  name: allow-b
  namespace: x
spec:
  podSelector:
    matchLabels: {pod: a}
  ingress:
    - from:
        - podSelector: {matchLabels: {pod: b}}
"""

BANP = """
kind: BaselineAdminNetworkPolicy
metadata:
  name: %s
spec:
  subject:
    namespaces: {}
  ingress:
    - action: Deny
      from:
        - namespaces: {}
"""


class TestPolicyConverter:
    """Conversion of Kubernetes objects to policy models."""

    def setup_method(self):
        self.converter = PolicyConverter()

    def test_defaults_policy_types_to_ingress(self):
        netpol = self.converter.convert_network_policy(
            {"metadata": {"name": "np", "namespace": "x"}, "spec": {"podSelector": {}}}
        )

        assert netpol.policy_types == [PolicyType.INGRESS]

    def test_defaults_policy_types_with_egress_rules(self):
        netpol = self.converter.convert_network_policy(
            {"metadata": {"name": "np", "namespace": "x"}, "spec": {"egress": [{}]}}
        )

        assert netpol.policy_types == [PolicyType.INGRESS, PolicyType.EGRESS]

    def test_invalid_policy_type(self):
        with pytest.raises(InvalidPolicyError, match="invalid policy type 'Both'"):
            self.converter.convert_network_policy(
                {"metadata": {"name": "np", "namespace": "x"}, "spec": {"policyTypes": ["Both"]}}
            )

    def test_v1_ports(self):
        netpol = self.converter.convert_network_policy(
            {
                "metadata": {"name": "np", "namespace": "x"},
                "spec": {"ingress": [{"ports": [{"port": "web"}, {"protocol": "UDP", "port": 53, "endPort": 60}]}]},
            }
        )

        ports = netpol.ingress[0].ports
        assert ports[0].port == "web"
        assert ports[0].protocol is None
        assert (ports[1].protocol, ports[1].port, ports[1].end_port) == ("UDP", 53, 60)

    def test_v1_ip_block(self):
        netpol = self.converter.convert_network_policy(
            {
                "metadata": {"name": "np", "namespace": "x"},
                "spec": {"egress": [{"to": [{"ipBlock": {"cidr": "10.0.0.0/8", "except": ["10.1.0.0/16"]}}]}]},
            }
        )

        block = netpol.egress[0].peers[0].ip_block
        assert block.cidr == "10.0.0.0/8"
        assert block.except_ == ("10.1.0.0/16",)

    def test_ip_block_requires_cidr(self):
        with pytest.raises(InvalidPolicyError, match="ipBlock requires a cidr"):
            self.converter.convert_network_policy(
                {"metadata": {"name": "np", "namespace": "x"}, "spec": {"egress": [{"to": [{"ipBlock": {}}]}]}}
            )

    def test_invalid_selector_operator(self):
        with pytest.raises(InvalidPolicyError, match="invalid selector operator 'Like'"):
            self.converter.convert_network_policy(
                {
                    "metadata": {"name": "np", "namespace": "x"},
                    "spec": {"podSelector": {"matchExpressions": [{"key": "a", "operator": "Like"}]}},
                }
            )

    @pytest.mark.parametrize("priority", [None, "10", True, 1.5])
    def test_anp_priority_must_be_int(self, priority):
        with pytest.raises(InvalidPolicyError, match="priority must be an integer"):
            self.converter.convert_admin_network_policy(
                {"metadata": {"name": "anp"}, "spec": {"priority": priority, "subject": {"namespaces": {}}}}
            )

    def test_anp_peers(self):
        anp = self.converter.convert_admin_network_policy(
            {
                "metadata": {"name": "anp"},
                "spec": {
                    "priority": 3,
                    "subject": {"pods": {"namespaceSelector": {}, "podSelector": {"matchLabels": {"app": "db"}}}},
                    "ingress": [
                        {
                            "name": "r1",
                            "action": "Allow",
                            "from": [
                                {"namespaces": {"matchLabels": {"team": "a"}}},
                                {"namespaces": {"sameLabels": ["tier"]}},
                                {"pods": {"namespaceSelector": {}, "podSelector": {}}},
                            ],
                            "ports": [{"namedPort": "web"}, {"portRange": {"protocol": "UDP", "start": 1, "end": 9}}],
                        }
                    ],
                },
            }
        )

        rule = anp.ingress[0]
        assert anp.subject.pods.pod_selector.match_labels == {"app": "db"}
        assert rule.name == "r1"
        assert rule.peers[0].namespaces.namespace_selector.match_labels == {"team": "a"}
        assert rule.peers[1].namespaces.same_labels == ["tier"]
        assert rule.peers[2].pods.namespaces.namespace_selector is not None
        assert rule.ports[0].named_port == "web"
        assert (rule.ports[1].port_range.start, rule.ports[1].port_range.end) == (1, 9)

    def test_anp_without_ports_matches_all_ports(self):
        anp = self.converter.convert_admin_network_policy(
            {
                "metadata": {"name": "anp"},
                "spec": {"priority": 3, "subject": {"namespaces": {}}, "egress": [{"action": "Deny", "to": []}]},
            }
        )

        assert anp.egress[0].ports is None

    def test_invalid_admin_port(self):
        with pytest.raises(InvalidPolicyError, match="invalid port"):
            self.converter.convert_admin_network_policy(
                {
                    "metadata": {"name": "anp"},
                    "spec": {
                        "priority": 3,
                        "subject": {"namespaces": {}},
                        "ingress": [{"action": "Deny", "ports": [{"portNumber": {"protocol": "TCP"}}]}],
                    },
                }
            )

    def test_admin_subject_required(self):
        with pytest.raises(InvalidPolicyError, match="subject is required"):
            self.converter.convert_baseline_admin_network_policy({"metadata": {"name": "default"}, "spec": {}})

    def test_pod(self):
        pod = self.converter.convert_pod(
            {
                "metadata": {
                    "name": "web-1",
                    "namespace": "x",
                    "labels": {"app": "web"},
                    "ownerReferences": [{"kind": "ReplicaSet", "name": "web-5d9"}],
                },
                "spec": {"containers": [{"name": "c", "ports": [{"containerPort": 8080, "name": "http"}]}]},
                "status": {"podIP": "10.1.0.4", "hostIP": "172.16.0.2", "phase": "Running"},
            }
        )

        assert pod.ip == "10.1.0.4"
        assert pod.host_ip == "172.16.0.2"
        assert pod.owner_references[0].kind == "ReplicaSet"
        assert pod.container_ports[0].protocol == "TCP"
        assert pod.container_ports[0].name == "http"


class TestPolicyDocumentReader:
    """Dispatching documents by kind."""

    def test_lists_and_unknown_kinds(self):
        reader = PolicyDocumentReader()

        count = reader.add(
            {
                "kind": "List",
                "items": [
                    {"kind": "NetworkPolicy", "metadata": {"name": "np", "namespace": "x"}, "spec": {}},
                    {"kind": "ConfigMap", "metadata": {"name": "cm"}},
                ],
            },
            "test",
        )

        assert count == 1
        assert reader.add("not a document", "test") == 0
        assert [np.name for np in reader.documents.network_policies] == ["np"]

    def test_last_banp_wins(self, caplog):
        reader = PolicyDocumentReader()

        with caplog.at_level(logging.WARNING):
            reader.add(
                {"kind": "BaselineAdminNetworkPolicy", "metadata": {"name": "first"}, "spec": {"subject": {"namespaces": {}}}},
                "a.yaml",
            )
            reader.add(
                {"kind": "BaselineAdminNetworkPolicy", "metadata": {"name": "second"}, "spec": {"subject": {"namespaces": {}}}},
                "b.yaml",
            )

        assert reader.documents.baseline_admin_network_policy.name == "second"
        assert "multiple baseline admin network policies found" in caplog.text

    def test_banp_from_later_source_wins(self, caplog):
        reader = PolicyDocumentReader()
        reader.add(
            {"kind": "BaselineAdminNetworkPolicy", "metadata": {"name": "from-file"}, "spec": {"subject": {"namespaces": {}}}},
            "banp.yaml",
        )
        documents = example_policies()

        with caplog.at_level(logging.WARNING):
            documents.extend(reader.documents)

        assert documents.baseline_admin_network_policy.name == "from-file"
        assert "multiple baseline admin network policies found, using from-file instead of default" in caplog.text

    def test_extend_without_banp_is_quiet(self, caplog):
        documents = example_policies()

        with caplog.at_level(logging.WARNING):
            documents.extend(PolicyDocumentReader().documents)

        assert documents.baseline_admin_network_policy.name == "default"
        assert caplog.records == []


class TestReadPoliciesFromPath:
    """Reading policy files and directories."""

    def test_directory(self, tmp_path):
        (tmp_path / "nested").mkdir()
        (tmp_path / "netpol.yaml").write_text(NETPOL)
        (tmp_path / "nested" / "banp.yml").write_text(BANP % "default")
        (tmp_path / "README.md").write_text("# not a policy")

        documents = read_policies_from_path(tmp_path)

        assert [np.name for np in documents.network_policies] == ["allow-b"]
        assert documents.baseline_admin_network_policy.name == "default"
        assert [f.name for f in policy_files(tmp_path)] == ["banp.yml", "netpol.yaml"]

    def test_multi_document_file(self, tmp_path):
        path = tmp_path / "policies.yaml"
        path.write_text(NETPOL + "---\n" + NETPOL.replace("allow-b", "allow-c"))

        documents = read_policies_from_path(path)

        assert [np.name for np in documents.network_policies] == ["allow-b", "allow-c"]

    def test_json_file(self, tmp_path):
        path = tmp_path / "netpol.json"
        path.write_text('{"kind": "NetworkPolicy", "metadata": {"name": "np", "namespace": "y"}, "spec": {}}')

        documents = read_policies_from_path(path)

        assert documents.network_policies[0].namespace == "y"

    def test_file_without_policies_warns(self, tmp_path, caplog):
        path = tmp_path / "empty.yaml"
        path.write_text("kind: ConfigMap\nmetadata: {name: cm}\n")

        with caplog.at_level(logging.WARNING):
            documents = read_policies_from_path(path)

        assert documents.network_policies == []
        assert "no network policies found in" in caplog.text

    def test_missing_path(self, tmp_path):
        with pytest.raises(PolicyFileError, match="no such file or directory"):
            read_policies_from_path(tmp_path / "missing")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("kind: [unclosed\n")

        with pytest.raises(PolicyFileError):
            read_policies_from_path(path)

    def test_invalid_policy(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("kind: AdminNetworkPolicy\nmetadata: {name: anp}\nspec: {priority: high}\n")

        with pytest.raises(PolicyFileError, match="priority must be an integer") as exc_info:
            read_policies_from_path(path)

        assert isinstance(exc_info.value.cause, InvalidPolicyError)
        assert exc_info.value.path == str(path)


class TestReadTrafficFromPath:
    """Reading traffic files."""

    def test_list(self, tmp_path):
        path = tmp_path / "traffic.yaml"
        path.write_text(
            """
- source: {ip: 8.8.8.8}
  destination:
    ip: 192.168.1.1
    internal: {namespace: x, namespaceLabels: {ns: x}, podLabels: {pod: a}}
  resolvedPort: 80
  protocol: TCP
- source:
    internal: {namespace: y, namespaceLabels: {ns: y}, podLabels: {pod: b}}
    ip: 192.168.2.2
  destination: {ip: 1.1.1.1}
  port: 53
  protocol: udp
"""
        )

        traffic = read_traffic_from_path(path)

        assert len(traffic) == 2
        assert traffic[0].destination.namespace() == "x"
        assert traffic[1].protocol == Protocol.UDP
        assert traffic[1].resolved_port == 53

    def test_single_document(self, tmp_path):
        path = tmp_path / "traffic.json"
        path.write_text('{"source": {"ip": "1.2.3.4"}, "destination": {"ip": "5.6.7.8"}, "port": 443, "protocol": "TCP"}')

        assert read_traffic_from_path(path)[0].resolved_port == 443

    def test_invalid_entry(self, tmp_path):
        path = tmp_path / "traffic.yaml"
        path.write_text("- source: {ip: 1.2.3.4}\n  destination: {ip: 5.6.7.8}\n  port: 0\n  protocol: TCP\n")

        with pytest.raises(InvalidTrafficError, match="entry 0: port 0 outside"):
            read_traffic_from_path(path)


class TestReadResourcesFromPath:
    """Reading simulator resources."""

    def test_resources(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text(
            """
namespaces:
  x: {ns: x}
pods:
  - namespace: x
    name: a
    labels: {pod: a}
    ip: 192.168.1.1
    nodeIP: 10.0.0.1
    containers:
      - {name: web, port: 80, protocol: TCP, portName: http}
"""
        )

        resources = read_resources_from_path(path)

        assert resources.get_pod("x", "a").containers[0].port_name == "http"

    def test_resources_must_be_single_mapping(self, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(PolicyFileError, match="expected a single mapping"):
            read_resources_from_path(path)


class TestExamplePolicies:
    """Built-in examples."""

    def test_counts(self):
        documents = example_policies()

        assert len(documents.network_policies) == 3
        assert len(documents.admin_network_policies) == 2
        assert documents.baseline_admin_network_policy.name == "default"

    def test_builds(self):
        documents = example_policies()

        policy = build_network_policies(
            True,
            documents.network_policies,
            documents.admin_network_policies,
            documents.baseline_admin_network_policy,
        )

        assert policy.sorted_targets(Direction.INGRESS)
        assert policy.sorted_targets(Direction.EGRESS)
