"""Shared fixtures for unit tests."""

import pytest
import yaml

from netloom.k8s.loader import PolicyDocumentReader
from netloom.matcher import InternalPeer, Protocol, Traffic, TrafficPeer, build_network_policies

NAMESPACES = ["x", "y", "z"]
PODS = ["a", "b", "c"]


def pod_ip(namespace: str, pod: str) -> str:
    ns_index = NAMESPACES.index(namespace) + 1 if namespace in NAMESPACES else 9
    pod_index = PODS.index(pod) + 1 if pod in PODS else 9
    return f"192.168.{ns_index}.{pod_index}"


@pytest.fixture
def pod_peer():
    """Factory for in-cluster peers: pod_peer("x", "a") is pod a in namespace x, labelled ns/pod."""

    def make(namespace, pod, namespace_labels=None, pod_labels=None):
        return TrafficPeer(
            ip=pod_ip(namespace, pod),
            internal=InternalPeer(
                namespace=namespace,
                namespace_labels={"ns": namespace} if namespace_labels is None else namespace_labels,
                pod_labels={"pod": pod} if pod_labels is None else pod_labels,
                workload=f"{namespace}/{pod}",
            ),
        )

    return make


@pytest.fixture
def make_traffic():
    def make(source, destination, port=80, protocol=Protocol.TCP, port_name=""):
        return Traffic(
            source=source,
            destination=destination,
            resolved_port=port,
            protocol=protocol,
            resolved_port_name=port_name,
        )

    return make


@pytest.fixture
def compile_policies():
    """Build a Policy from a multi-document YAML string."""

    def compile_(text, simplify=True):
        reader = PolicyDocumentReader()
        for doc in yaml.safe_load_all(text):
            if doc:
                reader.add(doc, "test")
        docs = reader.documents
        return build_network_policies(
            simplify, docs.network_policies, docs.admin_network_policies, docs.baseline_admin_network_policy
        )

    return compile_
