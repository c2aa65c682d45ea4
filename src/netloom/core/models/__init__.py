"""Core models for netloom."""

from .cluster import ClusterPod, ContainerPort, Namespace, OwnerReference
from .errors import (
    ExternalFetchError,
    InvalidCIDRError,
    InvalidPolicyError,
    InvalidTrafficError,
    NetloomError,
    PolicyFileError,
    ResolutionError,
)
from .policies import (
    AdminAction,
    AdminNetworkPolicy,
    AdminPeer,
    AdminPort,
    AdminPortNumber,
    AdminPortRange,
    AdminRule,
    AdminSubject,
    BaselineAdminNetworkPolicy,
    IPBlock,
    LabelSelector,
    LabelSelectorRequirement,
    NamespacedPeer,
    NamespacedPodPeer,
    NamespacedPodSubject,
    NetworkPolicy,
    NetworkPolicyPeer,
    NetworkPolicyPort,
    NetworkPolicyRule,
    PolicyDocuments,
    PolicyType,
    SelectorOperator,
)

__all__ = [
    # Cluster models
    "ClusterPod",
    "ContainerPort",
    "Namespace",
    "OwnerReference",
    # Errors
    "ExternalFetchError",
    "InvalidCIDRError",
    "InvalidPolicyError",
    "InvalidTrafficError",
    "NetloomError",
    "PolicyFileError",
    "ResolutionError",
    # Policy documents
    "AdminAction",
    "AdminNetworkPolicy",
    "AdminPeer",
    "AdminPort",
    "AdminPortNumber",
    "AdminPortRange",
    "AdminRule",
    "AdminSubject",
    "BaselineAdminNetworkPolicy",
    "IPBlock",
    "LabelSelector",
    "LabelSelectorRequirement",
    "NamespacedPeer",
    "NamespacedPodPeer",
    "NamespacedPodSubject",
    "NetworkPolicy",
    "NetworkPolicyPeer",
    "NetworkPolicyPort",
    "NetworkPolicyRule",
    "PolicyDocuments",
    "PolicyType",
    "SelectorOperator",
]
