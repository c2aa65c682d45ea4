"""Policy document models for NetworkPolicy, AdminNetworkPolicy and BaselineAdminNetworkPolicy."""

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class SelectorOperator(Enum):
    """Label selector expression operators."""

    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


@dataclass(frozen=True)
class LabelSelectorRequirement:
    """A single matchExpressions entry."""

    key: str
    operator: SelectorOperator
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class LabelSelector:
    """Conjunction of label equalities and set-based requirements."""

    match_labels: dict[str, str] = field(default_factory=dict)
    match_expressions: tuple[LabelSelectorRequirement, ...] = ()


@dataclass(frozen=True)
class IPBlock:
    """A CIDR with optional carve-outs."""

    cidr: str
    except_: tuple[str, ...] = ()


class PolicyType(Enum):
    """Directions a v1 NetworkPolicy can govern."""

    INGRESS = "Ingress"
    EGRESS = "Egress"


@dataclass
class NetworkPolicyPort:
    """Port entry of a v1 NetworkPolicy rule."""

    protocol: str | None = None
    port: int | str | None = None
    end_port: int | None = None


@dataclass
class NetworkPolicyPeer:
    """Peer entry of a v1 NetworkPolicy rule."""

    pod_selector: LabelSelector | None = None
    namespace_selector: LabelSelector | None = None
    ip_block: IPBlock | None = None


@dataclass
class NetworkPolicyRule:
    """Ingress or egress rule of a v1 NetworkPolicy; peers are `from` or `to`."""

    ports: list[NetworkPolicyPort] = field(default_factory=list)
    peers: list[NetworkPolicyPeer] = field(default_factory=list)


@dataclass
class NetworkPolicy:
    """Namespace-scoped v1 NetworkPolicy."""

    name: str
    namespace: str = ""
    pod_selector: LabelSelector = field(default_factory=LabelSelector)
    policy_types: list[PolicyType] = field(default_factory=list)
    ingress: list[NetworkPolicyRule] = field(default_factory=list)
    egress: list[NetworkPolicyRule] = field(default_factory=list)


class AdminAction(Enum):
    """Actions available to admin policy rules."""

    ALLOW = "Allow"
    DENY = "Deny"
    PASS = "Pass"


@dataclass
class NamespacedPeer:
    """Namespace selection for an admin peer: exactly one field is set."""

    namespace_selector: LabelSelector | None = None
    same_labels: list[str] | None = None
    not_same_labels: list[str] | None = None


@dataclass
class NamespacedPodPeer:
    """Pods selection for an admin peer."""

    namespaces: NamespacedPeer
    pod_selector: LabelSelector = field(default_factory=LabelSelector)


@dataclass
class AdminPeer:
    """Admin rule peer: exactly one of namespaces or pods is set."""

    namespaces: NamespacedPeer | None = None
    pods: NamespacedPodPeer | None = None


@dataclass
class NamespacedPodSubject:
    """Pods form of an admin policy subject."""

    namespace_selector: LabelSelector = field(default_factory=LabelSelector)
    pod_selector: LabelSelector = field(default_factory=LabelSelector)


@dataclass
class AdminSubject:
    """Admin policy subject: exactly one of namespaces or pods is set."""

    namespaces: LabelSelector | None = None
    pods: NamespacedPodSubject | None = None


@dataclass
class AdminPortNumber:
    """Numbered admin port."""

    port: int
    protocol: str | None = None


@dataclass
class AdminPortRange:
    """Inclusive admin port range."""

    start: int
    end: int
    protocol: str | None = None


@dataclass
class AdminPort:
    """Admin port entry: exactly one field is set."""

    port_number: AdminPortNumber | None = None
    named_port: str | None = None
    port_range: AdminPortRange | None = None


@dataclass
class AdminRule:
    """Ingress or egress rule of an ANP or BANP; peers are `from` or `to`."""

    action: str
    peers: list[AdminPeer] = field(default_factory=list)
    ports: list[AdminPort] | None = None
    name: str = ""


@dataclass
class AdminNetworkPolicy:
    """Cluster-scoped admin policy with a numeric priority."""

    name: str
    priority: int
    subject: AdminSubject
    ingress: list[AdminRule] = field(default_factory=list)
    egress: list[AdminRule] = field(default_factory=list)
    namespace: str = ""


@dataclass
class BaselineAdminNetworkPolicy:
    """Cluster-scoped singleton baseline policy."""

    subject: AdminSubject
    name: str = "default"
    ingress: list[AdminRule] = field(default_factory=list)
    egress: list[AdminRule] = field(default_factory=list)
    namespace: str = ""


@dataclass
class PolicyDocuments:
    """A set of policy documents ready for compilation."""

    network_policies: list[NetworkPolicy] = field(default_factory=list)
    admin_network_policies: list[AdminNetworkPolicy] = field(default_factory=list)
    baseline_admin_network_policy: BaselineAdminNetworkPolicy | None = None

    def extend(self, other: "PolicyDocuments") -> None:
        """Append another document set; a later baseline replaces an earlier one."""
        self.network_policies.extend(other.network_policies)
        self.admin_network_policies.extend(other.admin_network_policies)
        banp = other.baseline_admin_network_policy
        if banp is not None:
            if self.baseline_admin_network_policy is not None:
                logger.warning(
                    f"multiple baseline admin network policies found, using {banp.name} "
                    f"instead of {self.baseline_admin_network_policy.name}"
                )
            self.baseline_admin_network_policy = banp
