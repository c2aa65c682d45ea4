"""Traffic tuples evaluated against a compiled policy."""

import ipaddress
import re
from dataclasses import dataclass, field
from typing import Any

from netloom.core.models.errors import InvalidTrafficError
from netloom.matcher.ports import Protocol
from netloom.utils.tables import render_table

WORKLOAD_KINDS = ("pod", "replicaset", "deployment", "daemonset", "statefulset")

_WORKLOAD_RE = re.compile(r"^([a-z0-9]([-a-z0-9]*[a-z0-9])?)/([a-z]+)/([a-z0-9]([-.a-z0-9]*[a-z0-9])?)$")


@dataclass(frozen=True)
class Workload:
    """A `<namespace>/<kind>/<name>` workload reference."""

    namespace: str
    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.kind}/{self.name}"


def parse_workload(value: str) -> Workload:
    """Parse a workload identifier such as `x/deployment/frontend`."""
    match = _WORKLOAD_RE.match(value.strip())
    if not match:
        raise InvalidTrafficError(f"malformed workload identifier '{value}', expected <namespace>/<kind>/<name>")
    namespace, kind, name = match.group(1), match.group(3), match.group(4)
    if kind not in WORKLOAD_KINDS:
        raise InvalidTrafficError(f"unsupported workload kind '{kind}' in '{value}', expected one of {', '.join(WORKLOAD_KINDS)}")
    return Workload(namespace=namespace, kind=kind, name=name)


@dataclass
class InternalPeer:
    """An in-cluster endpoint: a pod in a namespace."""

    namespace: str
    namespace_labels: dict[str, str] = field(default_factory=dict)
    pod_labels: dict[str, str] = field(default_factory=dict)
    workload: str = ""


@dataclass
class TrafficPeer:
    """One end of a flow: external when `internal` is None."""

    ip: str = ""
    internal: InternalPeer | None = None

    def is_external(self) -> bool:
        """Check whether this peer is outside the cluster."""
        return self.internal is None

    def namespace(self) -> str:
        """Namespace of an internal peer, empty for external ones."""
        return self.internal.namespace if self.internal else ""

    def describe(self) -> str:
        """Short identity used in tables."""
        if self.internal is None:
            return self.ip
        if self.internal.workload:
            return self.internal.workload
        if self.internal.pod_labels:
            labels = ",".join(f"{k}={v}" for k, v in sorted(self.internal.pod_labels.items()))
            return f"{self.internal.namespace}/[{labels}]"
        return f"{self.internal.namespace}/{self.ip}" if self.ip else self.internal.namespace

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "TrafficPeer":
        """Build from `{ip, internal: {namespace, namespaceLabels, podLabels, workload}}`."""
        if not isinstance(obj, dict):
            raise InvalidTrafficError(f"traffic peer must be a mapping, got {type(obj).__name__}")
        internal = obj.get("internal")
        peer = cls(ip=str(obj.get("ip") or ""))
        if internal is not None:
            if not isinstance(internal, dict) or "namespace" not in internal:
                raise InvalidTrafficError("internal traffic peer requires a namespace")
            peer.internal = InternalPeer(
                namespace=str(internal["namespace"]),
                namespace_labels=dict(internal.get("namespaceLabels") or {}),
                pod_labels=dict(internal.get("podLabels") or {}),
                workload=str(internal.get("workload") or ""),
            )
        return peer


@dataclass
class Traffic:
    """A (source, destination, port, protocol) tuple."""

    source: TrafficPeer
    destination: TrafficPeer
    resolved_port: int
    protocol: Protocol
    resolved_port_name: str = ""

    def validate(self) -> None:
        """Reject traffic that cannot be evaluated."""
        if not isinstance(self.protocol, Protocol) or self.protocol == Protocol.UNKNOWN:
            raise InvalidTrafficError(f"unknown protocol '{self.protocol}'")
        if not isinstance(self.resolved_port, int) or not 1 <= self.resolved_port <= 65535:
            raise InvalidTrafficError(f"port {self.resolved_port} outside [1, 65535]")
        for end, peer in (("source", self.source), ("destination", self.destination)):
            if peer.is_external() and not peer.ip:
                raise InvalidTrafficError(f"external {end} requires an ip")
            if peer.ip:
                try:
                    ipaddress.ip_address(peer.ip)
                except ValueError as e:
                    raise InvalidTrafficError(f"invalid {end} ip '{peer.ip}'") from e

    def port_description(self) -> str:
        """`port (name)` when a name is known."""
        if self.resolved_port_name:
            return f"{self.resolved_port} ({self.resolved_port_name})"
        return str(self.resolved_port)

    def pretty(self) -> str:
        """One-line form: `src -> dst:port (proto)`."""
        return (
            f"{self.source.describe()} -> {self.destination.describe()}:"
            f"{self.port_description()} ({self.protocol.value})"
        )

    def table(self) -> str:
        """Render source and destination details as a table."""
        port_protocol = f"{self.port_description()} ({self.protocol.value})"
        rows = []
        for label, peer in (("source", self.source), ("destination", self.destination)):
            internal = peer.internal
            if internal is None:
                rows.append([port_protocol, label, peer.ip, "", "", ""])
            else:
                rows.append(
                    [
                        port_protocol,
                        label,
                        peer.ip,
                        internal.namespace,
                        "\n".join(f"{k}: {v}" for k, v in sorted(internal.namespace_labels.items())),
                        "\n".join(f"{k}: {v}" for k, v in sorted(internal.pod_labels.items())),
                    ]
                )
        return render_table(
            ["Port/Protocol", "Source/Dest", "Pod IP", "Namespace", "NS Labels", "Pod Labels"],
            rows,
            merge_columns=1,
        )

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "Traffic":
        """Build from a traffic file entry."""
        if not isinstance(obj, dict):
            raise InvalidTrafficError(f"traffic entry must be a mapping, got {type(obj).__name__}")
        for key in ("source", "destination", "protocol"):
            if key not in obj:
                raise InvalidTrafficError(f"traffic entry missing '{key}'")
        port = obj.get("resolvedPort", obj.get("port"))
        try:
            resolved_port = int(port)
        except (TypeError, ValueError) as e:
            raise InvalidTrafficError(f"invalid traffic port '{port}'") from e
        traffic = cls(
            source=TrafficPeer.from_dict(obj["source"]),
            destination=TrafficPeer.from_dict(obj["destination"]),
            resolved_port=resolved_port,
            protocol=Protocol.parse(str(obj["protocol"])),
            resolved_port_name=str(obj.get("resolvedPortName") or ""),
        )
        traffic.validate()
        return traffic
