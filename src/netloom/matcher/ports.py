"""Port matchers: all ports, port/protocol pairs, port ranges and their disjunction."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from netloom.core.models.errors import InvalidTrafficError

PortValue = int | str | None


class Protocol(Enum):
    """Transport protocols understood by network policies."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: "str | Protocol") -> "Protocol":
        """Parse a protocol name case-insensitively; Unknown is rejected."""
        if isinstance(value, Protocol):
            if value == cls.UNKNOWN:
                raise InvalidTrafficError("protocol 'Unknown' cannot be used for traffic")
            return value
        for protocol in (cls.TCP, cls.UDP, cls.SCTP):
            if str(value).upper() == protocol.value:
                return protocol
        raise InvalidTrafficError(f"unknown protocol '{value}'")

    @classmethod
    def from_named_port(cls, name: str) -> "Protocol":
        """Infer the protocol of an admin named port from its suffix."""
        lowered = name.lower()
        if lowered.endswith("-tcp"):
            return cls.TCP
        if lowered.endswith("-udp"):
            return cls.UDP
        if lowered.endswith("-sctp"):
            return cls.SCTP
        return cls.UNKNOWN


ALL_PROTOCOLS = (Protocol.TCP, Protocol.UDP, Protocol.SCTP)


def _dumps(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


class PortMatcher(ABC):
    """Selects traffic by destination port and protocol."""

    @abstractmethod
    def matches(self, port_int: int, port_name: str, protocol: Protocol) -> bool:
        """Check whether the port and protocol are selected."""
        pass

    @abstractmethod
    def to_json(self) -> dict[str, Any]:
        """Canonical JSON-compatible form."""
        pass

    @abstractmethod
    def table_lines(self, admin: bool = False) -> list[str]:
        """Human readable lines for the explain table."""
        pass

    def primary_key(self) -> str:
        """Stable identity derived from the matcher's fields."""
        return _dumps(self.to_json())


@dataclass(frozen=True)
class AllPortMatcher(PortMatcher):
    """Matches every port on every protocol."""

    def matches(self, port_int: int, port_name: str, protocol: Protocol) -> bool:
        return True

    def to_json(self) -> dict[str, Any]:
        return {"Type": "all ports"}

    def table_lines(self, admin: bool = False) -> list[str]:
        return ["all ports, all protocols"]


@dataclass(frozen=True)
class PortProtocolMatcher(PortMatcher):
    """A single port (numbered or named) or all ports of one protocol when port is None."""

    port: PortValue
    protocol: Protocol

    def matches(self, port_int: int, port_name: str, protocol: Protocol) -> bool:
        if protocol != self.protocol:
            return False
        if self.port is None:
            return True
        if isinstance(self.port, int):
            return self.port == port_int
        return self.port == port_name

    def to_json(self) -> dict[str, Any]:
        return {"Type": "port", "Port": self.port, "Protocol": self.protocol.value}

    def sort_key(self) -> tuple[int, int, str, str]:
        """Ordering: no port < named port < numbered port, then protocol."""
        if self.port is None:
            return (0, 0, "", self.protocol.value)
        if isinstance(self.port, str):
            return (1, 0, self.port, self.protocol.value)
        return (2, self.port, "", self.protocol.value)

    def table_lines(self, admin: bool = False) -> list[str]:
        if self.port is None:
            return [f"all ports on protocol {self.protocol.value}"]
        if isinstance(self.port, str):
            if admin:
                return [f"namedport '{self.port}'"]
            return [f"namedport '{self.port}' on protocol {self.protocol.value}"]
        return [f"port {self.port} on protocol {self.protocol.value}"]


@dataclass(frozen=True)
class PortRangeMatcher(PortMatcher):
    """Inclusive range of numbered ports on one protocol."""

    from_port: int
    to_port: int
    protocol: Protocol

    def matches(self, port_int: int, port_name: str, protocol: Protocol) -> bool:
        return self.from_port <= port_int <= self.to_port and protocol == self.protocol

    def to_json(self) -> dict[str, Any]:
        return {"Type": "range", "From": self.from_port, "To": self.to_port, "Protocol": self.protocol.value}

    def table_lines(self, admin: bool = False) -> list[str]:
        return [f"ports [{self.from_port}, {self.to_port}] on protocol {self.protocol.value}"]


@dataclass(frozen=True)
class SpecificPortMatcher(PortMatcher):
    """Disjunction of port/protocol pairs and port ranges."""

    ports: tuple[PortProtocolMatcher, ...] = ()
    port_ranges: tuple[PortRangeMatcher, ...] = ()

    def matches(self, port_int: int, port_name: str, protocol: Protocol) -> bool:
        for matcher in self.ports:
            if matcher.matches(port_int, port_name, protocol):
                return True
        return any(r.matches(port_int, port_name, protocol) for r in self.port_ranges)

    def to_json(self) -> dict[str, Any]:
        return {
            "Type": "specific ports",
            "Ports": [p.to_json() for p in self.ports],
            "PortRanges": [r.to_json() for r in self.port_ranges],
        }

    def table_lines(self, admin: bool = False) -> list[str]:
        lines: list[str] = []
        for matcher in self.ports:
            lines.extend(matcher.table_lines(admin))
        for port_range in self.port_ranges:
            lines.extend(port_range.table_lines(admin))
        return lines

    def is_empty(self) -> bool:
        """Check whether nothing is selected."""
        return not self.ports and not self.port_ranges

    def combine(self, other: "SpecificPortMatcher") -> "SpecificPortMatcher":
        """Union with another matcher: ports are deduplicated and sorted, ranges appended."""
        unique: dict[str, PortProtocolMatcher] = {}
        for matcher in (*self.ports, *other.ports):
            unique.setdefault(matcher.primary_key(), matcher)
        ranges: dict[str, PortRangeMatcher] = {}
        for port_range in (*self.port_ranges, *other.port_ranges):
            ranges.setdefault(port_range.primary_key(), port_range)
        ports = tuple(sorted(unique.values(), key=lambda m: m.sort_key()))
        return SpecificPortMatcher(ports=ports, port_ranges=tuple(ranges.values()))

    def subtract(self, other: "SpecificPortMatcher") -> "SpecificPortMatcher":
        """Remove port/protocol pairs that `other` also lists; ranges are left untouched."""
        removed = {matcher.primary_key() for matcher in other.ports}
        ports = tuple(m for m in self.ports if m.primary_key() not in removed)
        return SpecificPortMatcher(ports=ports, port_ranges=self.port_ranges)


def combine_port_matchers(a: PortMatcher, b: PortMatcher) -> PortMatcher:
    """Union of two port matchers."""
    if isinstance(a, AllPortMatcher) or isinstance(b, AllPortMatcher):
        return AllPortMatcher()
    if isinstance(a, SpecificPortMatcher) and isinstance(b, SpecificPortMatcher):
        return a.combine(b)
    raise TypeError(f"cannot combine port matchers {type(a).__name__} and {type(b).__name__}")


def subtract_port_matchers(a: PortMatcher, b: PortMatcher) -> PortMatcher | None:
    """Remove from `a` what `b` already covers; None when nothing is left."""
    if isinstance(b, AllPortMatcher):
        return None
    if isinstance(a, AllPortMatcher):
        return a
    if isinstance(a, SpecificPortMatcher) and isinstance(b, SpecificPortMatcher):
        remaining = a.subtract(b)
        return None if remaining.is_empty() else remaining
    raise TypeError(f"cannot subtract port matchers {type(a).__name__} and {type(b).__name__}")
