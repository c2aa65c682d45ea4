"""Connectivity states recorded in probe tables."""

from enum import Enum


class Connectivity(Enum):
    """Result of probing one job."""

    UNKNOWN = "unknown"
    CHECK_FAILED = "checkfailed"
    INVALID_NAMED_PORT = "invalidnamedport"
    INVALID_PORT_PROTOCOL = "invalidportprotocol"
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    UNDEFINED = "undefined"

    @property
    def short_string(self) -> str:
        """Single-character table symbol."""
        return _SHORT_STRINGS.get(self, "?")


_SHORT_STRINGS = {
    Connectivity.UNKNOWN: "?",
    Connectivity.CHECK_FAILED: "!",
    Connectivity.INVALID_NAMED_PORT: "P",
    Connectivity.INVALID_PORT_PROTOCOL: "N",
    Connectivity.BLOCKED: "X",
    Connectivity.ALLOWED: ".",
    Connectivity.UNDEFINED: "#",
}

LEGEND = "  ".join(f"{c.short_string} {c.value}" for c in Connectivity)


def short_string(value: object) -> str:
    """Symbol for a connectivity value; anything unrecognised renders as `?`."""
    if isinstance(value, Connectivity):
        return value.short_string
    return "?"
