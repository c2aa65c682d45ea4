"""Label selector evaluation, CIDR matching and label comparison helpers."""

import ipaddress
import json
from typing import Any, Mapping

from netloom.core.models.errors import InvalidCIDRError, InvalidPolicyError
from netloom.core.models.policies import IPBlock, LabelSelector, LabelSelectorRequirement, SelectorOperator


def is_empty(selector: LabelSelector) -> bool:
    """Check whether a selector has no labels and no expressions."""
    return not selector.match_labels and not selector.match_expressions


def matches_requirement(requirement: LabelSelectorRequirement, labels: Mapping[str, str]) -> bool:
    """Evaluate one matchExpressions entry against a label set."""
    op = requirement.operator
    if op == SelectorOperator.EXISTS:
        return requirement.key in labels
    if op == SelectorOperator.DOES_NOT_EXIST:
        return requirement.key not in labels
    if op == SelectorOperator.IN:
        return requirement.key in labels and labels[requirement.key] in requirement.values
    if op == SelectorOperator.NOT_IN:
        return requirement.key not in labels or labels[requirement.key] not in requirement.values
    raise ValueError(f"unknown label selector operator: {op}")


def matches(selector: LabelSelector, labels: Mapping[str, str]) -> bool:
    """Evaluate a selector against a label set; an empty selector matches everything."""
    for key, value in selector.match_labels.items():
        if labels.get(key) != value:
            return False
    return all(matches_requirement(req, labels) for req in selector.match_expressions)


def to_json(selector: LabelSelector) -> dict[str, Any]:
    """Canonical JSON-compatible form; empty parts are omitted."""
    obj: dict[str, Any] = {}
    if selector.match_expressions:
        expressions = [
            {"key": req.key, "operator": req.operator.value, "values": sorted(req.values)}
            for req in selector.match_expressions
        ]
        expressions.sort(key=lambda e: (e["key"], e["operator"], e["values"]))
        obj["matchExpressions"] = expressions
    if selector.match_labels:
        obj["matchLabels"] = dict(sorted(selector.match_labels.items()))
    return obj


def serialize(selector: LabelSelector) -> str:
    """Serialize so that equivalent selectors produce identical strings."""
    return json.dumps(to_json(selector), sort_keys=True, separators=(",", ":"))


def table_lines(selector: LabelSelector) -> list[str]:
    """Human readable lines for tables."""
    if is_empty(selector):
        return ["all"]
    lines = [f"{key}: {value}" for key, value in sorted(selector.match_labels.items())]
    for req in sorted(selector.match_expressions, key=lambda r: (r.key, r.operator.value, sorted(r.values))):
        if req.operator in (SelectorOperator.EXISTS, SelectorOperator.DOES_NOT_EXIST):
            lines.append(f"{req.key} {req.operator.value}")
        else:
            lines.append(f"{req.key} {req.operator.value} [{', '.join(sorted(req.values))}]")
    return lines


def parse_cidr(cidr: str) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """Parse a CIDR, accepting host bits the way the API server does."""
    try:
        return ipaddress.ip_network(cidr, strict=False)
    except ValueError as e:
        raise InvalidCIDRError(cidr) from e


def validate_ip_block(block: IPBlock, policy_id: str = "") -> None:
    """Check that every except entry is in the same family and strictly inside the cidr."""
    try:
        network = parse_cidr(block.cidr)
        for carve_out in block.except_:
            excluded = parse_cidr(carve_out)
            if excluded.version != network.version:
                raise InvalidPolicyError(policy_id, f"except '{carve_out}' is not in the address family of '{block.cidr}'")
            if excluded == network or not excluded.subnet_of(network):  # type: ignore[arg-type]
                raise InvalidPolicyError(policy_id, f"except '{carve_out}' is not strictly inside '{block.cidr}'")
    except InvalidCIDRError as e:
        raise InvalidCIDRError(e.cidr, policy_id) from e


def cidr_contains(block: IPBlock, ip: str) -> bool:
    """Check that `ip` is in the cidr and in none of the except blocks."""
    network = parse_cidr(block.cidr)
    carve_outs = [parse_cidr(carve_out) for carve_out in block.except_]
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if address.version != network.version or address not in network:
        return False
    return not any(address.version == e.version and address in e for e in carve_outs)


def same_labels(keys: list[str], labels: Mapping[str, str], subject_labels: Mapping[str, str]) -> bool:
    """True iff every key is present in both label sets with equal values; empty keys match nothing."""
    if not keys:
        return False
    for key in keys:
        if key not in labels or key not in subject_labels:
            return False
        if labels[key] != subject_labels[key]:
            return False
    return True


def not_same_labels(keys: list[str], labels: Mapping[str, str], subject_labels: Mapping[str, str]) -> bool:
    """True iff every key is present in both label sets and at least one value differs."""
    if not keys:
        return False
    differs = False
    for key in keys:
        if key not in labels or key not in subject_labels:
            return False
        if labels[key] != subject_labels[key]:
            differs = True
    return differs
