"""Policy matchers, compiler and evaluator."""

from netloom.matcher.builder import build_network_policies
from netloom.matcher.peers import Effect, PolicyKind, Verdict
from netloom.matcher.policy import Policy
from netloom.matcher.ports import Protocol
from netloom.matcher.results import DirectionResult, TrafficResult, walkthrough_table
from netloom.matcher.target import Direction, Target, policy_id
from netloom.matcher.traffic import InternalPeer, Traffic, TrafficPeer, Workload, parse_workload

__all__ = [
    "Direction",
    "DirectionResult",
    "Effect",
    "InternalPeer",
    "Policy",
    "PolicyKind",
    "Protocol",
    "Target",
    "Traffic",
    "TrafficPeer",
    "TrafficResult",
    "Verdict",
    "Workload",
    "build_network_policies",
    "parse_workload",
    "policy_id",
    "walkthrough_table",
]
