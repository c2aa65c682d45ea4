"""Policy store and traffic evaluation."""

import logging

from netloom.matcher.explain import explain_table
from netloom.matcher.peers import PeerMatcherAdmin
from netloom.matcher.results import DirectionResult, PeerMatch, TrafficResult
from netloom.matcher.target import Direction, Target
from netloom.matcher.traffic import InternalPeer, Traffic, TrafficPeer

logger = logging.getLogger(__name__)


class Policy:
    """Ingress and egress targets keyed by subject primary key.

    Mutate only while building (add_target, simplify); evaluation never
    changes state, so a built Policy can be shared freely.
    """

    def __init__(self) -> None:
        self.ingress: dict[str, Target] = {}
        self.egress: dict[str, Target] = {}

    def _targets(self, direction: Direction) -> dict[str, Target]:
        return self.ingress if direction == Direction.INGRESS else self.egress

    def add_target(self, direction: Direction, target: Target) -> None:
        """Insert a target, merging with an existing one for the same subject."""
        targets = self._targets(direction)
        key = target.primary_key()
        if key in targets:
            targets[key] = targets[key].combine(target)
        else:
            targets[key] = target

    def simplify(self) -> None:
        """Deduplicate peers and compact v1 port matchers in every target."""
        for targets in (self.ingress, self.egress):
            for key, target in targets.items():
                targets[key] = target.simplify()
        logger.debug(f"simplified {len(self.ingress)} ingress and {len(self.egress)} egress targets")

    def sorted_targets(self, direction: Direction) -> list[Target]:
        """Targets in primary key order."""
        targets = self._targets(direction)
        return [targets[key] for key in sorted(targets)]

    def targets_applying_to_pod(self, direction: Direction, peer: InternalPeer) -> list[Target]:
        """Every target whose subject selects the pod."""
        return [target for target in self.sorted_targets(direction) if target.applies_to(peer)]

    def _evaluate_direction(
        self, direction: Direction, subject: TrafficPeer, other: TrafficPeer, traffic: Traffic
    ) -> DirectionResult:
        result = DirectionResult(direction=direction)
        if subject.internal is None:
            return result
        result.targets = self.targets_applying_to_pod(direction, subject.internal)
        for target in result.targets:
            v1_source = ", ".join(sorted(target.source_rules))
            for peer in target.peers:
                if not peer.matches(subject, other, traffic.resolved_port, traffic.resolved_port_name, traffic.protocol):
                    continue
                source = peer.name if isinstance(peer, PeerMatcherAdmin) else v1_source
                result.matches.append(PeerMatch(peer=peer, effect=peer.effect, source=source))
        return result

    def is_traffic_allowed(self, traffic: Traffic) -> TrafficResult:
        """Evaluate traffic against ingress of its destination and egress of its source."""
        traffic.validate()
        return TrafficResult(
            traffic=traffic,
            ingress=self._evaluate_direction(Direction.INGRESS, traffic.destination, traffic.source, traffic),
            egress=self._evaluate_direction(Direction.EGRESS, traffic.source, traffic.destination, traffic),
        )

    def explain_table(self) -> str:
        """Tabular dump of every target grouped by direction, subject and source rules."""
        return explain_table(self)
