"""Evaluation results: tier precedence, verdicts and walkthroughs."""

from dataclasses import dataclass, field

from netloom.matcher.peers import Effect, PeerMatcher, PeerMatcherAdmin, PolicyKind, Verdict
from netloom.matcher.target import Direction, Target
from netloom.matcher.traffic import Traffic
from netloom.utils.tables import render_table


@dataclass
class PeerMatch:
    """A peer matcher that selected the traffic, with its provenance."""

    peer: PeerMatcher
    effect: Effect
    source: str

    def describe(self) -> str:
        """One-line provenance and contribution."""
        if self.effect.policy_kind == PolicyKind.ANP:
            text = f"{self.source} (pri={self.effect.priority})"
        else:
            text = self.source
        if isinstance(self.peer, PeerMatcherAdmin) and self.peer.rule_name:
            text += f" rule '{self.peer.rule_name}'"
        return f"{text}: {self.effect.verdict.value}"


@dataclass
class Resolution:
    """Outcome of tier precedence for one direction."""

    verdict: Verdict
    flow: list[str] = field(default_factory=list)
    effective: list[PeerMatch] = field(default_factory=list)
    decided_by: PolicyKind | None = None


@dataclass
class DirectionResult:
    """Targets applying to one end of the traffic and the peers that matched."""

    direction: Direction
    targets: list[Target] = field(default_factory=list)
    matches: list[PeerMatch] = field(default_factory=list)

    def has_targets(self) -> bool:
        return bool(self.targets)

    def _has_peers_of(self, kind: PolicyKind) -> bool:
        return any(peer.effect.policy_kind == kind for target in self.targets for peer in target.peers)

    def _matches_of(self, kind: PolicyKind) -> list[PeerMatch]:
        return [m for m in self.matches if m.effect.policy_kind == kind]

    def is_v1_isolated(self) -> bool:
        """Check whether any v1 target governs this end."""
        return any(target.is_v1() for target in self.targets)

    def resolve(self) -> Resolution:
        """Apply ANP, then v1, then BANP precedence."""
        if not self.targets:
            return Resolution(verdict=Verdict.ALLOW)

        flow: list[str] = []
        effective: list[PeerMatch] = []

        if self._has_peers_of(PolicyKind.ANP):
            winner: PeerMatch | None = None
            # matches keep declaration order, so strict comparison keeps the first rule of the most important ANP
            for match in self._matches_of(PolicyKind.ANP):
                if winner is None or match.effect.priority < winner.effect.priority:
                    winner = match
            if winner is None:
                flow.append("[ANP] No-Op")
            else:
                flow.append(f"[ANP] {winner.effect.verdict.value}")
                effective.append(winner)
                if winner.effect.verdict in (Verdict.ALLOW, Verdict.DENY):
                    return Resolution(winner.effect.verdict, flow, effective, PolicyKind.ANP)

        if self.is_v1_isolated():
            v1_matches = self._matches_of(PolicyKind.NPV1)
            if v1_matches:
                flow.append("[NPv1] Allow")
                effective.extend(v1_matches)
                return Resolution(Verdict.ALLOW, flow, effective, PolicyKind.NPV1)
            flow.append("[NPv1] Dropped")
            return Resolution(Verdict.DENY, flow, effective, PolicyKind.NPV1)

        if self._has_peers_of(PolicyKind.BANP):
            banp_matches = self._matches_of(PolicyKind.BANP)
            if banp_matches:
                first = banp_matches[0]
                flow.append(f"[BANP] {first.effect.verdict.value}")
                effective.append(first)
                verdict = Verdict.DENY if first.effect.verdict == Verdict.DENY else Verdict.ALLOW
                return Resolution(verdict, flow, effective, PolicyKind.BANP)
            flow.append("[BANP] No-Op")

        return Resolution(Verdict.ALLOW, flow, effective)

    def verdict(self) -> Verdict:
        return self.resolve().verdict

    def is_allowed(self) -> bool:
        return self.resolve().verdict == Verdict.ALLOW

    def flow(self) -> str:
        """Tier path such as `[ANP] Pass -> [NPv1] Allow`."""
        return " -> ".join(self.resolve().flow)

    def ineffective(self) -> list[PeerMatch]:
        """Matched peers overridden by a higher precedence decision."""
        effective = {id(m) for m in self.resolve().effective}
        return [m for m in self.matches if id(m) not in effective]

    def walkthrough(self) -> str:
        """Multi-line trace of how this direction was decided."""
        if not self.targets:
            return f"no policies targeting {self.direction.value.lower()}"
        resolution = self.resolve()
        lines = [" -> ".join(resolution.flow) if resolution.flow else "no rules matched"]
        lines.extend(m.describe() for m in resolution.effective)
        ineffective = self.ineffective()
        if ineffective:
            lines.append(f"ineffective rules: {'; '.join(m.describe() for m in ineffective)}")
        return "\n".join(lines)


@dataclass
class TrafficResult:
    """Ingress and egress decisions for one traffic tuple."""

    traffic: Traffic
    ingress: DirectionResult
    egress: DirectionResult

    @property
    def verdict(self) -> Verdict:
        """Allow iff both directions allow."""
        if self.ingress.is_allowed() and self.egress.is_allowed():
            return Verdict.ALLOW
        return Verdict.DENY

    def is_allowed(self) -> bool:
        return self.verdict == Verdict.ALLOW

    @property
    def ingress_walkthrough(self) -> str:
        return self.ingress.walkthrough()

    @property
    def egress_walkthrough(self) -> str:
        return self.egress.walkthrough()

    def walkthrough_row(self) -> list[str]:
        return [self.traffic.pretty(), self.verdict.value, self.ingress_walkthrough, self.egress_walkthrough]

    def table(self) -> str:
        """Per-direction detail: flow, deciding rules and applying targets."""
        rows = []
        for result in (self.ingress, self.egress):
            targets = "\n".join(sorted({s for t in result.targets for s in t.source_rules})) or "none"
            rows.append([result.direction.value, result.resolve().verdict.value, result.walkthrough(), targets])
        return render_table(
            ["Direction", "Verdict", "Walkthrough", "Applying policies"],
            rows,
            title=f"{self.traffic.pretty()}: {self.verdict.value}",
        )


def walkthrough_table(results: list[TrafficResult]) -> str:
    """Render results with columns Traffic, Verdict, Ingress Walkthrough, Egress Walkthrough."""
    return render_table(
        ["Traffic", "Verdict", "Ingress Walkthrough", "Egress Walkthrough"],
        [result.walkthrough_row() for result in results],
    )
