"""Connectivity truth tables: source pods by destination pods."""

from dataclasses import dataclass
from enum import Enum

from netloom.matcher.results import TrafficResult
from netloom.simulator.connectivity import LEGEND, Connectivity, short_string
from netloom.simulator.jobs import Job
from netloom.utils.tables import render_table


class View(Enum):
    """Which decision a table shows."""

    INGRESS = "ingress"
    EGRESS = "egress"
    COMBINED = "combined"


@dataclass
class JobResult:
    """Connectivity of one job for each view."""

    job: Job
    ingress: Connectivity
    egress: Connectivity
    combined: Connectivity
    traffic_result: TrafficResult | None = None

    @classmethod
    def uniform(cls, job: Job, connectivity: Connectivity) -> "JobResult":
        return cls(job=job, ingress=connectivity, egress=connectivity, combined=connectivity)

    def get(self, view: View) -> Connectivity:
        if view == View.INGRESS:
            return self.ingress
        if view == View.EGRESS:
            return self.egress
        return self.combined


def _port_protocol_sort_key(key: str) -> tuple[str, int, int, str]:
    protocol, _, port = key.partition("/")
    if port.lstrip("-").isdigit():
        return (protocol, 0, int(port), "")
    return (protocol, 1, 0, port)


class Table:
    """Results keyed by (from pod, to pod, protocol/port)."""

    def __init__(self, pod_keys: list[str]):
        self.froms = list(pod_keys)
        self.tos = list(pod_keys)
        self.results: dict[tuple[str, str], dict[str, JobResult]] = {
            (fr, to): {} for fr in self.froms for to in self.tos
        }

    def set(self, result: JobResult) -> None:
        cell = (result.job.from_pod.key(), result.job.to_pod.key())
        if cell not in self.results:
            raise KeyError(f"no table cell for {cell[0]} -> {cell[1]}")
        self.results[cell][result.job.port_protocol_key()] = result

    def get(self, from_key: str, to_key: str, port_protocol_key: str) -> JobResult | None:
        return self.results.get((from_key, to_key), {}).get(port_protocol_key)

    def connectivity(self, view: View, from_key: str, to_key: str, port_protocol_key: str) -> Connectivity:
        """Connectivity of one job; Unknown when nothing was recorded."""
        result = self.get(from_key, to_key, port_protocol_key)
        return result.get(view) if result else Connectivity.UNKNOWN

    def port_protocol_keys(self) -> list[str]:
        keys = {key for cell in self.results.values() for key in cell}
        return sorted(keys, key=_port_protocol_sort_key)

    def cell(self, view: View, from_key: str, to_key: str) -> str:
        """A single symbol when every job agrees, otherwise one `key: symbol` line per job."""
        results = self.results.get((from_key, to_key), {})
        if not results:
            return Connectivity.UNKNOWN.short_string
        values = {result.get(view) for result in results.values()}
        if len(values) == 1:
            return short_string(values.pop())
        return "\n".join(
            f"{key}: {short_string(results[key].get(view))}" for key in sorted(results, key=_port_protocol_sort_key)
        )

    def render(self, view: View) -> str:
        """Grid with one row per source pod and one column per destination pod."""
        rows = [[fr, *[self.cell(view, fr, to) for to in self.tos]] for fr in self.froms]
        return render_table(["-", *self.tos], rows, title=f"{view.value} connectivity") + LEGEND + "\n"

    def render_by_port_protocol(self, view: View) -> str:
        """One grid per protocol/port key."""
        tables = []
        for key in self.port_protocol_keys():
            rows = [
                [fr, *[self.connectivity(view, fr, to, key).short_string for to in self.tos]] for fr in self.froms
            ]
            tables.append(render_table(["-", *self.tos], rows, title=f"{view.value} connectivity for {key}"))
        return "".join(tables) + LEGEND + "\n"

    def summary(self, view: View) -> dict[Connectivity, int]:
        """Count of jobs per connectivity state."""
        counts: dict[Connectivity, int] = {}
        for cell in self.results.values():
            for result in cell.values():
                value = result.get(view)
                counts[value] = counts.get(value, 0) + 1
        return counts
