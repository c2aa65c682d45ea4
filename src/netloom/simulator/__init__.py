"""Simulated connectivity probes over pods and containers."""

from netloom.simulator.connectivity import Connectivity
from netloom.simulator.jobs import Job, JobBuilder, Jobs, ProbeConfig, ServiceKind
from netloom.simulator.resources import Container, Pod, Resources
from netloom.simulator.runner import SimulatedRunner
from netloom.simulator.table import JobResult, Table, View

__all__ = [
    "Connectivity",
    "Container",
    "Job",
    "JobBuilder",
    "JobResult",
    "Jobs",
    "Pod",
    "ProbeConfig",
    "Resources",
    "ServiceKind",
    "SimulatedRunner",
    "Table",
    "View",
]
