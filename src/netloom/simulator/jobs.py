"""Probe jobs: every source pod to every destination container."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from netloom.core.models.errors import ResolutionError
from netloom.matcher.ports import Protocol
from netloom.matcher.traffic import Traffic
from netloom.simulator.resources import Pod, Resources

logger = logging.getLogger(__name__)


class ServiceKind(Enum):
    """How the destination is reached."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT_CLUSTER = "NodePortCluster"
    NODE_PORT_LOCAL = "NodePortLocal"
    LOAD_BALANCER_CLUSTER = "LoadBalancerCluster"
    LOAD_BALANCER_LOCAL = "LoadBalancerLocal"

    def is_local(self) -> bool:
        """Local traffic policy only reaches pods on the receiving node."""
        return self in (ServiceKind.NODE_PORT_LOCAL, ServiceKind.LOAD_BALANCER_LOCAL)


@dataclass
class ProbeConfig:
    """Which ports to probe: every served container port, or one port and protocol."""

    all_available: bool = True
    port: int | str | None = None
    protocol: Protocol = Protocol.TCP
    service_kind: ServiceKind = ServiceKind.CLUSTER_IP

    @classmethod
    def for_port(
        cls, port: int | str, protocol: Protocol, service_kind: ServiceKind = ServiceKind.CLUSTER_IP
    ) -> "ProbeConfig":
        return cls(all_available=False, port=port, protocol=protocol, service_kind=service_kind)


@dataclass
class Job:
    """One (source pod, destination container, port, protocol) probe."""

    from_pod: Pod
    to_pod: Pod
    from_namespace_labels: dict[str, str]
    to_namespace_labels: dict[str, str]
    to_container: str
    resolved_port: int
    resolved_port_name: str
    protocol: Protocol
    service_kind: ServiceKind = ServiceKind.CLUSTER_IP
    requested_port: int | str | None = None

    def port_protocol_key(self) -> str:
        """Key within a table cell, e.g. `TCP/80`; the requested port when probing one port."""
        port = self.requested_port if self.requested_port is not None else self.resolved_port
        return f"{self.protocol.value}/{port}"

    def key(self) -> str:
        return (
            f"{self.from_pod.key()}/{self.to_pod.key()}/{self.to_container}/"
            f"{self.protocol.value}/{self.resolved_port}"
        )

    def is_loopback(self) -> bool:
        return self.from_pod.key() == self.to_pod.key()

    def traffic(self) -> Traffic:
        return Traffic(
            source=self.from_pod.traffic_peer(self.from_namespace_labels),
            destination=self.to_pod.traffic_peer(self.to_namespace_labels),
            resolved_port=self.resolved_port,
            resolved_port_name=self.resolved_port_name,
            protocol=self.protocol,
        )


@dataclass
class Jobs:
    """Jobs bucketed by whether they can be evaluated."""

    valid: list[Job] = field(default_factory=list)
    bad_named_port: list[Job] = field(default_factory=list)
    bad_port_protocol: list[Job] = field(default_factory=list)
    ignored: list[Job] = field(default_factory=list)

    def all_jobs(self) -> list[Job]:
        return [*self.valid, *self.bad_named_port, *self.bad_port_protocol, *self.ignored]


class JobBuilder:
    """Expands resources and a probe config into jobs."""

    def build(self, resources: Resources, config: ProbeConfig) -> Jobs:
        jobs = Jobs()
        pods = resources.sorted_pods()
        for from_pod in pods:
            for to_pod in pods:
                if config.all_available:
                    self._build_all_available(resources, from_pod, to_pod, config, jobs)
                else:
                    self._build_for_port(resources, from_pod, to_pod, config, jobs)
        logger.debug(
            f"built jobs: {len(jobs.valid)} valid, {len(jobs.bad_named_port)} bad named port, "
            f"{len(jobs.bad_port_protocol)} bad port/protocol, {len(jobs.ignored)} ignored"
        )
        return jobs

    def _new_job(
        self,
        resources: Resources,
        from_pod: Pod,
        to_pod: Pod,
        container: str,
        port: int,
        port_name: str,
        protocol: Protocol,
        config: ProbeConfig,
    ) -> Job:
        return Job(
            from_pod=from_pod,
            to_pod=to_pod,
            from_namespace_labels=resources.namespace_labels(from_pod.namespace),
            to_namespace_labels=resources.namespace_labels(to_pod.namespace),
            to_container=container,
            resolved_port=port,
            resolved_port_name=port_name,
            protocol=protocol,
            service_kind=config.service_kind,
            requested_port=None if config.all_available else config.port,
        )

    def _add_valid(self, jobs: Jobs, job: Job) -> None:
        if job.service_kind.is_local() and job.from_pod.local_node_ip != job.to_pod.local_node_ip:
            jobs.ignored.append(job)
        else:
            jobs.valid.append(job)

    def _build_all_available(
        self, resources: Resources, from_pod: Pod, to_pod: Pod, config: ProbeConfig, jobs: Jobs
    ) -> None:
        for container in to_pod.containers:
            job = self._new_job(
                resources, from_pod, to_pod, container.name, container.port, container.port_name, container.protocol, config
            )
            self._add_valid(jobs, job)

    def _build_for_port(
        self, resources: Resources, from_pod: Pod, to_pod: Pod, config: ProbeConfig, jobs: Jobs
    ) -> None:
        port = config.port
        if isinstance(port, str):
            try:
                container = to_pod.resolve_named_port(port, config.protocol)
            except ResolutionError:
                jobs.bad_named_port.append(self._new_job(resources, from_pod, to_pod, "", -1, port, config.protocol, config))
                return
        elif isinstance(port, int):
            try:
                container = to_pod.resolve_numbered_port(port, config.protocol)
            except ResolutionError:
                jobs.bad_port_protocol.append(self._new_job(resources, from_pod, to_pod, "", port, "", config.protocol, config))
                return
        else:
            raise ValueError("probe config for a specific port requires a port")
        job = self._new_job(
            resources, from_pod, to_pod, container.name, container.port, container.port_name, container.protocol, config
        )
        self._add_valid(jobs, job)
