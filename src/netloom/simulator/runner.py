"""Simulated probe: evaluates every job against a compiled policy."""

import logging

from netloom.core.models.errors import InvalidTrafficError
from netloom.matcher.policy import Policy
from netloom.simulator.connectivity import Connectivity
from netloom.simulator.jobs import Job, Jobs
from netloom.simulator.table import JobResult, Table

logger = logging.getLogger(__name__)


def _allowed(is_allowed: bool) -> Connectivity:
    return Connectivity.ALLOWED if is_allowed else Connectivity.BLOCKED


class SimulatedRunner:
    """Fills a connectivity table from policy evaluation instead of live traffic."""

    def __init__(self, policy: Policy):
        self.policy = policy

    def run_job(self, job: Job) -> JobResult:
        """Evaluate one valid job; loopback is undefined."""
        if job.is_loopback():
            return JobResult.uniform(job, Connectivity.UNDEFINED)
        try:
            result = self.policy.is_traffic_allowed(job.traffic())
        except InvalidTrafficError as e:
            logger.warning(f"unable to evaluate job {job.key()}: {e}")
            return JobResult.uniform(job, Connectivity.CHECK_FAILED)
        return JobResult(
            job=job,
            ingress=_allowed(result.ingress.is_allowed()),
            egress=_allowed(result.egress.is_allowed()),
            combined=_allowed(result.is_allowed()),
            traffic_result=result,
        )

    def run(self, jobs: Jobs, pod_keys: list[str] | None = None) -> Table:
        """Evaluate valid jobs and record the others by bucket."""
        if pod_keys is None:
            keys = {job.from_pod.key() for job in jobs.all_jobs()} | {job.to_pod.key() for job in jobs.all_jobs()}
            pod_keys = sorted(keys)
        table = Table(pod_keys)

        for job in jobs.valid:
            table.set(self.run_job(job))
        for job in jobs.bad_named_port:
            table.set(self._bucket_result(job, Connectivity.INVALID_NAMED_PORT))
        for job in jobs.bad_port_protocol:
            table.set(self._bucket_result(job, Connectivity.INVALID_PORT_PROTOCOL))
        for job in jobs.ignored:
            table.set(JobResult.uniform(job, Connectivity.UNDEFINED))
        return table

    def _bucket_result(self, job: Job, connectivity: Connectivity) -> JobResult:
        if job.is_loopback():
            return JobResult.uniform(job, Connectivity.UNDEFINED)
        return JobResult.uniform(job, connectivity)
