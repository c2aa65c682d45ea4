"""Concurrent reads of the three policy tiers and of simulator resources from a cluster."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable

from netloom.core.interfaces import ClusterClient
from netloom.core.models import PolicyDocuments
from netloom.core.models.errors import ExternalFetchError
from netloom.k8s.loader import PolicyDocumentReader
from netloom.simulator.resources import Resources

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 180.0

NETWORK_POLICIES = "network policies"
ADMIN_NETWORK_POLICIES = "admin network policies"
BASELINE_ADMIN_NETWORK_POLICIES = "baseline admin network policies"


@dataclass
class ClusterPolicies:
    """Documents from every tier that could be read, plus one error per failed tier."""

    documents: PolicyDocuments = field(default_factory=PolicyDocuments)
    errors: list[ExternalFetchError] = field(default_factory=list)

    def is_complete(self) -> bool:
        return not self.errors


async def _fetch_tier(tier: str, fetch: Awaitable[list[dict[str, Any]]], timeout: float) -> list[dict[str, Any]]:
    """Await one tier, turning its failure into an ExternalFetchError for that tier only."""
    try:
        return await asyncio.wait_for(fetch, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ExternalFetchError(tier, f"deadline of {timeout:g}s exceeded") from e
    except (RuntimeError, ConnectionError, OSError, ValueError) as e:
        raise ExternalFetchError(tier, e) from e


async def _empty() -> list[dict[str, Any]]:
    return []


async def read_policies_from_cluster(
    cluster: ClusterClient,
    namespaces: list[str] | None = None,
    include_admin: bool = True,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ClusterPolicies:
    """Read v1, ANP and BANP tiers concurrently.

    Args:
        cluster: Client used for every read
        namespaces: Namespaces for v1 policies; None reads all namespaces
        include_admin: Whether to read the cluster-scoped admin tiers
        timeout: Deadline in seconds applied to each tier

    Returns:
        Documents of every tier that was read, and an error for each tier that failed
    """

    async def network_policies() -> list[dict[str, Any]]:
        if not namespaces:
            return await cluster.get_network_policies(None)
        per_namespace = await asyncio.gather(*(cluster.get_network_policies(ns) for ns in namespaces))
        return [policy for policies in per_namespace for policy in policies]

    tiers: list[tuple[str, str, Awaitable[list[dict[str, Any]]]]] = [
        (NETWORK_POLICIES, "NetworkPolicy", network_policies()),
        (
            ADMIN_NETWORK_POLICIES,
            "AdminNetworkPolicy",
            cluster.get_admin_network_policies() if include_admin else _empty(),
        ),
        (
            BASELINE_ADMIN_NETWORK_POLICIES,
            "BaselineAdminNetworkPolicy",
            cluster.get_baseline_admin_network_policies() if include_admin else _empty(),
        ),
    ]
    outcomes = await asyncio.gather(
        *(_fetch_tier(tier, fetch, timeout) for tier, _, fetch in tiers), return_exceptions=True
    )

    result = ClusterPolicies()
    reader = PolicyDocumentReader()
    for (tier, kind, _), outcome in zip(tiers, outcomes):
        if isinstance(outcome, ExternalFetchError):
            logger.warning(str(outcome))
            result.errors.append(outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        for obj in outcome:
            reader.add({**obj, "kind": kind}, source="cluster")
        logger.info(f"read {len(outcome)} {tier} from cluster")
    result.documents = reader.documents
    return result


async def read_resources_from_cluster(cluster: ClusterClient, namespaces: list[str] | None = None) -> Resources:
    """Simulator resources built from live namespaces and pods."""
    try:
        all_namespaces = await cluster.get_namespaces()
    except RuntimeError as e:
        raise ExternalFetchError("namespaces", e) from e
    selected = [ns for ns in all_namespaces if not namespaces or ns.name in namespaces]
    try:
        if namespaces:
            per_namespace = await asyncio.gather(*(cluster.get_pods(ns.name) for ns in selected))
            pods = [pod for ns_pods in per_namespace for pod in ns_pods]
        else:
            pods = await cluster.get_pods(None)
    except RuntimeError as e:
        raise ExternalFetchError("pods", e) from e
    return Resources.from_cluster(selected, pods)
