"""CLI command implementations."""

import logging
from dataclasses import dataclass, field

import click
from rich.console import Console
from rich.markup import escape

from netloom.core.interfaces import ClusterClient
from netloom.core.models import PolicyDocuments
from netloom.core.models.errors import NetloomError, PolicyFileError
from netloom.examples import example_policies
from netloom.k8s.client import K8sClient
from netloom.k8s.loader import read_policies_from_path, read_resources_from_path, read_traffic_from_path
from netloom.k8s.reader import read_policies_from_cluster, read_resources_from_cluster
from netloom.k8s.workloads import WorkloadResolver
from netloom.matcher.builder import build_network_policies
from netloom.matcher.policy import Policy
from netloom.matcher.ports import Protocol
from netloom.matcher.results import TrafficResult, walkthrough_table
from netloom.matcher.traffic import Traffic
from netloom.simulator import JobBuilder, ProbeConfig, Resources, ServiceKind, SimulatedRunner, Table, View

logger = logging.getLogger(__name__)

console = Console()

MODE_EXPLAIN = "explain"
MODE_PROBE = "probe"
MODE_WALKTHROUGH = "walkthrough"
ALL_MODES = (MODE_EXPLAIN, MODE_PROBE, MODE_WALKTHROUGH)

DEFAULT_NAMESPACES = ["x", "y", "z"]
DEFAULT_PODS = ["a", "b", "c"]
DEFAULT_PORTS = [80, 81]
DEFAULT_PROTOCOLS = [Protocol.TCP, Protocol.UDP]


@dataclass
class AnalyzeArgs:
    """Arguments of the analyze command."""

    modes: list[str] = field(default_factory=lambda: [MODE_EXPLAIN])
    policy_path: str | None = None
    use_example_policies: bool = False
    all_namespaces: bool = False
    namespaces: list[str] = field(default_factory=list)
    context: str | None = None
    simplify_policies: bool = True
    kube_client_timeout: float = 180.0
    source_workload_traffic: str | None = None
    destination_workload_traffic: str | None = None
    port: int | None = None
    protocol: str | None = None
    traffic_path: str | None = None
    probe_path: str | None = None
    probe_port: str | None = None
    probe_protocol: str = "TCP"
    service_kind: str = ServiceKind.CLUSTER_IP.value

    def reads_cluster_policies(self) -> bool:
        """Cluster policies are read when asked for, or when no other source is given."""
        if self.all_namespaces or self.namespaces:
            return True
        return not self.policy_path and not self.use_example_policies

    def has_workload_traffic(self) -> bool:
        return bool(self.source_workload_traffic or self.destination_workload_traffic)


def parse_modes(values: tuple[str, ...] | list[str]) -> list[str]:
    """Split repeated and comma separated modes, keeping order and dropping repeats."""
    modes: list[str] = []
    for value in values:
        for mode in value.split(","):
            mode = mode.strip()
            if not mode:
                continue
            if mode not in ALL_MODES:
                raise click.UsageError(f"unrecognized mode '{mode}', expected one of {', '.join(ALL_MODES)}")
            if mode not in modes:
                modes.append(mode)
    return modes or [MODE_EXPLAIN]


def validate_args(args: AnalyzeArgs) -> None:
    """Reject inconsistent flag combinations."""
    if args.all_namespaces and args.namespaces:
        raise click.UsageError("--all-namespaces and --namespace are mutually exclusive")

    workload_flags = [args.source_workload_traffic, args.destination_workload_traffic, args.port, args.protocol]
    if args.has_workload_traffic() or args.port is not None or args.protocol is not None:
        if MODE_WALKTHROUGH not in args.modes:
            raise click.UsageError("traffic flags require --mode walkthrough")
        if any(flag is None for flag in workload_flags):
            raise click.UsageError(
                "--source-workload-traffic, --destination-workload-traffic, --port and --protocol must be used together"
            )
        if args.traffic_path:
            raise click.UsageError("--traffic-path cannot be combined with workload traffic flags")

    if MODE_WALKTHROUGH in args.modes and not args.traffic_path and not args.has_workload_traffic():
        raise click.UsageError(
            "walkthrough mode requires --traffic-path or --source-workload-traffic, "
            "--destination-workload-traffic, --port and --protocol"
        )

    if args.protocol is not None:
        try:
            Protocol.parse(args.protocol)
        except NetloomError as e:
            raise click.UsageError(str(e)) from e
    if args.port is not None and not 1 <= args.port <= 65535:
        raise click.UsageError(f"--port {args.port} outside [1, 65535]")


async def load_policy_documents(args: AnalyzeArgs, cluster: ClusterClient | None) -> PolicyDocuments:
    """Collect documents from the cluster, a path and the built-in examples."""
    documents = PolicyDocuments()

    if args.reads_cluster_policies():
        assert cluster is not None
        namespaces = None if args.all_namespaces else args.namespaces or None
        result = await read_policies_from_cluster(cluster, namespaces, timeout=args.kube_client_timeout)
        for error in result.errors:
            console.print(f"[yellow]Warning:[/yellow] {escape(str(error))}")
        if len(result.errors) == 3:
            raise NetloomError("unable to read any policies from cluster")
        documents.extend(result.documents)

    if args.policy_path:
        documents.extend(read_policies_from_path(args.policy_path))

    if args.use_example_policies:
        documents.extend(example_policies())

    return documents


async def load_resources(args: AnalyzeArgs, cluster: ClusterClient | None) -> Resources:
    """Simulator resources from a file, the cluster, or the default x/y/z namespaces."""
    if args.probe_path:
        return read_resources_from_path(args.probe_path)
    if cluster is not None and args.reads_cluster_policies():
        namespaces = None if args.all_namespaces else args.namespaces or None
        return await read_resources_from_cluster(cluster, namespaces)
    logger.info("no probe resources given, using default namespaces and pods")
    return Resources.default(DEFAULT_NAMESPACES, DEFAULT_PODS, DEFAULT_PORTS, DEFAULT_PROTOCOLS)


def probe_config(args: AnalyzeArgs) -> ProbeConfig:
    try:
        service_kind = ServiceKind(args.service_kind)
    except ValueError as e:
        raise click.UsageError(f"unknown service kind '{args.service_kind}'") from e
    if args.probe_port is None:
        return ProbeConfig(service_kind=service_kind)
    port: int | str = int(args.probe_port) if args.probe_port.isdigit() else args.probe_port
    return ProbeConfig.for_port(port, Protocol.parse(args.probe_protocol), service_kind)


def run_probe(policy: Policy, resources: Resources, config: ProbeConfig) -> Table:
    jobs = JobBuilder().build(resources, config)
    return SimulatedRunner(policy).run(jobs, [pod.key() for pod in resources.sorted_pods()])


async def load_traffic(args: AnalyzeArgs, cluster: ClusterClient | None) -> list[Traffic]:
    if args.traffic_path:
        return read_traffic_from_path(args.traffic_path)
    assert cluster is not None and args.port is not None and args.protocol is not None
    resolver = WorkloadResolver(cluster)
    traffic = Traffic(
        source=await resolver.resolve(args.source_workload_traffic or ""),
        destination=await resolver.resolve(args.destination_workload_traffic or ""),
        resolved_port=args.port,
        protocol=Protocol.parse(args.protocol),
    )
    traffic.validate()
    return [traffic]


@dataclass
class AnalysisResult:
    """Everything the requested modes produced."""

    policy: Policy
    resources: Resources | None = None
    table: Table | None = None
    traffic_results: list[TrafficResult] = field(default_factory=list)


async def run_analysis(args: AnalyzeArgs, cluster: ClusterClient | None = None) -> AnalysisResult:
    """Load policies, build them, and run probe and walkthrough when requested."""
    needs_cluster = args.reads_cluster_policies() or args.has_workload_traffic()
    owns_cluster = cluster is None and needs_cluster
    if owns_cluster:
        cluster = K8sClient(context=args.context)

    try:
        documents = await load_policy_documents(args, cluster)
        policy = build_network_policies(
            args.simplify_policies,
            documents.network_policies,
            documents.admin_network_policies,
            documents.baseline_admin_network_policy,
        )
        result = AnalysisResult(policy=policy)
        if MODE_PROBE in args.modes:
            result.resources = await load_resources(args, cluster)
            result.table = run_probe(policy, result.resources, probe_config(args))
        if MODE_WALKTHROUGH in args.modes:
            result.traffic_results = [policy.is_traffic_allowed(t) for t in await load_traffic(args, cluster)]
        return result
    finally:
        if owns_cluster and cluster is not None:
            await cluster.close()


def _print(text: str) -> None:
    console.out(text, highlight=False)


async def analyze_async(args: AnalyzeArgs, cluster: ClusterClient | None = None) -> None:
    """Run every requested mode and print its output."""
    try:
        result = await run_analysis(args, cluster)
    except (NetloomError, PolicyFileError, ConnectionError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise SystemExit(1) from e

    for mode in args.modes:
        if mode == MODE_EXPLAIN:
            _print(result.policy.explain_table())
        elif mode == MODE_PROBE and result.table is not None and result.resources is not None:
            _print(result.resources.render_table())
            for view in (View.INGRESS, View.EGRESS, View.COMBINED):
                _print(result.table.render(view))
        elif mode == MODE_WALKTHROUGH:
            if len(result.traffic_results) == 1:
                _print(result.traffic_results[0].traffic.table())
                _print(result.traffic_results[0].table())
            _print(walkthrough_table(result.traffic_results))
