"""Summary tab component."""

from rich.markup import escape
from rich.panel import Panel

from netloom.cli.commands import AnalysisResult, AnalyzeArgs
from netloom.matcher.target import Direction
from netloom.simulator import Connectivity, View


class SummaryTab:
    """Summary tab logic."""

    @staticmethod
    def describe_sources(args: AnalyzeArgs) -> list[str]:
        sources = []
        if args.reads_cluster_policies():
            if args.all_namespaces:
                sources.append("cluster (all namespaces)")
            elif args.namespaces:
                sources.append(f"cluster ({', '.join(args.namespaces)})")
            else:
                sources.append("cluster")
        if args.policy_path:
            sources.append(args.policy_path)
        if args.use_example_policies:
            sources.append("example policies")
        return sources

    @staticmethod
    def render(args: AnalyzeArgs, result: AnalysisResult) -> Panel:
        """Render policy sources, target counts and probe totals."""
        policy = result.policy
        content = "[bold]Policy sources[/bold]"
        for source in SummaryTab.describe_sources(args):
            content += f"\n{escape(source)}"

        content += "\n\n[bold]Targets[/bold]"
        for direction in (Direction.INGRESS, Direction.EGRESS):
            targets = policy.sorted_targets(direction)
            v1 = sum(1 for target in targets if target.is_v1())
            content += f"\n{direction.value}: {len(targets)} ({v1} NPv1, {len(targets) - v1} admin)"

        if result.table is not None and result.resources is not None:
            content += f"\n\n[bold]Probe ({len(result.resources.pods)} pods)[/bold]"
            counts = result.table.summary(View.COMBINED)
            for connectivity in Connectivity:
                if counts.get(connectivity):
                    content += f"\n{connectivity.value}: {counts[connectivity]}"

        if result.traffic_results:
            allowed = sum(1 for r in result.traffic_results if r.is_allowed())
            content += f"\n\n[bold]Traffic[/bold]\n{allowed}/{len(result.traffic_results)} allowed"

        return Panel(content, border_style="white")

    @staticmethod
    def render_error(message: str) -> Panel:
        return Panel(
            f"[red]{escape(message)}[/red]",
            title="[bold red]Analysis Error[/bold red]",
            border_style="red",
        )
