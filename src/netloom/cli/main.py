"""Main CLI entry point."""

import asyncio
from typing import Any, Callable

import click
import yaml

from netloom.cli.commands import (
    MODE_EXPLAIN,
    MODE_PROBE,
    MODE_WALKTHROUGH,
    AnalyzeArgs,
    analyze_async,
    parse_modes,
    validate_args,
)
from netloom.simulator import ServiceKind
from netloom.utils.config import NetloomConfig, load_config
from netloom.utils.logging import setup_logging


def policy_source_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options selecting where policies and probe resources come from."""
    options = [
        click.option("--policy-path", type=click.Path(exists=True), help="File or directory of policy documents"),
        click.option("--use-example-policies", is_flag=True, help="Include the built-in example policies"),
        click.option("--all-namespaces", "-A", is_flag=True, help="Read v1 policies from every namespace"),
        click.option("--namespace", "-n", "namespaces", multiple=True, help="Namespace to read v1 policies from"),
        click.option("--context", help="Kubernetes context to use"),
        click.option(
            "--simplify-policies/--no-simplify-policies",
            default=None,
            help="Deduplicate and compact policy rules (default: true)",
        ),
        click.option("--kube-client-timeout", type=float, help="Deadline in seconds for cluster reads (default: 180)"),
        click.option("--probe-path", type=click.Path(exists=True), help="Namespaces and pods to simulate"),
        click.option("--probe-port", help="Probe only this port number or name"),
        click.option("--probe-protocol", default="TCP", show_default=True, help="Protocol used with --probe-port"),
        click.option(
            "--service-kind",
            type=click.Choice([kind.value for kind in ServiceKind]),
            default=ServiceKind.CLUSTER_IP.value,
            show_default=True,
            help="How probed destinations are reached",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_args(config: NetloomConfig, **kwargs: Any) -> AnalyzeArgs:
    """Merge command line values over configuration defaults."""
    simplify = kwargs.pop("simplify_policies")
    timeout = kwargs.pop("kube_client_timeout")
    context = kwargs.pop("context")
    return AnalyzeArgs(
        simplify_policies=config.simplify_policies if simplify is None else simplify,
        kube_client_timeout=config.kube_client_timeout if timeout is None else timeout,
        context=context or config.context,
        namespaces=list(kwargs.pop("namespaces")),
        **kwargs,
    )


@click.group()
@click.version_option(package_name="netloom")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Configuration file")
@click.option("--log-level", help="Logging level (default: WARNING)")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """netloom - Network policy analysis and simulation for Kubernetes."""
    try:
        config = load_config(config_path)
        setup_logging(log_level or config.log_level, config.log_file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise click.UsageError(f"invalid configuration: {e}") from e
    ctx.obj = config


@cli.command("analyze")
@click.option(
    "--mode",
    "modes",
    multiple=True,
    help="Analysis to run: explain, probe or walkthrough (repeatable or comma separated)",
)
@policy_source_options
@click.option("--source-workload-traffic", help="Source workload as <namespace>/<kind>/<name>")
@click.option("--destination-workload-traffic", help="Destination workload as <namespace>/<kind>/<name>")
@click.option("--port", type=int, help="Destination port for workload traffic")
@click.option("--protocol", help="Protocol for workload traffic")
@click.option("--traffic-path", type=click.Path(exists=True), help="File of traffic to walk through")
@click.pass_obj
def analyze(config: NetloomConfig, modes: tuple[str, ...], **kwargs: Any) -> None:
    """Explain policies, simulate connectivity, or walk through traffic."""
    args = build_args(config, modes=parse_modes(modes), **kwargs)
    validate_args(args)
    asyncio.run(analyze_async(args))


@cli.command("tui")
@policy_source_options
@click.option("--traffic-path", type=click.Path(exists=True), help="File of traffic to walk through")
@click.pass_obj
def tui(config: NetloomConfig, **kwargs: Any) -> None:
    """Launch the Terminal User Interface."""
    from netloom.tui import run

    modes = [MODE_EXPLAIN, MODE_PROBE]
    if kwargs.get("traffic_path"):
        modes.append(MODE_WALKTHROUGH)
    args = build_args(config, modes=modes, **kwargs)
    validate_args(args)
    run(args)


if __name__ == "__main__":
    cli()
