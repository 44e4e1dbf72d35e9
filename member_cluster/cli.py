"""Main CLI entry point for member cluster checks."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from member_cluster.client import ClusterClient, build_cluster_client
from member_cluster.credentials import (
    CredentialResolver,
    KubeconfigFileResolver,
    SecretCredentialResolver,
)
from member_cluster.exceptions import MemberClusterError, TopologyError
from member_cluster.logging_config import get_logger, setup_logging
from member_cluster.models.cluster import ClusterSpec, ClusterStatus
from member_cluster.network import choose_host_ip, select_server_address

app = typer.Typer(
    name="member-cluster",
    help="Connectivity, health and topology checks for federation member clusters",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

SPEC_ARGUMENT = typer.Argument(..., help="Path to the cluster spec YAML file")
KUBECONFIG_OPTION = typer.Option(
    None,
    "--kubeconfig",
    "-k",
    help="Read credentials from this kubeconfig instead of the cluster's secret",
)
CONTEXT_OPTION = typer.Option(None, "--context", help="Kubeconfig context to use")
HOST_IP_OPTION = typer.Option(
    None, "--host-ip", help="Local host IP (defaults to the default route source address)"
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


def _fail(error: MemberClusterError) -> None:
    console.print(f"[red]Error:[/red] {error.message}")
    if error.details:
        console.print(f"\n{error.details}")
    raise typer.Exit(code=1)


def _resolver(kubeconfig: str | None, context: str | None) -> CredentialResolver:
    if kubeconfig:
        return KubeconfigFileResolver(kubeconfig, context=context)
    return SecretCredentialResolver()


def _connect(
    spec_path: str, kubeconfig: str | None, context: str | None, host_ip: str | None
) -> ClusterClient | None:
    try:
        spec = ClusterSpec.load(spec_path)
        cluster_client = build_cluster_client(spec, _resolver(kubeconfig, context), host_ip=host_ip)
    except MemberClusterError as e:
        logger.error(f"Failed to build cluster client: {e}")
        _fail(e)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid host IP: {e}")
        raise typer.Exit(code=1)

    if cluster_client is None:
        console.print(
            f"[yellow]No server address of cluster {spec.name} applies to this host[/yellow]"
        )
    return cluster_client


def _print_conditions(status: ClusterStatus) -> None:
    table = Table(title="Cluster Conditions")
    table.add_column("Type", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Reason", style="green")
    table.add_column("Message")

    for condition in status.conditions:
        table.add_row(
            condition.type.value,
            condition.status.value,
            condition.reason,
            condition.message,
        )

    console.print(table)
    if status.conditions:
        probe_time = status.conditions[0].last_probe_time.strftime("%Y-%m-%d %H:%M:%S")
        console.print(f"[bold cyan]Probed at:[/bold cyan] {probe_time}")


@app.command()
def version() -> None:
    """Show version information."""
    from member_cluster import __version__

    typer.echo(f"member-cluster version {__version__}")


@app.command()
def endpoint(
    spec_path: str = SPEC_ARGUMENT,
    host_ip: str | None = HOST_IP_OPTION,
) -> None:
    """
    Show which server address of a cluster this host would use.

    The first client CIDR containing the host IP selects the address.
    """
    try:
        spec = ClusterSpec.load(spec_path)
        local_ip = host_ip or str(choose_host_ip())
        server_address = select_server_address(local_ip, spec.server_address_by_client_cidrs)
    except MemberClusterError as e:
        _fail(e)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid host IP: {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold cyan]Host IP:[/bold cyan] {local_ip}")
    if server_address is None:
        console.print(
            f"[yellow]No server address of cluster {spec.name} applies to this host[/yellow]"
        )
        return

    console.print(f"[bold cyan]Server address:[/bold cyan] {server_address}")


@app.command()
def health(
    spec_path: str = SPEC_ARGUMENT,
    kubeconfig: str | None = KUBECONFIG_OPTION,
    context: str | None = CONTEXT_OPTION,
    host_ip: str | None = HOST_IP_OPTION,
) -> None:
    """
    Probe a member cluster's /healthz endpoint once.

    Examples:
        member-cluster health cluster.yaml --kubeconfig ~/.kube/member.yaml
    """
    cluster_client = _connect(spec_path, kubeconfig, context, host_ip)
    if cluster_client is None:
        return

    with cluster_client:
        status = cluster_client.get_cluster_health_status()

    _print_conditions(status)


@app.command()
def zones(
    spec_path: str = SPEC_ARGUMENT,
    kubeconfig: str | None = KUBECONFIG_OPTION,
    context: str | None = CONTEXT_OPTION,
    host_ip: str | None = HOST_IP_OPTION,
) -> None:
    """Show the zones and region a member cluster's nodes run in."""
    cluster_client = _connect(spec_path, kubeconfig, context, host_ip)
    if cluster_client is None:
        return

    try:
        with cluster_client:
            topology = cluster_client.get_cluster_zones()
    except TopologyError as e:
        _fail(e)

    console.print(f"[bold cyan]Region:[/bold cyan] {topology.region or 'N/A'}")
    console.print(f"[bold cyan]Zones ({len(topology.zones)}):[/bold cyan]")
    for zone in topology.zones:
        console.print(f"  {zone}")


@app.command()
def status(
    spec_path: str = SPEC_ARGUMENT,
    kubeconfig: str | None = KUBECONFIG_OPTION,
    context: str | None = CONTEXT_OPTION,
    host_ip: str | None = HOST_IP_OPTION,
) -> None:
    """Show health conditions together with the cluster topology."""
    cluster_client = _connect(spec_path, kubeconfig, context, host_ip)
    if cluster_client is None:
        return

    with cluster_client:
        cluster_status = cluster_client.get_cluster_health_status()
        if cluster_status.is_ready:
            try:
                cluster_status = cluster_status.with_topology(cluster_client.get_cluster_zones())
            except TopologyError as e:
                logger.warning(f"Topology discovery failed: {e}")
                console.print(f"[yellow]Warning:[/yellow] No topology available: {e.message}")

    _print_conditions(cluster_status)
    if cluster_status.region is not None:
        console.print(f"[bold cyan]Region:[/bold cyan] {cluster_status.region or 'N/A'}")
        console.print(f"[bold cyan]Zones:[/bold cyan] {', '.join(cluster_status.zones) or 'N/A'}")


if __name__ == "__main__":
    app()
