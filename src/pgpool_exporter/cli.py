"""Command-line interface for pgpool exporter."""

import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pgpool_exporter import __version__, credentials
from pgpool_exporter.config import Config, create_example_config
from pgpool_exporter.errors import ConfigError
from pgpool_exporter.models import NodeStatus, QuorumState
from pgpool_exporter.monitor import ScrapeOrchestrator, ScrapeResult
from pgpool_exporter.pcp import PCPClient, SubprocessRunner

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = [
    "pgpool-exporter.yaml",
    "pgpool-exporter.yml",
    "/etc/pgpool-exporter/config.yaml",
]


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def status_color(status_code: int) -> str:
    """Get Rich color for a node status code."""
    colors = {
        NodeStatus.INITIALIZATION: "yellow",
        NodeStatus.UP_NO_CONNECTIONS: "green",
        NodeStatus.UP_POOLED: "green",
        NodeStatus.DOWN: "red",
    }
    return colors.get(status_code, "dim")


def load_config(
    path: Optional[str],
    pcp_host: Optional[str] = None,
    pcp_port: Optional[int] = None,
    pcp_username: Optional[str] = None,
    pcp_password: Optional[str] = None,
    pcp_passfile_path: Optional[str] = None,
) -> Config:
    """Load the config file (if any) and apply command-line overrides."""
    if path:
        cfg = Config.from_yaml(path)
    else:
        for default_path in DEFAULT_CONFIG_PATHS:
            candidate = Path(default_path)
            if candidate.exists():
                cfg = Config.from_yaml(candidate)
                break
        else:
            cfg = Config()

    if pcp_host is not None:
        cfg.pcp.hostname = pcp_host
    if pcp_port is not None:
        cfg.pcp.port = pcp_port
    if pcp_username is not None:
        cfg.pcp.username = pcp_username
    if pcp_password is not None:
        cfg.pcp.password = pcp_password
    if pcp_passfile_path is not None:
        cfg.pcp.passfile = pcp_passfile_path
    return cfg


def pcp_options(func: Callable) -> Callable:
    """Options shared by commands that talk to pgpool."""
    options = [
        click.option("-c", "--config", type=click.Path(exists=True), help="Path to configuration file"),
        click.option("--pcp-host", help="PCP hostname (default: 127.0.0.1)"),
        click.option("--pcp-port", type=int, help="PCP port (default: 9898)"),
        click.option("--pcp-username", help="PCP username (default: pcpadmin)"),
        click.option("--pcp-password", envvar="PCP_PASSWORD", help="PCP password"),
        click.option(
            "--pcp-passfile",
            type=click.Path(),
            help="Path to the PCP password file containing hostname:port:username:password",
        ),
        click.option(
            "--log-level",
            type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
            help="Logging level",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def create_nodes_table(result: ScrapeResult) -> Table:
    """Create a Rich table of the decoded backend nodes."""
    table = Table(title="Backend Nodes", show_header=True, header_style="bold")

    table.add_column("Id", justify="right")
    table.add_column("Hostname", style="cyan", no_wrap=True)
    table.add_column("Port", justify="right")
    table.add_column("Status")
    table.add_column("Weight", justify="right")
    table.add_column("Role")
    table.add_column("Replication", justify="right")

    for node_id, node in sorted(result.nodes.items()):
        replication = f"{node.replication_delay:g}"
        if node.replication_state:
            replication = f"{node.replication_state} ({replication})"
        table.add_row(
            str(node_id),
            node.hostname,
            str(node.port),
            Text(node.status, style=status_color(node.status_code)),
            f"{node.weight:.3f}",
            node.role or "-",
            replication,
        )

    return table


def create_connections_table(result: ScrapeResult) -> Table:
    """Create a Rich table of connection counts per database."""
    table = Table(title="Frontend Connections", show_header=True, header_style="bold")
    table.add_column("Database", style="cyan")
    table.add_column("Active", justify="right", style="green")
    table.add_column("Inactive", justify="right", style="dim")

    summary = result.summary
    if summary is not None:
        for database in sorted(summary.databases):
            table.add_row(
                database,
                str(summary.active.get(database, 0)),
                str(summary.inactive.get(database, 0)),
            )
    return table


def create_summary_panel(result: ScrapeResult) -> Panel:
    """Create a summary panel."""
    state = "[red]ERROR[/]" if result.error else "[green]OK[/]"
    parts = [
        f"[bold]Scrape:[/bold] {state} in {result.duration:.3f}s",
        f"[bold]Nodes:[/bold] {result.node_count if result.node_count is not None else '-'}",
        f"[bold]Child processes:[/bold] {result.proc_count if result.proc_count is not None else '-'}",
    ]

    watchdog = result.watchdog
    if watchdog is not None:
        quorum_style = "green" if watchdog.quorum_state_code == QuorumState.EXIST else "yellow"
        parts.append(
            f"[bold]Watchdog:[/bold] {watchdog.alive_remote_nodes}/{watchdog.remote_nodes} remote alive, "
            f"{watchdog.total_nodes} total, quorum [{quorum_style}]{watchdog.quorum_state or 'UNKNOWN'}[/], "
            f"VIP {'up' if watchdog.vip else 'down'}"
        )

    if result.errors:
        parts.append("")
        parts.append(f"[bold red]Errors ({len(result.errors)}):[/]")
        for message in result.errors:
            parts.append(f"  • {escape(message)}")

    return Panel(
        "\n".join(parts),
        title="Pgpool Summary",
        border_style="red" if result.error else "cyan",
    )


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Pgpool2 Exporter - Prometheus metrics from Pgpool-II PCP commands."""
    pass


@main.command()
@pcp_options
@click.option("--listen-address", help="Address on which to expose metrics (default: :9288)")
@click.option("--telemetry-path", help="Path under which to expose metrics (default: /metrics)")
def serve(
    config: Optional[str],
    pcp_host: Optional[str],
    pcp_port: Optional[int],
    pcp_username: Optional[str],
    pcp_password: Optional[str],
    pcp_passfile: Optional[str],
    log_level: Optional[str],
    listen_address: Optional[str],
    telemetry_path: Optional[str],
) -> None:
    """Serve Prometheus metrics over HTTP."""
    import uvicorn

    from pgpool_exporter.exporter import create_registry
    from pgpool_exporter.server import create_app

    try:
        cfg = load_config(config, pcp_host, pcp_port, pcp_username, pcp_password, pcp_passfile)
        if listen_address is not None:
            cfg.web.set_listen_address(listen_address)
        if telemetry_path is not None:
            cfg.web.telemetry_path = telemetry_path
        setup_logging(log_level or cfg.log_level)
        cfg.validate()
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e}[/]")
        sys.exit(1)

    logger.info(f"Starting pgpool2_exporter {__version__}...")
    logger.info(f"Listen address: {cfg.web.listen_address}")

    try:
        with credentials.pcp_passfile(cfg.pcp) as passfile:
            client = PCPClient(SubprocessRunner(cfg.pcp, passfile))
            app = create_app(cfg, create_registry(client, cfg))
            uvicorn.run(
                app,
                host=cfg.web.host,
                port=cfg.web.port,
                log_level=(log_level or cfg.log_level).lower(),
            )
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e}[/]")
        sys.exit(1)
    logger.info("Bye")


@main.command()
@pcp_options
@click.option("--json", "output_json", is_flag=True, help="Output in JSON format")
def check(
    config: Optional[str],
    pcp_host: Optional[str],
    pcp_port: Optional[int],
    pcp_username: Optional[str],
    pcp_password: Optional[str],
    pcp_passfile: Optional[str],
    log_level: Optional[str],
    output_json: bool,
) -> None:
    """Run one scrape cycle and print what was collected."""
    try:
        cfg = load_config(config, pcp_host, pcp_port, pcp_username, pcp_password, pcp_passfile)
        setup_logging(log_level or "WARNING")
        cfg.validate()
        with credentials.pcp_passfile(cfg.pcp) as passfile:
            client = PCPClient(SubprocessRunner(cfg.pcp, passfile))
            result = ScrapeOrchestrator(client, cfg).run()
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e}[/]")
        sys.exit(1)

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        console.print(create_summary_panel(result))
        console.print(create_nodes_table(result))
        console.print(create_connections_table(result))

    if result.error:
        sys.exit(1)


@main.command()
@click.option(
    "-o", "--output",
    default="pgpool-exporter.yaml",
    help="Output file path",
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing file",
)
def init(output: str, force: bool) -> None:
    """Create an example configuration file."""
    path = Path(output)

    if path.exists() and not force:
        console.print(f"[red]File already exists: {path}[/]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    example = create_example_config()
    example.to_yaml(path)

    console.print(f"[green]Created example configuration: {path}[/]")
    console.print("Edit this file to set your PCP connection settings.")


if __name__ == "__main__":
    main()
