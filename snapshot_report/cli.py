"""
CLI entry point for snapshot-report.
"""

import logging
from datetime import datetime
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console

from snapshot_report.exceptions import (
    SnapshotReportError,
    WorkspaceNotFoundError,
    format_error_for_cli,
)
from snapshot_report.workspace import Workspace

app = typer.Typer(
    name="snapshot-report",
    help="Report VMware VM snapshots and who created them",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SnapshotReportError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except typer.Exit:
            raise
        except Exception as e:
            logger.debug("Unexpected error", exc_info=True)
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]Re-run with --verbose for a traceback.[/yellow]")
            raise typer.Exit(1)

    return wrapper


def _require_workspace() -> Workspace:
    workspace = Workspace(Path.cwd())
    if not workspace.config_file.exists():
        raise WorkspaceNotFoundError()
    return workspace


credentials_app = typer.Typer(help="Manage the stored management server credential")
app.add_typer(credentials_app, name="credentials")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Report VMware VM snapshots and who created them."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def init(
    workspace_dir: str = typer.Argument(..., help="Workspace directory to initialize"),
):
    """Initialize a new snapshot-report workspace."""
    console.print(f"[bold blue]Initializing workspace:[/bold blue] {workspace_dir}")

    workspace = Workspace(Path(workspace_dir))
    workspace.initialize()

    console.print(f"[green]✓ Created directory structure in {workspace_dir}[/green]")
    console.print(f"[green]✓ Wrote configuration to {Workspace.CONFIG_NAME}[/green]")

    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  cd {workspace_dir}")
    console.print(f"  # Set server.host and mail settings in {Workspace.CONFIG_NAME}")
    console.print("  snapshot-report credentials set --username <DOMAIN\\user>")
    console.print("  snapshot-report run")


@credentials_app.command("set")
@handle_errors
def credentials_set(
    username: str = typer.Option(..., "--username", help="Account used to log in to vCenter"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
):
    """Encrypt and store the management server login."""
    from snapshot_report.credentials import Credential, CredentialStore

    workspace = _require_workspace()
    store = CredentialStore.from_workspace(workspace)
    path = store.save(Credential(username=username, password=password))

    console.print(f"[green]✓ Credential for {username} saved to {path}[/green]")


@credentials_app.command("show")
@handle_errors
def credentials_show():
    """Show which account is stored (never the password)."""
    from snapshot_report.credentials import CredentialStore

    workspace = _require_workspace()
    credential = CredentialStore.from_workspace(workspace).load()
    console.print(f"[bold]Username:[/bold] {credential.username}")


def _run_report(
    workspace: Workspace,
    config: dict,
    out: Path | None,
    send_mail: bool,
) -> None:
    from snapshot_report.credentials import CredentialStore
    from snapshot_report.delivery import send_report
    from snapshot_report.report import generate_snapshot_report
    from snapshot_report.util.progress import operation_status, show_summary
    from snapshot_report.vcenter import get_client

    server = config["server"]["host"]
    credential = None
    if config["server"].get("provider", "vsphere") != "mock":
        credential = CredentialStore.from_workspace(workspace).load()

    client = get_client(config, credential)
    now = datetime.now().astimezone()

    with operation_status(f"Connecting to {server}"):
        client.connect()
    try:
        with operation_status("Collecting snapshots"):
            result = generate_snapshot_report(workspace, client, now=now, output_path=out)
    finally:
        client.disconnect()

    console.print(f"[green]✓ Report written to {result.path}[/green]")

    mail_config = config.get("mail", {})
    mailed = "no"
    if send_mail and mail_config.get("enabled", False):
        send_report(result.html, server, mail_config, report_path=str(result.path))
        mailed = mail_config["to"]
        console.print(f"[green]✓ Report mailed to {mailed}[/green]")

    show_summary(
        "Snapshot Report",
        {
            "Server": server,
            "Snapshots": result.record_count,
            "Report": str(result.path),
            "Mailed": mailed,
        },
    )


@app.command()
@handle_errors
def run(
    no_mail: bool = typer.Option(False, "--no-mail", help="Write the report but do not mail it"),
    out: Path | None = typer.Option(None, help="Output directory (default: report.output_dir)"),
    inventory: Path | None = typer.Option(
        None, help="Read VMs and events from an inventory YAML file instead of the server"
    ),
):
    """
    Collect snapshots, write the HTML report and mail it.

    Example:
        snapshot-report run
        snapshot-report run --no-mail --out /tmp/reports
    """
    workspace = _require_workspace()
    config = workspace.load_config()

    if inventory is not None:
        config = _with_inventory(config, inventory)

    _run_report(workspace, config, out, send_mail=not no_mail)


@app.command()
@handle_errors
def preview(
    inventory: Path = typer.Option(..., help="Inventory YAML file to render"),
    out: Path | None = typer.Option(None, help="Output directory (default: report.output_dir)"),
):
    """Render a report from an inventory file without contacting any server or mailing."""
    workspace = _require_workspace()
    config = _with_inventory(workspace.load_config(), inventory)
    _run_report(workspace, config, out, send_mail=False)


def _with_inventory(config: dict, inventory: Path) -> dict:
    server = dict(config["server"], provider="mock", inventory_file=str(inventory.absolute()))
    return dict(config, server=server)


if __name__ == "__main__":
    app()
