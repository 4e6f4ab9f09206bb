"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import os

import typer
from rich.console import Console
from rich.table import Table

from adapters.oci_credentials import default_sources, resolve_credentials
from adapters.public_ip import fetch_public_ipv4
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import BastionSessionError, CredentialsError
from core.services.hooks import ReconcileHooks

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_public_ip(settings: AppSettings) -> tuple[bool, str]:
    try:
        ip = await fetch_public_ipv4(settings)
        return True, ip
    except BastionSessionError as exc:
        return False, str(exc)


def _check_credentials(settings: AppSettings) -> tuple[bool, str]:
    used: list[str] = []
    hooks = ReconcileHooks(debug=used.append)
    try:
        credentials = resolve_credentials(default_sources(settings, os.environ), hooks)
    except CredentialsError as exc:
        return False, "; ".join(exc.reasons) or str(exc)
    return True, f"{used[-1]} (region {credentials.region})"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="bastion-session Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.bastion_id:
        table.add_row("Bastion id", "OK", settings.bastion_id)
    else:
        table.add_row("Bastion id", "MISSING", "Set BASTION_SESSION_BASTION_ID or pass --bastion-id")
    table.add_row("Session type", "OK" if settings.session_type else "MISSING", settings.session_type or "-")
    has_key = bool(settings.public_key or settings.public_key_file)
    table.add_row("Public key", "OK" if has_key else "MISSING", str(settings.public_key_file or "inline"))

    ok_creds, detail_creds = _check_credentials(settings)
    table.add_row("OCI credentials", "OK" if ok_creds else "FAIL", detail_creds)

    # Connectivity (best-effort)
    ok_ip, detail_ip = asyncio.run(_check_public_ip(settings))
    table.add_row("Public IP", "OK" if ok_ip else "FAIL", detail_ip)

    state = "present" if settings.state_file.exists() else "none"
    table.add_row("Checkpoint", "OK", f"{settings.state_file} ({state})")

    _console.print(table)

    if state == "present":
        _console.print(
            "\n[yellow]Note:[/yellow] A checkpoint exists; run `cleanup` to remove the IP it added."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    bastion_id = typer.prompt("Bastion OCID").strip()
    profile = typer.prompt("OCI config profile", default="DEFAULT", show_default=True).strip()
    config_file = typer.prompt(
        "OCI config file (empty for ~/.oci/config)",
        default="",
        show_default=False,
    ).strip()

    if not bastion_id:
        raise typer.BadParameter("bastion id is required")

    env_path = write_user_env_vars(
        {
            "BASTION_SESSION_BASTION_ID": bastion_id,
            "BASTION_SESSION_OCI_PROFILE": profile,
            "BASTION_SESSION_OCI_CONFIG_FILE": config_file,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
