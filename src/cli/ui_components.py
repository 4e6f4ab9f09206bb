"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Los hooks del Core se traducen aquí a líneas de consola.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import CredentialsError
from core.services.hooks import ReconcileHooks
from core.services.session_pipeline import SessionOutputs


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (se omite con `--no-banner`)."""

    title = Text("bastion-session", style="bold cyan")
    subtitle = Text("Allow-list • Bastion plugin • Sessions", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_console_hooks(console: Console, *, verbose: bool = False) -> ReconcileHooks:
    def info(message: str) -> None:
        console.print(f"[cyan]•[/cyan] {message}")

    def debug(message: str) -> None:
        if verbose:
            console.print(f"[dim]  {message}[/dim]")

    def warning(message: str) -> None:
        console.print(f"[yellow]Warning:[/yellow] {message}")

    return ReconcileHooks(info=info, debug=debug, warning=warning)


def build_session_table(outputs: SessionOutputs) -> Table:
    table = Table(title="Bastion Session")
    table.add_column("Output", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("session-id", outputs.session_id)
    table.add_row("ssh-command", outputs.ssh_command or "-")
    table.add_row("public-ip", outputs.public_ip)
    if outputs.warnings:
        table.add_row("warnings", "\n".join(outputs.warnings), style="yellow")
    return table


def print_failure(console: Console, error: Exception) -> None:
    message = str(error) or type(error).__name__
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    if isinstance(error, CredentialsError):
        for reason in error.reasons:
            console.print(f"[dim]  - {escape(reason)}[/dim]")
