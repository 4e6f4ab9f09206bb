"""CLI principal (Typer).

Comandos:
- `open`: allow-list + plugin Bastion + sesión; imprime y exporta las salidas.
- `cleanup`: retira de la allow-list la IP guardada en el checkpoint.
- `doctor`: diagnósticos de entorno.

La CLI solo traduce opciones/settings a un `SessionRequest`, construye los
clientes y muestra resultados; toda la lógica vive en `core.services`.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from oci.exceptions import InvalidConfig
from pydantic import ValidationError
from rich.console import Console

from adapters.checkpoint import RunCheckpoint, clear_checkpoint, load_checkpoint, save_checkpoint
from adapters.oci_client import OciCloudClient
from adapters.oci_credentials import default_sources, resolve_credentials
from adapters.outputs import write_outputs
from adapters.public_ip import fetch_public_ipv4
from cli import doctor
from cli.ui_components import build_console_hooks, build_session_table, print_banner, print_failure
from core.config import AppSettings
from core.domain.errors import CredentialsError, InvalidInputError
from core.inputs import parse_session_ttl, parse_target_resource
from core.services.hooks import ReconcileHooks
from core.services.session_pipeline import (
    CloudClients,
    SessionRequest,
    close_session,
    default_session_name,
    open_session,
    with_deadline,
)

app = typer.Typer(
    no_args_is_help=True,
    help="Provision and reconcile temporary OCI Bastion sessions.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _pick(option, setting):
    return setting if option is None else option


def _read_public_key(inline: str | None, path: Path | None) -> str:
    if inline and inline.strip():
        return inline.strip()
    if path is not None:
        try:
            content = path.expanduser().read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise InvalidInputError(f"Cannot read public key file {path}: {exc}") from exc
        if content:
            return content
    raise InvalidInputError("public-key is required")


def build_session_request(
    settings: AppSettings,
    *,
    bastion_id: str | None = None,
    session_type: str | None = None,
    target_resource_id: str | None = None,
    target_resource_fqdn: str | None = None,
    target_resource_private_ip: str | None = None,
    target_resource_port: str | None = None,
    target_resource_user: str | None = None,
    public_key: str | None = None,
    public_key_file: Path | None = None,
    session_ttl_seconds: str | None = None,
    display_name: str | None = None,
    auto_enable_bastion_plugin: bool | None = None,
) -> SessionRequest:
    bastion = _pick(bastion_id, settings.bastion_id)
    if not bastion:
        raise InvalidInputError("bastion-id is required")

    target = parse_target_resource(
        session_type=_pick(session_type, settings.session_type),
        target_resource_id=_pick(target_resource_id, settings.target_resource_id),
        target_resource_fqdn=_pick(target_resource_fqdn, settings.target_resource_fqdn),
        target_resource_private_ip=_pick(target_resource_private_ip, settings.target_resource_private_ip),
        target_resource_port=_pick(target_resource_port, settings.target_resource_port),
        target_resource_user=_pick(target_resource_user, settings.target_resource_user),
    )

    request = SessionRequest(
        bastion_id=str(bastion),
        target=target,
        public_key=_read_public_key(
            public_key or settings.public_key,
            public_key_file or settings.public_key_file,
        ),
        session_ttl_seconds=parse_session_ttl(_pick(session_ttl_seconds, settings.session_ttl_seconds)),
        display_name=display_name or settings.session_display_name or default_session_name(os.environ),
        auto_enable_bastion_plugin=bool(
            _pick(auto_enable_bastion_plugin, settings.auto_enable_bastion_plugin)
        ),
        session_polling=settings.session_polling,
        plugin_polling=settings.plugin_polling,
    )

    try:
        request.create_details()
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise InvalidInputError(f"Invalid session request: {problems}") from exc
    return request


def _build_clients(settings: AppSettings, hooks: ReconcileHooks) -> CloudClients:
    credentials = resolve_credentials(default_sources(settings, os.environ), hooks)
    try:
        cloud = OciCloudClient(credentials.to_sdk_config())
    except InvalidConfig as exc:
        raise CredentialsError(f"Invalid OCI configuration: {exc}") from exc
    return CloudClients(bastion=cloud, compute=cloud, plugins=cloud)


@app.command(name="open")
def open_command(
    bastion_id: Optional[str] = typer.Option(None, "--bastion-id", help="Bastion OCID."),
    session_type: Optional[str] = typer.Option(
        None,
        "--session-type",
        help="MANAGED_SSH, PORT_FORWARDING or DYNAMIC_PORT_FORWARDING.",
    ),
    target_resource_id: Optional[str] = typer.Option(None, "--target-resource-id"),
    target_resource_fqdn: Optional[str] = typer.Option(None, "--target-resource-fqdn"),
    target_resource_private_ip: Optional[str] = typer.Option(None, "--target-resource-private-ip"),
    target_resource_port: Optional[str] = typer.Option(None, "--target-resource-port"),
    target_resource_user: Optional[str] = typer.Option(None, "--target-resource-user"),
    public_key: Optional[str] = typer.Option(None, "--public-key", help="SSH public key content."),
    public_key_file: Optional[Path] = typer.Option(None, "--public-key-file"),
    session_ttl_seconds: Optional[str] = typer.Option(None, "--session-ttl-seconds"),
    display_name: Optional[str] = typer.Option(None, "--display-name"),
    auto_enable_bastion_plugin: Optional[bool] = typer.Option(
        None,
        "--auto-enable-bastion-plugin/--no-auto-enable-bastion-plugin",
        help="Enable the Bastion agent plugin for Managed SSH sessions.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
    no_banner: bool = typer.Option(False, "--no-banner"),
) -> None:
    """Allow the current IP, prepare the target and open (or reuse) a session."""

    settings = AppSettings()
    hooks = build_console_hooks(_console, verbose=verbose)
    if not no_banner:
        print_banner(_console)

    try:
        request = build_session_request(
            settings,
            bastion_id=bastion_id,
            session_type=session_type,
            target_resource_id=target_resource_id,
            target_resource_fqdn=target_resource_fqdn,
            target_resource_private_ip=target_resource_private_ip,
            target_resource_port=target_resource_port,
            target_resource_user=target_resource_user,
            public_key=public_key,
            public_key_file=public_key_file,
            session_ttl_seconds=session_ttl_seconds,
            display_name=display_name,
            auto_enable_bastion_plugin=auto_enable_bastion_plugin,
        )
        clients = _build_clients(settings, hooks)

        def checkpoint(ip: str) -> None:
            save_checkpoint(
                checkpoint=RunCheckpoint(bastion_id=request.bastion_id, public_ip=ip),
                path=settings.state_file,
            )

        outputs = asyncio.run(
            with_deadline(
                open_session(
                    clients=clients,
                    request=request,
                    ip_provider=lambda: fetch_public_ipv4(settings),
                    hooks=hooks,
                    checkpoint=checkpoint,
                ),
                settings.run_timeout_seconds,
            )
        )
    except Exception as exc:
        # Cualquier fallo termina en un único mensaje legible y exit code 1.
        print_failure(_console, exc)
        raise typer.Exit(code=1) from exc

    _console.print(build_session_table(outputs))

    if settings.output_file is not None:
        write_outputs(
            path=settings.output_file,
            values={"session-id": outputs.session_id, "ssh-command": outputs.ssh_command},
        )


@app.command(name="cleanup")
def cleanup_command(
    state_file: Optional[Path] = typer.Option(None, "--state-file", help="Checkpoint written by `open`."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
) -> None:
    """Remove the IP added by `open` from the bastion allow-list."""

    settings = AppSettings()
    hooks = build_console_hooks(_console, verbose=verbose)
    path = state_file or settings.state_file

    try:
        checkpoint = load_checkpoint(path)
        clients = _build_clients(settings, hooks)
        asyncio.run(
            close_session(
                client=clients.bastion,
                bastion_id=checkpoint.bastion_id,
                public_ip=checkpoint.public_ip,
                hooks=hooks,
            )
        )
    except Exception as exc:
        print_failure(_console, exc)
        raise typer.Exit(code=1) from exc

    clear_checkpoint(path)


def run() -> None:
    app()
