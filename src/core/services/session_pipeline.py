"""Bastion session orchestration.

This module chains the reconcilers in their fixed order so the CLI only has
to build clients, translate options and render results:

1. allow-list (current public IP as /32),
2. Bastion agent plugin (Managed SSH + auto-enable only),
3. DNS proxy advisory check (FQDN port forwarding and SOCKS5 sessions),
4. session reuse/creation.

The first failure aborts the run; nothing done by a previous step is rolled
back.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, TypeVar

from core.domain.errors import PollingTimeoutError, ResourceNotFoundError
from core.domain.models import (
    CreateSessionDetails,
    DnsProxyStatus,
    DynamicPortForwardingTarget,
    ManagedSshTarget,
    PortForwardingTarget,
    TargetResource,
)
from core.interfaces.cloud import BastionClient, ComputeClient, IpProvider, PluginClient
from core.polling import PLUGIN_POLLING, SESSION_POLLING, PollingPolicy, Sleep
from core.services.agent_plugin import enable_bastion_plugin
from core.services.allow_list import allow_current_ip, remove_current_ip
from core.services.hooks import ReconcileHooks
from core.services.sessions import create_session

DEFAULT_SESSION_NAME = "bastion-session"

T = TypeVar("T")


@dataclass
class CloudClients:
    """Explicit clients for one run (no module-level singletons)."""

    bastion: BastionClient
    compute: ComputeClient
    plugins: PluginClient


@dataclass
class SessionRequest:
    """Everything a run needs once inputs have been parsed."""

    bastion_id: str
    target: TargetResource
    public_key: str
    session_ttl_seconds: int
    display_name: str = DEFAULT_SESSION_NAME
    auto_enable_bastion_plugin: bool = False
    session_polling: PollingPolicy = SESSION_POLLING
    plugin_polling: PollingPolicy = PLUGIN_POLLING

    def create_details(self) -> CreateSessionDetails:
        return CreateSessionDetails(
            bastion_id=self.bastion_id,
            display_name=self.display_name,
            public_key_content=self.public_key,
            session_ttl_in_seconds=self.session_ttl_seconds,
            target_resource_details=self.target,
        )


@dataclass
class SessionOutputs:
    session_id: str
    ssh_command: str
    public_ip: str
    warnings: list[str] = field(default_factory=list)


def default_session_name(environ: Mapping[str, str]) -> str:
    """`gha-<run id>` inside GitHub Actions, a fixed name elsewhere.

    A stable name per workflow run lets re-runs find and reuse the session.
    """

    run_id = (environ.get("GITHUB_RUN_ID") or "").strip()
    return f"gha-{run_id}" if run_id else DEFAULT_SESSION_NAME


def needs_dns_proxy(target: TargetResource) -> bool:
    if isinstance(target, DynamicPortForwardingTarget):
        return True
    return isinstance(target, PortForwardingTarget) and bool(target.target_resource_fqdn)


async def check_dns_proxy(
    client: BastionClient,
    bastion_id: str,
    hooks: ReconcileHooks,
) -> bool:
    bastion = await client.get_bastion(bastion_id)
    if bastion is None:
        raise ResourceNotFoundError("Bastion", bastion_id)
    if bastion.dns_proxy_status is not DnsProxyStatus.ENABLED:
        hooks.warning("DNS Proxy is not enabled for the bastion")
        return False
    return True


async def open_session(
    *,
    clients: CloudClients,
    request: SessionRequest,
    ip_provider: IpProvider,
    hooks: ReconcileHooks | None = None,
    checkpoint: Callable[[str], None] | None = None,
    sleep: Sleep = asyncio.sleep,
) -> SessionOutputs:
    hooks = hooks or ReconcileHooks()
    warnings: list[str] = []

    def warn(message: str) -> None:
        warnings.append(message)
        hooks.warning(message)

    step_hooks = ReconcileHooks(info=hooks.info, debug=hooks.debug, warning=warn)

    async def discover_ip() -> str:
        ip = await ip_provider()
        # Se guarda antes de tocar la allow-list para que el cleanup siempre pueda revertir.
        if checkpoint is not None:
            checkpoint(ip)
        return ip

    public_ip = await allow_current_ip(clients.bastion, request.bastion_id, discover_ip, step_hooks)

    target = request.target
    if isinstance(target, ManagedSshTarget) and request.auto_enable_bastion_plugin:
        await enable_bastion_plugin(
            clients.compute,
            clients.plugins,
            target.target_resource_id,
            step_hooks,
            policy=request.plugin_polling,
            sleep=sleep,
        )

    if needs_dns_proxy(target):
        await check_dns_proxy(clients.bastion, request.bastion_id, step_hooks)

    session = await create_session(
        clients.bastion,
        request.create_details(),
        step_hooks,
        policy=request.session_polling,
        sleep=sleep,
    )

    return SessionOutputs(
        session_id=session.id,
        ssh_command=session.ssh_command,
        public_ip=public_ip,
        warnings=warnings,
    )


async def with_deadline(coro: Awaitable[T], seconds: float | None) -> T:
    """Aplica un límite global a una ejecución (sin límite si `seconds` es None)."""

    if seconds is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError as exc:
        raise PollingTimeoutError("Run did not complete", seconds) from exc


async def close_session(
    *,
    client: BastionClient,
    bastion_id: str,
    public_ip: str,
    hooks: ReconcileHooks | None = None,
) -> bool:
    """Teardown: retira de la allow-list la IP que añadió `open_session`."""

    return await remove_current_ip(client, bastion_id, public_ip, hooks)
