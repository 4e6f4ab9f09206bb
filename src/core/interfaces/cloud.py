"""Contratos de los clientes del proveedor cloud.

Por qué Protocol:
- Los reconciliadores reciben clientes explícitos (sin singletons de módulo).
- El adaptador OCI y los fakes de tests son intercambiables sin herencia.
- Los métodos que consultan un recurso devuelven `None` si no existe; el Core
  decide qué significa "no encontrado" en cada caso.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

from core.domain.models import (
    Bastion,
    CreateSessionDetails,
    Instance,
    InstanceAgentPlugin,
    PluginConfig,
    Session,
    SessionSummary,
)

IpProvider = Callable[[], Awaitable[str]]


@runtime_checkable
class BastionClient(Protocol):
    async def get_bastion(self, bastion_id: str) -> Bastion | None: ...

    async def update_bastion(self, bastion_id: str, *, allow_list: list[str]) -> None: ...

    async def list_sessions(
        self,
        bastion_id: str,
        *,
        display_name: str | None = None,
        limit: int = 100,
    ) -> list[SessionSummary]: ...

    async def get_session(self, session_id: str) -> Session | None: ...

    async def create_session(self, details: CreateSessionDetails) -> Session: ...


@runtime_checkable
class ComputeClient(Protocol):
    async def get_instance(self, instance_id: str) -> Instance | None: ...

    async def update_instance(
        self, instance_id: str, *, plugins_config: list[PluginConfig]
    ) -> None: ...


@runtime_checkable
class PluginClient(Protocol):
    async def get_instance_agent_plugin(
        self, compartment_id: str, instance_id: str, plugin_name: str
    ) -> InstanceAgentPlugin | None: ...
