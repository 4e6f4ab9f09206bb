"""Adaptador OCI: implementa los contratos de `core.interfaces.cloud`.

Por qué un adaptador:
- El SDK oficial (`oci`) es síncrono; aquí cada llamada se ejecuta en un hilo
  (`asyncio.to_thread`) para que el Core siga siendo asíncrono.
- Convierte los modelos del SDK a modelos del dominio (vía `to_dict`)
  y los 404 en `None`; el resto de errores de servicio en `CloudApiError`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from oci.bastion import BastionClient as OciBastionClient
from oci.bastion import models as bastion_models
from oci.compute_instance_agent import PluginClient as OciPluginClient
from oci.core import ComputeClient as OciComputeClient
from oci.core import models as core_models
from oci.exceptions import ClientError, RequestException, ServiceError
from oci.util import to_dict

from core.domain.errors import CloudApiError
from core.domain.models import (
    Bastion,
    CreateSessionDetails,
    DynamicPortForwardingTarget,
    Instance,
    InstanceAgentPlugin,
    ManagedSshTarget,
    PluginConfig,
    PortForwardingTarget,
    Session,
    SessionSummary,
    TargetResource,
)


def _to_sdk_target(target: TargetResource) -> Any:
    if isinstance(target, ManagedSshTarget):
        return bastion_models.CreateManagedSshSessionTargetResourceDetails(
            target_resource_id=target.target_resource_id,
            target_resource_operating_system_user_name=target.target_resource_operating_system_user_name,
            target_resource_port=target.target_resource_port,
            target_resource_private_ip_address=target.target_resource_private_ip_address,
        )
    if isinstance(target, PortForwardingTarget):
        return bastion_models.CreatePortForwardingSessionTargetResourceDetails(
            target_resource_id=target.target_resource_id,
            target_resource_fqdn=target.target_resource_fqdn,
            target_resource_private_ip_address=target.target_resource_private_ip_address,
            target_resource_port=target.target_resource_port,
        )
    if isinstance(target, DynamicPortForwardingTarget):
        return bastion_models.CreateDynamicPortForwardingSessionTargetResourceDetails()
    raise TypeError(f"Unsupported target resource: {target!r}")


class OciCloudClient:
    """Bastion + Compute + Instance Agent sobre una misma config OCI."""

    def __init__(
        self,
        config: dict[str, str],
        *,
        bastion_client: Any | None = None,
        compute_client: Any | None = None,
        plugin_client: Any | None = None,
    ) -> None:
        self._bastion = bastion_client or OciBastionClient(config)
        self._compute = compute_client or OciComputeClient(config)
        self._plugins = plugin_client or OciPluginClient(config)

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            response = await asyncio.to_thread(fn, *args, **kwargs)
        except ServiceError as exc:
            raise CloudApiError(
                f"OCI request failed ({exc.status} {exc.code}): {exc.message}"
            ) from exc
        except (RequestException, ClientError) as exc:
            raise CloudApiError(f"OCI request failed: {exc}") from exc
        return response.data

    async def _get_or_none(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await self._call(fn, *args, **kwargs)
        except CloudApiError as exc:
            cause = exc.__cause__
            if isinstance(cause, ServiceError) and cause.status == 404:
                return None
            raise

    # BastionClient

    async def get_bastion(self, bastion_id: str) -> Bastion | None:
        data = await self._get_or_none(self._bastion.get_bastion, bastion_id)
        return Bastion.model_validate(to_dict(data)) if data is not None else None

    async def update_bastion(self, bastion_id: str, *, allow_list: list[str]) -> None:
        details = bastion_models.UpdateBastionDetails(client_cidr_block_allow_list=list(allow_list))
        await self._call(self._bastion.update_bastion, bastion_id, details)

    async def list_sessions(
        self,
        bastion_id: str,
        *,
        display_name: str | None = None,
        limit: int = 100,
    ) -> list[SessionSummary]:
        kwargs: dict[str, Any] = {"limit": limit}
        if display_name:
            kwargs["display_name"] = display_name
        items = await self._call(self._bastion.list_sessions, bastion_id, **kwargs)
        return [SessionSummary.model_validate(to_dict(item)) for item in items or []]

    async def get_session(self, session_id: str) -> Session | None:
        data = await self._get_or_none(self._bastion.get_session, session_id)
        return Session.model_validate(to_dict(data)) if data is not None else None

    async def create_session(self, details: CreateSessionDetails) -> Session:
        sdk_details = bastion_models.CreateSessionDetails(
            bastion_id=details.bastion_id,
            display_name=details.display_name,
            key_type="PUB",
            key_details=bastion_models.PublicKeyDetails(
                public_key_content=details.public_key_content,
            ),
            session_ttl_in_seconds=details.session_ttl_in_seconds,
            target_resource_details=_to_sdk_target(details.target_resource_details),
        )
        data = await self._call(self._bastion.create_session, sdk_details)
        return Session.model_validate(to_dict(data))

    # ComputeClient

    async def get_instance(self, instance_id: str) -> Instance | None:
        data = await self._get_or_none(self._compute.get_instance, instance_id)
        return Instance.model_validate(to_dict(data)) if data is not None else None

    async def update_instance(self, instance_id: str, *, plugins_config: list[PluginConfig]) -> None:
        details = core_models.UpdateInstanceDetails(
            agent_config=core_models.UpdateInstanceAgentConfigDetails(
                plugins_config=[
                    core_models.InstanceAgentPluginConfigDetails(
                        name=config.name,
                        desired_state=config.desired_state.value,
                    )
                    for config in plugins_config
                ]
            )
        )
        await self._call(self._compute.update_instance, instance_id, details)

    # PluginClient

    async def get_instance_agent_plugin(
        self, compartment_id: str, instance_id: str, plugin_name: str
    ) -> InstanceAgentPlugin | None:
        data = await self._get_or_none(
            self._plugins.get_instance_agent_plugin,
            instance_id,
            compartment_id,
            plugin_name,
        )
        return InstanceAgentPlugin.model_validate(to_dict(data)) if data is not None else None
