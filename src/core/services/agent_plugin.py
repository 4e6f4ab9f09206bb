"""Reconciliación del plugin "Bastion" del Oracle Cloud Agent.

Las sesiones Managed SSH necesitan que el plugin esté habilitado y corriendo
en la instancia destino. El estado deseado (config de la instancia) y el
estado en ejecución (plugin) son señales independientes y eventualmente
consistentes, así que tras decidir se hace polling hasta RUNNING.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from core.domain.errors import ResourceNotFoundError, UnsupportedStateError
from core.domain.models import (
    InstanceAgentPlugin,
    PluginConfig,
    PluginDesiredState,
    PluginStatus,
)
from core.interfaces.cloud import ComputeClient, PluginClient
from core.polling import PLUGIN_POLLING, PollingPolicy, Sleep, wait_until
from core.services.hooks import ReconcileHooks

BASTION_PLUGIN_NAME = "Bastion"

_UNSUPPORTED_STATUSES = frozenset({PluginStatus.NOT_SUPPORTED, PluginStatus.INVALID})


class PluginDecision(str, Enum):
    ALREADY_SATISFIED = "already_satisfied"
    NEEDS_ENABLE = "needs_enable"
    UNSUPPORTED = "unsupported"
    WAIT = "wait"


def classify_plugin(status: PluginStatus, desired_state: PluginDesiredState) -> PluginDecision:
    if status in _UNSUPPORTED_STATUSES:
        return PluginDecision.UNSUPPORTED
    if desired_state is PluginDesiredState.ENABLED and status is PluginStatus.RUNNING:
        return PluginDecision.ALREADY_SATISFIED
    if desired_state is PluginDesiredState.DISABLED:
        return PluginDecision.NEEDS_ENABLE
    return PluginDecision.WAIT


async def _get_plugin(
    plugins: PluginClient, compartment_id: str, instance_id: str
) -> InstanceAgentPlugin:
    plugin = await plugins.get_instance_agent_plugin(
        compartment_id, instance_id, BASTION_PLUGIN_NAME
    )
    if plugin is None:
        raise ResourceNotFoundError(f"{BASTION_PLUGIN_NAME} plugin", instance_id)
    return plugin


async def enable_bastion_plugin(
    compute: ComputeClient,
    plugins: PluginClient,
    instance_id: str,
    hooks: ReconcileHooks | None = None,
    *,
    policy: PollingPolicy = PLUGIN_POLLING,
    sleep: Sleep = asyncio.sleep,
) -> PluginDecision:
    """Habilita el plugin si hace falta y espera a que esté RUNNING.

    Como mucho emite un `update_instance`. Devuelve la decisión tomada.
    """

    hooks = hooks or ReconcileHooks()

    instance = await compute.get_instance(instance_id)
    if instance is None:
        raise ResourceNotFoundError("Instance", instance_id)

    plugin = await _get_plugin(plugins, instance.compartment_id, instance_id)

    if plugin.status in _UNSUPPORTED_STATUSES:
        raise UnsupportedStateError(
            f"{BASTION_PLUGIN_NAME} plugin not supported for instance {instance_id}"
        )

    agent_config = instance.agent_config
    if agent_config is None:
        raise UnsupportedStateError(
            f"Oracle Cloud Agent config not found for instance {instance_id}"
        )

    if agent_config.plugins_config is None:
        hooks.warning(f"Oracle Cloud Agent plugins config not found for instance {instance_id}")

    plugins_config = list(agent_config.plugins_config or [])
    bastion_config = next(
        (config for config in plugins_config if config.name == BASTION_PLUGIN_NAME),
        None,
    )
    if bastion_config is None:
        hooks.warning(f"{BASTION_PLUGIN_NAME} plugin config not found for instance {instance_id}")

    desired_state = bastion_config.desired_state if bastion_config else PluginDesiredState.UNKNOWN
    decision = classify_plugin(plugin.status, desired_state)

    if decision is PluginDecision.ALREADY_SATISFIED:
        hooks.info(f"{BASTION_PLUGIN_NAME} plugin already enabled for instance {instance_id}")
        return decision

    if decision is PluginDecision.NEEDS_ENABLE:
        hooks.debug(
            f"{BASTION_PLUGIN_NAME} plugin disabled for instance {instance_id}, attempting to enable"
        )
        await compute.update_instance(
            instance_id,
            plugins_config=[
                *(config for config in plugins_config if config.name != BASTION_PLUGIN_NAME),
                PluginConfig(name=BASTION_PLUGIN_NAME, desired_state=PluginDesiredState.ENABLED),
            ],
        )
        hooks.info(f"{BASTION_PLUGIN_NAME} plugin enabled for instance {instance_id}")

    hooks.info(f"Waiting for {BASTION_PLUGIN_NAME} plugin to be running...")

    async def is_running() -> bool:
        current = await _get_plugin(plugins, instance.compartment_id, instance_id)
        return current.status is PluginStatus.RUNNING

    await wait_until(
        is_running,
        policy=policy,
        error_message=(
            f"{BASTION_PLUGIN_NAME} plugin did not reach status {PluginStatus.RUNNING.value} "
            f"for instance {instance_id}"
        ),
        sleep=sleep,
    )

    hooks.info(f"{BASTION_PLUGIN_NAME} plugin is running for instance {instance_id}")
    return decision
