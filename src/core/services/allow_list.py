"""Reconciliación de la allow-list del bastion.

`allow_current_ip` añade la IP pública actual (como /32) solo si ninguna
entrada la cubre ya; `remove_current_ip` retira exactamente esa entrada al
terminar. Ambas son idempotentes: si no hay nada que cambiar, solo leen.

La escritura es read-modify-write sin control de concurrencia: un cambio
externo simultáneo puede perderse.
"""

from __future__ import annotations

import asyncio

from core.domain.errors import ResourceNotFoundError
from core.domain.models import Bastion
from core.interfaces.cloud import BastionClient, IpProvider
from core.ip import host_cidr, is_ip_allowed
from core.services.hooks import ReconcileHooks


async def _require_bastion(client: BastionClient, bastion_id: str) -> Bastion:
    bastion = await client.get_bastion(bastion_id)
    if bastion is None:
        raise ResourceNotFoundError("Bastion", bastion_id)
    return bastion


async def allow_current_ip(
    client: BastionClient,
    bastion_id: str,
    ip_provider: IpProvider,
    hooks: ReconcileHooks | None = None,
) -> str:
    """Garantiza que la IP pública actual está en la allow-list.

    Devuelve la IP descubierta para que el orquestador pueda guardarla y
    retirarla en el cleanup.
    """

    hooks = hooks or ReconcileHooks()

    current_ip, bastion = await asyncio.gather(ip_provider(), _require_bastion(client, bastion_id))

    allowed_list = list(bastion.client_cidr_block_allow_list)

    if is_ip_allowed(current_ip, allowed_list):
        hooks.info(f"Current IP {current_ip} is already allowed")
        return current_ip

    hooks.info(f"Current IP {current_ip} is not allowed, adding to the list")

    allowed_list.append(host_cidr(current_ip))
    hooks.debug(f"New allowed list: {', '.join(allowed_list)}")

    await client.update_bastion(bastion_id, allow_list=allowed_list)
    return current_ip


async def remove_current_ip(
    client: BastionClient,
    bastion_id: str,
    current_ip: str,
    hooks: ReconcileHooks | None = None,
) -> bool:
    """Retira `<ip>/32` de la allow-list. Devuelve si hubo que actualizar."""

    hooks = hooks or ReconcileHooks()

    bastion = await _require_bastion(client, bastion_id)
    allowed_list = bastion.client_cidr_block_allow_list

    entry = host_cidr(current_ip)
    updated = [cidr for cidr in allowed_list if cidr != entry]

    if len(updated) == len(allowed_list):
        hooks.info(f"Current IP {current_ip} was already removed")
        return False

    hooks.info(f"Removing current IP {current_ip} from the list")
    await client.update_bastion(bastion_id, allow_list=updated)
    return True
