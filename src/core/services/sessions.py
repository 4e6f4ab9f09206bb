"""Reutilización/creación de sesiones del bastion.

Flujo:
- Buscar una sesión existente (mismo bastion, mismo display name y mismo
  destino según los campos relevantes de su tipo).
- ACTIVE: se reutiliza (re-fetch para tener `ssh_metadata` fresco).
- CREATING: se espera a que pase a ACTIVE.
- Cualquier otro estado o sin coincidencia: se crea una nueva y se espera.

La búsqueda y la creación no son atómicas frente a sesiones creadas
externamente en paralelo.
"""

from __future__ import annotations

import asyncio

from core.domain.errors import ResourceNotFoundError
from core.domain.models import (
    CreateSessionDetails,
    Session,
    SessionLifecycleState,
    SessionSummary,
)
from core.interfaces.cloud import BastionClient
from core.polling import SESSION_POLLING, PollingPolicy, Sleep, wait_until
from core.services.hooks import ReconcileHooks
from core.utils import compare_fields

LIST_SESSIONS_LIMIT = 100


async def find_existing_session(
    client: BastionClient,
    details: CreateSessionDetails,
) -> SessionSummary | None:
    summaries = await client.list_sessions(
        details.bastion_id,
        display_name=details.display_name,
        limit=LIST_SESSIONS_LIMIT,
    )

    requested = details.target_fields()
    fields = details.target_resource_details.match_fields

    for summary in summaries:
        existing = summary.target_resource_details.model_dump(mode="json", exclude_none=True)
        if compare_fields(existing, requested, fields):
            return summary
    return None


async def wait_for_session(
    client: BastionClient,
    session_id: str,
    desired_state: SessionLifecycleState = SessionLifecycleState.ACTIVE,
    *,
    policy: PollingPolicy = SESSION_POLLING,
    sleep: Sleep = asyncio.sleep,
) -> Session:
    latest: Session | None = None

    async def reached() -> bool:
        nonlocal latest
        latest = await client.get_session(session_id)
        if latest is None:
            raise ResourceNotFoundError("Session", session_id)
        return latest.lifecycle_state is desired_state

    await wait_until(
        reached,
        policy=policy,
        error_message=(
            f"Session {session_id} did not reach desired state {desired_state.value}"
        ),
        sleep=sleep,
    )
    if latest is None:
        raise ResourceNotFoundError("Session", session_id)
    return latest


async def create_session(
    client: BastionClient,
    details: CreateSessionDetails,
    hooks: ReconcileHooks | None = None,
    *,
    policy: PollingPolicy = SESSION_POLLING,
    sleep: Sleep = asyncio.sleep,
) -> Session:
    """Devuelve una sesión ACTIVE para `details`, creándola solo si hace falta."""

    hooks = hooks or ReconcileHooks()

    existing = await find_existing_session(client, details)

    if existing is not None and existing.lifecycle_state is SessionLifecycleState.ACTIVE:
        hooks.info("Active session already exists")
        session = await client.get_session(existing.id)
        if session is None:
            raise ResourceNotFoundError("Session", existing.id)
        return session

    if existing is not None and existing.lifecycle_state is SessionLifecycleState.CREATING:
        hooks.info(f"Session is already being created: {existing.id}")
        hooks.info("Waiting for session to become active...")
        return await wait_for_session(client, existing.id, policy=policy, sleep=sleep)

    if existing is not None:
        hooks.debug(
            f"Ignoring session {existing.id} in state {existing.lifecycle_state.value}"
        )

    hooks.info("Session not found, creating a new one")
    created = await client.create_session(details)

    hooks.info(f"Session created: {created.id}")
    hooks.info("Waiting for session to become active...")
    return await wait_for_session(client, created.id, policy=policy, sleep=sleep)
