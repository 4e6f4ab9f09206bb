"""Parseo/validación de entradas de usuario hacia el dominio.

Por qué en core:
- La CLI y las variables de entorno entregan strings; aquí se convierten en
  la unión etiquetada `TargetResource` con mensajes de error estables.
"""

from __future__ import annotations

from core.domain.errors import InvalidInputError
from core.domain.models import (
    DynamicPortForwardingTarget,
    ManagedSshTarget,
    PortForwardingTarget,
    SessionType,
    TargetResource,
)
from core.utils import is_positive_int

DEFAULT_SESSION_TTL_SECONDS = 10_800


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_int(value: str | int | None) -> int | None:
    if value is None or isinstance(value, int):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def parse_port(value: str | int | None) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    port = _parse_int(value)
    if not is_positive_int(port):
        raise InvalidInputError("target-resource-port must be a positive integer if specified")
    return port


def parse_session_ttl(value: str | int | None) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_SESSION_TTL_SECONDS
    ttl = _parse_int(value)
    if ttl is None or not is_positive_int(ttl):
        raise InvalidInputError("session-ttl-seconds must be a positive integer if specified")
    return ttl


def parse_session_type(value: str | None) -> SessionType:
    normalized = (value or "").strip().upper().replace("-", "_")
    known = {member.value for member in SessionType if member is not SessionType.UNKNOWN}
    if normalized not in known:
        raise InvalidInputError(f"Invalid session type: {value}")
    return SessionType(normalized)


def parse_target_resource(
    *,
    session_type: str | None,
    target_resource_id: str | None = None,
    target_resource_fqdn: str | None = None,
    target_resource_private_ip: str | None = None,
    target_resource_port: str | int | None = None,
    target_resource_user: str | None = None,
) -> TargetResource:
    kind = parse_session_type(session_type)
    resource_id = _blank_to_none(target_resource_id)
    fqdn = _blank_to_none(target_resource_fqdn)
    private_ip = _blank_to_none(target_resource_private_ip)
    user = _blank_to_none(target_resource_user)

    if kind is SessionType.MANAGED_SSH:
        if not resource_id:
            raise InvalidInputError("target-resource-id is required for managed SSH session")
        if not user:
            raise InvalidInputError("target-resource-user is required for managed SSH session")
        return ManagedSshTarget(
            target_resource_id=resource_id,
            target_resource_operating_system_user_name=user,
            target_resource_private_ip_address=private_ip,
            target_resource_port=parse_port(target_resource_port),
        )

    if kind is SessionType.PORT_FORWARDING:
        return PortForwardingTarget(
            target_resource_id=resource_id,
            target_resource_fqdn=fqdn,
            target_resource_private_ip_address=private_ip,
            target_resource_port=parse_port(target_resource_port),
        )

    return DynamicPortForwardingTarget()

