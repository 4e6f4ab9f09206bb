"""Descubrimiento de la IP pública (IPv4) del runner.

Usa un endpoint de texto plano tipo ipify; el cuerpo debe ser una IPv4.
"""

from __future__ import annotations

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import BastionSessionError
from core.ip import parse_ipv4


class PublicIpError(BastionSessionError):
    """No se pudo determinar la IP pública actual."""


async def fetch_public_ipv4(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    settings = settings or AppSettings()

    try:
        async with build_async_client(settings, transport=transport) as client:
            resp = await client.get(settings.public_ip_url)
    except httpx.HTTPError as exc:
        raise PublicIpError(f"Failed to fetch public IP from {settings.public_ip_url}: {exc}") from exc

    if resp.status_code != 200:
        raise PublicIpError(
            f"Failed to fetch public IP from {settings.public_ip_url}: HTTP {resp.status_code}"
        )

    return str(parse_ipv4(resp.text))
