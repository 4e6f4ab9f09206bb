"""Comprobación de IPs contra la allow-list del bastion (solo IPv4)."""

from __future__ import annotations

import ipaddress
from typing import Iterable

from core.domain.errors import InvalidInputError


def parse_ipv4(value: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(value.strip())
    except ValueError as exc:
        raise InvalidInputError(f"Invalid IPv4 address: {value}") from exc


def _parse_entry(entry: str) -> ipaddress.IPv4Network | None:
    # strict=False: "10.0.1.1/26" es válido aunque tenga bits de host.
    try:
        return ipaddress.IPv4Network(entry.strip(), strict=False)
    except ValueError:
        return None


def host_cidr(ip: str) -> str:
    """`<ip>/32`, la forma en la que añadimos/retiramos la IP actual."""

    return f"{parse_ipv4(ip)}/32"


def is_ip_allowed(
    ip: str,
    allowed_list: Iterable[str],
    *,
    ignore_invalid: bool = True,
) -> bool:
    """Indica si `ip` cae dentro de alguna entrada de `allowed_list`.

    Una IP sin prefijo cuenta como /32. Con `ignore_invalid=False` cualquier
    entrada no parseable aborta con `InvalidInputError`; por defecto se salta.
    """

    address = parse_ipv4(ip)

    for entry in allowed_list:
        network = _parse_entry(entry)
        if network is None:
            if not ignore_invalid:
                raise InvalidInputError(f"Invalid IP address in allowed list: {entry}")
            continue
        if address in network:
            return True

    return False
