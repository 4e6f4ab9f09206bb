"""Espera acotada sobre un predicado asíncrono.

Los cambios de estado del proveedor (sesión ACTIVE, plugin RUNNING) son
eventualmente consistentes: se consultan a intervalo fijo hasta un máximo de
intentos. Los errores del predicado no se reintentan.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from core.domain.errors import PollingTimeoutError

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollingPolicy:
    interval_seconds: float
    max_attempts: int

    @property
    def max_wait_seconds(self) -> float:
        return self.max_attempts * self.interval_seconds


SESSION_POLLING = PollingPolicy(interval_seconds=2.0, max_attempts=90)
PLUGIN_POLLING = PollingPolicy(interval_seconds=5.0, max_attempts=120)


async def wait_until(
    predicate: Callable[[], Awaitable[bool]],
    *,
    policy: PollingPolicy,
    error_message: str,
    sleep: Sleep = asyncio.sleep,
) -> None:
    for _ in range(policy.max_attempts):
        if await predicate():
            return
        await sleep(policy.interval_seconds)

    raise PollingTimeoutError(error_message, policy.max_wait_seconds)
