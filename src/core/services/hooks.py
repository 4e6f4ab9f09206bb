"""Callbacks opcionales para que la capa de UI reciba observaciones.

El Core no imprime nada: informa de su progreso mediante estos hooks y la CLI
decide cómo mostrarlo (Rich, nivel de detalle, etc.).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


def _noop(message: str) -> None:
    return None


@dataclass
class ReconcileHooks:
    info: Callable[[str], None] = _noop
    debug: Callable[[str], None] = _noop
    warning: Callable[[str], None] = _noop
