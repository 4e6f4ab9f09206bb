"""Helpers puros sin dependencias de I/O."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

_MISSING = object()


def is_positive_int(value: object) -> bool:
    # bool es subclase de int; "True" no es un puerto válido.
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def compare_fields(
    a: Mapping[str, Any],
    b: Mapping[str, Any],
    fields: Iterable[str],
) -> bool:
    """Compara dos registros solo en `fields`.

    Un campo coincide si ambos lo tienen con el mismo valor, si ninguno lo
    tiene, o si uno lo tiene y el otro no lo tiene (o lo tiene a `None`).
    El listado del proveedor omite campos con valor por defecto que la
    petición de creación sí puede llevar explícitos.
    """

    for field in fields:
        left = a.get(field, _MISSING)
        right = b.get(field, _MISSING)
        if left is _MISSING or left is None:
            continue
        if right is _MISSING or right is None:
            continue
        if left != right:
            return False
    return True
