"""Errores del dominio.

Por qué una jerarquía propia:
- La CLI solo necesita capturar `BastionSessionError` para convertir cualquier
  fallo fatal en un mensaje legible y un exit code.
- Cada subclase identifica la categoría (no encontrado, estado no soportado,
  timeout, validación) sin introducir códigos estructurados.
"""

from __future__ import annotations


class BastionSessionError(Exception):
    """Base de todos los errores fatales de una ejecución."""


class ResourceNotFoundError(BastionSessionError):
    """El recurso (bastion, instancia, sesión) no existe en el proveedor."""

    def __init__(self, kind: str, resource_id: str) -> None:
        super().__init__(f"{kind} not found: {resource_id}")
        self.kind = kind
        self.resource_id = resource_id


class UnsupportedStateError(BastionSessionError):
    """Estado del proveedor que reintentar no puede cambiar."""


class PollingTimeoutError(BastionSessionError):
    """Se agotaron los intentos de polling sin alcanzar el estado deseado."""

    def __init__(self, message: str, elapsed_seconds: float) -> None:
        super().__init__(f"{message} after {elapsed_seconds:g} seconds")
        self.elapsed_seconds = elapsed_seconds


class InvalidInputError(BastionSessionError):
    """Entrada mal formada (IPs, tipo de sesión, puertos, TTL)."""


class CredentialsError(BastionSessionError):
    """Ninguna fuente de credenciales OCI produjo una configuración válida."""

    def __init__(self, message: str, reasons: list[str] | None = None) -> None:
        super().__init__(message)
        self.reasons = list(reasons or [])


class CloudApiError(BastionSessionError):
    """Fallo inesperado del SDK/API del proveedor."""
