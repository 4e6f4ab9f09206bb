"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.cloud import BastionClient, ComputeClient, IpProvider, PluginClient

__all__ = [
    "BastionClient",
    "ComputeClient",
    "IpProvider",
    "PluginClient",
]
