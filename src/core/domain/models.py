"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta de lo que devuelve el proveedor sin acoplar el Core al
  SDK de OCI (el adaptador convierte los modelos del SDK a estos).
- El destino de una sesión es una unión etiquetada por `session_type`, así que
  cada variante declara solo los campos que tienen sentido para ella.

Nota:
- Estos modelos describen *qué* es el estado remoto, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class _ProviderEnum(str, Enum):
    """Enum tolerante: valores desconocidos del proveedor mapean a UNKNOWN."""

    @classmethod
    def _missing_(cls, value: object) -> "_ProviderEnum":
        return cls("UNKNOWN_ENUM_VALUE")


class SessionType(_ProviderEnum):
    MANAGED_SSH = "MANAGED_SSH"
    PORT_FORWARDING = "PORT_FORWARDING"
    DYNAMIC_PORT_FORWARDING = "DYNAMIC_PORT_FORWARDING"
    UNKNOWN = "UNKNOWN_ENUM_VALUE"


class SessionLifecycleState(_ProviderEnum):
    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    DELETING = "DELETING"
    DELETED = "DELETED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN_ENUM_VALUE"


class PluginStatus(_ProviderEnum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    NOT_SUPPORTED = "NOT_SUPPORTED"
    INVALID = "INVALID"
    UNKNOWN = "UNKNOWN_ENUM_VALUE"


class PluginDesiredState(_ProviderEnum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    UNKNOWN = "UNKNOWN_ENUM_VALUE"


class DnsProxyStatus(_ProviderEnum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    UNKNOWN = "UNKNOWN_ENUM_VALUE"


class Bastion(BaseModel):
    """Bastion gestionado: su allow-list controla quién puede crear sesiones."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="OCID del bastion.")
    name: str | None = Field(default=None, description="Nombre visible del bastion.")
    client_cidr_block_allow_list: list[str] = Field(
        default_factory=list,
        description="Entradas CIDR (o IPs sueltas) autorizadas a conectarse.",
    )
    dns_proxy_status: DnsProxyStatus = Field(
        default=DnsProxyStatus.UNKNOWN,
        description="Necesario para Port Forwarding por FQDN y sesiones SOCKS5.",
    )

    @field_validator("client_cidr_block_allow_list", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return [] if value is None else value


class PluginConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    desired_state: PluginDesiredState = Field(default=PluginDesiredState.UNKNOWN)


class AgentConfig(BaseModel):
    """Configuración del Oracle Cloud Agent de una instancia."""

    model_config = ConfigDict(extra="ignore")

    plugins_config: list[PluginConfig] | None = Field(
        default=None,
        description="Estado deseado por plugin; el proveedor puede omitirlo.",
    )


class Instance(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    compartment_id: str = Field(..., min_length=1)
    agent_config: AgentConfig | None = None


class InstanceAgentPlugin(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    status: PluginStatus = Field(default=PluginStatus.UNKNOWN)


class ManagedSshTarget(BaseModel):
    """Sesión SSH gestionada contra una instancia con el plugin Bastion."""

    match_fields: ClassVar[tuple[str, ...]] = (
        "session_type",
        "target_resource_id",
        "target_resource_operating_system_user_name",
        "target_resource_port",
    )

    session_type: Literal[SessionType.MANAGED_SSH] = SessionType.MANAGED_SSH
    target_resource_id: str = Field(..., min_length=1)
    target_resource_operating_system_user_name: str = Field(..., min_length=1)
    target_resource_port: int | None = Field(default=None, gt=0)
    target_resource_private_ip_address: str | None = None


class PortForwardingTarget(BaseModel):
    """Reenvío de puerto hacia una instancia, una IP privada o un FQDN."""

    match_fields: ClassVar[tuple[str, ...]] = (
        "session_type",
        "target_resource_id",
        "target_resource_fqdn",
        "target_resource_private_ip_address",
        "target_resource_port",
    )

    session_type: Literal[SessionType.PORT_FORWARDING] = SessionType.PORT_FORWARDING
    target_resource_id: str | None = None
    target_resource_fqdn: str | None = None
    target_resource_private_ip_address: str | None = None
    target_resource_port: int | None = Field(default=None, gt=0)


class DynamicPortForwardingTarget(BaseModel):
    """SOCKS5 sin destino fijo: cualquier sesión de este tipo es equivalente."""

    match_fields: ClassVar[tuple[str, ...]] = ("session_type",)

    session_type: Literal[SessionType.DYNAMIC_PORT_FORWARDING] = (
        SessionType.DYNAMIC_PORT_FORWARDING
    )


TargetResource = Annotated[
    Union[ManagedSshTarget, PortForwardingTarget, DynamicPortForwardingTarget],
    Field(discriminator="session_type"),
]


class SessionTargetDetails(BaseModel):
    """Forma "wire" del destino tal como la lista el proveedor.

    Todos los campos son opcionales: el endpoint de listado omite los que
    tienen valor por defecto.
    """

    model_config = ConfigDict(extra="ignore")

    session_type: SessionType
    target_resource_id: str | None = None
    target_resource_operating_system_user_name: str | None = None
    target_resource_port: int | None = None
    target_resource_private_ip_address: str | None = None
    target_resource_fqdn: str | None = None
    target_resource_display_name: str | None = None


class SessionSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    bastion_id: str | None = None
    display_name: str | None = None
    lifecycle_state: SessionLifecycleState = SessionLifecycleState.UNKNOWN
    target_resource_details: SessionTargetDetails


class Session(SessionSummary):
    """Sesión completa; `ssh_metadata` solo se rellena una vez ACTIVE."""

    ssh_metadata: dict[str, str] = Field(default_factory=dict)
    session_ttl_in_seconds: int | None = None
    time_created: datetime | None = None

    @field_validator("ssh_metadata", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return {} if value is None else value

    @property
    def ssh_command(self) -> str:
        return self.ssh_metadata.get("command") or ""


class CreateSessionDetails(BaseModel):
    """Petición de creación de sesión (lo que pide el usuario)."""

    bastion_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=255)
    public_key_content: str = Field(..., min_length=1)
    session_ttl_in_seconds: int = Field(..., gt=0)
    target_resource_details: TargetResource

    def target_fields(self) -> dict[str, Any]:
        return self.target_resource_details.model_dump(mode="json", exclude_none=True)
