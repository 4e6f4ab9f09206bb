"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/OCI) lean config de forma consistente.
- Las opciones de la CLI sobreescriben estos valores; estos a los defaults.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.polling import PollingPolicy


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "bastion-session"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "bastion-session"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "bastion-session"
    return Path.home() / ".config" / "bastion-session"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def get_default_state_file() -> Path:
    return get_user_config_dir() / "state.json"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v})

    lines = ["# bastion-session user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="BASTION_SESSION_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    # Sesión
    bastion_id: str | None = Field(default=None, description="OCID del bastion.")
    session_type: str | None = Field(
        default=None,
        description="MANAGED_SSH, PORT_FORWARDING o DYNAMIC_PORT_FORWARDING.",
    )
    target_resource_id: str | None = None
    target_resource_fqdn: str | None = None
    target_resource_private_ip: str | None = None
    target_resource_port: int | None = Field(default=None, gt=0)
    target_resource_user: str | None = Field(
        default=None,
        description="Usuario del sistema operativo (Managed SSH).",
    )
    public_key: str | None = Field(default=None, description="Clave pública SSH (contenido).")
    public_key_file: Path | None = Field(default=None, description="Ruta a la clave pública SSH.")
    session_ttl_seconds: int = Field(default=10_800, gt=0)
    session_display_name: str | None = Field(
        default=None,
        description="Nombre de la sesión; por defecto gha-<GITHUB_RUN_ID>.",
    )
    auto_enable_bastion_plugin: bool = Field(
        default=False,
        description="Habilitar el plugin Bastion en sesiones Managed SSH.",
    )

    # Credenciales OCI explícitas (si faltan: OCI_CLI_* y luego ~/.oci/config)
    oci_user: str | None = None
    oci_tenancy: str | None = None
    oci_fingerprint: str | None = None
    oci_key_content: str | None = None
    oci_region: str | None = None
    oci_config_file: Path | None = Field(default=None, description="Ruta alternativa a ~/.oci/config.")
    oci_profile: str = Field(default="DEFAULT", min_length=1)

    # HTTP (descubrimiento de IP pública)
    http_timeout_seconds: float = Field(default=20.0, gt=0)
    user_agent: str = Field(default="bastion-session/0.1", min_length=1)
    public_ip_url: str = Field(default="https://api.ipify.org", min_length=8)

    # Polling
    session_poll_interval_seconds: float = Field(default=2.0, gt=0)
    session_poll_max_attempts: int = Field(default=90, ge=1)
    plugin_poll_interval_seconds: float = Field(default=5.0, gt=0)
    plugin_poll_max_attempts: int = Field(default=120, ge=1)
    run_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Límite global de una ejecución de `open` (sin límite por defecto).",
    )

    # Estado entre procesos (open -> cleanup) y salidas
    state_file: Path = Field(default_factory=get_default_state_file)
    output_file: Path | None = Field(
        default_factory=lambda: Path(os.environ["GITHUB_OUTPUT"]) if os.environ.get("GITHUB_OUTPUT") else None,
        description="Fichero key=value para las salidas (GITHUB_OUTPUT en Actions).",
    )

    @property
    def session_polling(self) -> PollingPolicy:
        return PollingPolicy(
            interval_seconds=self.session_poll_interval_seconds,
            max_attempts=self.session_poll_max_attempts,
        )

    @property
    def plugin_polling(self) -> PollingPolicy:
        return PollingPolicy(
            interval_seconds=self.plugin_poll_interval_seconds,
            max_attempts=self.plugin_poll_max_attempts,
        )
