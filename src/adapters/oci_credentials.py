"""Resolución de credenciales OCI.

Orden de fuentes (la primera válida gana):
1) Settings explícitos (`BASTION_SESSION_OCI_*` / opciones de la CLI)
2) Variables de entorno de la OCI CLI (`OCI_CLI_*`)
3) Fichero de configuración OCI (`~/.oci/config`, perfil configurable)

Cada fuente es un intento falible que devuelve un resultado; los motivos de
fallo se acumulan para el diagnóstico final en lugar de perderse.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

import oci
from oci.regions import is_region

from core.config import AppSettings
from core.domain.errors import CredentialsError
from core.services.hooks import ReconcileHooks


@dataclass(frozen=True)
class OciCredentials:
    user: str
    tenancy: str
    fingerprint: str
    key_content: str
    region: str

    def to_sdk_config(self) -> dict[str, str]:
        return {
            "user": self.user,
            "tenancy": self.tenancy,
            "fingerprint": self.fingerprint,
            "key_content": self.key_content,
            "region": self.region,
        }


@dataclass(frozen=True)
class CredentialAttempt:
    source: str
    credentials: OciCredentials | None = None
    error: str | None = None


def normalize_key_content(value: str) -> str:
    # Los secretos de CI suelen llegar con "\n" literales.
    return value.replace("\\n", "\n").strip()


def validate_region(region: str | None) -> str:
    value = (region or "").strip()
    if not value or not is_region(value):
        raise CredentialsError(f"Invalid OCI region: {region}")
    return value


def credentials_from_settings(settings: AppSettings) -> OciCredentials:
    required = {
        "oci_user": settings.oci_user,
        "oci_tenancy": settings.oci_tenancy,
        "oci_fingerprint": settings.oci_fingerprint,
        "oci_key_content": settings.oci_key_content,
        "oci_region": settings.oci_region,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise CredentialsError(f"Missing settings: {', '.join(missing)}")

    return OciCredentials(
        user=str(settings.oci_user),
        tenancy=str(settings.oci_tenancy),
        fingerprint=str(settings.oci_fingerprint),
        key_content=normalize_key_content(str(settings.oci_key_content)),
        region=validate_region(settings.oci_region),
    )


def credentials_from_env(environ: Mapping[str, str]) -> OciCredentials:
    for name in (
        "OCI_CLI_TENANCY",
        "OCI_CLI_USER",
        "OCI_CLI_FINGERPRINT",
        "OCI_CLI_KEY_CONTENT",
        "OCI_CLI_REGION",
    ):
        if not environ.get(name):
            raise CredentialsError(f"{name} environment variable is required and not set")

    return OciCredentials(
        user=environ["OCI_CLI_USER"],
        tenancy=environ["OCI_CLI_TENANCY"],
        fingerprint=environ["OCI_CLI_FINGERPRINT"],
        key_content=normalize_key_content(environ["OCI_CLI_KEY_CONTENT"]),
        region=validate_region(environ["OCI_CLI_REGION"]),
    )


def credentials_from_file(path: Path | None = None, profile: str = "DEFAULT") -> OciCredentials:
    location = str(path) if path else oci.config.DEFAULT_LOCATION
    try:
        config = oci.config.from_file(file_location=location, profile_name=profile)
    except (oci.exceptions.ClientError, ValueError) as exc:
        raise CredentialsError(f"Failed to read OCI config file {location}: {exc}") from exc

    for key in ("user", "tenancy", "fingerprint", "key_file"):
        if not config.get(key):
            raise CredentialsError(f"{key} is required in OCI config file")

    key_file = Path(str(config["key_file"])).expanduser()
    try:
        key_content = normalize_key_content(key_file.read_text(encoding="utf-8"))
    except OSError:
        key_content = ""
    if not key_content:
        raise CredentialsError("key_file does not exist or is empty")

    return OciCredentials(
        user=config["user"],
        tenancy=config["tenancy"],
        fingerprint=config["fingerprint"],
        key_content=key_content,
        region=validate_region(config.get("region")),
    )


def _attempt(source: str, loader: Callable[[], OciCredentials]) -> CredentialAttempt:
    try:
        return CredentialAttempt(source=source, credentials=loader())
    except CredentialsError as exc:
        return CredentialAttempt(source=source, error=str(exc))


def default_sources(
    settings: AppSettings,
    environ: Mapping[str, str],
) -> list[tuple[str, Callable[[], OciCredentials]]]:
    return [
        ("settings", lambda: credentials_from_settings(settings)),
        ("environment", lambda: credentials_from_env(environ)),
        ("config file", lambda: credentials_from_file(settings.oci_config_file, settings.oci_profile)),
    ]


def resolve_credentials(
    sources: Sequence[tuple[str, Callable[[], OciCredentials]]],
    hooks: ReconcileHooks | None = None,
) -> OciCredentials:
    hooks = hooks or ReconcileHooks()
    failures: list[str] = []

    for source, loader in sources:
        attempt = _attempt(source, loader)
        if attempt.credentials is not None:
            hooks.debug(f"Using OCI credentials from {source}")
            return attempt.credentials
        hooks.debug(f"Failed to parse OCI credentials from {source}: {attempt.error}")
        failures.append(f"{source}: {attempt.error}")

    raise CredentialsError(
        "Failed to parse OCI credentials. Provide them via settings/options, "
        "OCI_CLI_* environment variables or an OCI config file.",
        reasons=failures,
    )
