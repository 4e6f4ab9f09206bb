"""Checkpoint JSON entre `open` y `cleanup`.

Por qué un fichero:
- `cleanup` corre en otro proceso (p.ej. el post-step de un workflow) y
  necesita saber qué IP se añadió y en qué bastion.
- Solo guardamos valores transitorios no secretos; las credenciales se
  vuelven a resolver en el cleanup.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.domain.errors import BastionSessionError


class CheckpointError(BastionSessionError):
    """No hay checkpoint utilizable para el cleanup."""


class RunCheckpoint(BaseModel):
    bastion_id: str = Field(..., min_length=1)
    public_ip: str = Field(..., min_length=7)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def save_checkpoint(*, checkpoint: RunCheckpoint, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = checkpoint.model_dump(mode="json")
    path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return path


def load_checkpoint(path: Path) -> RunCheckpoint:
    if not path.exists():
        raise CheckpointError(f"Checkpoint not found: {path}")
    try:
        return RunCheckpoint.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise CheckpointError(f"Invalid checkpoint {path}: {exc.error_count()} error(s)") from exc


def clear_checkpoint(path: Path) -> None:
    path.unlink(missing_ok=True)
