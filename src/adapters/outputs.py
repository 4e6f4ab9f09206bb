"""Salidas `key=value` (formato de `$GITHUB_OUTPUT`)."""

from __future__ import annotations

import uuid
from pathlib import Path


def format_output(key: str, value: str) -> str:
    if "\n" not in value:
        return f"{key}={value}\n"
    # Valores multilínea: sintaxis heredoc de GitHub Actions.
    delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
    return f"{key}<<{delimiter}\n{value}\n{delimiter}\n"


def write_outputs(*, path: Path, values: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        for key, value in values.items():
            fh.write(format_output(key, value))
    return path
