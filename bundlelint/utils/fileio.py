"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML if the file exists, otherwise ``None``.

    Parse errors propagate as :class:`yaml.YAMLError`, bad bytes as
    :class:`UnicodeDecodeError`.
    """

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def write_text_file(path: Path, payload: str) -> None:
    """Write ``payload`` as UTF-8, creating parent directories as needed."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")
