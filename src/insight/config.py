"""Config loader — environment first, then an optional YAML overlay."""

from __future__ import annotations

from pathlib import Path

import yaml

from insight.schemas.config import AppConfig


def load_config(path: str | Path | None = None) -> AppConfig:
    """Build the application config.

    Values from the YAML file win over environment variables. Raises
    ``FileNotFoundError`` if ``path`` is given but missing, and
    ``ValueError`` if the YAML content is not a mapping.
    """
    if path is None:
        return AppConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # An empty section in YAML (``cache:``) loads as None; drop it so defaults apply.
    raw = {key: value for key, value in raw.items() if value is not None}

    return AppConfig(**raw)
