"""Tool configuration.

Settings are resolved in three layers, later layers winning:

1. ``metareg.yaml`` in the working directory (or an explicit ``--config``)
2. ``METAREG_*`` environment variables
3. command-line options
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from metareg.metadata import MAX_STATEMENT_SIZE

DEFAULT_CONFIG_FILE = "metareg.yaml"
ENV_PREFIX = "METAREG_"

PRODUCTION_BRANCH = "production"
TESTING_BRANCH = "testing"


@dataclass
class RegistryConfig:
    """Resolved tool configuration."""

    registry_dir: str = "."
    git_url: str = ""
    git_branch: str = PRODUCTION_BRANCH
    signer_key: str = "entity.pem"  # PEM-encoded Ed25519 entity key
    max_statement_size: int = MAX_STATEMENT_SIZE


def load_config(path: str | Path | None = None) -> RegistryConfig:
    """Load configuration from a YAML file and the environment.

    A missing default config file is not an error; a missing explicit one is.
    """
    data: dict = {}
    if path is not None:
        data = _read_yaml(Path(path))
    elif Path(DEFAULT_CONFIG_FILE).exists():
        data = _read_yaml(Path(DEFAULT_CONFIG_FILE))

    known = {f.name: f for f in fields(RegistryConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    values = dict(data)
    for name in known:
        env_value = os.environ.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value

    values = {name: _coerce(name, value) for name, value in values.items()}

    return RegistryConfig(**values)


def _read_yaml(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: configuration must be a mapping")
    return data


def _coerce(name: str, value: object) -> object:
    if name == "max_statement_size":
        if isinstance(value, str):
            try:
                value = int(value)
            except ValueError as e:
                raise ValueError(f"{name} must be an integer: {value!r}") from e
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{name} must be a positive integer: {value!r}")
        return value

    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string: {value!r}")
    return value
