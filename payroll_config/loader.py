"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into ``PayrollConfig`` instances.  Runtime
callers should use ``payroll_config.get_active_config()`` instead of calling
this module directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values or unknown keys  -> ``ConfigurationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from payroll_config.config import PayrollConfig
from payroll_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return data


def parse_config(data: dict[str, Any]) -> PayrollConfig:
    """
    Build a PayrollConfig from a plain mapping.

    Raises:
        ConfigurationError: on unknown keys or values rejected by
            PayrollConfig / TaxTable validation.
    """
    known = set(PayrollConfig.__dataclass_fields__)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown payroll configuration keys: {unknown}", key=unknown[0]
        )
    try:
        return PayrollConfig.from_dict(data)
    except (ValueError, KeyError, TypeError) as exc:
        raise ConfigurationError(str(exc)) from exc


def load_config(path: Path) -> PayrollConfig:
    """Load and validate one YAML configuration file."""
    return parse_config(load_yaml_file(path))
