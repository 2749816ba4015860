"""
payroll_config -- single public entrypoint for payroll configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive a ``PayrollConfig`` and never
    read configuration files themselves.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and ``payroll_engines``
    and below ``payroll_services`` / ``payroll_batch``.  The kernel MUST
    NEVER import from ``payroll_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ConfigurationError`` -- schema or tax table validation failed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the source path and the config
    fingerprint, tying each payroll run to the exact settings that
    governed it.
"""

from __future__ import annotations

from pathlib import Path

from payroll_config.config import PayrollConfig
from payroll_config.loader import load_config
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> PayrollConfig:
    """
    Load the payroll configuration.

    Args:
        path: YAML file to load.  Defaults to the bundled defaults.yaml.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigurationError: If validation fails.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config(source)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "source": str(source),
            "fingerprint": config.fingerprint,
            "default_currency": config.default_currency,
            "tax_currencies": sorted(config.tax_tables),
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "PayrollConfig",
    "get_active_config",
]
