"""
payroll_engines.tracer -- PAYROLL_ENGINE_TRACE records for calculator calls.

Every salary calculator is decorated with ``@traced_engine``.  Each call logs
the engine name and version, a fingerprint of the arguments that determine
the result, and how long the call took.  Two breakdowns with the same
fingerprints were computed from the same inputs.

The decorator reads arguments and writes one log record.  It never alters
inputs or results, so engines stay pure.

Usage:
    @traced_engine("proration", "1.0", fingerprint_fields=("hire_date",))
    def calculate(self, hire_date, termination_date, ...):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import time
from collections.abc import Callable
from typing import Any

from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.hashing import hash_payload

_logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16


def _plain(value: Any) -> Any:
    """Dataclass DTOs (allowances, windows, attendance) become dicts."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """
    Hash the named arguments.

    Positional and keyword spellings of the same call hash equal, and a
    field the call did not pass is hashed as null.
    """
    selected = {name: _plain(arguments.get(name)) for name in fingerprint_fields}
    return hash_payload(selected)[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(
                    fingerprint_fields, bound.arguments
                )

            started = time.monotonic()
            result = func(*args, **kwargs)

            _logger.info(
                "PAYROLL_ENGINE_TRACE",
                extra={
                    "trace_type": "PAYROLL_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
