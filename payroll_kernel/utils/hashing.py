"""
Stable fingerprints for configuration and engine inputs.

``hash_payload`` is what ``PayrollConfig.fingerprint`` and the engine
tracer log, so two runs over the same salary inputs can be matched by
digest alone.
"""

import hashlib
import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def _encode(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        # 100000 and 100000.00 are the same salary
        return str(obj.normalize())
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (UUID, Enum)):
        return str(obj.value if isinstance(obj, Enum) else obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Cannot fingerprint {type(obj).__name__}")


def canonicalize_json(data: Any) -> str:
    """Sorted-key, whitespace-free JSON with Decimal/date/UUID normalised."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_encode)


def hash_payload(payload: dict) -> str:
    return hashlib.sha256(canonicalize_json(payload).encode("utf-8")).hexdigest()
