"""Utility modules for the payroll kernel."""

from payroll_kernel.utils.dates import add_months
from payroll_kernel.utils.hashing import canonicalize_json, hash_payload
from payroll_kernel.utils.rounding import round_whole

__all__ = [
    "add_months",
    "canonicalize_json",
    "hash_payload",
    "round_whole",
]
