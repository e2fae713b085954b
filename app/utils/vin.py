# app/utils/vin.py
"""
VIN helpers. A VIN is 17 characters from A-Z and 0-9, never I, O or Q.
"""

import re
from typing import Optional

VIN_LENGTH = 17
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")


def normalize_vin(raw: Optional[str]) -> str:
    """Strip whitespace and upper-case. Returns '' for None."""
    return (raw or "").strip().upper()


def vin_problem(vin: str) -> Optional[str]:
    """Describe what is wrong with an already-normalised VIN, or None if it is valid."""
    if len(vin) != VIN_LENGTH:
        return f"must be {VIN_LENGTH} characters, got {len(vin)}"
    bad = sorted(set(c for c in vin if c in "IOQ"))
    if bad:
        return f"must not contain {', '.join(bad)}"
    if not VIN_PATTERN.match(vin):
        return "must be alphanumeric"
    return None


def is_valid_vin(raw: Optional[str]) -> bool:
    return vin_problem(normalize_vin(raw)) is None


def looks_like_vin(key: str) -> bool:
    """True when a lookup key should be treated as a VIN rather than a numeric id."""
    return not key.isdigit() or len(key) == VIN_LENGTH
