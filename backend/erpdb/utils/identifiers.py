from __future__ import annotations

import os
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional


def generate_uuid7() -> str:
    """
    Generate a UUIDv7 string (time-ordered).

    UUIDv7 layout per draft:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 74-bit randomness
    """
    ts_ms = int(time.time() * 1000)
    ts_bytes = ts_ms.to_bytes(6, "big", signed=False)
    rand_bytes = os.urandom(10)
    raw = bytearray(ts_bytes + rand_bytes)
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def generate_document_number(prefix: str, *, now: Optional[datetime] = None) -> str:
    """
    Build a document number such as ``WO-2026-1018-3F9A``.

    The trailing block comes from the random tail of a UUIDv7, so two numbers
    minted in the same millisecond still differ.
    """
    now = now or datetime.now(timezone.utc)
    disambiguator = generate_uuid7().replace("-", "")[-4:].upper()
    return f"{prefix}-{now:%Y}-{now:%m%d}-{disambiguator}"


def allocate_document_number(
    prefix: str,
    *,
    exists: Callable[[str], bool],
    max_attempts: int = 8,
) -> str:
    """Mint numbers until one is not taken according to ``exists``."""
    for _ in range(max_attempts):
        candidate = generate_document_number(prefix)
        if not exists(candidate):
            return candidate
    raise RuntimeError(f"Could not allocate a unique {prefix} number after {max_attempts} attempts.")
