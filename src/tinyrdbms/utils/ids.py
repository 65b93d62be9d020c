"""
ids.py - Identifier generation.

Database, table, column and row ids are UUID v7 hex strings:
time-ordered, so rows inserted later sort later, and never reused.
"""

import os
import time
from datetime import datetime, timezone


def generate_uuid_v7() -> bytes:
    """
    Generate a UUID v7 (time-ordered) as raw 16 bytes.

    Structure:
    - 48 bits: Timestamp (ms)
    - 4 bits: Version (7)
    - 12 bits: rand_a
    - 2 bits: Variant (10)
    - 62 bits: rand_b
    """
    t_ms = int(time.time() * 1000)

    # 48 bits time (6 bytes)
    t_bytes = t_ms.to_bytes(8, byteorder="big")[2:]

    r = bytearray(os.urandom(10))

    # Byte 6 of the result carries the version in its high nibble
    r[0] = (r[0] & 0x0F) | 0x70

    # Byte 8 of the result carries the variant in its top two bits
    r[2] = (r[2] & 0x3F) | 0x80

    return t_bytes + bytes(r)


def new_id() -> str:
    """New entity id as a 32-character hex string."""
    return generate_uuid_v7().hex()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
