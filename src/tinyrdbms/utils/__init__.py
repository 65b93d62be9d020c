"""
utils - Identifier and timestamp helpers.
"""

from tinyrdbms.utils.ids import generate_uuid_v7, new_id, utc_now_iso

__all__ = ["generate_uuid_v7", "new_id", "utc_now_iso"]
