"""
codec.py - Canonical MessagePack serialization of the DatabaseSet.

The whole collection is stored as one payload (no partial updates),
wrapped in an envelope carrying the schema version. Keys are sorted
so identical state always produces identical bytes.
"""

from typing import Any

import msgpack

from tinyrdbms.config import SCHEMA_VERSION
from tinyrdbms.errors import StorageError
from tinyrdbms.models import DatabaseSet, database_from_dict, database_to_dict


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _canonical(value[k]) for k in sorted(value.keys())}
    if isinstance(value, list):
        return [_canonical(v) for v in value]
    return value


def pack_database_set(database_set: DatabaseSet) -> bytes:
    """
    Serialize a DatabaseSet to canonical MessagePack.

    Raises:
        StorageError: If a cell holds a value MessagePack cannot encode
    """
    envelope = {
        "schema_version": SCHEMA_VERSION,
        "databases": [database_to_dict(db) for db in database_set],
    }
    try:
        return msgpack.packb(_canonical(envelope), use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise StorageError(
            f"Cannot serialize databases to MessagePack: {e}",
            operation="pack",
        ) from e


def unpack_database_set(data: bytes) -> DatabaseSet:
    """
    Deserialize a DatabaseSet.

    Raises:
        StorageError: If the payload is malformed or from a newer schema
    """
    try:
        envelope = msgpack.unpackb(data, raw=False)
    except (msgpack.UnpackException, ValueError) as e:
        raise StorageError(
            f"Cannot deserialize MessagePack: {e}",
            operation="unpack",
        ) from e

    if not isinstance(envelope, dict) or "databases" not in envelope:
        raise StorageError(
            f"Expected database envelope, got {type(envelope).__name__}",
            operation="unpack",
        )
    version = envelope.get("schema_version", SCHEMA_VERSION)
    if version > SCHEMA_VERSION:
        raise StorageError(
            f"Payload schema version {version} is newer than supported {SCHEMA_VERSION}",
            operation="unpack",
        )

    try:
        return DatabaseSet([database_from_dict(db) for db in envelope["databases"]])
    except (KeyError, TypeError) as e:
        raise StorageError(
            f"Malformed database payload: {e}",
            operation="unpack",
        ) from e
