"""Canonical object encoding and content hashing.

Every object is identified by the SHA-1 digest of its canonical encoding::

    b"<kind> <payload length>" + b"\\x00" + payload

Any deviation in whitespace, casing or length formatting changes the id, so
all encoding and decoding of headers goes through this module.
"""

import hashlib
import re
from enum import Enum
from typing import Tuple

from minigit.constants import HASH_ALGORITHM, HASH_LENGTH
from minigit.storage.errors import InvalidInputError, ObjectDecodeError

_OBJECT_ID_RE = re.compile(r"^[0-9a-f]{%d}$" % HASH_LENGTH)


class ObjectKind(str, Enum):
    """Kinds of object the store knows about."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


def encode_object(kind: ObjectKind, payload: bytes) -> bytes:
    """Build the canonical encoding of an object.

    Args:
        kind: Object kind
        payload: Raw object payload

    Returns:
        Header, NUL separator and payload as one byte string

    Example:
        >>> encode_object(ObjectKind.BLOB, b"hello\\n")
        b'blob 6\\x00hello\\n'
    """
    kind = ObjectKind(kind)
    header = f"{kind.value} {len(payload)}".encode("ascii")
    return header + b"\x00" + bytes(payload)


def decode_object(data: bytes) -> Tuple[ObjectKind, bytes]:
    """Split a canonical encoding back into kind and payload.

    Args:
        data: Decompressed object bytes

    Returns:
        Tuple of (kind, payload)

    Raises:
        ObjectDecodeError: If the header is missing or malformed, or the
            declared length does not match the payload
    """
    header, sep, payload = data.partition(b"\x00")
    if not sep:
        raise ObjectDecodeError("Object header is not NUL-terminated")

    kind_bytes, space, length_bytes = header.partition(b" ")
    if not space:
        raise ObjectDecodeError(f"Malformed object header: {header!r}")

    try:
        kind = ObjectKind(kind_bytes.decode("ascii"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ObjectDecodeError(f"Unknown object kind: {kind_bytes!r}") from e

    if not length_bytes.isdigit():
        raise ObjectDecodeError(f"Non-numeric object length: {length_bytes!r}")

    length = int(length_bytes)
    if length != len(payload):
        raise ObjectDecodeError(
            f"Object length mismatch: header says {length}, got {len(payload)}"
        )

    return kind, payload


def object_digest(data: bytes) -> bytes:
    """Return the raw digest of already-encoded object bytes."""
    return hashlib.new(HASH_ALGORITHM, data).digest()


def compute_object_id(kind: ObjectKind, payload: bytes) -> str:
    """Return the hex id of an object without storing it."""
    return object_digest(encode_object(kind, payload)).hex()


def is_object_id(value: object) -> bool:
    """Check whether a value is a full lowercase hex object id."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


def validate_object_id(object_id: str) -> None:
    """Validate that a string is a full object id.

    Raises:
        InvalidInputError: If the id is not 40 lowercase hex characters
    """
    if not isinstance(object_id, str):
        raise InvalidInputError(f"Object id must be string, got {type(object_id)}")

    if not is_object_id(object_id):
        raise InvalidInputError(
            f"Object id must be {HASH_LENGTH} lowercase hex characters: {object_id!r}"
        )
