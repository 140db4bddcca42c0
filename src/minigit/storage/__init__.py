"""Storage layer for minigit.

This module provides the canonical object encoding, the content-addressable
object store, and the tree and commit object builders and readers.
"""

from minigit.storage.commit_builder import (
    Commit,
    CommitBuilder,
    Identity,
    Signature,
    Timestamp,
    format_commit,
    parse_commit,
)
from minigit.storage.encoding import (
    ObjectKind,
    compute_object_id,
    decode_object,
    encode_object,
    object_digest,
)
from minigit.storage.errors import (
    InvalidInputError,
    ObjectDecodeError,
    ObjectNotFoundError,
    ObjectStoreError,
    PersistenceError,
)
from minigit.storage.object_reader import ObjectReader, parse_tree
from minigit.storage.object_store import ObjectStore
from minigit.storage.tree_builder import (
    FileMode,
    TreeBuilder,
    TreeEntry,
    file_mode_for,
    serialize_tree,
)

__all__ = [
    "ObjectStore",
    "ObjectReader",
    "ObjectKind",
    "encode_object",
    "decode_object",
    "object_digest",
    "compute_object_id",
    "TreeBuilder",
    "TreeEntry",
    "FileMode",
    "file_mode_for",
    "serialize_tree",
    "parse_tree",
    "CommitBuilder",
    "Commit",
    "Identity",
    "Signature",
    "Timestamp",
    "format_commit",
    "parse_commit",
    "ObjectStoreError",
    "ObjectNotFoundError",
    "ObjectDecodeError",
    "PersistenceError",
    "InvalidInputError",
]
