"""Typed read access to stored objects."""

import os
from typing import List, Tuple

from minigit.constants import DIGEST_SIZE
from minigit.storage.commit_builder import Commit, parse_commit
from minigit.storage.encoding import ObjectKind
from minigit.storage.errors import ObjectDecodeError
from minigit.storage.object_store import ObjectStore
from minigit.storage.tree_builder import FileMode, TreeEntry


def parse_tree(payload: bytes) -> List[TreeEntry]:
    """Parse a tree payload into entries, in stored order.

    Args:
        payload: Tree object payload

    Returns:
        List of TreeEntry

    Raises:
        ObjectDecodeError: If a record is truncated or malformed
    """
    entries = []
    offset = 0
    end = len(payload)

    while offset < end:
        nul = payload.find(b"\x00", offset)
        if nul < 0:
            raise ObjectDecodeError(f"Truncated tree entry at offset {offset}")

        mode_bytes, space, name = payload[offset:nul].partition(b" ")
        if not space or not name:
            raise ObjectDecodeError(f"Malformed tree entry at offset {offset}")

        try:
            mode = FileMode(mode_bytes.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as e:
            raise ObjectDecodeError(f"Unknown tree entry mode: {mode_bytes!r}") from e

        digest_end = nul + 1 + DIGEST_SIZE
        if digest_end > end:
            raise ObjectDecodeError(f"Truncated object id in tree entry {name!r}")

        object_id = payload[nul + 1:digest_end].hex()
        entries.append(TreeEntry(mode, os.fsdecode(name), object_id))
        offset = digest_end

    return entries


class ObjectReader:
    """Reads and interprets objects from an ObjectStore.

    `cat` returns payloads as-is; the typed readers check that the object
    is of the expected kind.

    Attributes:
        store: ObjectStore to read from
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def read(self, object_id: str) -> Tuple[ObjectKind, bytes]:
        return self.store.get(object_id)

    def cat(self, object_id: str) -> bytes:
        """Return an object's payload, whatever its kind."""
        _, payload = self.store.get(object_id)
        return payload

    def read_tree(self, tree_id: str) -> List[TreeEntry]:
        """Return the entries of a tree object in stored order.

        Raises:
            ObjectNotFoundError: If the tree doesn't exist
            ObjectDecodeError: If the object is not a well-formed tree
        """
        payload = self._read_kind(tree_id, ObjectKind.TREE)
        try:
            return parse_tree(payload)
        except ObjectDecodeError as e:
            raise ObjectDecodeError(f"Tree {tree_id}: {e}") from e

    def list_tree_names(self, tree_id: str) -> List[str]:
        """Return entry names of a tree object in stored order."""
        return [entry.name for entry in self.read_tree(tree_id)]

    def read_commit(self, commit_id: str) -> Commit:
        """Return a parsed commit object.

        Raises:
            ObjectNotFoundError: If the commit doesn't exist
            ObjectDecodeError: If the object is not a well-formed commit
        """
        payload = self._read_kind(commit_id, ObjectKind.COMMIT)
        try:
            return parse_commit(payload)
        except ObjectDecodeError as e:
            raise ObjectDecodeError(f"Commit {commit_id}: {e}") from e

    def _read_kind(self, object_id: str, expected: ObjectKind) -> bytes:
        kind, payload = self.store.get(object_id)
        if kind is not expected:
            raise ObjectDecodeError(
                f"Object {object_id} is a {kind.value}, not a {expected.value}"
            )
        return payload
