"""Directory snapshots as tree objects.

A tree object lists a directory's entries as ``(mode, name, object id)``
records sorted by the byte value of the name, so that two directories with
the same content always serialize to the same bytes.
"""

import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from minigit.constants import GIT_DIR
from minigit.storage.encoding import ObjectKind, validate_object_id
from minigit.storage.errors import InvalidInputError, PersistenceError
from minigit.storage.object_store import ObjectStore


class FileMode(str, Enum):
    """Tree entry modes and their on-disk codes."""

    DIRECTORY = "40000"
    REGULAR = "100644"
    EXECUTABLE = "100755"
    SYMLINK = "120000"

    @property
    def object_kind(self) -> ObjectKind:
        """Kind of object an entry with this mode points to."""
        return ObjectKind.TREE if self is FileMode.DIRECTORY else ObjectKind.BLOB


@dataclass(frozen=True)
class TreeEntry:
    """A single entry of a tree object.

    Attributes:
        mode: Entry mode
        name: Path segment (no separators)
        object_id: Id of the referenced blob or tree
    """

    mode: FileMode
    name: str
    object_id: str

    @property
    def sort_key(self) -> bytes:
        return os.fsencode(self.name)


def serialize_tree(entries: Iterable[TreeEntry]) -> bytes:
    """Serialize tree entries into a tree payload.

    Entries are sorted by the byte-wise value of their names regardless of
    the order they are given in.

    Args:
        entries: Tree entries in any order

    Returns:
        Concatenated ``b"<mode> <name>\\0<raw digest>"`` records

    Raises:
        InvalidInputError: If a name is invalid or repeated, or an id is
            malformed
    """
    ordered = sorted(entries, key=lambda entry: entry.sort_key)

    chunks = []
    previous: Optional[bytes] = None
    for entry in ordered:
        name = entry.sort_key
        _validate_entry_name(name)
        if name == previous:
            raise InvalidInputError(f"Duplicate tree entry name: {entry.name!r}")
        previous = name

        validate_object_id(entry.object_id)
        try:
            mode = FileMode(entry.mode)
        except ValueError as e:
            raise InvalidInputError(f"Unrecognized mode for {entry.name!r}: {entry.mode}") from e
        chunks.append(mode.value.encode("ascii") + b" " + name + b"\x00")
        chunks.append(bytes.fromhex(entry.object_id))

    return b"".join(chunks)


def _validate_entry_name(name: bytes) -> None:
    if not name or name in (b".", b".."):
        raise InvalidInputError(f"Invalid tree entry name: {name!r}")
    if b"/" in name or b"\x00" in name:
        raise InvalidInputError(f"Tree entry name contains a separator: {name!r}")


def file_mode_for(path: Path) -> FileMode:
    """Classify a filesystem entry without following symlinks.

    Args:
        path: Path to classify

    Returns:
        FileMode for the entry; any execute bit marks a file executable

    Raises:
        InvalidInputError: For sockets, FIFOs, devices and the like
        PersistenceError: If the entry cannot be stat'ed
    """
    try:
        st = os.lstat(path)
    except OSError as e:
        raise PersistenceError(f"Cannot stat {path}: {e}") from e

    if stat.S_ISLNK(st.st_mode):
        return FileMode.SYMLINK
    if stat.S_ISDIR(st.st_mode):
        return FileMode.DIRECTORY
    if stat.S_ISREG(st.st_mode):
        if st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
            return FileMode.EXECUTABLE
        return FileMode.REGULAR

    raise InvalidInputError(f"Unsupported file type: {path}")


@dataclass
class _Frame:
    """A directory whose tree is still being collected."""

    path: Path
    name: str
    pending: List[Path]
    entries: List[TreeEntry] = field(default_factory=list)


class TreeBuilder:
    """Builder for blob and tree objects from the working directory.

    The walk uses an explicit stack of directory frames instead of
    recursion, so nesting depth is not limited by the interpreter's stack.

    Attributes:
        store: ObjectStore that receives blobs and trees
        ignore: Entry names skipped at every level
    """

    def __init__(self, store: ObjectStore, ignore: Sequence[str] = (GIT_DIR,)) -> None:
        self.store = store
        self.ignore = frozenset(ignore)

    def hash_file(self, path: Path, write: bool = True) -> str:
        """Create a blob for a file or symlink.

        Symlinks are stored as the bytes of their target path.

        Args:
            path: File to hash
            write: Store the blob (True) or only compute its id (False)

        Returns:
            Blob id

        Raises:
            InvalidInputError: If path is a directory or special file
            PersistenceError: If the file cannot be read
        """
        path = Path(path)
        mode = file_mode_for(path)
        if mode is FileMode.DIRECTORY:
            raise InvalidInputError(f"Cannot hash a directory as a blob: {path}")

        content = self._read_blob_content(path, mode)
        if not write:
            return self.store.compute_id(ObjectKind.BLOB, content)
        return self.store.put(ObjectKind.BLOB, content)

    def build_tree(self, directory: Path) -> str:
        """Write the tree object for a directory and everything below it.

        Args:
            directory: Directory to snapshot

        Returns:
            Id of the directory's tree object

        Raises:
            InvalidInputError: If directory is not a directory or contains an
                unsupported entry
            PersistenceError: If reading or writing fails
        """
        directory = Path(directory)
        if file_mode_for(directory) is not FileMode.DIRECTORY:
            raise InvalidInputError(f"Not a directory: {directory}")

        stack = [_Frame(directory, directory.name, self._list_children(directory))]
        tree_id = ""

        while stack:
            frame = stack[-1]

            if not frame.pending:
                stack.pop()
                tree_id = self.store.put(ObjectKind.TREE, serialize_tree(frame.entries))
                logger.debug(f"Tree {tree_id} for {frame.path} ({len(frame.entries)} entries)")
                if stack:
                    stack[-1].entries.append(
                        TreeEntry(FileMode.DIRECTORY, frame.name, tree_id)
                    )
                continue

            child = frame.pending.pop()
            mode = file_mode_for(child)

            if mode is FileMode.DIRECTORY:
                stack.append(_Frame(child, child.name, self._list_children(child)))
                continue

            content = self._read_blob_content(child, mode)
            blob_id = self.store.put(ObjectKind.BLOB, content)
            frame.entries.append(TreeEntry(mode, child.name, blob_id))

        return tree_id

    def _list_children(self, directory: Path) -> List[Path]:
        try:
            return [
                child for child in directory.iterdir()
                if child.name not in self.ignore
            ]
        except OSError as e:
            raise PersistenceError(f"Cannot list directory {directory}: {e}") from e

    def _read_blob_content(self, path: Path, mode: FileMode) -> bytes:
        try:
            if mode is FileMode.SYMLINK:
                return os.fsencode(os.readlink(path))
            return path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e
