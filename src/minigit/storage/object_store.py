"""Content-addressable object storage for minigit.

This module implements a Git-compatible loose object store. Each object is
zlib-compressed and stored in .git/objects/ under its SHA-1 id, with
automatic deduplication and atomic, exclusive publication.
"""

import os
import tempfile
import zlib
from pathlib import Path
from typing import Iterator, Tuple

from loguru import logger

from minigit.constants import (
    COMPRESSION_LEVEL,
    HASH_LENGTH,
    MIN_ABBREV_LENGTH,
    OBJECT_FILE_MODE,
    OBJECTS_DIR,
)
from minigit.storage.encoding import (
    ObjectKind,
    compute_object_id,
    decode_object,
    encode_object,
    object_digest,
    validate_object_id,
)
from minigit.storage.errors import (
    InvalidInputError,
    ObjectDecodeError,
    ObjectNotFoundError,
    PersistenceError,
)


class ObjectStore:
    """Content-addressable storage for blob, tree and commit objects.

    Objects are written once and never modified. Writing an object that is
    already present is a successful no-op.

    Storage layout:
        .git/objects/<id[:2]>/<id[2:]>      # zlib("<kind> <len>\\0<payload>")

    Attributes:
        git_dir: Path to the repository metadata directory
        objects_dir: Path to the objects directory

    Example:
        >>> store = ObjectStore(Path(".git"))
        >>> object_id = store.put(ObjectKind.BLOB, b"hello\\n")
        >>> store.get(object_id)
        (<ObjectKind.BLOB: 'blob'>, b'hello\\n')
    """

    def __init__(self, git_dir: Path) -> None:
        """Initialize the object store.

        Args:
            git_dir: Path to .git directory

        Raises:
            ValueError: If git_dir doesn't exist
        """
        self.git_dir = Path(git_dir)
        self.objects_dir = self.git_dir / OBJECTS_DIR

        if not self.git_dir.exists():
            raise ValueError(f"Repository directory not found: {git_dir}")

    def put(self, kind: ObjectKind, payload: bytes) -> str:
        """Write an object to the store.

        The compressed object is written to a temporary file in its shard
        directory and then hard-linked to its final name. Linking fails if
        the name is taken, which makes publication exclusive: an existing
        object is left untouched and its id is returned (deduplication).

        Args:
            kind: Object kind
            payload: Raw object payload

        Returns:
            Object id (40 hex characters)

        Raises:
            PersistenceError: If the object cannot be written

        Example:
            >>> id1 = store.put(ObjectKind.BLOB, b"data")
            >>> id2 = store.put(ObjectKind.BLOB, b"data")
            >>> assert id1 == id2  # Deduplication
        """
        encoded = encode_object(kind, payload)
        object_id = object_digest(encoded).hex()
        object_path = self.object_path(object_id)

        if object_path.exists():
            logger.debug(f"Object {object_id} already stored")
            return object_id

        data = zlib.compress(encoded, COMPRESSION_LEVEL)

        try:
            object_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=object_path.parent,
                prefix=".tmp_",
                suffix=".obj",
            )
        except OSError as e:
            raise PersistenceError(f"Cannot create object {object_id}: {e}") from e

        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, OBJECT_FILE_MODE)

            try:
                os.link(tmp_path, object_path)
            except FileExistsError:
                logger.debug(f"Object {object_id} published concurrently")
                return object_id

            logger.debug(f"Stored {ObjectKind(kind).value} {object_id} ({len(payload)} bytes)")
            return object_id

        except OSError as e:
            raise PersistenceError(f"Cannot write object {object_id}: {e}") from e

        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

    def get(self, object_id: str, verify: bool = False) -> Tuple[ObjectKind, bytes]:
        """Read an object from the store.

        Args:
            object_id: Object id (40 hex characters)
            verify: Whether to recompute and check the object's digest

        Returns:
            Tuple of (kind, payload)

        Raises:
            InvalidInputError: If object_id is not a valid id
            ObjectNotFoundError: If the object doesn't exist
            ObjectDecodeError: If the object is corrupt or malformed
            PersistenceError: If the object file cannot be read
        """
        validate_object_id(object_id)
        object_path = self.object_path(object_id)

        try:
            with open(object_path, "rb") as f:
                data = f.read()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"Object not found: {object_id}") from e
        except OSError as e:
            raise PersistenceError(f"Cannot read object {object_id}: {e}") from e

        try:
            encoded = zlib.decompress(data)
        except zlib.error as e:
            raise ObjectDecodeError(f"Object {object_id} is not a valid zlib stream: {e}") from e

        if verify:
            actual_id = object_digest(encoded).hex()
            if actual_id != object_id:
                raise ObjectDecodeError(
                    f"Object corrupted: expected {object_id}, got {actual_id}"
                )

        try:
            return decode_object(encoded)
        except ObjectDecodeError as e:
            raise ObjectDecodeError(f"Object {object_id}: {e}") from e

    def exists(self, object_id: str) -> bool:
        """Check if an object exists in the store.

        Args:
            object_id: Object id

        Returns:
            True if the object is stored, False otherwise (including for
            malformed ids)
        """
        try:
            validate_object_id(object_id)
        except InvalidInputError:
            return False

        return self.object_path(object_id).is_file()

    def compute_id(self, kind: ObjectKind, payload: bytes) -> str:
        """Compute an object's id without writing it."""
        return compute_object_id(kind, payload)

    def resolve(self, prefix: str) -> str:
        """Expand an abbreviated object id.

        Args:
            prefix: Leading hex characters of an id (at least 4)

        Returns:
            The unique full id starting with prefix

        Raises:
            InvalidInputError: If prefix is malformed or ambiguous
            ObjectNotFoundError: If no stored object matches
        """
        prefix = prefix.strip().lower()

        if len(prefix) == HASH_LENGTH:
            validate_object_id(prefix)
            return prefix

        if len(prefix) < MIN_ABBREV_LENGTH or len(prefix) > HASH_LENGTH:
            raise InvalidInputError(
                f"Object id prefix must be {MIN_ABBREV_LENGTH}-{HASH_LENGTH} characters: {prefix!r}"
            )

        try:
            int(prefix, 16)
        except ValueError as e:
            raise InvalidInputError(f"Object id must be hexadecimal: {prefix!r}") from e

        shard_dir = self.objects_dir / prefix[:2]
        rest = prefix[2:]
        matches = []
        if shard_dir.is_dir():
            matches = [
                prefix[:2] + entry.name
                for entry in shard_dir.iterdir()
                if entry.name.startswith(rest) and not entry.name.startswith(".")
            ]

        if not matches:
            raise ObjectNotFoundError(f"Object not found: {prefix}")
        if len(matches) > 1:
            raise InvalidInputError(f"Ambiguous object id prefix: {prefix}")

        return matches[0]

    def iter_ids(self) -> Iterator[str]:
        """Yield the ids of all stored objects in sorted order."""
        if not self.objects_dir.is_dir():
            return

        for shard_dir in sorted(self.objects_dir.iterdir()):
            if len(shard_dir.name) != 2 or not shard_dir.is_dir():
                continue
            for entry in sorted(shard_dir.iterdir()):
                object_id = shard_dir.name + entry.name
                if len(object_id) == HASH_LENGTH and not entry.name.startswith("."):
                    yield object_id

    def object_path(self, object_id: str) -> Path:
        """Get the filesystem path for an object.

        Uses Git sharding: objects/<id[:2]>/<id[2:]>

        Example:
            >>> store.object_path("ce013625030ba8dba906f756967f9e9ca394464a")
            PosixPath('.git/objects/ce/013625030ba8dba906f756967f9e9ca394464a')
        """
        return self.objects_dir / object_id[:2] / object_id[2:]
