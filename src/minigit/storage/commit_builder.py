"""Commit object builder and parser.

A commit payload is a small text record::

    tree <tree id>
    parent <parent id>            (only when there is a parent)
    author <name> <<email>> <unix seconds> <+HHMM>
    committer <name> <<email>> <unix seconds> <+HHMM>

    <message>

The builder only formats and stores; identities and timestamps are supplied
by the caller.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from loguru import logger

from minigit.storage.encoding import ObjectKind, validate_object_id
from minigit.storage.errors import InvalidInputError, ObjectDecodeError
from minigit.storage.object_store import ObjectStore

_SIGNATURE_RE = re.compile(
    r"^(?P<name>[^<>\n]*) <(?P<email>[^<>\n]*)> (?P<seconds>-?\d+) (?P<tz>[+-]\d{4})$"
)


@dataclass(frozen=True)
class Identity:
    """Name and email of an author or committer."""

    name: str
    email: str

    def __post_init__(self) -> None:
        for value in (self.name, self.email):
            if any(c in value for c in "<>\n\x00"):
                raise InvalidInputError(f"Invalid character in identity: {value!r}")

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class Timestamp:
    """Seconds since the epoch plus the UTC offset of the local clock."""

    seconds: int
    offset_minutes: int = 0

    def format_offset(self) -> str:
        sign = "-" if self.offset_minutes < 0 else "+"
        hours, minutes = divmod(abs(self.offset_minutes), 60)
        return f"{sign}{hours:02d}{minutes:02d}"

    @staticmethod
    def parse_offset(text: str) -> int:
        """Convert ``+HHMM``/``-HHMM`` into minutes."""
        minutes = int(text[1:3]) * 60 + int(text[3:5])
        return -minutes if text.startswith("-") else minutes

    def __str__(self) -> str:
        return f"{self.seconds} {self.format_offset()}"


@dataclass(frozen=True)
class Signature:
    """Identity stamped with a time, as used on author/committer lines."""

    identity: Identity
    timestamp: Timestamp

    def __str__(self) -> str:
        return f"{self.identity} {self.timestamp}"

    @classmethod
    def parse(cls, text: str) -> "Signature":
        match = _SIGNATURE_RE.match(text)
        if match is None:
            raise ObjectDecodeError(f"Malformed signature: {text!r}")
        return cls(
            Identity(match["name"], match["email"]),
            Timestamp(int(match["seconds"]), Timestamp.parse_offset(match["tz"])),
        )


@dataclass
class Commit:
    """A parsed commit record."""

    tree_id: str
    author: Signature
    committer: Signature
    message: bytes
    parent_ids: List[str] = field(default_factory=list)

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent_ids[0] if self.parent_ids else None


def format_commit(
    tree_id: str,
    parent_id: Optional[str],
    message: Union[str, bytes],
    author: Identity,
    timestamp: Timestamp,
    committer: Optional[Identity] = None,
    committer_timestamp: Optional[Timestamp] = None,
) -> bytes:
    """Format a commit payload.

    An absent or empty parent produces no ``parent`` line at all. A newline
    is appended to the message unless it already ends with one.

    Args:
        tree_id: Id of the snapshot tree
        parent_id: Id of the parent commit, or None/"" for a root commit
        message: Commit message (str is UTF-8 encoded)
        author: Author identity
        timestamp: Author time
        committer: Committer identity (defaults to author)
        committer_timestamp: Committer time (defaults to timestamp)

    Returns:
        Commit payload bytes

    Raises:
        InvalidInputError: If tree_id or parent_id is malformed
    """
    validate_object_id(tree_id)
    if parent_id:
        validate_object_id(parent_id)

    author_line = Signature(author, timestamp)
    committer_line = Signature(committer or author, committer_timestamp or timestamp)

    if isinstance(message, str):
        message = message.encode("utf-8")
    if not message.endswith(b"\n"):
        message += b"\n"

    lines = [f"tree {tree_id}"]
    if parent_id:
        lines.append(f"parent {parent_id}")
    lines.append(f"author {author_line}")
    lines.append(f"committer {committer_line}")

    header = "\n".join(lines).encode("utf-8")
    return header + b"\n\n" + message


def parse_commit(payload: bytes) -> Commit:
    """Parse a commit payload.

    Args:
        payload: Commit object payload

    Returns:
        Parsed Commit

    Raises:
        ObjectDecodeError: If required headers are missing or malformed
    """
    header_bytes, sep, message = payload.partition(b"\n\n")
    if not sep:
        raise ObjectDecodeError("Commit has no blank line before the message")

    try:
        header_text = header_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ObjectDecodeError(f"Commit header is not UTF-8: {e}") from e

    tree_id = None
    parent_ids: List[str] = []
    author = None
    committer = None

    for line in header_text.split("\n"):
        key, _, value = line.partition(" ")
        if key == "tree":
            tree_id = _parse_header_id(key, value)
        elif key == "parent":
            parent_ids.append(_parse_header_id(key, value))
        elif key == "author":
            author = Signature.parse(value)
        elif key == "committer":
            committer = Signature.parse(value)
        else:
            logger.warning(f"Ignoring unknown commit header: {key!r}")

    if tree_id is None or author is None or committer is None:
        raise ObjectDecodeError("Commit is missing a tree, author or committer line")

    return Commit(
        tree_id=tree_id,
        author=author,
        committer=committer,
        message=message,
        parent_ids=parent_ids,
    )


def _parse_header_id(key: str, value: str) -> str:
    try:
        validate_object_id(value)
    except InvalidInputError as e:
        raise ObjectDecodeError(f"Malformed {key} id in commit: {value!r}") from e
    return value


class CommitBuilder:
    """Builder for commit objects.

    Attributes:
        store: ObjectStore that receives the commits
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def build_commit(
        self,
        tree_id: str,
        parent_id: Optional[str],
        message: Union[str, bytes],
        author: Identity,
        timestamp: Timestamp,
        committer: Optional[Identity] = None,
        committer_timestamp: Optional[Timestamp] = None,
    ) -> str:
        """Format and store a commit.

        Returns:
            Commit id
        """
        payload = format_commit(
            tree_id,
            parent_id,
            message,
            author,
            timestamp,
            committer=committer,
            committer_timestamp=committer_timestamp,
        )
        commit_id = self.store.put(ObjectKind.COMMIT, payload)
        logger.debug(f"Commit {commit_id} (tree {tree_id}, parent {parent_id or 'none'})")
        return commit_id
