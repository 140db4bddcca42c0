"""Reference handling for minigit.

HEAD holds either a symbolic reference (``ref: refs/heads/master``) or a raw
commit id. Branch ref files hold a commit id followed by a newline.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from minigit.constants import HEAD_FILE, HEADS_DIR, REFS_DIR, SYMREF_PREFIX
from minigit.storage.encoding import is_object_id


class RefError(Exception):
    """Exception raised for unreadable or malformed references."""


@dataclass(frozen=True)
class HeadRef:
    """Contents of HEAD.

    Attributes:
        symbolic: True if HEAD names another reference
        value: Reference path (symbolic) or commit id (detached)
    """

    symbolic: bool
    value: str


class RefStore:
    """Reads and writes references under the repository directory.

    Attributes:
        git_dir: Path to .git directory
        head_path: Path to the HEAD file
    """

    def __init__(self, git_dir: Path) -> None:
        self.git_dir = Path(git_dir)
        self.head_path = self.git_dir / HEAD_FILE

    def read_head(self) -> HeadRef:
        """Read and parse HEAD.

        Raises:
            RefError: If HEAD is missing or malformed
        """
        try:
            content = self.head_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as e:
            raise RefError(f"HEAD not found: {self.head_path}") from e
        except OSError as e:
            raise RefError(f"Cannot read HEAD: {e}") from e

        if content.startswith(SYMREF_PREFIX):
            target = content[len(SYMREF_PREFIX):].strip()
            self._check_ref_path(target)
            return HeadRef(symbolic=True, value=target)

        if is_object_id(content):
            return HeadRef(symbolic=False, value=content)

        raise RefError(f"Malformed HEAD: {content!r}")

    def current_branch(self) -> Optional[str]:
        """Return the short name of the checked-out branch, if any."""
        head = self.read_head()
        if not head.symbolic:
            return None
        prefix = f"{REFS_DIR}/{HEADS_DIR}/"
        if head.value.startswith(prefix):
            return head.value[len(prefix):]
        return head.value

    def resolve_head(self) -> Optional[str]:
        """Return the commit id HEAD points to.

        Returns:
            Commit id, or None if the current branch has no commits yet
        """
        head = self.read_head()
        if not head.symbolic:
            return head.value
        return self.read_ref(head.value)

    def read_ref(self, ref: str) -> Optional[str]:
        """Read a ref file.

        Args:
            ref: Path relative to .git (e.g. "refs/heads/master")

        Returns:
            Commit id, or None if the ref doesn't exist

        Raises:
            RefError: If the ref file is malformed
        """
        self._check_ref_path(ref)
        ref_path = self.git_dir / ref

        try:
            content = ref_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise RefError(f"Cannot read ref {ref}: {e}") from e

        if not is_object_id(content):
            raise RefError(f"Malformed ref {ref}: {content!r}")

        return content

    def update_ref(self, ref: str, commit_id: str) -> None:
        """Point a ref at a commit.

        Uses atomic write (tmp file + rename).

        Raises:
            RefError: If commit_id is malformed or the write fails
        """
        self._check_ref_path(ref)
        if not is_object_id(commit_id):
            raise RefError(f"Not a commit id: {commit_id!r}")

        ref_path = self.git_dir / ref
        try:
            ref_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=ref_path.parent, prefix=".tmp_ref_")
        except OSError as e:
            raise RefError(f"Cannot write ref {ref}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"{commit_id}\n")
            os.replace(tmp_path, ref_path)
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise RefError(f"Cannot write ref {ref}: {e}") from e

        logger.debug(f"Updated {ref} -> {commit_id}")

    def update_head(self, commit_id: str) -> str:
        """Advance the current branch (or detached HEAD) to a commit.

        Returns:
            The ref that was updated
        """
        head = self.read_head()
        if head.symbolic:
            self.update_ref(head.value, commit_id)
            return head.value

        self.update_ref(HEAD_FILE, commit_id)
        return HEAD_FILE

    def write_symbolic_head(self, ref: str) -> None:
        """Point HEAD at a ref (used when bootstrapping a repository)."""
        self._check_ref_path(ref)
        self.head_path.write_text(f"{SYMREF_PREFIX}{ref}\n", encoding="utf-8")

    def _check_ref_path(self, ref: str) -> None:
        parts = ref.split("/")
        if not ref or ref.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise RefError(f"Invalid ref name: {ref!r}")
