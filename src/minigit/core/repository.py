"""Repository-level operations.

`Repository` ties the object store, tree/commit builders, object reader and
references to one explicit repository root. Nothing here consults the
process working directory.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

from loguru import logger

from minigit.constants import DEFAULT_BRANCH, GIT_DIR, HEADS_DIR, OBJECTS_DIR, REFS_DIR
from minigit.core.identity import identity_from_env, local_timestamp
from minigit.core.refs import RefStore
from minigit.storage import (
    CommitBuilder,
    Identity,
    ObjectKind,
    ObjectReader,
    ObjectStore,
    Timestamp,
    TreeBuilder,
    TreeEntry,
)


class RepositoryNotFoundError(Exception):
    """Raised when a path is not a minigit repository."""


class RepositoryExistsError(Exception):
    """Raised when initializing over an existing repository."""


class Repository:
    """A repository rooted at an explicit directory.

    Attributes:
        root: Working tree root
        git_dir: Path to root/.git
        store: ObjectStore for the repository
        reader: ObjectReader over the store
        trees: TreeBuilder for the working tree
        commits: CommitBuilder over the store
        refs: RefStore for HEAD and branches

    Example:
        >>> repo = Repository.init(Path("project"))
        >>> commit_id = repo.commit("Initial commit")
        >>> repo.ls_tree_names(repo.reader.read_commit(commit_id).tree_id)
        ['README.md', 'src']
    """

    def __init__(self, root: Path) -> None:
        """Open an existing repository.

        Raises:
            RepositoryNotFoundError: If root has no .git directory
        """
        self.root = Path(root).resolve()
        self.git_dir = self.root / GIT_DIR

        if not self.git_dir.is_dir():
            raise RepositoryNotFoundError(
                f"Not a minigit repository (no {GIT_DIR}/ found in {self.root})"
            )

        self.store = ObjectStore(self.git_dir)
        self.reader = ObjectReader(self.store)
        self.trees = TreeBuilder(self.store)
        self.commits = CommitBuilder(self.store)
        self.refs = RefStore(self.git_dir)

    @classmethod
    def init(cls, root: Path, initial_branch: str = DEFAULT_BRANCH) -> "Repository":
        """Create the repository layout and point HEAD at the initial branch.

        Raises:
            RepositoryExistsError: If root already contains a repository
        """
        root = Path(root)
        git_dir = root / GIT_DIR
        if git_dir.exists():
            raise RepositoryExistsError(f"Repository already exists: {git_dir}")

        (git_dir / OBJECTS_DIR).mkdir(parents=True)
        (git_dir / REFS_DIR / HEADS_DIR).mkdir(parents=True)
        RefStore(git_dir).write_symbolic_head(f"{REFS_DIR}/{HEADS_DIR}/{initial_branch}")

        logger.debug(f"Initialized repository in {git_dir}")
        return cls(root)

    def resolve(self, object_id: str) -> str:
        """Expand a possibly abbreviated object id."""
        return self.store.resolve(object_id)

    def hash_object(self, path: Path, write: bool = True) -> str:
        """Return the blob id of a file, storing it when write is True."""
        return self.trees.hash_file(self._in_root(path), write=write)

    def cat_file(self, object_id: str) -> bytes:
        """Return the raw payload of an object."""
        return self.reader.cat(self.resolve(object_id))

    def object_info(self, object_id: str) -> Tuple[ObjectKind, int]:
        """Return an object's kind and payload size."""
        kind, payload = self.reader.read(self.resolve(object_id))
        return kind, len(payload)

    def ls_tree(self, tree_id: str) -> List[TreeEntry]:
        return self.reader.read_tree(self.resolve(tree_id))

    def ls_tree_names(self, tree_id: str) -> List[str]:
        return self.reader.list_tree_names(self.resolve(tree_id))

    def write_tree(self, directory: Optional[Path] = None) -> str:
        """Snapshot a directory (default: the repository root) as a tree."""
        target = self.root if directory is None else self._in_root(directory)
        return self.trees.build_tree(target)

    def commit_tree(
        self,
        tree_id: str,
        parent_id: Optional[str],
        message: Union[str, bytes],
        author: Optional[Identity] = None,
        timestamp: Optional[Timestamp] = None,
        committer: Optional[Identity] = None,
    ) -> str:
        """Create a commit object for an existing tree.

        Identity and time default to the environment and the local clock.
        An explicit author is also used as committer unless one is given.
        """
        tree_id = self.resolve(tree_id)
        if parent_id:
            parent_id = self.resolve(parent_id)

        if author is None:
            author = identity_from_env()
            if committer is None:
                committer = identity_from_env(committer=True)
        if timestamp is None:
            timestamp = local_timestamp()

        return self.commits.build_commit(
            tree_id,
            parent_id,
            message,
            author,
            timestamp,
            committer=committer,
        )

    def commit(
        self,
        message: Union[str, bytes],
        author: Optional[Identity] = None,
        timestamp: Optional[Timestamp] = None,
        committer: Optional[Identity] = None,
    ) -> str:
        """Snapshot the working tree and commit it on the current branch.

        The branch's current commit becomes the parent (none for an unborn
        branch) and the branch is advanced to the new commit.
        """
        tree_id = self.write_tree()
        parent_id = self.refs.resolve_head()
        commit_id = self.commit_tree(
            tree_id,
            parent_id,
            message,
            author=author,
            timestamp=timestamp,
            committer=committer,
        )
        ref = self.refs.update_head(commit_id)
        logger.info(f"[{ref}] {commit_id}")
        return commit_id

    def _in_root(self, path: Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path
