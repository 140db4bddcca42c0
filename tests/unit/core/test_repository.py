"""Unit tests for Repository."""

from pathlib import Path

import pytest

from minigit.core.repository import (
    Repository,
    RepositoryExistsError,
    RepositoryNotFoundError,
)
from minigit.storage import (
    FileMode,
    Identity,
    ObjectKind,
    ObjectNotFoundError,
    Timestamp,
)

HELLO_BLOB_ID = "ce013625030ba8dba906f756967f9e9ca394464a"


@pytest.fixture
def repo(workspace: Path) -> Repository:
    return Repository.init(workspace)


class TestInit:
    """Test repository bootstrap."""

    def test_layout(self, workspace: Path) -> None:
        repo = Repository.init(workspace)

        assert repo.root == workspace.resolve()
        assert (workspace / ".git" / "objects").is_dir()
        assert (workspace / ".git" / "refs" / "heads").is_dir()
        assert (workspace / ".git" / "HEAD").read_text() == "ref: refs/heads/master\n"

    def test_initial_branch(self, tmp_path: Path) -> None:
        repo = Repository.init(tmp_path / "new", initial_branch="main")
        assert repo.refs.current_branch() == "main"

    def test_init_twice(self, workspace: Path) -> None:
        Repository.init(workspace)
        with pytest.raises(RepositoryExistsError):
            Repository.init(workspace)

    def test_open_non_repository(self, tmp_path: Path) -> None:
        with pytest.raises(RepositoryNotFoundError, match="Not a minigit repository"):
            Repository(tmp_path)


class TestObjects:
    """Test object-level operations."""

    def test_hash_object(self, repo: Repository) -> None:
        (repo.root / "hello.txt").write_bytes(b"hello\n")

        assert repo.hash_object(Path("hello.txt"), write=False) == HELLO_BLOB_ID
        assert not repo.store.exists(HELLO_BLOB_ID)

        assert repo.hash_object(repo.root / "hello.txt") == HELLO_BLOB_ID
        assert repo.cat_file(HELLO_BLOB_ID) == b"hello\n"

    def test_hash_object_twice_one_copy(self, repo: Repository) -> None:
        (repo.root / "hello.txt").write_bytes(b"hello\n")
        (repo.root / "copy.txt").write_bytes(b"hello\n")

        assert repo.hash_object(Path("hello.txt")) == repo.hash_object(Path("copy.txt"))
        assert list(repo.store.iter_ids()) == [HELLO_BLOB_ID]

    def test_object_info(self, repo: Repository) -> None:
        (repo.root / "hello.txt").write_bytes(b"hello\n")
        repo.hash_object(Path("hello.txt"))

        assert repo.object_info(HELLO_BLOB_ID[:8]) == (ObjectKind.BLOB, 6)

    def test_cat_missing(self, repo: Repository) -> None:
        with pytest.raises(ObjectNotFoundError):
            repo.cat_file("0123456789abcdef0123456789abcdef01234567")


class TestTrees:
    """Test write-tree and ls-tree."""

    def test_write_tree_excludes_git_dir(self, repo: Repository) -> None:
        tree_id = repo.write_tree()
        assert repo.ls_tree_names(tree_id) == ["a.txt", "sub"]

    def test_write_subdirectory(self, repo: Repository) -> None:
        root_entries = repo.ls_tree(repo.write_tree())
        sub_id = repo.write_tree(Path("sub"))

        assert root_entries[1].mode is FileMode.DIRECTORY
        assert root_entries[1].object_id == sub_id
        assert repo.ls_tree_names(sub_id[:10]) == ["b.txt"]


class TestCommits:
    """Test commit-tree and commit."""

    def test_commit_tree_without_parent(
        self, repo: Repository, author: Identity, timestamp: Timestamp
    ) -> None:
        tree_id = repo.write_tree()
        commit_id = repo.commit_tree(tree_id, None, "hello", author=author, timestamp=timestamp)

        payload = repo.cat_file(commit_id)
        assert payload.startswith(f"tree {tree_id}\n".encode())
        assert b"\nparent " not in payload
        assert b"\nauthor Test User <test@example.com> 1700000000 +0100\n" in payload
        assert b"\ncommitter Test User <test@example.com> 1700000000 +0100\n" in payload
        assert payload.endswith(b"\n\nhello\n")

    def test_commit_tree_does_not_move_branch(
        self, repo: Repository, author: Identity, timestamp: Timestamp
    ) -> None:
        repo.commit_tree(repo.write_tree(), None, "loose", author=author, timestamp=timestamp)
        assert repo.refs.resolve_head() is None

    def test_commit_tree_with_parent_prefix(
        self, repo: Repository, author: Identity, timestamp: Timestamp
    ) -> None:
        tree_id = repo.write_tree()
        first = repo.commit_tree(tree_id, None, "first", author=author, timestamp=timestamp)
        second = repo.commit_tree(tree_id, first[:7], "second", author=author, timestamp=timestamp)

        assert repo.reader.read_commit(second).parent_id == first

    def test_commit_tree_uses_environment(
        self, repo: Repository, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GIT_AUTHOR_NAME", "Env Author")
        monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
        monkeypatch.setenv("GIT_COMMITTER_NAME", "Env Committer")
        monkeypatch.setenv("GIT_COMMITTER_EMAIL", "committer@example.com")

        commit = repo.reader.read_commit(repo.commit_tree(repo.write_tree(), None, "env"))

        assert commit.author.identity == Identity("Env Author", "author@example.com")
        assert commit.committer.identity == Identity("Env Committer", "committer@example.com")

    def test_commit_chains_on_branch(
        self, repo: Repository, author: Identity, timestamp: Timestamp
    ) -> None:
        first = repo.commit("first", author=author, timestamp=timestamp)
        assert repo.refs.resolve_head() == first
        assert repo.reader.read_commit(first).parent_ids == []

        (repo.root / "a.txt").write_bytes(b"changed\n")
        second = repo.commit("second", author=author, timestamp=timestamp)

        commit = repo.reader.read_commit(second)
        assert commit.parent_id == first
        assert commit.tree_id == repo.write_tree()
        ref_file = repo.git_dir / "refs" / "heads" / "master"
        assert ref_file.read_text() == f"{second}\n"
