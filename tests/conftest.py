"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from loguru import logger

from minigit.storage import Identity, ObjectStore, Timestamp


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks the CLI installs on captured streams."""
    yield
    logger.remove()
    logger.disable("minigit")


@pytest.fixture
def git_dir(tmp_path: Path) -> Path:
    """Create a temporary .git directory with an objects store."""
    git = tmp_path / ".git"
    (git / "objects").mkdir(parents=True)
    return git


@pytest.fixture
def store(git_dir: Path) -> ObjectStore:
    """Create an ObjectStore instance."""
    return ObjectStore(git_dir)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a working directory with a file and a subdirectory."""
    work = tmp_path / "work"
    (work / "sub").mkdir(parents=True)
    (work / "a.txt").write_bytes(b"alpha\n")
    (work / "sub" / "b.txt").write_bytes(b"beta\n")
    return work


@pytest.fixture
def author() -> Identity:
    return Identity("Test User", "test@example.com")


@pytest.fixture
def timestamp() -> Timestamp:
    return Timestamp(1700000000, 60)
