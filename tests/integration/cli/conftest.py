"""Fixtures for integration tests."""

import subprocess
import sys

import pytest


@pytest.fixture
def run_minigit():
    """Return a helper that runs minigit in a subprocess."""

    def run(*args, cwd, **kwargs) -> subprocess.CompletedProcess:
        return subprocess.run(
            [sys.executable, "-m", "minigit", *args],
            cwd=cwd,
            capture_output=True,
            **kwargs,
        )

    return run


@pytest.fixture
def initialized_repo(tmp_path, run_minigit):
    """Create a temporary directory with an initialized repository.

    Returns:
        Path: Path to the repository root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()

    result = run_minigit("init", "--quiet", cwd=workspace, text=True)

    if result.returncode != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.stdout}\n{result.stderr}")

    return workspace
