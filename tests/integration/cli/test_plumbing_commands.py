"""End-to-end tests running minigit as a separate process."""

import os
from pathlib import Path

HELLO_BLOB_ID = "ce013625030ba8dba906f756967f9e9ca394464a"


def test_hash_object_prints_id(initialized_repo: Path, run_minigit) -> None:
    (initialized_repo / "hello.txt").write_bytes(b"hello\n")

    result = run_minigit("hash-object", "-w", "hello.txt", cwd=initialized_repo)

    assert result.returncode == 0
    assert result.stdout.strip() == HELLO_BLOB_ID.encode()


def test_cat_file_binary_payload(initialized_repo: Path, run_minigit) -> None:
    payload = bytes(range(256))
    (initialized_repo / "data.bin").write_bytes(payload)
    blob_id = run_minigit("hash-object", "-w", "data.bin", cwd=initialized_repo).stdout.strip()

    result = run_minigit("cat-file", "-p", blob_id.decode(), cwd=initialized_repo)

    assert result.returncode == 0
    assert result.stdout == payload


def test_error_goes_to_stderr(initialized_repo: Path, run_minigit) -> None:
    result = run_minigit(
        "cat-file", "-p", "0123456789abcdef0123456789abcdef01234567", cwd=initialized_repo
    )

    assert result.returncode == 1
    assert result.stdout == b""
    assert b"Object not found" in result.stderr


def test_commit_then_list(initialized_repo: Path, run_minigit) -> None:
    (initialized_repo / "b.txt").write_text("b\n")
    (initialized_repo / "a.txt").write_text("a\n")
    (initialized_repo / "c").mkdir()
    (initialized_repo / "c" / "d.txt").write_text("d\n")

    result = run_minigit("commit", "-m", "snapshot", cwd=initialized_repo)
    assert result.returncode == 0
    commit_id = result.stdout.strip().decode()

    payload = run_minigit("cat-file", "-p", commit_id, cwd=initialized_repo).stdout
    tree_id = payload.split(b"\n")[0].split(b" ")[1].decode()

    names = run_minigit("ls-tree", "--name-only", tree_id, cwd=initialized_repo)
    assert names.stdout.decode().splitlines() == ["a.txt", "b.txt", "c"]


def test_ls_tree_non_utf8_name(initialized_repo: Path, run_minigit) -> None:
    """Test that a file name that is not valid UTF-8 is listed byte for byte."""
    raw_name = b"caf\xe9.txt"
    (initialized_repo / os.fsdecode(raw_name)).write_bytes(b"latte\n")

    tree = run_minigit("write-tree", cwd=initialized_repo)
    assert tree.returncode == 0
    tree_id = tree.stdout.strip().decode()

    names = run_minigit("ls-tree", "--name-only", tree_id, cwd=initialized_repo)
    assert names.returncode == 0
    assert names.stdout == raw_name + b"\n"

    full = run_minigit("ls-tree", tree_id, cwd=initialized_repo)
    assert full.returncode == 0
    assert full.stdout.startswith(b"100644 blob ")
    assert full.stdout.endswith(b"\t" + raw_name + b"\n")
