"""Main CLI entry point for minigit."""

import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from minigit.constants import DEFAULT_BRANCH, EXIT_USER_ERROR
from minigit.core import (
    RefError,
    Repository,
    RepositoryExistsError,
    RepositoryNotFoundError,
)
from minigit.storage import ObjectStoreError

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="minigit",
    help="Content-addressable object store with Git's object format",
    add_completion=False,
    no_args_is_help=True,
)

# Errors reported as a diagnostic plus exit status 1
CLI_ERRORS = (
    ObjectStoreError,
    RefError,
    RepositoryNotFoundError,
    RepositoryExistsError,
    OSError,
)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> | {message}",
    )
    logger.enable("minigit")


def _fail(error: Exception) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", style="red")
    raise typer.Exit(EXIT_USER_ERROR)


def _open_repo(ctx: typer.Context) -> Repository:
    try:
        return Repository(ctx.obj)
    except RepositoryNotFoundError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        err_console.print(
            "Run [bold]minigit init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)


@app.callback()
def main(
    ctx: typer.Context,
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        "-C",
        help="Repository root (default: current directory)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging on stderr",
    ),
) -> None:
    """Store and read blob, tree and commit objects."""
    _configure_logging(verbose)
    ctx.obj = (repo or Path.cwd()).resolve()


@app.command()
def version() -> None:
    """Show minigit version."""
    from minigit import __version__
    typer.echo(f"minigit version {__version__}")


@app.command()
def init(
    ctx: typer.Context,
    initial_branch: str = typer.Option(
        DEFAULT_BRANCH,
        "--initial-branch",
        "-b",
        help="Branch HEAD points to",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a repository."""
    try:
        repo = Repository.init(ctx.obj, initial_branch=initial_branch)
    except CLI_ERRORS as e:
        _fail(e)

    if not quiet:
        console.print(
            f"[bold green]✓[/bold green] Initialized empty minigit repository in "
            f"{escape(str(repo.git_dir))}"
        )


@app.command("hash-object")
def hash_object(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File to hash"),
    write: bool = typer.Option(
        False,
        "-w",
        "--write",
        help="Write the blob into the object store",
    ),
) -> None:
    """Compute the blob id of a file."""
    repo = _open_repo(ctx)
    try:
        object_id = repo.hash_object(path.resolve(), write=write)
    except CLI_ERRORS as e:
        _fail(e)
    typer.echo(object_id)


@app.command("cat-file")
def cat_file(
    ctx: typer.Context,
    object_id: str = typer.Argument(..., metavar="OBJECT", help="Object id"),
    pretty: bool = typer.Option(False, "-p", help="Print the object's payload"),
    show_type: bool = typer.Option(False, "-t", help="Print the object's kind"),
    show_size: bool = typer.Option(False, "-s", help="Print the object's size"),
) -> None:
    """Print an object's payload, kind or size."""
    if sum((pretty, show_type, show_size)) != 1:
        err_console.print(
            "[bold red]Error:[/bold red] Exactly one of -p, -t or -s is required",
            style="red",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    repo = _open_repo(ctx)
    try:
        if pretty:
            typer.echo(repo.cat_file(object_id), nl=False)
            return
        kind, size = repo.object_info(object_id)
    except CLI_ERRORS as e:
        _fail(e)

    typer.echo(kind.value if show_type else str(size))


@app.command("ls-tree")
def ls_tree(
    ctx: typer.Context,
    tree_id: str = typer.Argument(..., metavar="TREE", help="Tree id"),
    name_only: bool = typer.Option(
        False,
        "--name-only",
        help="List only entry names",
    ),
) -> None:
    """List the entries of a tree object in stored order."""
    repo = _open_repo(ctx)
    try:
        entries = repo.ls_tree(tree_id)
    except CLI_ERRORS as e:
        _fail(e)

    # Names go out as raw bytes; non-UTF-8 file names are valid entries
    for entry in entries:
        name = os.fsencode(entry.name)
        if name_only:
            typer.echo(name)
        else:
            prefix = f"{entry.mode.value:0>6} {entry.mode.object_kind.value} {entry.object_id}\t"
            typer.echo(prefix.encode("ascii") + name)


@app.command("write-tree")
def write_tree(ctx: typer.Context) -> None:
    """Write a tree object for the repository's working directory."""
    repo = _open_repo(ctx)
    try:
        tree_id = repo.write_tree()
    except CLI_ERRORS as e:
        _fail(e)
    typer.echo(tree_id)


@app.command("commit-tree")
def commit_tree(
    ctx: typer.Context,
    tree_id: str = typer.Argument(..., metavar="TREE", help="Tree id"),
    parent: Optional[str] = typer.Option(
        None,
        "-p",
        "--parent",
        help="Parent commit id",
    ),
    message: str = typer.Option(
        ...,
        "-m",
        "--message",
        help="Commit message",
    ),
) -> None:
    """Create a commit object for a tree."""
    repo = _open_repo(ctx)
    try:
        commit_id = repo.commit_tree(tree_id, parent, message)
    except CLI_ERRORS as e:
        _fail(e)
    typer.echo(commit_id)


@app.command()
def commit(
    ctx: typer.Context,
    message: str = typer.Option(
        ...,
        "-m",
        "--message",
        help="Commit message",
    ),
) -> None:
    """Snapshot the working directory and commit it on the current branch."""
    repo = _open_repo(ctx)
    try:
        commit_id = repo.commit(message)
    except CLI_ERRORS as e:
        _fail(e)
    typer.echo(commit_id)
