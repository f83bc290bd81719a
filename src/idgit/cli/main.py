"""Command line interface for idgit."""

import logging
from pathlib import Path
from typing import Dict, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from idgit.core.repository import Repo
from idgit.exceptions import IdgitError
from idgit.models.delta import Delta, DeltaKind
from idgit.models.diff import LineOrigin
from idgit.models.file_ref import FileRef

console = Console()

KIND_STYLES: Dict[DeltaKind, str] = {
    DeltaKind.ADDED: "green",
    DeltaKind.DELETED: "red",
    DeltaKind.MODIFIED: "yellow",
    DeltaKind.RENAMED: "cyan",
    DeltaKind.COPIED: "cyan",
    DeltaKind.IGNORED: "dim",
    DeltaKind.UNTRACKED: "magenta",
    DeltaKind.TYPECHANGE: "yellow",
    DeltaKind.UNREADABLE: "red",
    DeltaKind.CONFLICTED: "bold red",
}

ORIGIN_STYLES: Dict[LineOrigin, str] = {
    LineOrigin.ADDITION: "green",
    LineOrigin.DELETION: "red",
    LineOrigin.FILE_HEADER: "bold",
    LineOrigin.HUNK_HEADER: "cyan",
    LineOrigin.BINARY: "bold",
}


def open_repo_or_exit(repo_path: str) -> Repo:
    """Open the repository or exit with an error message."""
    try:
        return Repo.open(Path(repo_path).resolve())
    except IdgitError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e


def find_file(repo: Repo, path: str) -> FileRef:
    """FileRef for ``path`` from the current changes, or a bare path ref."""
    for delta in repo.uncommitted():
        if delta.path == path:
            return delta.file
    return FileRef(rel_path=path)


@click.group()
@click.version_option(package_name="idgit")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Path to the repository working tree",
)
@click.option("--verbose", "-v", is_flag=True, help="Log git invocations and decisions")
@click.pass_context
def main(ctx: click.Context, repo_path: str, verbose: bool):
    """idgit - inspect and stage uncommitted changes."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    ctx.obj = {"repo_path": repo_path}


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """List uncommitted changes."""
    with open_repo_or_exit(ctx.obj["repo_path"]) as repo:
        try:
            deltas = repo.uncommitted()
        except IdgitError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise click.Abort() from e

        if not deltas:
            console.print("[green]Nothing to commit, working tree clean[/green]")
            return

        table = Table(title=f"Uncommitted changes in {repo.path}")
        table.add_column("Status")
        table.add_column("Path")
        table.add_column("Size", justify="right")
        for delta in deltas:
            table.add_row(
                Text(delta.kind.value, style=KIND_STYLES.get(delta.kind, "")),
                _describe(delta),
                str(delta.file.size),
            )
        console.print(table)


@main.command()
@click.argument("path")
@click.pass_context
def diff(ctx: click.Context, path: str):
    """Show line-level diff detail for PATH."""
    with open_repo_or_exit(ctx.obj["repo_path"]) as repo:
        try:
            details = repo.diff_details(path)
        except IdgitError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise click.Abort() from e

        console.print(f"[bold]{_describe(details.delta)}[/bold] ({details.delta.kind.value})")
        for line in details.lines:
            text = line.text.rstrip("\n")
            if line.origin in (LineOrigin.ADDITION, LineOrigin.DELETION, LineOrigin.CONTEXT):
                text = line.origin.value + text
            style = ORIGIN_STYLES.get(line.origin)
            console.print(text, style=style, markup=False, highlight=False)
        console.print(f"[green]+{details.additions}[/green] [red]-{details.deletions}[/red]")


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def stage(ctx: click.Context, paths: Tuple[str, ...]):
    """Stage PATHS (ignored paths are left alone)."""
    _run_staging(ctx.obj["repo_path"], paths, unstage=False)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def unstage(ctx: click.Context, paths: Tuple[str, ...]):
    """Unstage PATHS."""
    _run_staging(ctx.obj["repo_path"], paths, unstage=True)


def _run_staging(repo_path: str, paths: Tuple[str, ...], unstage: bool) -> None:
    with open_repo_or_exit(repo_path) as repo:
        try:
            for path in paths:
                file = find_file(repo, path)
                if unstage:
                    repo.unstage_file(file)
                else:
                    repo.stage_file(file)
        except IdgitError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise click.Abort() from e

        for command in repo.history.entries:
            console.print(f"[green]✅ {command}[/green]")


def _describe(delta: Delta) -> str:
    if delta.kind in (DeltaKind.RENAMED, DeltaKind.COPIED):
        return f"{delta.old.rel_path} -> {delta.new.rel_path}"
    return delta.path or "?"


if __name__ == "__main__":
    main()
