# gitdescribe/cli.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import Defaults, DescribeConfig, load_config
from .describe import describe
from .errors import DescribeError
from .gitinfo import capture_git_info
from .nativegit import GitCommandError
from .repository import BACKENDS, Repository, open_repository
from .version import get_version

app = typer.Typer(
    help="Label commits by their nearest tag, like `git describe`.", no_args_is_help=True
)
console = Console()


def _badparam(e: Exception | str) -> typer.BadParameter:
    return typer.BadParameter(str(e))


def _open(repo_path: Path, backend: str) -> Repository:
    if backend not in BACKENDS:
        raise _badparam(f"backend must be one of: {', '.join(BACKENDS)}")
    try:
        return open_repository(repo_path, backend=backend)
    except (DescribeError, GitCommandError) as e:
        raise _badparam(e)


def _effective_config(
    config_file: Optional[Path],
    *,
    abbrev: Optional[int],
    always: Optional[bool],
    tags: Optional[bool],
    long: Optional[bool],
    dirty: Optional[str],
    match: Optional[str],
) -> DescribeConfig:
    if config_file is not None and not config_file.exists():
        raise _badparam(f"{config_file} does not exist.")
    try:
        base = load_config(config_file)
        return base.merged(
            abbrev=abbrev, always=always, tags=tags, long=long, dirty=dirty, match=match
        )
    except DescribeError as e:
        raise _badparam(e)


@app.callback(invoke_without_command=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log what the engine does."),
) -> None:
    """gitdescribe: build metadata from a git checkout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@app.command("describe")
def describe_cmd(
    ref: str = typer.Argument("HEAD", help="Commit-ish to describe."),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Path inside the repository."),
    backend: str = typer.Option(
        Defaults.backend, "--backend", help="Repository backend: native|pygit2"
    ),
    abbrev: Optional[int] = typer.Option(
        None, "--abbrev", help="Hash length (2..40); 0 prints the tag only."
    ),
    always: Optional[bool] = typer.Option(
        None, "--always/--no-always", help="Fall back to the abbreviated commit id."
    ),
    tags: Optional[bool] = typer.Option(
        None, "--tags/--no-tags", help="Also consider lightweight tags."
    ),
    long: Optional[bool] = typer.Option(
        None, "--long/--no-long", help="Always print tag-N-gHASH, even on a tag."
    ),
    dirty: Optional[str] = typer.Option(
        None, "--dirty", help=f"Marker appended when the working tree is dirty (e.g. {Defaults.dirty_marker})."
    ),
    match: Optional[str] = typer.Option(None, "--match", help="Only consider tags matching this glob."),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help=f"YAML options file (default: {Defaults.config_file_name} if present)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Give up walking history after this many seconds."
    ),
) -> None:
    """Print the describe label for REF."""
    cfg = _effective_config(
        config_file,
        abbrev=abbrev,
        always=always,
        tags=tags,
        long=long,
        dirty=dirty,
        match=match,
    )
    repo = _open(repo_path, backend)
    try:
        result = describe(repo, cfg, ref, timeout=timeout)
    except (DescribeError, GitCommandError) as e:
        raise _badparam(e)

    label = str(result)
    if not label:
        raise _badparam(
            f"No tags can describe '{ref}'.\n"
            "Try --always, or --tags to include lightweight tags."
        )
    console.print(label, highlight=False, markup=False, soft_wrap=True)


@app.command()
def info(
    ref: str = typer.Argument("HEAD", help="Commit-ish to inspect."),
    repo_path: Path = typer.Option(Path("."), "--repo", help="Path inside the repository."),
    backend: str = typer.Option(
        Defaults.backend, "--backend", help="Repository backend: native|pygit2"
    ),
    against: Optional[str] = typer.Option(
        None, "--against", help="Count commits ahead/behind this ref (e.g. origin/main)."
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    abbrev: Optional[int] = typer.Option(None, "--abbrev", help="Hash length for the describe label."),
    always: Optional[bool] = typer.Option(None, "--always/--no-always"),
    tags: Optional[bool] = typer.Option(None, "--tags/--no-tags"),
    long: Optional[bool] = typer.Option(None, "--long/--no-long"),
    dirty: Optional[str] = typer.Option(None, "--dirty", help="Dirty marker for the describe label."),
    match: Optional[str] = typer.Option(None, "--match", help="Tag glob for the describe label."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML options file."),
    timeout: Optional[float] = typer.Option(None, "--timeout"),
) -> None:
    """Show build metadata for REF."""
    fmt = format.lower()
    if fmt not in ("text", "json"):
        raise _badparam("format must be 'text' or 'json'")

    cfg = _effective_config(
        config_file,
        abbrev=abbrev,
        always=always,
        tags=tags,
        long=long,
        dirty=dirty,
        match=match,
    )
    repo = _open(repo_path, backend)
    try:
        gi = capture_git_info(repo, cfg, ref, against=against, timeout=timeout)
    except (DescribeError, GitCommandError) as e:
        raise _badparam(e)

    if fmt == "json":
        console.print_json(json.dumps(gi.as_dict()))
        return

    t = Table(title="Build info", show_lines=False)
    t.add_column("Field", style="bold")
    t.add_column("Value")
    t.add_row("Commit", gi.commit)
    t.add_row("Abbrev", gi.commit_abbrev)
    t.add_row("Branch", gi.branch or "(detached)")
    t.add_row("Describe", gi.describe or "(none)")
    t.add_row("Dirty", "yes" if gi.dirty else "no")
    t.add_row("Time", gi.commit_time.isoformat() if gi.commit_time else "(unknown)")
    t.add_row("Message", gi.commit_message_short)
    if gi.commit_author_name:
        t.add_row("Author", f"{gi.commit_author_name} <{gi.commit_author_email or ''}>")
    t.add_row("Commits", str(gi.total_commit_count))
    t.add_row("Tags", ", ".join(gi.tags) or "(none)")
    t.add_row("Closest tag", gi.closest_tag_name or "(none)")
    if gi.closest_tag_commit_count is not None:
        t.add_row("Commits since tag", str(gi.closest_tag_commit_count))
    if against:
        t.add_row(f"Ahead of {against}", str(gi.ahead))
        t.add_row(f"Behind {against}", str(gi.behind))
    console.print(t)


@app.command()
def version(
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Show verbose version details."
    ),
) -> None:
    """Print version and exit."""
    console.print(get_version(verbose=verbose))


if __name__ == "__main__":
    app()
