from __future__ import annotations

import contextlib
import dataclasses
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from rich.console import Console
from rich.text import Text

from .aggregate import aggregate
from .errors import UnsafeDestination
from .extract import extract
from .fetch import destination_paths, ensure_local
from .github import GitHubClient
from .models import AuthorRecord, FilterConfig, ScanCriteria, ScanSet
from .render import render_banner, render_console, write_results_file
from .source import resolve_targets

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RunOptions:
    target: str = ""
    input_file: Optional[Path] = None
    output_file: Optional[Path] = None
    filters: FilterConfig = FilterConfig()
    criteria: ScanCriteria = ScanCriteria()
    keep_downloads: bool = False
    update: bool = False
    show_banner: bool = True


def _info(console: Console, msg: str, *, path: str = "") -> None:
    line = Text.assemble("[", ("i", "green"), "] - ", msg)
    if path:
        line.append(path, style="bold white")
    console.print(line)


def keep_dir_for(scan: ScanSet, input_file: Optional[Path]) -> Path:
    if input_file is not None:
        return input_file.with_suffix("")
    return Path(scan.label)


def check_keep_dir(keep_dir: Path, scan: ScanSet) -> None:
    """Kept copies must never land in, or around, a repository being scanned in place."""
    keep = keep_dir.resolve()
    for loc in scan.locations:
        if not loc.is_local:
            continue
        git_dir = Path(loc.local_path).resolve()
        repo = git_dir.parent if git_dir.name == ".git" else git_dir
        if keep == repo or keep in repo.parents or repo in keep.parents:
            raise UnsafeDestination(f"keep directory {keep_dir} overlaps scanned repository {repo}; run from another directory")


@contextlib.contextmanager
def scan_workspace(*, keep: bool, keep_dir: Path, console: Console) -> Iterator[Path]:
    """
    Directory holding one local copy per scanned location. Removed on every
    exit path, interrupts included, unless the caller keeps downloads.
    """
    if keep:
        workspace = keep_dir
        workspace.mkdir(parents=True, exist_ok=True)
        _info(console, "Keeping downloaded .git in ", path=f"./{workspace}/")
    else:
        workspace = Path(tempfile.mkdtemp(suffix=".git-email"))
    logger.debug("workspace: %s", workspace)
    try:
        yield workspace
    finally:
        console.print("")
        _info(console, "Cleaning up...")
        if not keep:
            shutil.rmtree(workspace, ignore_errors=True)


def scan_repositories(scan: ScanSet, workspace: Path, *, update: bool, console: Console) -> list[AuthorRecord]:
    """Fetch and extract every location in order, folding records into one list."""
    records: list[AuthorRecord] = []
    total = len(scan.locations)
    for i, (loc, dest) in enumerate(zip(scan.locations, destination_paths(workspace, scan.locations)), start=1):
        console.print(
            Text.assemble("[", (f"{i}/{total}", "green"), "] - ", (loc.short_name, "bold white"), ":"),
            end="",
        )

        def notify(msg: str) -> None:
            console.print(f" {msg}", end="", markup=False)

        local = ensure_local(loc, dest, update, notify=notify)
        if local is not None and local.is_dir():
            notify("Parsing...")
            found = extract(local, origin_is_fork=loc.is_fork)
            logger.debug("%s: %d commits", loc.short_name, len(found))
            records.extend(found)
        console.print(Text(" Done", style="green"))
    return records


def run_scan(options: RunOptions, *, client: GitHubClient, console: Console) -> int:
    scan = resolve_targets(
        target=options.target,
        input_file=options.input_file,
        criteria=options.criteria,
        client=client,
        annotate_forks=options.filters.include_fork_annotation,
    )
    keep_dir = keep_dir_for(scan, options.input_file)
    if options.keep_downloads:
        check_keep_dir(keep_dir, scan)

    with scan_workspace(
        keep=options.keep_downloads,
        keep_dir=keep_dir,
        console=console,
    ) as workspace:
        if options.show_banner:
            render_banner(console, scan.label)
        records = scan_repositories(scan, workspace, update=options.update, console=console)
        merged = aggregate(records, options.filters)

        console.print("")
        if not merged:
            _info(console, "No email matching criteria found.")
        elif options.output_file is not None:
            write_results_file(options.output_file, merged, options.filters.include_name)
            _info(console, "Results saved to ", path=str(options.output_file))
        else:
            render_console(console, merged, options.filters.include_name)
    return 0
