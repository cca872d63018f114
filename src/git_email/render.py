from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .errors import DestinationWriteFailed
from .models import MergedRecord

FORK_MARKER = "(fork)"
NO_EMAIL = "(no email)"
NO_NAME = "(no name)"

BANNER_RULE = "---------------------------------------"


def format_line(r: MergedRecord, include_name: bool) -> str:
    if not include_name:
        line = r.email
    else:
        line = f"{r.email},{r.names_display}"
    if r.is_fork:
        line = f"{line} {FORK_MARKER}"
    return line


def format_results(records: list[MergedRecord], include_name: bool) -> str:
    header = "email,names" if include_name else "email"
    lines = [header]
    lines.extend(format_line(r, include_name) for r in records)
    return "\n".join(lines) + "\n"


def write_results_file(path: Path, records: list[MergedRecord], include_name: bool) -> None:
    """Comma-separated, no quoting: names that contain commas are written as is."""
    try:
        path.write_text(format_results(records, include_name), encoding="utf-8")
    except OSError as e:
        raise DestinationWriteFailed(f"cannot write output file: {path} ({e})") from e


def render_console(console: Console, records: list[MergedRecord], include_name: bool) -> None:
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Email", no_wrap=True)
    if include_name:
        table.add_column("Names")
    for r in records:
        email = Text(r.email) if r.email else Text(NO_EMAIL, style="yellow")
        row = [email]
        if include_name:
            names = Text(r.names_display) if r.names else Text(NO_NAME, style="yellow")
            if r.is_fork:
                names.append(" ")
                names.append(FORK_MARKER, style="yellow")
            row.append(names)
        elif r.is_fork:
            email.append(" ")
            email.append(FORK_MARKER, style="yellow")
        table.add_row(*row)
    console.print(table)


def render_banner(console: Console, scan_label: str) -> None:
    console.print(BANNER_RULE)
    console.print("")
    console.print(Text.assemble("Starting scan of ", (scan_label, "bold white")))
    console.print("")
    console.print(BANNER_RULE)
