from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import DEFAULT_CONFIG_PATH, build_github_client, config_filters, config_flag, load_config
from .errors import GitEmailError
from .models import FilterConfig, ScanCriteria
from .run import RunOptions, run_scan


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-email",
        description="List the author emails found in the history of git repositories.",
        usage="%(prog)s [options] [repo url | local dir | owner/repo | GitHub org/user]",
    )
    parser.add_argument("target", nargs="?", default="", help="Repository URL, local directory, owner/repo, or GitHub org/user.")
    parser.add_argument("-o", "--output", type=Path, default=None, help="File to save the output into.")
    parser.add_argument("-i", "--input", type=Path, default=None, help="File to read the list of targets from (one per line).")
    parser.add_argument(
        "-f",
        "--filter",
        dest="filters",
        action="append",
        default=[],
        help="Filter out entries containing this text (repeatable).",
    )
    parser.add_argument("-r", "--raw", action="store_true", help="No built-in filters, no banner.")
    parser.add_argument("--exclude-name", action="store_true", help="Exclude authors' names.")
    parser.add_argument("--exclude-fork", action="store_true", help="Exclude forked repos from the scan.")
    parser.add_argument("--exclude-private", action="store_true", help="Exclude private repos from the scan.")
    parser.add_argument("-k", "--keep", action="store_true", help="Keep downloaded .git(s) after the scan.")
    parser.add_argument("-u", "--update", action="store_true", help="Update existing .git(s) before the scan.")
    parser.add_argument("--no-color", action="store_true", help="Do not use colors.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to a JSON config file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log git and API calls.")
    return parser


def _setup_logging(*, verbose: bool, console: Console) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )


def build_options(args: argparse.Namespace, config: dict) -> RunOptions:
    exclude_name = bool(args.exclude_name) or config_flag(config, "exclude_name")
    exclude_fork = bool(args.exclude_fork) or config_flag(config, "exclude_fork")
    exclude_private = bool(args.exclude_private) or config_flag(config, "exclude_private")
    patterns = [*config_filters(config), *[str(f) for f in args.filters if str(f)]]
    return RunOptions(
        target=str(args.target or "").strip(),
        input_file=args.input,
        output_file=args.output,
        filters=FilterConfig(
            use_builtin_filters=not args.raw,
            include_name=not exclude_name,
            include_fork_annotation=not exclude_fork,
            user_patterns=tuple(patterns),
        ),
        criteria=ScanCriteria(include_forks=not exclude_fork, include_private=not exclude_private),
        keep_downloads=bool(args.keep),
        update=bool(args.update),
        show_banner=not args.raw,
    )


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = _build_parser()
    args = parser.parse_args(argv)

    console = Console(no_color=bool(args.no_color), highlight=False, emoji=False)
    _setup_logging(verbose=bool(args.verbose), console=console)

    if not str(args.target or "").strip() and args.input is None:
        console.print("Error: no target provided", markup=False)
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
        options = build_options(args, config)
        return run_scan(options, client=build_github_client(config), console=console)
    except GitEmailError as e:
        console.print(f"Error: {e}", markup=False)
        parser.print_help()
        return 1
    except KeyboardInterrupt:
        console.print("Interrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
