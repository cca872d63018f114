from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

MARKER_FILENAME = "description"
MARKER_MAX_DEPTH = 3


def git_env() -> dict[str, str]:
    env = os.environ.copy()
    # A private or missing remote must fail instead of waiting on a credential prompt.
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_git(args: list[str], cwd: Optional[Path] = None) -> tuple[int, str, str]:
    logger.debug("git %s", " ".join(args))
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        env=git_env(),
    )
    return proc.returncode, proc.stdout, proc.stderr


def repo_exist_not_empty(location: str) -> bool:
    """True when `location` is reachable and advertises at least one ref."""
    code, _, err = run_git(["ls-remote", "--quiet", "--exit-code", location])
    if code != 0:
        logger.debug("ls-remote %s exited %d: %s", location, code, err.strip()[:200])
    return code == 0


def find_repository_markers(root: Path, max_depth: int = MARKER_MAX_DEPTH) -> list[Path]:
    """
    Non-empty `description` files at most `max_depth` levels below `root`.
    Both `<repo>/.git/description` and `<bare>.git/description` qualify.
    """
    markers: list[Path] = []

    def onerror(err: OSError) -> None:
        logger.debug("skipping unreadable directory: %s", err)

    root_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        depth = len(Path(dirpath).parts) - root_depth
        if depth + 1 <= max_depth and MARKER_FILENAME in filenames:
            marker = Path(dirpath) / MARKER_FILENAME
            try:
                if marker.is_file() and marker.stat().st_size > 0:
                    markers.append(marker)
            except OSError:
                continue
        if depth + 1 >= max_depth:
            dirnames[:] = []
        else:
            dirnames.sort()
    return sorted(markers)


def short_name_for_url(url: str) -> str:
    u = (url or "").strip().rstrip("/")
    if u.endswith("/.git"):
        u = u[: -len("/.git")]
    base = u.replace(":", "/").rsplit("/", 1)[-1]
    if base.endswith(".git"):
        base = base[:-4]
    return base


def remote_path_label(remote: str) -> str:
    """
    Human label for a clone URL: the path after the host, `.git` stripped.
      https://github.com/owner/repo.git -> owner/repo
      git@github.com:owner/repo.git     -> owner/repo
    """
    r = (remote or "").strip()
    if not r:
        return ""

    if "://" not in r and ":" in r and "@" in r.split(":", 1)[0]:
        label = r.split(":", 1)[1]
    else:
        parsed = urlparse(r)
        if parsed.scheme == "file":
            return short_name_for_url(r)
        if parsed.scheme and parsed.netloc:
            label = parsed.path.lstrip("/")
        else:
            label = r

    label = label.rstrip("/")
    if label.endswith(".git"):
        label = label[:-4]
    return label.rstrip("/") or r


def clone_bare(url: str, destination: Path) -> tuple[int, str]:
    destination.parent.mkdir(parents=True, exist_ok=True)
    code, _, err = run_git(["clone", "--bare", "--quiet", url, str(destination)])
    return code, err


def fast_forward(repo: Path) -> tuple[int, str]:
    """Fast-forward every branch and tag of a bare copy from its origin; diverged refs fail."""
    code, _, err = run_git(
        ["fetch", "--quiet", "--prune", "origin", "refs/heads/*:refs/heads/*", "refs/tags/*:refs/tags/*"],
        cwd=repo,
    )
    return code, err


def is_bare_copy_of(repo: Path, url: str) -> bool:
    """True when `repo` is a bare repository whose origin is `url`, i.e. a copy made by `clone_bare`."""
    git_dir = f"--git-dir={repo}"
    code, out, _ = run_git([git_dir, "rev-parse", "--is-bare-repository"])
    if code != 0 or out.strip() != "true":
        return False
    code, out, _ = run_git([git_dir, "config", "--get", "remote.origin.url"])
    return code == 0 and out.strip() == url
