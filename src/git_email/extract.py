from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path

from .errors import HistoryReadFailed
from .git import git_env
from .models import AuthorRecord

logger = logging.getLogger(__name__)

LOG_FORMAT = "%ae%x00%an"


def extract(repo: Path, origin_is_fork: bool = False) -> list[AuthorRecord]:
    """
    One AuthorRecord per commit reachable from any ref, email and name verbatim.
    A repository without commits yields an empty list; a history git cannot
    read raises HistoryReadFailed instead of returning a partial list.
    """
    cmd = ["git", "-C", str(repo), "log", "--all", f"--format={LOG_FORMAT}"]
    proc = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        env=git_env(),
    )

    stderr_chunks: list[str] = []
    stderr_chars = 0
    max_stderr_chars = 50_000

    def drain_stderr() -> None:
        nonlocal stderr_chars
        if proc.stderr is None:
            return
        while True:
            chunk = proc.stderr.read(8192)
            if not chunk:
                return
            if stderr_chars >= max_stderr_chars:
                continue
            take = chunk[: max_stderr_chars - stderr_chars]
            stderr_chunks.append(take)
            stderr_chars += len(take)

    stderr_thread = threading.Thread(target=drain_stderr, daemon=True)
    stderr_thread.start()

    records: list[AuthorRecord] = []
    assert proc.stdout is not None
    for raw_line in proc.stdout:
        line = raw_line.rstrip("\n")
        if not line:
            continue
        email, _, name = line.partition("\x00")
        records.append(AuthorRecord(email=email, name=name, origin_is_fork=origin_is_fork))

    code = proc.wait()
    stderr_thread.join()
    if code != 0:
        err = "".join(stderr_chunks).strip()
        logger.debug("git log in %s exited %d: %s", repo, code, err[:500])
        detail = err.splitlines()[0] if err else f"git log exited {code}"
        raise HistoryReadFailed(f"cannot read history of {repo}: {detail}")
    return records
