from __future__ import annotations

import json
import os
import subprocess
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Callable, Iterator

import pytest


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None, stdin: str | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, input=stdin, check=True, capture_output=True, text=True)
    return proc.stdout


class GitRepo:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._n = 0

    def git(self, *args: str, env: dict[str, str] | None = None, stdin: str | None = None) -> str:
        return _run(["git", *args], cwd=self.path, env=env, stdin=stdin)

    def commit(self, *, name: str, email: str, message: str = "") -> None:
        self._n += 1
        (self.path / f"f{self._n}.txt").write_text(f"{self._n}\n", encoding="utf-8")
        self.git("add", f"f{self._n}.txt")
        env = os.environ.copy()
        env["GIT_AUTHOR_NAME"] = name
        env["GIT_AUTHOR_EMAIL"] = email
        env["GIT_COMMITTER_NAME"] = name
        env["GIT_COMMITTER_EMAIL"] = email
        env["GIT_AUTHOR_DATE"] = "2025-01-01T00:00:00Z"
        env["GIT_COMMITTER_DATE"] = "2025-01-01T00:00:00Z"
        self.git("commit", "-q", "-m", message or f"commit {self._n}", env=env)

    def commit_without_email(self, *, name: str) -> None:
        """git refuses an empty email through `commit`, so write the object by hand."""
        tree = self.git("rev-parse", "HEAD^{tree}").strip()
        parent = self.git("rev-parse", "HEAD").strip()
        ident = f"{name} <> 1735689600 +0000"
        body = f"tree {tree}\nparent {parent}\nauthor {ident}\ncommitter {ident}\n\nno email\n"
        sha = self.git("hash-object", "-t", "commit", "-w", "--literally", "--stdin", stdin=body).strip()
        branch = self.git("symbolic-ref", "--short", "HEAD").strip()
        self.git("update-ref", f"refs/heads/{branch}", sha)


@pytest.fixture
def make_repo() -> Callable[..., GitRepo]:
    def factory(path: Path, *, bare: bool = False) -> GitRepo:
        path.mkdir(parents=True, exist_ok=True)
        args = ["git", "-c", "init.defaultBranch=main", "init", "-q"]
        if bare:
            args.append("--bare")
        _run(args, cwd=path)
        # Markers come from git's templates; write one in case the templates are empty.
        marker = (path if bare else path / ".git") / "description"
        if not marker.exists() or marker.stat().st_size == 0:
            marker.write_text("Unnamed repository\n", encoding="utf-8")
        return GitRepo(path)

    return factory


class FakeGitHub:
    """Serves canned JSON for GET paths; anything unknown is a 404."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, object]] = {}
        self.requests: list[str] = []
        self.api_url = ""

    def add(self, path: str, body: object, status: int = 200) -> None:
        self.routes[path] = (status, body)


@pytest.fixture
def fake_github() -> Iterator[FakeGitHub]:
    fake = FakeGitHub()

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            fake.requests.append(self.path)
            path = self.path.split("?", 1)[0]
            status, body = fake.routes.get(path, (404, {"message": "Not Found"}))
            out = json.dumps(body).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(out)))
            self.end_headers()
            self.wfile.write(out)

        def log_message(self, format: str, *args: object) -> None:
            return

    server = HTTPServer(("127.0.0.1", 0), Handler)
    fake.api_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield fake
    finally:
        server.shutdown()
        server.server_close()
