from __future__ import annotations

from pathlib import Path

import pytest

from git_email.errors import HistoryReadFailed
from git_email.extract import extract
from git_email.models import AuthorRecord


def test_extract_walks_all_branches_verbatim(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    repo.commit(name="Alice", email="Alice@X.com")
    repo.git("checkout", "-q", "-b", "feature")
    repo.commit(name="Bob Builder", email="bob@x.com")
    repo.git("checkout", "-q", "main")
    repo.commit(name="Alice", email="Alice@X.com")

    records = extract(repo.path)

    assert len(records) == 3
    assert sorted(records, key=lambda r: r.email) == [
        AuthorRecord(email="Alice@X.com", name="Alice"),
        AuthorRecord(email="Alice@X.com", name="Alice"),
        AuthorRecord(email="bob@x.com", name="Bob Builder"),
    ]


def test_extract_marks_fork_origin(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    repo.commit(name="Alice", email="a@x.com")
    assert extract(repo.path, origin_is_fork=True) == [AuthorRecord(email="a@x.com", name="Alice", origin_is_fork=True)]


def test_extract_keeps_empty_email(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    repo.commit(name="Alice", email="a@x.com")
    repo.commit_without_email(name="Carol")
    records = extract(repo.path)
    assert AuthorRecord(email="", name="Carol") in records
    assert len(records) == 2


def test_extract_empty_repository(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    assert extract(repo.path) == []


def test_extract_reads_bare_copies(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    repo.commit(name="Alice", email="a@x.com")
    repo.git("clone", "-q", "--bare", str(repo.path), str(tmp_path / "copy.git"))
    assert extract(tmp_path / "copy.git") == [AuthorRecord(email="a@x.com", name="Alice")]


def test_extract_fails_loudly_on_a_damaged_history(tmp_path: Path, make_repo) -> None:
    repo = make_repo(tmp_path / "r")
    repo.commit(name="Alice", email="a@x.com")
    repo.commit(name="Bob", email="b@x.com")
    parent = repo.git("rev-parse", "HEAD~1").strip()
    (repo.path / ".git" / "objects" / parent[:2] / parent[2:]).unlink()

    with pytest.raises(HistoryReadFailed, match="cannot read history"):
        extract(repo.path / ".git")
