from __future__ import annotations

import pytest

from git_email.errors import HostingApiError
from git_email.git import short_name_for_url
from git_email.github import GitHubClient, api_url_for_host
from git_email.models import ScanCriteria


def _repos() -> list[dict]:
    return [
        {"name": "site", "clone_url": "https://github.com/acme/site.git", "fork": False, "private": False},
        {"name": "vendor", "clone_url": "https://github.com/acme/vendor.git", "fork": True, "private": False},
        {"name": "secret", "clone_url": "https://github.com/acme/secret.git", "fork": False, "private": True},
        {"name": "broken", "fork": False},
    ]


def test_api_url_for_host() -> None:
    assert api_url_for_host("github.com") == "https://api.github.com"
    assert api_url_for_host("") == "https://api.github.com"
    assert api_url_for_host("ghe.example.com/") == "https://ghe.example.com/api/v3"


def test_missing_owner(fake_github) -> None:
    client = GitHubClient(api_url=fake_github.api_url)
    assert client.owner_exists("ghost") is False
    assert client.owner_repository_count("ghost") == 0


def test_owner_lookup_is_cached(fake_github) -> None:
    fake_github.add("/users/acme", {"login": "acme", "type": "Organization", "public_repos": 3, "total_private_repos": 1})
    client = GitHubClient(api_url=fake_github.api_url)

    assert client.owner_exists("acme") is True
    assert client.owner_is_organization("ACME") is True
    assert client.owner_repository_count("acme") == 4
    assert fake_github.requests.count("/users/acme") == 1


def test_organization_listing_and_filters(fake_github) -> None:
    fake_github.add("/users/acme", {"login": "acme", "type": "Organization", "public_repos": 3})
    fake_github.add("/orgs/acme/repos", _repos())
    client = GitHubClient(api_url=fake_github.api_url)

    everything = client.list_repositories("acme", ScanCriteria())
    assert [short_name_for_url(r.clone_url) for r in everything] == ["site", "vendor", "secret"]
    assert any(p.startswith("/orgs/acme/repos?") and "per_page=100" in p for p in fake_github.requests)

    no_forks = client.list_repositories("acme", ScanCriteria(include_forks=False))
    assert [short_name_for_url(r.clone_url) for r in no_forks] == ["site", "secret"]

    public_only = client.list_repositories("acme", ScanCriteria(include_forks=False, include_private=False))
    assert [short_name_for_url(r.clone_url) for r in public_only] == ["site"]


def test_user_listing(fake_github) -> None:
    fake_github.add("/users/octo", {"login": "octo", "type": "User", "public_repos": 1})
    fake_github.add("/users/octo/repos", _repos()[:1])
    client = GitHubClient(api_url=fake_github.api_url)
    (repo,) = client.list_repositories("octo", ScanCriteria())
    assert repo.clone_url == "https://github.com/acme/site.git"
    assert repo.is_fork is False


def test_is_fork(fake_github) -> None:
    fake_github.add("/repos/octo/spoon", {"name": "spoon", "fork": True})
    fake_github.add("/repos/octo/hello", {"name": "hello", "fork": False})
    fake_github.add("/repos/octo/flaky", {"message": "boom"}, status=502)
    client = GitHubClient(api_url=fake_github.api_url)

    assert client.is_fork("octo", "spoon") is True
    assert client.is_fork("octo", "hello") is False
    assert client.is_fork("octo", "missing") is False
    assert client.is_fork("octo", "flaky") is False


def test_server_error_raises(fake_github) -> None:
    fake_github.add("/users/acme", {"message": "boom"}, status=500)
    client = GitHubClient(api_url=fake_github.api_url)
    with pytest.raises(HostingApiError, match="HTTP 500"):
        client.owner_exists("acme")


def test_unreachable_api_raises() -> None:
    client = GitHubClient(api_url="http://127.0.0.1:9", timeout_s=2)
    with pytest.raises(HostingApiError):
        client.owner_exists("acme")
