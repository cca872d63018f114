from __future__ import annotations

import dataclasses
import json
import logging
import urllib.error
import urllib.parse
import urllib.request

from .errors import HostingApiError
from .models import ScanCriteria

logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"


def api_url_for_host(host: str) -> str:
    h = (host or "").strip().rstrip("/") or DEFAULT_HOST
    if h == DEFAULT_HOST:
        return "https://api.github.com"
    # GitHub Enterprise Server serves the REST API under /api/v3.
    return f"https://{h}/api/v3"


@dataclasses.dataclass(frozen=True)
class ListedRepository:
    clone_url: str
    is_fork: bool


class GitHubClient:
    """
    Minimal account capability over the GitHub REST API.

    Only single listing calls are made; pagination is out of scope, so accounts
    with more than `per_page` repositories are truncated.
    """

    def __init__(self, *, host: str = DEFAULT_HOST, api_url: str = "", token: str = "", timeout_s: int = 30, per_page: int = 100) -> None:
        self.host = (host or DEFAULT_HOST).strip()
        self.api_url = (api_url or api_url_for_host(self.host)).rstrip("/")
        self.token = (token or "").strip()
        self.timeout_s = timeout_s
        self.per_page = per_page
        self._users: dict[str, dict | None] = {}

    def _get_json(self, path: str, params: dict[str, str] | None = None) -> object | None:
        url = f"{self.api_url}/{path.lstrip('/')}"
        if params:
            url = url + "?" + urllib.parse.urlencode(params)
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "git-email",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        req = urllib.request.Request(url, method="GET", headers=headers)
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
                body = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return None
            try:
                payload = e.read().decode("utf-8", errors="replace")
            except OSError:
                payload = ""
            raise HostingApiError(f"GET {path} failed: HTTP {e.code}: {payload[:300]}") from e
        except urllib.error.URLError as e:
            raise HostingApiError(f"GET {path} failed: {e.reason}") from e
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise HostingApiError(f"GET {path} returned invalid JSON") from e

    def _user(self, owner: str) -> dict | None:
        key = owner.strip().lower()
        if key not in self._users:
            obj = self._get_json(f"users/{urllib.parse.quote(owner.strip())}")
            self._users[key] = obj if isinstance(obj, dict) else None
        return self._users[key]

    def owner_exists(self, owner: str) -> bool:
        return self._user(owner) is not None

    def owner_is_organization(self, owner: str) -> bool:
        user = self._user(owner) or {}
        return str(user.get("type", "")) == "Organization"

    def owner_repository_count(self, owner: str) -> int:
        user = self._user(owner) or {}
        public = int(user.get("public_repos", 0) or 0)
        # Only present when the token can see the owner's private repositories.
        private = int(user.get("total_private_repos", 0) or 0)
        return public + private

    def list_repositories(self, owner: str, criteria: ScanCriteria) -> list[ListedRepository]:
        kind = "orgs" if self.owner_is_organization(owner) else "users"
        obj = self._get_json(
            f"{kind}/{urllib.parse.quote(owner.strip())}/repos",
            params={"per_page": str(self.per_page), "type": "all"},
        )
        if not isinstance(obj, list):
            return []
        out: list[ListedRepository] = []
        for item in obj:
            if not isinstance(item, dict):
                continue
            clone_url = str(item.get("clone_url", "") or "").strip()
            if not clone_url:
                continue
            is_fork = bool(item.get("fork", False))
            is_private = bool(item.get("private", False))
            if is_fork and not criteria.include_forks:
                continue
            if is_private and not criteria.include_private:
                continue
            out.append(ListedRepository(clone_url=clone_url, is_fork=is_fork))
        return out

    def is_fork(self, owner: str, repo: str) -> bool:
        try:
            obj = self._get_json(f"repos/{urllib.parse.quote(owner)}/{urllib.parse.quote(repo)}")
        except HostingApiError as e:
            logger.debug("fork lookup for %s/%s failed: %s", owner, repo, e)
            return False
        return isinstance(obj, dict) and bool(obj.get("fork", False))
