from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import urlparse, urlunparse

from .errors import (
    AccountHasNoRepositories,
    EmptyRepository,
    EmptyTarget,
    HostingApiError,
    NoMatchingRepositories,
    NotARepository,
    TargetNotFound,
)
from .git import find_repository_markers, remote_path_label, repo_exist_not_empty, short_name_for_url
from .github import GitHubClient
from .models import RepositoryLocation, ScanCriteria, ScanSet, TargetKind

logger = logging.getLogger(__name__)

SHORTHAND_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def resolve_local_directory(directory: Path) -> ScanSet:
    markers = find_repository_markers(directory)
    if not markers:
        raise EmptyTarget(f"empty directory: {directory}")

    locations: list[RepositoryLocation] = []
    for marker in markers:
        git_dir = marker.parent.resolve()
        if not repo_exist_not_empty(str(git_dir)):
            name = git_dir.parent.name if git_dir.name == ".git" else git_dir.name
            raise NotARepository(f"directory is not a Git repository: {name}")
        url = f"file://{git_dir.as_posix()}"
        locations.append(RepositoryLocation(url=url, short_name=short_name_for_url(url)))

    label = directory.resolve().name or str(directory)
    return ScanSet(label=label, locations=tuple(locations), kind=TargetKind.LOCAL_DIRECTORY)


def with_token(clone_url: str, token: str) -> str:
    """Embed `token` in an https clone URL so git can reach private repositories without a prompt."""
    if not token:
        return clone_url
    parsed = urlparse(clone_url)
    if parsed.scheme != "https" or not parsed.netloc or "@" in parsed.netloc:
        return clone_url
    return urlunparse(parsed._replace(netloc=f"{token}@{parsed.netloc}"))


def shorthand_clone_url(target: str, *, host: str, token: str = "") -> str:
    return with_token(f"https://{host}/{target}", token)


def _resolve_shorthand(target: str, client: GitHubClient, *, annotate_forks: bool) -> ScanSet:
    url = shorthand_clone_url(target, host=client.host, token=client.token)
    if not repo_exist_not_empty(url):
        raise EmptyRepository(f"repository empty: {target}")
    is_fork = False
    if annotate_forks:
        owner, repo = target.split("/", 1)
        is_fork = client.is_fork(owner, repo)
    loc = RepositoryLocation(url=url, short_name=short_name_for_url(target), is_fork=is_fork)
    return ScanSet(label=target, locations=(loc,), kind=TargetKind.SHORTHAND)


def _resolve_account(target: str, client: GitHubClient, criteria: ScanCriteria) -> ScanSet | None:
    try:
        if not client.owner_exists(target):
            return None
        if client.owner_repository_count(target) <= 0:
            raise AccountHasNoRepositories(f"owner has no accessible repository: {target}")
        listed = client.list_repositories(target, criteria)
    except HostingApiError as e:
        raise TargetNotFound(f"target not found or empty: {target} ({e})") from e

    if not listed:
        if not criteria.include_forks:
            raise NoMatchingRepositories(f"owner has no accessible repository matching criteria: {target}")
        raise TargetNotFound(f"target not found or empty: {target}")

    locations = tuple(
        RepositoryLocation(
            url=with_token(r.clone_url, client.token),
            short_name=short_name_for_url(r.clone_url),
            is_fork=r.is_fork,
        )
        for r in listed
    )
    logger.debug("account %s: %d repositories after filtering", target, len(locations))
    return ScanSet(label=target, locations=locations, kind=TargetKind.ACCOUNT)


def resolve(
    target: str,
    criteria: ScanCriteria,
    client: GitHubClient,
    *,
    annotate_forks: bool = True,
) -> ScanSet:
    """
    Turn a target string into a ScanSet. Classification order matters: a local
    directory wins over everything, a reachable URL wins over the shorthand.
    """
    t = (target or "").strip()
    if not t:
        raise TargetNotFound("no target provided")

    if Path(t).is_dir():
        return resolve_local_directory(Path(t))

    if repo_exist_not_empty(t):
        loc = RepositoryLocation(url=t, short_name=short_name_for_url(t))
        return ScanSet(label=remote_path_label(t), locations=(loc,), kind=TargetKind.REMOTE_URL)

    if SHORTHAND_RE.match(t):
        return _resolve_shorthand(t, client, annotate_forks=annotate_forks)

    scan = _resolve_account(t, client, criteria)
    if scan is not None:
        return scan

    raise TargetNotFound(f"target not found or empty: {t}")


def read_input_targets(input_file: Path) -> list[str]:
    if not input_file.is_file():
        raise TargetNotFound(f"file not found: {input_file}")
    targets: list[str] = []
    for line in input_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line:
            targets.append(line)
    return targets


def resolve_input_file(
    input_file: Path,
    criteria: ScanCriteria,
    client: GitHubClient,
    *,
    annotate_forks: bool = True,
) -> ScanSet:
    locations: list[RepositoryLocation] = []
    for t in read_input_targets(input_file):
        locations.extend(resolve(t, criteria, client, annotate_forks=annotate_forks).locations)
    return ScanSet(label=input_file.name, locations=tuple(locations), kind=TargetKind.INPUT_FILE)


def resolve_targets(
    *,
    target: str,
    input_file: Path | None,
    criteria: ScanCriteria,
    client: GitHubClient,
    annotate_forks: bool = True,
) -> ScanSet:
    """Resolve the positional target and/or the input file into one ScanSet."""
    if input_file is None:
        return resolve(target, criteria, client, annotate_forks=annotate_forks)

    scan = resolve_input_file(input_file, criteria, client, annotate_forks=annotate_forks)
    t = (target or "").strip()
    if t and t not in read_input_targets(input_file):
        scan = scan.merged_with(resolve(t, criteria, client, annotate_forks=annotate_forks))
    return scan
