from __future__ import annotations

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from .errors import RepositoryUnreachable, UnsafeDestination
from .git import clone_bare, fast_forward, is_bare_copy_of, repo_exist_not_empty
from .models import RepositoryLocation

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]


def _location_hash(url: str) -> str:
    return hashlib.sha256((url or "").strip().encode("utf-8")).hexdigest()[:8]


def destination_paths(workspace: Path, locations: tuple[RepositoryLocation, ...]) -> list[Path]:
    """
    One destination per location. The first location with a given short name
    gets `<workspace>/<short name>`; later ones get a location-hash suffix so
    two repositories called `docs` never share a directory.
    """
    used: set[str] = set()
    out: list[Path] = []
    for loc in locations:
        name = loc.short_name or _location_hash(loc.url)
        if name in used:
            name = f"{name}-{_location_hash(loc.url)}"
        used.add(name)
        out.append(workspace / name)
    return out


def _side_path(destination: Path) -> Path:
    return destination.with_name("_" + destination.name)


def _clone_into(location: RepositoryLocation, destination: Path) -> None:
    code, err = clone_bare(location.url, destination)
    if code != 0:
        shutil.rmtree(destination, ignore_errors=True)
        logger.debug("clone of %s failed: %s", location.short_name, err.strip()[:300])
        raise RepositoryUnreachable(f"repository out of reach: {location.short_name}")


def ensure_local(
    location: RepositoryLocation,
    destination: Path,
    update: bool,
    *,
    notify: Optional[Notify] = None,
) -> Optional[Path]:
    """
    Make sure a queryable copy of `location` exists and return its path.

    Returns None when the remote turns out to be empty; that repository is
    skipped rather than failing the scan. An existing destination is only
    updated or replaced when it is a bare copy of the same location.
    """

    def say(msg: str) -> None:
        if notify is not None:
            notify(msg)

    if location.is_local and not update:
        return Path(location.local_path)

    if not destination.exists():
        say("Downloading...")
        if not repo_exist_not_empty(location.url):
            say("Repo empty, skipping...")
            return None
        _clone_into(location, destination)
        return destination

    if not update:
        return destination

    if not is_bare_copy_of(destination, location.url):
        raise UnsafeDestination(f"refusing to update {destination}: not a copy of {location.short_name} made by git-email")

    say("Updating...")
    code, err = fast_forward(destination)
    if code == 0:
        return destination

    logger.debug("update of %s failed: %s", destination, err.strip()[:300])
    say("Failed. Downloading...")
    if not repo_exist_not_empty(location.url):
        say("Repo empty, skipping...")
        return None

    side = _side_path(destination)
    if side.exists():
        if not is_bare_copy_of(side, location.url):
            raise UnsafeDestination(f"refusing to replace {side}: not a copy of {location.short_name} made by git-email")
        shutil.rmtree(side)
    _clone_into(location, side)
    shutil.rmtree(destination)
    side.rename(destination)
    return destination
