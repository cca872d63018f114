from __future__ import annotations

import json
import os
from pathlib import Path

from .errors import InvalidConfig
from .github import DEFAULT_HOST, GitHubClient

DEFAULT_CONFIG_PATH = Path("git-email.json")


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfig(f"cannot read config file: {config_path} ({e})") from e
    if not isinstance(data, dict):
        raise InvalidConfig(f"config must be a JSON object: {config_path}")
    return data


def github_token() -> str:
    for var in ("GH_TOKEN", "GITHUB_TOKEN"):
        v = os.environ.get(var, "").strip()
        if v:
            return v
    return ""


def github_host(config: dict) -> str:
    env_host = os.environ.get("GH_HOST", "").strip()
    if env_host:
        return env_host
    return str(config.get("github_host", "") or "").strip() or DEFAULT_HOST


def config_filters(config: dict) -> list[str]:
    return [str(f) for f in (config.get("filters") or []) if str(f).strip()]


def config_flag(config: dict, key: str) -> bool:
    return bool(config.get(key, False))


def build_github_client(config: dict) -> GitHubClient:
    return GitHubClient(
        host=github_host(config),
        api_url=str(config.get("github_api_url", "") or "").strip(),
        token=github_token(),
    )
