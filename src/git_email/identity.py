from __future__ import annotations

NOREPLY_DOMAIN = "users.noreply.github.com"
CI_BOT_EMAIL = "actions@github.com"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_name(name: str) -> str:
    return name.strip()


def is_noreply_email(email: str) -> bool:
    """
    Platform-generated addresses:
      - username@users.noreply.github.com
      - 123456+username@users.noreply.github.com
    """
    e = normalize_email(email)
    return bool(e) and e.endswith("@" + NOREPLY_DOMAIN)


def is_ci_bot_email(email: str) -> bool:
    return normalize_email(email) == CI_BOT_EMAIL


def is_builtin_excluded(email: str) -> bool:
    e = normalize_email(email)
    if not e:
        return True
    return is_noreply_email(e) or is_ci_bot_email(e)
