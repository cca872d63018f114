from __future__ import annotations

from typing import Iterable

from .identity import is_builtin_excluded, normalize_email, normalize_name
from .models import AuthorRecord, FilterConfig, MergedRecord


def _record_sort_key(r: AuthorRecord) -> tuple[str, str, str, str]:
    # Case-insensitive first; the exact strings break ties so the order never
    # depends on input order.
    return (r.email.casefold(), r.name.casefold(), r.email, r.name)


def presort_dedupe(records: Iterable[AuthorRecord]) -> list[AuthorRecord]:
    """Drop exact (email, name) duplicates; a pair seen in any fork keeps the fork flag."""
    fork_by_pair: dict[tuple[str, str], bool] = {}
    for r in records:
        pair = (r.email, r.name)
        fork_by_pair[pair] = fork_by_pair.get(pair, False) or r.origin_is_fork
    out = [AuthorRecord(email=e, name=n, origin_is_fork=f) for (e, n), f in fork_by_pair.items()]
    out.sort(key=_record_sort_key)
    return out


def strip_names(records: list[AuthorRecord]) -> list[AuthorRecord]:
    fork_by_email: dict[str, bool] = {}
    for r in records:
        fork_by_email[r.email] = fork_by_email.get(r.email, False) or r.origin_is_fork
    return [AuthorRecord(email=e, name="", origin_is_fork=f) for e, f in fork_by_email.items()]


def serialize(r: AuthorRecord, include_name: bool) -> str:
    if include_name:
        return f"{r.email},{r.name}"
    return r.email


def is_filtered(r: AuthorRecord, config: FilterConfig) -> bool:
    if not r.email.strip() and not r.name.strip():
        return True
    if config.use_builtin_filters and is_builtin_excluded(r.email):
        return True
    s = serialize(r, config.include_name)
    for pat in config.user_patterns:
        if pat and (s == pat or pat in s):
            return True
    return False


def apply_filters(records: list[AuthorRecord], config: FilterConfig) -> list[AuthorRecord]:
    return [r for r in records if not is_filtered(r, config)]


def annotate_forks(records: list[AuthorRecord], enabled: bool) -> list[AuthorRecord]:
    if enabled:
        return records
    return [AuthorRecord(email=r.email, name=r.name) if r.origin_is_fork else r for r in records]


def merge_by_email(records: list[AuthorRecord], include_name: bool) -> list[MergedRecord]:
    """
    Grouped fold keyed by normalized email. Names are collected in encounter
    order. Records without an email are never pooled: each distinct name is
    its own entry, and without names there is nothing left to show.
    """
    names_by_key: dict[tuple[str, str], list[str]] = {}
    fork_by_key: dict[tuple[str, str], bool] = {}
    for r in records:
        email = normalize_email(r.email)
        name = normalize_name(r.name) if include_name else ""
        if email:
            key = (email, "")
        elif name:
            key = ("", name)
        else:
            continue

        names = names_by_key.setdefault(key, [])
        if name and name not in names:
            names.append(name)
        fork_by_key[key] = fork_by_key.get(key, False) or r.origin_is_fork

    return [
        MergedRecord(email=email, names=tuple(names), is_fork=fork_by_key[(email, k2)])
        for (email, k2), names in names_by_key.items()
    ]


def final_sort(merged: list[MergedRecord]) -> list[MergedRecord]:
    return sorted(merged, key=lambda m: (m.email.casefold(), m.names_display.casefold()))


def aggregate(records: Iterable[AuthorRecord], config: FilterConfig) -> list[MergedRecord]:
    rows = presort_dedupe(records)
    if not config.include_name:
        rows = strip_names(rows)
    rows = apply_filters(rows, config)
    rows = annotate_forks(rows, config.include_fork_annotation)
    merged = merge_by_email(rows, config.include_name)
    return final_sort(merged)
