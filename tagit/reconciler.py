"""Pure tag arithmetic: which tags we own, and whether they need rewriting.

A tag is *managed* when it starts with ``<prefix>-``. Everything else is
foreign and is carried through untouched.
"""
from __future__ import annotations

from typing import Iterable


def managed_tag(prefix: str, value: str) -> str:
    return f"{prefix}-{value}"


def is_managed(tag: str, prefix: str) -> bool:
    return tag.startswith(prefix + "-")


def parse_probe_output(raw: bytes | str, prefix: str) -> set[str]:
    """Turn whitespace separated probe values into managed tags."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return {managed_tag(prefix, v) for v in raw.split()}


def partition(tags: Iterable[str], prefix: str) -> tuple[set[str], list[str]]:
    """Split ``tags`` into (managed set, foreign list in original order)."""
    managed: set[str] = set()
    foreign: list[str] = []
    for tag in tags:
        if is_managed(tag, prefix):
            managed.add(tag)
        else:
            foreign.append(tag)
    return managed, foreign


def needs_update(current: Iterable[str], candidate: Iterable[str], prefix: str) -> tuple[list[str], bool]:
    """Compare managed tags in ``current`` against ``candidate``.

    Returns ``([], False)`` when the managed tags already match, otherwise the
    full tag list to register (foreign tags first, then the sorted candidate
    tags, without duplicates) and ``True``.
    """
    managed, foreign = partition(current, prefix)
    wanted = set(candidate)
    if not managed ^ wanted:
        return [], False

    new_tags: list[str] = []
    seen: set[str] = set()
    for tag in [*foreign, *sorted(wanted)]:
        if tag not in seen:
            seen.add(tag)
            new_tags.append(tag)
    return new_tags, True


def strip_managed(current: Iterable[str], prefix: str) -> tuple[list[str], bool]:
    return needs_update(current, (), prefix)
