"""Read and write the free-text ``category`` and ``tags`` task fields.

Two encodings coexist in stored data: a plain ``name`` and ``name:#rrggbb``.
Both are accepted when reading; the encoded form is what the registry writes.
"""
from __future__ import annotations

import re
from collections.abc import Iterable

COLOR_RE = re.compile(r"^#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
TAG_SEPARATOR = ", "


def is_color(value: str | None) -> bool:
    return bool(value) and bool(COLOR_RE.match(str(value).strip()))


def decode(value: str | None) -> tuple[str, str | None]:
    """Split ``name:color`` into its parts.

    The suffix after the first colon only counts as a color when it looks like
    a hex color; otherwise the whole trimmed value is the name.
    """
    text = (value or "").strip()
    name, sep, color = text.partition(":")
    if sep and is_color(color):
        return name.strip(), color.strip().lower()
    return text, None


def encode(name: str, color: str | None = None) -> str:
    name = name.strip()
    if color and is_color(color):
        return f"{name}:{color.strip().lower()}"
    return name


def decoded_name(value: str | None) -> str:
    return decode(value)[0]


def split_tags(value: str | None) -> list[tuple[str, str | None]]:
    """Decode a comma-separated tags field; empty entries are dropped."""
    if not value:
        return []
    out: list[tuple[str, str | None]] = []
    for raw in value.split(","):
        if not raw.strip():
            continue
        name, color = decode(raw)
        if name:
            out.append((name, color))
    return out


def tag_names(value: str | None) -> list[str]:
    """Distinct tag names in first-seen order."""
    seen: dict[str, None] = {}
    for name, _color in split_tags(value):
        seen.setdefault(name, None)
    return list(seen)


def join_tags(entries: Iterable[tuple[str, str | None]]) -> str | None:
    parts = [encode(name, color) for name, color in entries if name.strip()]
    return TAG_SEPARATOR.join(parts) if parts else None


def add_tag(value: str | None, name: str, color: str | None = None) -> str | None:
    """Append a tag to a tags field unless a tag with that name is present."""
    entries = split_tags(value)
    name = name.strip()
    if not name or any(existing == name for existing, _ in entries):
        return join_tags(entries)
    entries.append((name, color))
    return join_tags(entries)


def remove_tag(value: str | None, name: str) -> str | None:
    entries = [(n, c) for n, c in split_tags(value) if n != name.strip()]
    return join_tags(entries)


__all__ = [
    "COLOR_RE",
    "TAG_SEPARATOR",
    "add_tag",
    "decode",
    "decoded_name",
    "encode",
    "is_color",
    "join_tags",
    "remove_tag",
    "split_tags",
    "tag_names",
]
