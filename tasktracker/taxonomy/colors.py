from __future__ import annotations

# Fixed palette for names without an explicit color.
PALETTE: tuple[str, ...] = (
    "#4caf50",
    "#2196f3",
    "#f44336",
    "#ff9800",
    "#9c27b0",
    "#795548",
    "#009688",
    "#e91e63",
    "#3f51b5",
    "#607d8b",
)

NO_CATEGORY_COLOR = "#757575"

DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Work", "#4caf50"),
    ("Personal", "#2196f3"),
    ("Health", "#f44336"),
    ("Finance", "#ff9800"),
    ("Learning", "#9c27b0"),
    ("Home", "#795548"),
    ("Travel", "#009688"),
)


def hash_color(name: str) -> str:
    """Deterministic palette color: sum of code points modulo the palette size."""
    return PALETTE[sum(ord(ch) for ch in name) % len(PALETTE)]


__all__ = ["PALETTE", "NO_CATEGORY_COLOR", "DEFAULT_CATEGORIES", "hash_color"]
