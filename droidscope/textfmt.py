"""Plain-text formatting for the data panel: truncation, sizes, wrapping and rows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from droidscope.app_data_formats import PreferenceRow

ELLIPSIS = "…"


def truncate(text: str, max_width: int) -> str:
    """Cut ``text`` to at most ``max_width`` characters, ending with an ellipsis if cut."""
    if max_width <= 0:
        return ""
    if len(text) <= max_width:
        return text
    return text[: max_width - 1] + ELLIPSIS


def format_size(size: int) -> str:
    """A short human-readable size: bytes, then KiB and MiB with one decimal."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}K"
    return f"{size / (1024 * 1024):.1f}M"


def wrap_lines(lines: Sequence[str], width: int) -> list[str]:
    """Hard-wrap each line into chunks of ``width`` characters.

    Empty lines are kept; the result is never empty unless ``width`` is zero.
    """
    if width <= 0:
        return list(lines)
    wrapped: list[str] = []
    for line in lines:
        if not line:
            wrapped.append("")
            continue
        wrapped.extend(line[start:start + width] for start in range(0, len(line), width))
    return wrapped or [""]


def visible_start(selected: int, visible_height: int) -> int:
    """The first row to show so that ``selected`` sits within the window."""
    if selected >= visible_height:
        return selected - visible_height + 1
    return 0


def format_table_row(row: Iterable[str]) -> str:
    """Join table cells with `` | `` on one line."""
    return " | ".join(cell.replace("\n", " ") for cell in row)


def format_preference_row(row: PreferenceRow) -> str:
    """A key, type and value line laid out in fixed columns."""
    key = truncate(row.key, 24)
    value_type = truncate(row.value_type, 10)
    value = row.value.replace("\n", " ")
    return f"{key:<24} {value_type:<10} {value}"