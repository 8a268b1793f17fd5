"""Small text helpers shared by the report sections."""

from typing import List, Sequence


def format_count(value) -> str:
    """Format a count with thousands separators."""
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return '0'


def plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


def counted(count: int, word: str) -> str:
    """'1 commit', '1,204 commits'."""
    return f"{format_count(count)} {plural(count, word)}"


def format_table(rows: Sequence[Sequence]) -> str:
    """Render rows as a fixed-width table inside a text code fence.

    Every column except the last is padded to its widest cell plus two spaces.
    """
    if not rows:
        return ''
    widths: List[int] = []
    for row in rows:
        for idx, cell in enumerate(row):
            text = str(cell)
            if idx >= len(widths):
                widths.append(len(text))
            else:
                widths[idx] = max(widths[idx], len(text))

    lines = []
    for row in rows:
        parts = []
        for idx, cell in enumerate(row):
            text = str(cell)
            if idx == len(row) - 1:
                parts.append(text)
            else:
                parts.append(text.ljust(widths[idx] + 2))
        lines.append(''.join(parts))
    body = '\n'.join(lines)
    return f"```text\n{body}\n```"
