"""Jinja2 filters for rendering execution reports.

Tool output is arbitrary text: it may be huge and it may itself contain
Markdown fences. These filters keep the report readable and well-formed.
"""

import re
from datetime import UTC, datetime

_BACKTICK_RUN_RE = re.compile(r"`{3,}")


def format_datetime(dt: datetime | str | None) -> str:
    """Format a timestamp for display.

    Args:
        dt: Datetime object or ISO string

    Returns:
        ``YYYY-MM-DD HH:MM:SS UTC``, the input string if it is not ISO, or "N/A"
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def truncate_lines(text: str | None, max_lines: int = 40) -> str:
    """Keep the last ``max_lines`` lines of tool output.

    Errors usually show up at the end of a build log, so the head is dropped.

    Examples:
        >>> truncate_lines("a\\nb\\nc", max_lines=2)
        '... [1 more lines] ...\\nb\\nc'
    """
    if not text:
        return ""

    lines = text.rstrip("\n").split("\n")
    if len(lines) <= max_lines:
        return "\n".join(lines)

    hidden = len(lines) - max_lines
    return "\n".join([f"... [{hidden} more lines] ...", *lines[-max_lines:]])


def code_fence(text: str | None, lang: str = "") -> str:
    """Wrap text in a fence longer than any backtick run it contains."""
    body = (text or "").rstrip("\n")
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN_RE.finditer(body)), default=2)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{lang}\n{body}\n{fence}"
