"""Jinja2 filters for execution reports."""

from mdpolyglot.renderers.filters import code_fence, format_datetime, truncate_lines

__all__ = ["code_fence", "format_datetime", "truncate_lines"]
