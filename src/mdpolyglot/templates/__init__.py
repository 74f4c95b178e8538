"""Jinja2-based execution report rendering."""

from mdpolyglot.templates.renderer import ReportEntry, ReportRenderer

__all__ = ["ReportEntry", "ReportRenderer"]
