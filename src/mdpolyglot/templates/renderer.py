"""Execution report renderer.

Renders execution results to Markdown using Jinja2 templates shipped with
the package. Output is deterministic apart from the ``generated_at`` stamp,
which callers may pin.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from mdpolyglot.models.results import ExecutionResult
from mdpolyglot.renderers.filters import code_fence, format_datetime, truncate_lines

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = "report.md.j2"


@dataclass
class ReportEntry:
    """One document's line in a report.

    Attributes:
        document_id: Identifier given to the content provider
        result: Execution result
        language: Document classification, if the document was parsed
    """

    document_id: str
    result: ExecutionResult
    language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for template context."""
        return {
            "document_id": self.document_id,
            "language": self.language,
            "result": self.result.to_dict(),
        }


class ReportRenderer:
    """Renders execution results to a Markdown report.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render([ReportEntry("deploy.md", result, "kubernetes")])
    """

    def __init__(self, max_output_lines: int = 40) -> None:
        """Initialize the renderer.

        Args:
            max_output_lines: Tool output lines kept per document
        """
        self.max_output_lines = max_output_lines

        self._env = Environment(
            loader=PackageLoader("mdpolyglot", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["truncate_lines"] = truncate_lines
        self._env.filters["code_fence"] = code_fence

    def render(
        self,
        entries: list[ReportEntry],
        generated_at: datetime | None = None,
        template_name: str = REPORT_TEMPLATE,
    ) -> str:
        """Render report entries to Markdown.

        Args:
            entries: Results to include, in order
            generated_at: Report timestamp (now if None)
            template_name: Template file to use

        Returns:
            Rendered Markdown

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateError as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        succeeded = sum(1 for entry in entries if entry.result.ok)
        context = {
            "entries": [entry.to_dict() for entry in entries],
            "generated_at": generated_at or datetime.now(UTC),
            "succeeded": succeeded,
            "failed": len(entries) - succeeded,
            "max_output_lines": self.max_output_lines,
        }

        try:
            rendered = template.render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered report (%d characters)", len(rendered))
        return rendered

    def render_to_file(
        self,
        entries: list[ReportEntry],
        output_path: Path,
        generated_at: datetime | None = None,
    ) -> Path:
        """Render a report and write it to a file.

        Args:
            entries: Results to include
            output_path: Path to write
            generated_at: Report timestamp (now if None)

        Returns:
            Path to written file
        """
        content = self.render(entries, generated_at)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info("Wrote report to %s", output_path)
        return output_path
