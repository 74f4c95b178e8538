"""Content providers and result sinks.

The pipeline talks to storage through two narrow contracts:

- ContentProvider.get_document(id) -> raw text, or None when not found
- ResultSink.store_result(id, result) -> True when stored, False otherwise

Neither contract raises for expected failures (missing document, unwritable
directory); those are logged and reported through the return value.
"""

import json
import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from mdpolyglot.models.results import ExecutionResult
from mdpolyglot.templates.renderer import ReportEntry, ReportRenderer

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class ContentProvider(Protocol):
    """Source of raw document text."""

    def get_document(self, document_id: str) -> str | None:
        """Return the document text, or None if it does not exist."""
        ...


@runtime_checkable
class ResultSink(Protocol):
    """Destination for execution results."""

    def store_result(self, document_id: str, result: ExecutionResult) -> bool:
        """Persist a result; return whether it was stored."""
        ...


# =============================================================================
# Content providers
# =============================================================================


class FileSystemContentProvider:
    """Reads documents from files under a root directory.

    Document ids are paths relative to the root; ids that resolve outside the
    root are treated as not found.
    """

    def __init__(self, root: Path | str = ".") -> None:
        self.root = Path(root).resolve()

    def get_document(self, document_id: str) -> str | None:
        path = (self.root / document_id).resolve()
        if not path.is_relative_to(self.root) or not path.is_file():
            logger.debug("Document not found: %s", document_id)
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", path, e)
            return None


class InMemoryContentProvider:
    """Serves documents from a dictionary (tests, embedding)."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self.documents = dict(documents or {})

    def get_document(self, document_id: str) -> str | None:
        return self.documents.get(document_id)


# =============================================================================
# Result sinks
# =============================================================================


class InMemoryResultSink:
    """Keeps results in a dictionary, last write wins."""

    def __init__(self) -> None:
        self.results: dict[str, ExecutionResult] = {}

    def store_result(self, document_id: str, result: ExecutionResult) -> bool:
        self.results[document_id] = result
        return True


class JsonResultSink:
    """Writes one ``<document>.json`` file per result."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, document_id: str) -> Path:
        """File a document's result is written to."""
        name = _UNSAFE_NAME_RE.sub("_", document_id).strip("._") or "document"
        return self.directory / f"{name}.json"

    def store_result(self, document_id: str, result: ExecutionResult) -> bool:
        path = self.path_for(document_id)
        payload = {"document_id": document_id, **result.to_dict()}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to store result for %s: %s", document_id, e)
            return False
        logger.info("Stored result for %s in %s", document_id, path)
        return True


class MarkdownReportSink:
    """Accumulates results and re-renders a Markdown report on every store.

    Attributes:
        path: Report file
        entries: Results stored so far, one per document id
    """

    def __init__(self, path: Path | str, renderer: ReportRenderer | None = None) -> None:
        self.path = Path(path)
        self.renderer = renderer or ReportRenderer()
        self.entries: dict[str, ReportEntry] = {}

    def store_result(self, document_id: str, result: ExecutionResult) -> bool:
        self.entries[document_id] = ReportEntry(document_id, result)
        try:
            self.renderer.render_to_file(list(self.entries.values()), self.path)
        except (OSError, ValueError) as e:
            logger.error("Failed to write report %s: %s", self.path, e)
            return False
        return True
