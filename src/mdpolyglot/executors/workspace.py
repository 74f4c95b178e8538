"""Isolated working directories for executor runs.

Each run gets a freshly named directory that is removed on every exit path.
Names combine the process id, a random per-allocator token and a counter, so
concurrent runs never share a directory; ``mkdir`` without ``exist_ok``
turns any collision into an error instead of silent sharing.
"""

import itertools
import logging
import os
import secrets
import shutil
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class WorkspaceAllocator:
    """Hands out uniquely named temporary directories.

    Usage:
        allocator = WorkspaceAllocator(prefix="polyglot_tf_")
        with allocator.acquire() as workspace:
            (workspace / "main.tf").write_text(configuration)
    """

    def __init__(self, prefix: str = "polyglot_", root: str | Path | None = None) -> None:
        """Initialize allocator.

        Args:
            prefix: Directory name prefix
            root: Parent directory (system temp directory if None)
        """
        self.prefix = prefix
        self.root = Path(root) if root is not None else None
        self._token = secrets.token_hex(4)
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_name(self) -> str:
        """Return the next unique directory name."""
        with self._lock:
            n = next(self._counter)
        return f"{self.prefix}{os.getpid()}_{self._token}_{n}"

    @contextmanager
    def acquire(self) -> Iterator[Path]:
        """Create a workspace directory and remove it on exit.

        Yields:
            Path to the empty workspace directory
        """
        base = self.root if self.root is not None else Path(tempfile.gettempdir())
        base.mkdir(parents=True, exist_ok=True)
        path = base / self.next_name()
        path.mkdir()
        logger.debug("Acquired workspace %s", path)
        try:
            yield path
        finally:
            shutil.rmtree(path, ignore_errors=True)
            logger.debug("Released workspace %s", path)


def resolve_inside(workspace: Path, relative: str) -> Path | None:
    """Resolve ``relative`` under ``workspace``.

    Returns:
        The resolved path, or None if it would escape the workspace
        (absolute paths, ``..`` segments, symlinks pointing outside)
    """
    root = workspace.resolve()
    candidate = (root / relative).resolve()
    if candidate == root or not candidate.is_relative_to(root):
        return None
    return candidate
