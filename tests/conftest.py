"""Shared pytest fixtures for mdpolyglot tests.

This module provides common fixtures used across unit and integration
tests. Fixtures are organized by category:
- Document fixtures: Sample polyglot documents
- Configuration fixtures: Test configs for various scenarios
- Process fixtures: Fake tool binaries and child processes for executors
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from mdpolyglot.config import PolyglotConfig, load_config_from_dict
from mdpolyglot.pipeline import PolyglotPipeline
from mdpolyglot.utils.logging import ROOT_LOGGER
from tests.fixtures import DOCUMENTS_DIR, read_document
from tests.fixtures.processes import FakeProcesses

# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo CLI logging setup so caplog keeps seeing records."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Document Fixtures
# =============================================================================


@pytest.fixture
def documents_dir() -> Path:
    """Return the path to the sample documents."""
    return DOCUMENTS_DIR


@pytest.fixture
def dockerfile_doc() -> str:
    """Document with a single Dockerfile and a tag directive."""
    return read_document("dockerfile")


@pytest.fixture
def terraform_doc() -> str:
    """Document with two Terraform blocks."""
    return read_document("terraform")


@pytest.fixture
def kubernetes_doc() -> str:
    """Document with a Deployment and a Service."""
    return read_document("kubernetes")


@pytest.fixture
def executable_doc() -> str:
    """Document with the executable directive and two shell blocks."""
    return read_document("executable")


@pytest.fixture
def git_doc() -> str:
    """Document with two file blocks."""
    return read_document("git_repo")


@pytest.fixture
def sql_doc() -> str:
    """Document with two SQL blocks."""
    return read_document("sql")


@pytest.fixture
def plain_doc() -> str:
    """Documentation-only document."""
    return read_document("plain")


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def minimal_config() -> dict[str, Any]:
    """Return a minimal valid configuration."""
    return {
        "output": {
            "path": "polyglot-report.md",
            "format": "markdown",
        }
    }


@pytest.fixture
def full_config() -> dict[str, Any]:
    """Return a configuration touching every section."""
    return {
        "execution": {"timeout": 60, "mock_missing_tools": False},
        "docker": {"tag": "demo:dev"},
        "terraform": {"plan_args": ["-refresh=false"]},
        "kubernetes": {"namespace": "dev", "context": "kind-dev"},
        "git": {
            "author_name": "Ada",
            "author_email": "ada@example.com",
            "commit_message": "Bootstrap",
        },
        "shell": {"preferred": "sh"},
        "sql": {"client": "psql", "database": "postgres://localhost/app"},
        "output": {"path": "out/report.json", "format": "json"},
        "ci": {"json_output": True, "fail_on_error": False},
    }


@pytest.fixture
def config(tmp_path: Path) -> PolyglotConfig:
    """Default configuration with workspaces under tmp_path."""
    return load_config_from_dict({"execution": {"workspace_root": str(tmp_path / "workspaces")}})


@pytest.fixture
def strict_config(tmp_path: Path) -> PolyglotConfig:
    """Configuration that reports missing tools instead of mocking them."""
    return load_config_from_dict(
        {
            "execution": {
                "workspace_root": str(tmp_path / "workspaces"),
                "mock_missing_tools": False,
            }
        }
    )


@pytest.fixture
def pipeline(config: PolyglotConfig) -> PolyglotPipeline:
    """Pipeline bound to the test configuration."""
    return PolyglotPipeline(config)


# =============================================================================
# Process Fixtures
# =============================================================================


@pytest.fixture
def tools_present() -> Iterator[None]:
    """Every binary resolves on PATH."""
    with patch("mdpolyglot.executors.base.shutil.which", side_effect=lambda name: f"/usr/bin/{name}"):
        yield


@pytest.fixture
def tools_absent() -> Iterator[None]:
    """No binary resolves on PATH."""
    with patch("mdpolyglot.executors.base.shutil.which", return_value=None):
        yield


@pytest.fixture
def fake_processes(tools_present: None) -> Iterator[FakeProcesses]:
    """Replace child processes with a recorder (tools appear installed)."""
    fake = FakeProcesses()
    with patch("mdpolyglot.executors.base.run_process", side_effect=fake):
        yield fake
