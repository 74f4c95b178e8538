"""Test fixtures for mdpolyglot.

Sample documents, one per language:
- documents/dockerfile.md: Dockerfile with a tag directive
- documents/terraform.md: Two Terraform blocks and a tfvar directive
- documents/kubernetes.md: Deployment, Service and a non-manifest YAML block
- documents/executable.md: Executable directive, env directive, two shell blocks
- documents/git_repo.md: Two file blocks and a commit message
- documents/sql.md: Two SQL blocks, one with a quoted semicolon
- documents/plain.md: Documentation only
"""

from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to sample documents
DOCUMENTS_DIR = FIXTURES_DIR / "documents"


def get_document(name: str) -> Path:
    """Get path to a sample document.

    Args:
        name: Document name without the .md suffix

    Returns:
        Path to the document

    Raises:
        ValueError: If the document doesn't exist
    """
    path = DOCUMENTS_DIR / f"{name}.md"
    if not path.exists():
        raise ValueError(f"Sample document not found: {name}")
    return path


def read_document(name: str) -> str:
    """Read a sample document's text."""
    return get_document(name).read_text(encoding="utf-8")
