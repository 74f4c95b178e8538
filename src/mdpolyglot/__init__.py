"""mdpolyglot - Markdown documents as executable infrastructure artifacts.

A single Markdown document can double as a Dockerfile, a Terraform
configuration, a set of Kubernetes manifests, a small git repository or a
shell script. mdpolyglot classifies the document, extracts the typed
artifacts it carries, builds an mdast-compatible syntax tree, transpiles the
artifacts into the shape a target tool expects and runs that tool in an
isolated workspace.

Core principles:
- Tolerant parsing: Markdown has no syntax errors, so neither does the parser
- Pure transpilation: no I/O between classification and execution
- Observable fallback: a missing tool yields a mock result, never a crash
- Tagged results: every public entry point returns a success/failure value
"""

__version__ = "0.1.0"
__author__ = "mdpolyglot Contributors"

from mdpolyglot.pipeline import (  # noqa: E402
    PolyglotPipeline,
    execute,
    is_polyglot,
    parse,
    sanitize,
    transpile,
)

__all__ = [
    "PolyglotPipeline",
    "execute",
    "is_polyglot",
    "parse",
    "sanitize",
    "transpile",
    "__version__",
]
