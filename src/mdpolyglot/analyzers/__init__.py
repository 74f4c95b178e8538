"""mdpolyglot analyzers - raw-text scanning passes.

This module contains everything that looks at the raw document text rather
than the syntax tree:

Analyzers:
- Scanners: Fence, directive, zero-width and content-link passes
- Classifier: Prioritized language detection and artifact extraction
- Stego: Zero-width payload codec
- Sanitizer: Redaction of every polyglot feature
"""

from mdpolyglot.analyzers.classifier import (
    DETECTORS,
    Classification,
    Classifier,
    classify,
    is_polyglot,
)
from mdpolyglot.analyzers.sanitizer import sanitize
from mdpolyglot.analyzers.scanners import (
    ContentLink,
    Directive,
    FencedBlock,
    scan_content_links,
    scan_directives,
    scan_fences,
    scan_zero_width,
)
from mdpolyglot.analyzers.stego import HiddenPayload, conceal, reveal, strip_zero_width

__all__ = [
    "DETECTORS",
    "Classification",
    "Classifier",
    "ContentLink",
    "Directive",
    "FencedBlock",
    "HiddenPayload",
    "classify",
    "conceal",
    "is_polyglot",
    "reveal",
    "sanitize",
    "scan_content_links",
    "scan_directives",
    "scan_fences",
    "scan_zero_width",
    "strip_zero_width",
]
