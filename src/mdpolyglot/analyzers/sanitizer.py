"""Sanitizer: strip every polyglot feature from a document.

Produces a redacted copy with:
- all ``polyglot:``/``kyozo:`` HTML comments removed (whole line when the
  comment is alone on its line, otherwise just the span)
- all zero-width characters removed
- content-hash link targets (40+ hex chars) rewritten to ``#``

Sanitizing already-sanitized content is a no-op.
"""

import logging
import re

from mdpolyglot.analyzers.scanners import CONTENT_LINK_RE
from mdpolyglot.analyzers.stego import strip_zero_width

logger = logging.getLogger(__name__)

# Tempered body: never runs past the first "-->"
_DIRECTIVE_BODY = r"<!--\s*(?:polyglot|kyozo):(?:(?!-->).)*-->"

DIRECTIVE_LINE_RE = re.compile(
    rf"^[ \t]*{_DIRECTIVE_BODY}[ \t]*(?:\r?\n|\Z)",
    re.MULTILINE | re.DOTALL,
)
DIRECTIVE_SPAN_RE = re.compile(_DIRECTIVE_BODY, re.DOTALL)


def remove_directives(text: str) -> str:
    """Remove polyglot/kyozo comments."""
    text = DIRECTIVE_LINE_RE.sub("", text)
    return DIRECTIVE_SPAN_RE.sub("", text)


def neutralize_content_links(text: str) -> str:
    """Rewrite ``[text](<hash>)`` links to ``[text](#)``."""
    return CONTENT_LINK_RE.sub(lambda m: f"[{m.group('text')}](#)", text)


def sanitize(text: str) -> str:
    """Return a copy of the document with all polyglot features neutralized."""
    sanitized = text
    # Removing one span can splice a new directive together, so run to a fixed point
    while True:
        # Zero-width characters go first: they can hide inside directive markers
        cleaned = neutralize_content_links(remove_directives(strip_zero_width(sanitized)))
        if cleaned == sanitized:
            break
        sanitized = cleaned

    if sanitized != text:
        logger.debug("Sanitized document (%d -> %d characters)", len(text), len(sanitized))
    return sanitized
