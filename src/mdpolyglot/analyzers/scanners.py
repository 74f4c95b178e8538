"""Independent scanning passes over raw document text.

Metadata scanning deliberately ignores the syntax tree so it can see content
the AST builder simplifies away. Each pass is a plain function returning
typed records and can be tested on its own:

- scan_fences: fenced code blocks with their info strings
- scan_directives: ``<!-- polyglot:... -->`` / ``<!-- kyozo:... -->`` comments
- scan_zero_width: zero-width character runs (see stego)
- scan_content_links: Markdown links whose target is a content hash
"""

import json
import logging
import re
import shlex
from dataclasses import dataclass, field
from typing import Any

from mdpolyglot.analyzers.stego import HiddenPayload, find_payloads

logger = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(
    r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\n]*?)[ \t\r]*\n",
    re.MULTILINE,
)
COMMENT_RE = re.compile(r"<!--(?P<body>.*?)-->", re.DOTALL)
DIRECTIVE_RE = re.compile(r"^\s*(?P<ns>polyglot|kyozo):(?P<rest>.*?)\s*$", re.DOTALL)
DIRECTIVE_NAME_RE = re.compile(r"^(?P<name>[\w.-]+)(?:[=:](?P<value>\S*))?")
CONTENT_LINK_RE = re.compile(r"\[(?P<text>[^\]]*)\]\(\s*(?P<hash>[0-9a-fA-F]{40,})\s*\)")

POLYGLOT = "polyglot"
KYOZO = "kyozo"


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


# =============================================================================
# Fenced code blocks
# =============================================================================


@dataclass(frozen=True)
class FencedBlock:
    """A fenced code block found in raw text.

    Attributes:
        info: Full info string after the opening fence
        content: Block content without fences
        line: 1-based line of the opening fence
    """

    info: str
    content: str
    line: int

    @property
    def lang(self) -> str:
        """Lower-cased first word of the info string."""
        return self.info.split(maxsplit=1)[0].lower() if self.info.strip() else ""

    @property
    def file_path(self) -> str | None:
        """Target path for ``file:<path>`` blocks, None otherwise."""
        first = self.info.split(maxsplit=1)[0] if self.info.strip() else ""
        if first.lower().startswith("file:"):
            return first[len("file:"):].strip() or None
        return None


def _closing_fence(fence: str) -> re.Pattern[str]:
    # Same marker character, at least as long as the opener
    return re.compile(rf"^ {{0,3}}{re.escape(fence[0])}{{{len(fence)},}}[ \t\r]*$", re.MULTILINE)


def scan_fences(text: str) -> list[FencedBlock]:
    """Find all fenced code blocks in document order.

    A block closes on the first line made only of the opening marker
    character repeated at least as many times; an unclosed block runs to
    the end of the text.
    """
    blocks = []
    position = 0
    while (match := FENCE_OPEN_RE.search(text, position)) is not None:
        fence = match.group("fence")
        info = match.group("info").strip()
        if fence.startswith("`") and "`" in info:
            position = match.end()
            continue

        close = _closing_fence(fence).search(text, match.end())
        if close is None:
            body, position = text[match.end():], len(text)
        else:
            body, position = text[match.end():close.start()], close.end()

        body = body.replace("\r\n", "\n").removesuffix("\n").removesuffix("\r")
        blocks.append(FencedBlock(info=info, content=body, line=_line_of(text, match.start())))
    return blocks


# =============================================================================
# Directive comments
# =============================================================================


@dataclass(frozen=True)
class Directive:
    """A ``polyglot:`` or ``kyozo:`` HTML comment directive.

    Forms understood:
        <!-- polyglot:executable -->
        <!-- polyglot:type=manifest -->
        <!-- polyglot:env REGION=eu-west-1 DEBUG -->
        <!-- kyozo:deploy environment=production -->
        <!-- kyozo:{"executable": true} -->

    Attributes:
        namespace: "polyglot" or "kyozo"
        name: Directive name ("data" for kyozo JSON directives)
        value: Inline value from ``name=value``
        params: Trailing ``key=value`` parameters (bare keys map to True)
        raw: Full comment text
        line: 1-based line where the comment starts
    """

    namespace: str
    name: str
    value: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    raw: str = ""
    line: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "namespace": self.namespace,
            "directive": self.name,
            "line": self.line,
        }
        if self.value is not None:
            result["value"] = self.value
        if self.params:
            result["params"] = self.params
        return result


def parse_params(params: str) -> dict[str, Any]:
    """Parse ``key=value`` pairs; bare keys become True.

    Values may be shell-quoted (``message="initial import"``).
    """
    try:
        parts = shlex.split(params)
    except ValueError:
        parts = params.split()

    parsed: dict[str, Any] = {}
    for part in parts:
        key, sep, value = part.partition("=")
        if key:
            parsed[key] = value if sep else True
    return parsed


def parse_directive(comment: str, line: int = 0) -> Directive | None:
    """Parse the body of one HTML comment into a Directive.

    Args:
        comment: Text between ``<!--`` and ``-->``
        line: Line number for diagnostics

    Returns:
        Directive, or None if the comment is not a polyglot/kyozo directive
    """
    match = DIRECTIVE_RE.match(comment)
    if not match:
        return None

    namespace, rest = match.group("ns"), match.group("rest").strip()
    raw = f"<!--{comment}-->"

    if namespace == KYOZO and rest.startswith("{"):
        try:
            data = json.loads(rest)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed kyozo JSON directive on line %d", line)
            return None
        if not isinstance(data, dict):
            return None
        return Directive(namespace=namespace, name="data", params=data, raw=raw, line=line)

    name_match = DIRECTIVE_NAME_RE.match(rest)
    if not name_match:
        return None

    return Directive(
        namespace=namespace,
        name=name_match.group("name"),
        value=name_match.group("value") or None,
        params=parse_params(rest[name_match.end():]),
        raw=raw,
        line=line,
    )


def scan_directives(text: str) -> list[Directive]:
    """Find all polyglot/kyozo directives in document order."""
    directives = []
    for match in COMMENT_RE.finditer(text):
        directive = parse_directive(match.group("body"), _line_of(text, match.start()))
        if directive is not None:
            directives.append(directive)
    return directives


# =============================================================================
# Zero-width payloads and content links
# =============================================================================


def scan_zero_width(text: str) -> list[HiddenPayload]:
    """Find zero-width character runs (steganographic payloads)."""
    return find_payloads(text)


@dataclass(frozen=True)
class ContentLink:
    """A Markdown link whose target is a content hash (40+ hex chars)."""

    text: str
    hash: str
    line: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"text": self.text, "hash": self.hash, "line": self.line}


def scan_content_links(text: str) -> list[ContentLink]:
    """Find content-addressed links."""
    return [
        ContentLink(
            text=m.group("text"),
            hash=m.group("hash").lower(),
            line=_line_of(text, m.start()),
        )
        for m in CONTENT_LINK_RE.finditer(text)
    ]
