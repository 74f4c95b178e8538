"""Merges extracted metadata back onto the syntax tree.

The enhancer never adds node types. Everything it knows goes into the
``data["kyozo"]`` envelope of standard nodes, so the tree stays
mdast-compatible:

- code nodes that produced an artifact get the artifact type, location and
  executable flag (matched by opening-fence line)
- directive comments immediately preceding a code node are attached to it
- text and code nodes carrying a zero-width payload are flagged ``hidden``
- the root gets the document language and metadata
"""

import logging
from typing import Any

from mdpolyglot.analyzers.scanners import Directive, parse_directive
from mdpolyglot.analyzers.stego import find_payloads
from mdpolyglot.models.ast import HTML, KYOZO_KEY, Code, KyozoData, Node, Parent, Root, Text
from mdpolyglot.models.polyglot import Artifact, Language

logger = logging.getLogger(__name__)


def _comment_directive(node: Node) -> Directive | None:
    if not isinstance(node, HTML):
        return None
    value = node.value.strip()
    if not (value.startswith("<!--") and value.endswith("-->")):
        return None
    line = node.position.start.line if node.position else 0
    return parse_directive(value[4:-3], line)


class ASTEnhancer:
    """Attaches Kyozo metadata to nodes of an mdast tree.

    Usage:
        enhanced = ASTEnhancer(language, artifacts, metadata).enhance(root)
    """

    def __init__(
        self,
        language: Language,
        artifacts: list[Artifact],
        metadata: dict[str, Any],
    ) -> None:
        """Initialize enhancer.

        Args:
            language: Document classification
            artifacts: Artifacts extracted from raw text
            metadata: Document metadata
        """
        self.language = language
        self.metadata = metadata
        self._by_line = {a.line: a for a in artifacts if a.line is not None}

    def enhance(self, root: Root) -> Root:
        """Enhance the tree in place and return it."""
        self._enhance_children(root)
        root.data[KYOZO_KEY] = {
            "language": self.language.value,
            "metadata": self.metadata,
        }
        return root

    def _enhance_children(self, parent: Parent) -> None:
        pending: list[Directive] = []
        for child in parent.children:
            directive = _comment_directive(child)
            if directive is not None:
                pending.append(directive)
                continue

            if isinstance(child, Code):
                self._enhance_code(child, pending)
            elif isinstance(child, Text):
                if find_payloads(child.value):
                    child.data[KYOZO_KEY] = KyozoData(hidden=True).to_dict()
            elif isinstance(child, Parent):
                self._enhance_children(child)
            # Directives only bind to the code block directly below them
            pending = []

    def _enhance_code(self, node: Code, directives: list[Directive]) -> None:
        line = node.position.start.line if node.position else None
        artifact = self._by_line.get(line) if line is not None else None

        hidden = bool(find_payloads(node.value))
        if artifact is None and not directives and not hidden:
            return

        kyozo = KyozoData(hidden=hidden)
        if artifact is not None:
            kyozo.artifact = artifact.type.value
            kyozo.location = artifact.location
            kyozo.executable = artifact.executable

        for directive in directives:
            kyozo.directives.append(directive.raw)
            if directive.value is not None:
                kyozo.metadata[directive.name] = directive.value
            kyozo.metadata.update(directive.params)
            if directive.name == "executable":
                kyozo.executable = True

        if kyozo.metadata.get("executable") is True:
            kyozo.executable = True
        if kyozo.metadata.get("enlighten") is True:
            kyozo.enlightened = True

        node.data[KYOZO_KEY] = {**kyozo.to_dict(), **node.data.get(KYOZO_KEY, {})}
        logger.debug("Enhanced code node at line %s (%s)", line, kyozo.artifact or "directive")


def enhance(
    root: Root,
    language: Language,
    artifacts: list[Artifact],
    metadata: dict[str, Any],
) -> Root:
    """Enhance a tree (convenience wrapper)."""
    return ASTEnhancer(language, artifacts, metadata).enhance(root)
