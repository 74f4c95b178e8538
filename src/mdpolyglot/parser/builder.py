"""Builds an mdast-compatible tree from the token stream.

Inline parsing is intentionally shallow: every block gets a single text
child, which is all the classifier needs.
"""

import logging

from mdpolyglot.models.ast import (
    HTML,
    Code,
    Heading,
    ListItem,
    ListNode,
    Paragraph,
    Position,
    Root,
    Text,
)
from mdpolyglot.models.tokens import Token, TokenType

logger = logging.getLogger(__name__)


class ASTBuilder:
    """Consumes a token list and produces a Root node.

    Grouping rules:
    - heading token -> heading node
    - code_fence_start .. code_fence_end -> one code node
    - html_comment, or html_comment_start .. end -> one html node
    - consecutive list_item tokens of the same ordering -> one list node
    - consecutive text tokens -> one paragraph node
    - blank tokens are dropped
    """

    def __init__(self, tokens: list[Token]) -> None:
        """Initialize builder.

        Args:
            tokens: Token list from the tokenizer
        """
        self._tokens = tokens
        self._pos = 0

    def build(self) -> Root:
        """Build the tree.

        Returns:
            Root node owning all block nodes
        """
        root = Root()
        while self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            handler = self._HANDLERS.get(token.type)
            if handler is None:
                # Orphan continuation tokens (never produced by the tokenizer)
                self._pos += 1
                continue
            node = handler(self, token)
            if node is not None:
                root.append(node)

        if self._tokens:
            last = self._tokens[-1].line
            root.position = Position.lines(1, last)

        logger.debug("Built AST with %d block nodes", len(root.children))
        return root

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _heading(self, token: Token) -> Heading:
        self._pos += 1
        return Heading(
            depth=token.depth,
            children=[Text(value=token.text)],
            position=Position.lines(token.line, end_column=len(token.text) + token.depth + 2),
        )

    def _code(self, token: Token) -> Code:
        self._pos += 1
        lines: list[str] = []
        end_line = token.line
        while (current := self._peek()) is not None:
            if current.type is TokenType.CODE_CONTENT:
                lines.append(current.text)
                end_line = current.line
                self._pos += 1
            elif current.type is TokenType.CODE_FENCE_END:
                end_line = current.line
                self._pos += 1
                break
            else:
                break

        lang, _, meta = token.info.partition(" ")
        return Code(
            lang=lang or None,
            meta=meta.strip() or None,
            value="\n".join(lines),
            position=Position.lines(token.line, end_line, end_column=len(token.marker) + 1),
        )

    def _comment(self, token: Token) -> HTML:
        self._pos += 1
        return HTML(
            value=token.text.strip(),
            position=Position.lines(token.line, end_column=len(token.text) + 1),
        )

    def _multiline_comment(self, token: Token) -> HTML:
        self._pos += 1
        lines = [token.text]
        end_line = token.line
        while (current := self._peek()) is not None:
            if current.type not in (TokenType.HTML_COMMENT_CONTENT, TokenType.HTML_COMMENT_END):
                break
            lines.append(current.text)
            end_line = current.line
            self._pos += 1
            if current.type is TokenType.HTML_COMMENT_END:
                break

        return HTML(
            value="\n".join(lines).strip(),
            position=Position.lines(token.line, end_line, end_column=len(lines[-1]) + 1),
        )

    def _list(self, token: Token) -> ListNode:
        node = ListNode(ordered=token.ordered, start=token.start if token.ordered else None)
        end_line = token.line

        while (current := self._peek()) is not None:
            if current.type is TokenType.LIST_ITEM and current.ordered == token.ordered:
                paragraph = Paragraph(
                    children=[Text(value=current.text)],
                    position=Position.lines(current.line, end_column=len(current.text) + 1),
                )
                node.append(ListItem(children=[paragraph], position=paragraph.position))
                end_line = current.line
                self._pos += 1
                continue

            # A single blank line between items of the same list makes it loose
            if current.type is TokenType.BLANK:
                following = (
                    self._tokens[self._pos + 1] if self._pos + 1 < len(self._tokens) else None
                )
                if (
                    following is not None
                    and following.type is TokenType.LIST_ITEM
                    and following.ordered == token.ordered
                ):
                    node.spread = True
                    self._pos += 1
                    continue
            break

        node.position = Position.lines(token.line, end_line)
        return node

    def _paragraph(self, token: Token) -> Paragraph:
        lines: list[str] = []
        end_line = token.line
        while (current := self._peek()) is not None and current.type is TokenType.TEXT:
            lines.append(current.text)
            end_line = current.line
            self._pos += 1

        value = "\n".join(lines)
        return Paragraph(
            children=[Text(value=value)],
            position=Position.lines(token.line, end_line, end_column=len(lines[-1]) + 1),
        )

    def _blank(self, token: Token) -> None:
        self._pos += 1
        return None

    _HANDLERS = {
        TokenType.HEADING: _heading,
        TokenType.CODE_FENCE_START: _code,
        TokenType.HTML_COMMENT: _comment,
        TokenType.HTML_COMMENT_START: _multiline_comment,
        TokenType.LIST_ITEM: _list,
        TokenType.TEXT: _paragraph,
        TokenType.BLANK: _blank,
    }


def build_ast(tokens: list[Token]) -> Root:
    """Build an mdast root from tokens (convenience wrapper)."""
    return ASTBuilder(tokens).build()
