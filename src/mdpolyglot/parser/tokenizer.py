"""Line-oriented Markdown tokenizer.

Single pass over the lines of a document carrying a small state flag
(outside, inside a code block, inside an HTML comment). The state always
takes precedence over line-level patterns: a ``# heading`` line inside a
code block is code content.

The tokenizer never fails on text input. Lines it does not recognize become
TEXT tokens.
"""

import logging
import re
from enum import Enum

from mdpolyglot.models.tokens import Token, TokenType

logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r"\r?\n")

FENCE_OPEN_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})\s*(.*?)\s*$")
HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
BULLET_RE = re.compile(r"^ {0,3}[-*+][ \t]+(.*)$")
ORDERED_RE = re.compile(r"^ {0,3}(\d{1,9})[.)][ \t]+(.*)$")
COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


class _State(Enum):
    OUTSIDE = "outside"
    CODE_BLOCK = "code_block"
    HTML_COMMENT = "html_comment"


def split_lines(text: str) -> list[str]:
    """Split text into lines the same way every scanner does.

    Line numbers derived from this split match ``text.count("\\n")`` based
    numbering used by the metadata scanners.
    """
    return LINE_SPLIT_RE.split(text)


class Tokenizer:
    """Tokenizes Markdown content into a list of tokens.

    Usage:
        tokens = Tokenizer().tokenize(markdown)
    """

    def __init__(self) -> None:
        """Initialize tokenizer state."""
        self._state = _State.OUTSIDE
        self._fence = ""

    def tokenize(self, text: str) -> list[Token]:
        """Tokenize a document.

        Args:
            text: Raw Markdown text

        Returns:
            Ordered token list
        """
        self._state = _State.OUTSIDE
        self._fence = ""

        tokens = [
            self._tokenize_line(line, number)
            for number, line in enumerate(split_lines(text), start=1)
        ]

        if self._state is _State.CODE_BLOCK:
            logger.debug("Unterminated code fence at end of document")
        elif self._state is _State.HTML_COMMENT:
            logger.debug("Unterminated HTML comment at end of document")

        return tokens

    def _tokenize_line(self, line: str, number: int) -> Token:
        if self._state is _State.CODE_BLOCK:
            return self._inside_code(line, number)

        if self._state is _State.HTML_COMMENT:
            return self._inside_comment(line, number)

        fence = FENCE_OPEN_RE.match(line)
        if fence:
            marker, info = fence.group(1), fence.group(2)
            # Backtick fences cannot carry backticks in their info string
            if not (marker.startswith("`") and "`" in info):
                self._state = _State.CODE_BLOCK
                self._fence = marker
                return Token(
                    TokenType.CODE_FENCE_START,
                    number,
                    info=info,
                    marker=marker,
                )

        stripped = line.strip()
        if stripped.startswith(COMMENT_OPEN):
            if COMMENT_CLOSE in stripped[len(COMMENT_OPEN):]:
                return Token(TokenType.HTML_COMMENT, number, text=line)
            self._state = _State.HTML_COMMENT
            return Token(TokenType.HTML_COMMENT_START, number, text=line)

        heading = HEADING_RE.match(line)
        if heading:
            content = re.sub(r"[ \t]+#+$", "", heading.group(2) or "")
            return Token(
                TokenType.HEADING,
                number,
                text=content,
                depth=len(heading.group(1)),
            )

        bullet = BULLET_RE.match(line)
        if bullet:
            return Token(TokenType.LIST_ITEM, number, text=bullet.group(1))

        ordered = ORDERED_RE.match(line)
        if ordered:
            return Token(
                TokenType.LIST_ITEM,
                number,
                text=ordered.group(2),
                ordered=True,
                start=int(ordered.group(1)),
            )

        if not stripped:
            return Token(TokenType.BLANK, number)

        return Token(TokenType.TEXT, number, text=line)

    def _inside_code(self, line: str, number: int) -> Token:
        stripped = line.strip()
        if (
            stripped
            and stripped[0] == self._fence[0]
            and set(stripped) == {self._fence[0]}
            and len(stripped) >= len(self._fence)
            and len(line) - len(line.lstrip(" ")) <= 3
        ):
            self._state = _State.OUTSIDE
            self._fence = ""
            return Token(TokenType.CODE_FENCE_END, number)
        return Token(TokenType.CODE_CONTENT, number, text=line)

    def _inside_comment(self, line: str, number: int) -> Token:
        if COMMENT_CLOSE in line:
            self._state = _State.OUTSIDE
            return Token(TokenType.HTML_COMMENT_END, number, text=line)
        return Token(TokenType.HTML_COMMENT_CONTENT, number, text=line)


def tokenize(text: str) -> list[Token]:
    """Tokenize Markdown text (convenience wrapper)."""
    return Tokenizer().tokenize(text)
