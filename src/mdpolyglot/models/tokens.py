"""Line-oriented token stream produced by the tokenizer.

Tokens are created once per tokenization pass and consumed linearly by the
AST builder. They are immutable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TokenType(Enum):
    """Kind of a single tokenized line."""

    HEADING = "heading"
    CODE_FENCE_START = "code_fence_start"
    CODE_FENCE_END = "code_fence_end"
    CODE_CONTENT = "code_content"
    HTML_COMMENT = "html_comment"
    HTML_COMMENT_START = "html_comment_start"
    HTML_COMMENT_CONTENT = "html_comment_content"
    HTML_COMMENT_END = "html_comment_end"
    LIST_ITEM = "list_item"
    TEXT = "text"
    BLANK = "blank"


@dataclass(frozen=True)
class Token:
    """A single token.

    Only the fields relevant to the token type are populated.

    Attributes:
        type: Token kind
        line: 1-based source line number
        text: Line payload (heading text, code line, comment line, text line)
        depth: Heading depth (1-6)
        info: Full fence info string (e.g. "file:src/app.py", "yaml {.k8s}")
        marker: Fence marker ("```" or "~~~")
        ordered: Whether a list item is numbered
        start: Number of an ordered list item
    """

    type: TokenType
    line: int
    text: str = ""
    depth: int = 0
    info: str = ""
    marker: str = ""
    ordered: bool = False
    start: int | None = None

    @property
    def lang(self) -> str:
        """First word of the fence info string."""
        return self.info.split(maxsplit=1)[0] if self.info.strip() else ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"type": self.type.value, "line": self.line}
        if self.type is TokenType.HEADING:
            result["depth"] = self.depth
        if self.type is TokenType.CODE_FENCE_START:
            result["info"] = self.info
        if self.type is TokenType.LIST_ITEM:
            result["ordered"] = self.ordered
        if self.text:
            result["text"] = self.text
        return result
