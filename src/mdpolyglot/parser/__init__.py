"""Markdown parser: tokenizer, AST builder and enhancer."""

from mdpolyglot.models.ast import Root
from mdpolyglot.parser.builder import ASTBuilder, build_ast
from mdpolyglot.parser.enhancer import ASTEnhancer, enhance
from mdpolyglot.parser.tokenizer import Tokenizer, tokenize

__all__ = [
    "ASTBuilder",
    "ASTEnhancer",
    "Tokenizer",
    "build_ast",
    "enhance",
    "parse_markdown",
    "tokenize",
]


def parse_markdown(text: str) -> Root:
    """Tokenize and build an (unenhanced) mdast tree."""
    return build_ast(tokenize(text))
