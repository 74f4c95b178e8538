"""mdpolyglot data models.

This module exports all core entities used throughout the application:
- Token / TokenType: Line-oriented token stream
- Node and mdast node types: Syntax tree with the Kyozo data envelope
- Artifact / Polyglot: Classification results
- ExecutionResult / UnitResult: Executor results
"""

from mdpolyglot.models.ast import (
    HTML,
    Code,
    Emphasis,
    Heading,
    Image,
    KyozoData,
    Link,
    ListItem,
    ListNode,
    Node,
    Paragraph,
    Parent,
    Point,
    Position,
    Root,
    Strong,
    Text,
    strip_positions,
)
from mdpolyglot.models.polyglot import (
    Artifact,
    ArtifactType,
    Language,
    Polyglot,
    Target,
)
from mdpolyglot.models.results import ErrorKind, ExecutionResult, UnitResult
from mdpolyglot.models.tokens import Token, TokenType

__all__ = [
    # Tokens
    "Token",
    "TokenType",
    # AST
    "Node",
    "Parent",
    "Root",
    "Heading",
    "Paragraph",
    "Code",
    "HTML",
    "ListNode",
    "ListItem",
    "Text",
    "Emphasis",
    "Strong",
    "Link",
    "Image",
    "Point",
    "Position",
    "KyozoData",
    "strip_positions",
    # Classification
    "Artifact",
    "ArtifactType",
    "Language",
    "Polyglot",
    "Target",
    # Results
    "ErrorKind",
    "ExecutionResult",
    "UnitResult",
]
