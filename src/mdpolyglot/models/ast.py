"""mdast-compatible syntax tree.

Node types follow the mdast (Markdown Abstract Syntax Tree) conventions so the
tree can be handed to any mdast consumer. Non-standard information is never
expressed as a new node type: it lives in the open ``data`` map of a standard
node, under the ``"kyozo"`` key (see KyozoData).

Ownership is exclusive: a node can be the child of exactly one parent.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import Any

KYOZO_KEY = "kyozo"


@dataclass
class Point:
    """A place in the source document (1-based line and column)."""

    line: int
    column: int
    offset: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"line": self.line, "column": self.column}
        if self.offset is not None:
            result["offset"] = self.offset
        return result


@dataclass
class Position:
    """Source span covered by a node."""

    start: Point
    end: Point

    @classmethod
    def lines(cls, start_line: int, end_line: int | None = None, end_column: int = 1) -> "Position":
        """Build a position spanning whole lines."""
        return cls(
            start=Point(line=start_line, column=1),
            end=Point(line=end_line or start_line, column=end_column),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass
class Node:
    """Base mdast node.

    Attributes:
        type: mdast node type name
        position: Source span, if known
        data: Open metadata map (the Kyozo envelope lives under "kyozo")
    """

    type: str = "node"
    position: Position | None = None
    data: dict[str, Any] = field(default_factory=dict)
    _parent: "Parent | None" = field(default=None, repr=False, compare=False)

    @property
    def parent(self) -> "Parent | None":
        """Owning node, if attached to a tree."""
        return self._parent

    @property
    def kyozo(self) -> dict[str, Any]:
        """Kyozo envelope stored in ``data`` (empty dict if absent)."""
        return self.data.get(KYOZO_KEY, {})

    def walk(self) -> Iterator["Node"]:
        """Iterate over this node and all descendants, depth-first."""
        yield self

    def to_dict(self) -> dict[str, Any]:
        """Convert to mdast JSON-compatible dictionary."""
        result: dict[str, Any] = {"type": self.type}
        for f in fields(self):
            if f.name in ("type", "position", "data", "_parent", "children"):
                continue
            value = getattr(self, f.name)
            if value is not None:
                result[f.name] = value
        if isinstance(self, Parent):
            result["children"] = [child.to_dict() for child in self.children]
        if self.position is not None:
            result["position"] = self.position.to_dict()
        if self.data:
            result["data"] = self.data
        return result


@dataclass
class Parent(Node):
    """Node that owns an ordered sequence of children."""

    children: list[Node] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Claim ownership of children passed to the constructor."""
        initial = self.children
        self.children = []
        for child in initial:
            self.append(child)

    def append(self, child: Node) -> Node:
        """Attach a child node.

        Raises:
            ValueError: If the child already belongs to another parent
        """
        if child._parent is not None:
            raise ValueError(f"{child.type} node already has a parent")
        child._parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator[Node]:
        """Iterate over this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


# =============================================================================
# Block nodes
# =============================================================================


@dataclass
class Root(Parent):
    """Document root."""

    type: str = "root"


@dataclass
class Paragraph(Parent):
    type: str = "paragraph"


@dataclass
class Heading(Parent):
    type: str = "heading"
    depth: int = 1


@dataclass
class Code(Node):
    """Fenced code block.

    Attributes:
        lang: First word of the fence info string
        meta: Remainder of the info string, if any
        value: Code content (lines joined with newlines)
    """

    type: str = "code"
    lang: str | None = None
    meta: str | None = None
    value: str = ""


@dataclass
class HTML(Node):
    """Raw HTML, including the comments that carry polyglot directives."""

    type: str = "html"
    value: str = ""


@dataclass
class ListNode(Parent):
    type: str = "list"
    ordered: bool = False
    start: int | None = None
    spread: bool = False


@dataclass
class ListItem(Parent):
    type: str = "listItem"
    checked: bool | None = None
    spread: bool = False


# =============================================================================
# Inline nodes
# =============================================================================


@dataclass
class Text(Node):
    type: str = "text"
    value: str = ""


@dataclass
class Emphasis(Parent):
    type: str = "emphasis"


@dataclass
class Strong(Parent):
    type: str = "strong"


@dataclass
class Link(Parent):
    """Link; content-addressed links keep their hash in ``url``."""

    type: str = "link"
    url: str = ""
    title: str | None = None


@dataclass
class Image(Node):
    type: str = "image"
    url: str = ""
    title: str | None = None
    alt: str | None = None


# =============================================================================
# Kyozo envelope
# =============================================================================


@dataclass
class KyozoData:
    """Kyozo metadata stored in a standard node's ``data`` map.

    Keeping the information inside ``data`` keeps the tree mdast-compatible:
    consumers that do not know about Kyozo simply ignore it.

    Attributes:
        executable: Whether the block is meant to be run
        enlightened: Whether the block was flagged for enlightenment
        artifact: Artifact type extracted from this block, if any
        location: Target path for ``file:`` blocks
        metadata: Merged key/value parameters from attached directives
        directives: Raw directive comments attached to the node
        hidden: Whether the node carries a zero-width payload
    """

    executable: bool = False
    enlightened: bool = False
    artifact: str | None = None
    location: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    directives: list[str] = field(default_factory=list)
    hidden: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage in ``Node.data``."""
        result: dict[str, Any] = {
            "executable": self.executable,
            "enlightened": self.enlightened,
            "metadata": self.metadata,
            "directives": self.directives,
            "hidden": self.hidden,
        }
        if self.artifact is not None:
            result["artifact"] = self.artifact
        if self.location is not None:
            result["location"] = self.location
        return result


def strip_positions(tree: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a serialized tree without position information."""
    compact = {k: v for k, v in tree.items() if k != "position"}
    if "children" in compact:
        compact["children"] = [strip_positions(child) for child in compact["children"]]
    return compact
