#!/usr/bin/env python3
"""
ENVSET CORE MODELS
------------------
Defines the fundamental data structures used across the envset engine.
A Document is an ordered list of Nodes, one per logical line of a .env file.

Author: Envset Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, List, Optional, Union


class NodeKind(Enum):
    """Discriminator shared by every Node variant."""
    KEY_VALUE = "key_value"
    COMMENT = "comment"
    EMPTY_LINE = "empty_line"
    UNPARSED = "unparsed"


@dataclass(frozen=True)
class KeyValue:
    """
    A single KEY=value assignment.

    `value` is the fully unquoted/unescaped string. `trailing_comment`
    keeps its leading '#'.
    """
    key: str
    value: str
    trailing_comment: Optional[str] = None
    exported: bool = False        # Line carried an 'export ' prefix
    line_no: int = field(default=0, compare=False)
    source: Optional[str] = field(default=None, compare=False, repr=False)

    kind: ClassVar[NodeKind] = NodeKind.KEY_VALUE


@dataclass(frozen=True)
class Comment:
    """A whole-line comment. `text` is everything after the '#'."""
    text: str
    line_no: int = field(default=0, compare=False)
    source: Optional[str] = field(default=None, compare=False, repr=False)

    kind: ClassVar[NodeKind] = NodeKind.COMMENT


@dataclass(frozen=True)
class EmptyLine:
    line_no: int = field(default=0, compare=False)
    source: Optional[str] = field(default=None, compare=False, repr=False)

    kind: ClassVar[NodeKind] = NodeKind.EMPTY_LINE


@dataclass(frozen=True)
class Unparsed:
    """A malformed line kept verbatim so the file stays editable."""
    raw: str
    reason: str = ""
    line_no: int = field(default=0, compare=False)
    source: Optional[str] = field(default=None, compare=False, repr=False)

    kind: ClassVar[NodeKind] = NodeKind.UNPARSED


Node = Union[KeyValue, Comment, EmptyLine, Unparsed]


@dataclass
class Document:
    """
    An ordered sequence of Nodes representing a full .env file.
    File order is significant and preserved by every operation.

    `newline` is the line terminator the file was written with and `bom`
    records a leading UTF-8 byte order mark; both are written back as found.
    """
    nodes: List[Node] = field(default_factory=list)
    newline: str = "\n"
    bom: bool = False

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def key_values(self) -> List[KeyValue]:
        return [n for n in self.nodes if n.kind is NodeKind.KEY_VALUE]

    def comments(self) -> List[Comment]:
        return [n for n in self.nodes if n.kind is NodeKind.COMMENT]

    def unparsed(self) -> List[Unparsed]:
        return [n for n in self.nodes if n.kind is NodeKind.UNPARSED]
