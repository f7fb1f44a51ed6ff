"""Data models for blog-markdown."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .config import RenderConfig


class BlockState(Enum):
    """Single-block states used while walking markdown lines.

    Lists are tracked separately on the list stack because they nest.

    Attributes:
        NONE: No block is open.
        FENCED_CODE: Inside a three-backtick fence.
        BIG_FENCED_CODE: Inside a fence opened with four or more backticks.
        TABLE: Inside a pipe table body.
        TODO_LIST: Inside a to-do list.
        PARAGRAPH: Inside an open paragraph.
    """

    NONE = auto()
    FENCED_CODE = auto()
    BIG_FENCED_CODE = auto()
    TABLE = auto()
    TODO_LIST = auto()
    PARAGRAPH = auto()


class ListKind(Enum):
    """List flavours, valued by their HTML tag."""

    UNORDERED = "ul"
    ORDERED = "ol"


@dataclass(frozen=True)
class ListFrame:
    """One open list level.

    Attributes:
        indent: Indent columns of the items in this list (space 1, tab 4).
        kind: Whether the list is ordered or unordered.
    """

    indent: int
    kind: ListKind


@dataclass(frozen=True)
class HeadingRecord:
    """A heading collected for the table of contents.

    Attributes:
        level: Heading level (only 2 and 3 are recorded).
        anchor: Link markup pointing at the heading's line-index identifier.
    """

    level: int
    anchor: str


@dataclass
class ParserContext:
    """Encapsulate engine state for one render call.

    Attributes:
        base_dir: Directory used to resolve relative asset references.
        config: Active render configuration.
        depth: Nesting depth of this render (0 for the top-level document).
        state: Currently open single block.
        fence_indent: Leading whitespace of the line that opened the fence.
        list_stack: Open lists, innermost last.
        output: Markup fragments emitted so far.
        headings: Level 2 and 3 headings in document order.
    """

    base_dir: str = ""
    config: RenderConfig = field(default_factory=RenderConfig)
    depth: int = 0
    state: BlockState = BlockState.NONE
    fence_indent: str = ""
    list_stack: list[ListFrame] = field(default_factory=list)
    output: list[str] = field(default_factory=list)
    headings: list[HeadingRecord] = field(default_factory=list)


@dataclass(frozen=True)
class RenderResult:
    """Rendered post.

    Attributes:
        post: Body markup.
        toc: Nested-list markup for level 2 and 3 headings; empty when there
            are none.
    """

    post: str
    toc: str
