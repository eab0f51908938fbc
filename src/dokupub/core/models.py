"""Shared types for the block, table, and inline stages"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BlockState(str, Enum):
    """Mutually exclusive open-block states of the block state machine"""
    none = "none"
    paragraph = "paragraph"
    list = "list"
    quote = "quote"
    table = "table"
    literal = "literal"
    html = "html"
    php = "php"


class LiteralKind(str, Enum):
    code = "code"
    file = "file"
    pre = "pre"


class ListKind(str, Enum):
    """List flavours keyed by their HTML tag"""
    unordered = "ul"
    ordered = "ol"


class Alignment(str, Enum):
    """Table cell alignment keyed by its CSS class"""
    left = "leftalign"
    right = "rightalign"
    center = "centeralign"


@dataclass
class ListLevel:
    kind:  ListKind
    depth: int


@dataclass
class Cell:
    """A table cell; span fields are rewritten by the span passes."""
    content:  str
    header:   bool = False
    align:    Optional[Alignment] = None
    colspan:  int = 1
    rowspan:  int = 1
    bare:     bool = False      # nothing at all between the delimiters
    filler:   bool = False      # padding for short rows; never folded into a colspan
    consumed: bool = False      # folded into the colspan of a cell to its left
    spanned:  bool = False      # continuation of a rowspan from above

    @property
    def empty(self) -> bool:
        return self.content == ''


class Heading(BaseModel):
    """A rendered heading: level 1-5, unique anchor id, and raw title."""
    level: int
    id: str
    title: str


class RenderedPage(BaseModel):
    """Rendered HTML plus the page metadata collected while rendering."""
    html: str
    headings: list[Heading] = []
    footnotes: list[str] = []
    toc: bool = True
