"""Line classification for the block state machine, evaluated in fixed precedence order"""

import re
from enum import Enum
from typing import Optional


class LineKind(str, Enum):
    literal_open = "literal_open"
    table_row = "table_row"
    list_item = "list_item"
    indented = "indented"
    quote = "quote"
    heading = "heading"
    rule = "rule"
    media = "media"
    paragraph = "paragraph"


LITERAL_OPEN_RE = re.compile(r'^\s*<(code|file|html|HTML|php|PHP)(?:\s+([^\s>]+))?(?:\s+([^\s>]+))?\s*>')
TABLE_ROW_RE = re.compile(r'^\s*[\^|]')
LIST_ITEM_RE = re.compile(r'^( {2,})([*-])\s+(.*)$')
INDENTED_RE = re.compile(r'^(?: {2,}|\t)\s*\S')
QUOTE_RE = re.compile(r'^(>+)\s*(.*)$')
HEADING_RE = re.compile(r'^\s*(={2,6})(?!=)(.+?)={2,6}\s*$')
RULE_RE = re.compile(r'^\s*-{4,}\s*$')
MEDIA_LINE_RE = re.compile(r'^\s*\{\{(?!rss>).+?\}\}')

# First match wins; the order is part of the markup grammar.
CLASSIFIERS: list[tuple[LineKind, re.Pattern]] = [
    (LineKind.literal_open, LITERAL_OPEN_RE),
    (LineKind.table_row,    TABLE_ROW_RE),
    (LineKind.list_item,    LIST_ITEM_RE),
    (LineKind.indented,     INDENTED_RE),
    (LineKind.quote,        QUOTE_RE),
    (LineKind.heading,      HEADING_RE),
    (LineKind.rule,         RULE_RE),
    (LineKind.media,        MEDIA_LINE_RE),
]


def classify(line: str) -> tuple[LineKind, Optional[re.Match]]:
    """Return the kind of a non-blank line and the match that decided it."""
    for kind, pattern in CLASSIFIERS:
        m = pattern.match(line)
        if m:
            return kind, m
    return LineKind.paragraph, None
