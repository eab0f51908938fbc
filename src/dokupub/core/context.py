"""Per-render mutable state threaded through the block and inline stages"""

from dataclasses import dataclass, field
from typing import Optional

from dokupub.core.footnotes import FootnoteCollector
from dokupub.core.models import BlockState, Heading, ListLevel, LiteralKind
from dokupub.core.placeholders import PlaceholderRegistry
from dokupub.core.utils.slug import section_id


@dataclass
class RenderContext:
    """Everything one render call mutates. A fresh instance is created per call
    and never stored on the renderer, so concurrent renders cannot interfere."""
    placeholders: PlaceholderRegistry = field(default_factory=PlaceholderRegistry)
    footnotes:    FootnoteCollector = field(default_factory=FootnoteCollector)
    out:          list[str] = field(default_factory=list)

    state:        BlockState = BlockState.none
    paragraph:    list[str] = field(default_factory=list)
    list_stack:   list[ListLevel] = field(default_factory=list)
    quote_level:  int = 0
    table_rows:   list[str] = field(default_factory=list)

    literal_kind:   Optional[LiteralKind] = None
    literal_lang:   str = ''
    literal_file:   str = ''
    literal_tag:    str = ''       # close tag name for code/file/html/php blocks
    literal_indent: int = 0        # dedent width for indented pre blocks
    literal_lines:  list[str] = field(default_factory=list)

    literal_section: bool = False
    section_count:   int = 0
    headings:        list[Heading] = field(default_factory=list)
    heading_ids:     dict[str, int] = field(default_factory=dict)
    toc:             bool = True

    def emit(self, fragment: str) -> None:
        self.out.append(fragment)

    def unique_id(self, title: str) -> str:
        """Anchor id for title, suffixed with a counter when already used in this page."""
        base = section_id(title)
        seen = self.heading_ids.get(base, 0)
        self.heading_ids[base] = seen + 1
        return base if not seen else f"{base}{seen}"
