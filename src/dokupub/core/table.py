"""Table layout: row splitting, alignment, colspan/rowspan passes, and HTML output"""

import logging
import re
from typing import Callable, Optional

from dokupub.core.models import Alignment, Cell


logger = logging.getLogger(__name__)


DELIMITERS = '^|'

# Spans whose content may contain delimiters; the splitter jumps over them whole.
OPAQUE_SPANS = (('[[', ']]'), ('{{', '}}'), ('<code>', '</code>'))

ROWSPAN_RE = re.compile(r':{3,}')


class MalformedRowError(ValueError):
    """A table line that yields no cells."""


def _alignment(raw: str) -> Optional[Alignment]:
    """Alignment from cell padding: two or more spaces on a side push content away from it."""
    if not raw.strip():
        return None
    leading = len(raw) - len(raw.lstrip())
    trailing = len(raw) - len(raw.rstrip())
    if leading >= 2 and trailing >= 2:
        return Alignment.center
    if leading >= 2:
        return Alignment.right
    if trailing >= 2:
        return Alignment.left
    return None


def split_row(line: str) -> list[Cell]:
    """Split one table line into cells typed by their opening delimiter."""
    line = line.strip()
    if not line or line[0] not in DELIMITERS:
        raise MalformedRowError(f"Not a table row: {line!r}")

    cells: list[Cell] = []
    delimiter = line[0]
    pos, end = 1, len(line)
    while pos < end:
        start = pos
        while pos < end and line[pos] not in DELIMITERS:
            for opener, closer in OPAQUE_SPANS:
                if line.startswith(opener, pos):
                    close = line.find(closer, pos + len(opener))
                    if close != -1:
                        pos = close + len(closer)
                        break
            else:
                pos += 1
        raw = line[start:pos]
        cells.append(Cell(
            content=raw.strip(),
            header=delimiter == '^',
            align=_alignment(raw),
            bare=raw == '',
        ))
        if pos < end:
            delimiter = line[pos]
            pos += 1

    if not cells:
        raise MalformedRowError(f"Table row has no cells: {line!r}")
    return cells


def _pad(rows: list[list[Cell]], columns: int) -> None:
    for row in rows:
        header = row[-1].header
        row.extend(Cell('', header=header, filler=True) for _ in range(columns - len(row)))


def _fold_colspans(row: list[Cell]) -> None:
    """Completely empty cells after a non-empty cell widen that cell."""
    j = 0
    while j < len(row):
        cell = row[j]
        k = j + 1
        if not cell.empty:
            while k < len(row) and row[k].bare and not row[k].filler:
                row[k].consumed = True
                cell.colspan += 1
                k += 1
        j = k


def _fold_rowspans(rows: list[list[Cell]], columns: int) -> None:
    """':::' cells extend the nearest non-empty cell above in the same column."""
    for c in range(columns):
        open_row = None
        for r, row in enumerate(rows):
            cell = row[c]
            if cell.consumed:
                open_row = None
                continue
            if ROWSPAN_RE.fullmatch(cell.content):
                if open_row is not None:
                    rows[open_row][c].rowspan += 1
                    cell.spanned = True
                cell.content = ''
            elif not cell.empty:
                open_row = r
            else:
                open_row = None


def parse_table(lines: list[str]) -> list[list[Cell]]:
    """Split, pad, and span-normalize table lines into a grid of cells."""
    rows = [split_row(line) for line in lines]
    if not rows:
        return []
    columns = max(len(row) for row in rows)
    _pad(rows, columns)
    for row in rows:
        _fold_colspans(row)
    _fold_rowspans(rows, columns)
    for r, row in enumerate(rows):
        if _row_width(row) != columns:
            logger.debug("Table row %d covers %d of %d columns", r, _row_width(row), columns)
    return rows


def _row_width(row: list[Cell]) -> int:
    """Columns covered by a row, counting positions held by rowspans from above."""
    return sum(cell.colspan for cell in row if not cell.consumed)


def _is_header_row(row: list[Cell]) -> bool:
    shown = [cell for cell in row if not cell.consumed and not cell.spanned]
    return bool(shown) and all(cell.header for cell in shown)


def _render_row(r: int, row: list[Cell], cell_renderer: Callable[[str], str]) -> str:
    parts = [f'<tr class="row{r}">']
    col = 0
    for cell in row:
        if cell.consumed:
            continue
        if cell.spanned:
            col += cell.colspan
            continue
        tag = 'th' if cell.header else 'td'
        css = f"col{col} {cell.align.value}" if cell.align else f"col{col}"
        attrs = f' class="{css}"'
        if cell.colspan > 1:
            attrs += f' colspan="{cell.colspan}"'
        if cell.rowspan > 1:
            attrs += f' rowspan="{cell.rowspan}"'
        content = cell_renderer(cell.content) if cell.content else ''
        parts.append(f'<{tag}{attrs}>{content}</{tag}>')
        col += cell.colspan
    parts.append('</tr>')
    return ''.join(parts)


def render_table(rows: list[list[Cell]], cell_renderer: Callable[[str], str]) -> str:
    """HTML for a span-normalized grid; leading all-header rows form the <thead>."""
    if not rows:
        return ''
    head = 0
    while head < len(rows) and _is_header_row(rows[head]):
        head += 1

    parts = ['<div class="table"><table class="inline">']
    if head:
        parts.append('<thead>')
        parts.extend(_render_row(r, rows[r], cell_renderer) for r in range(head))
        parts.append('</thead>')
    if head < len(rows):
        parts.append('<tbody>')
        parts.extend(_render_row(r, rows[r], cell_renderer) for r in range(head, len(rows)))
        parts.append('</tbody>')
    parts.append('</table></div>')
    return '\n'.join(parts)


def layout_table(lines: list[str], cell_renderer: Callable[[str], str]) -> str:
    """Render buffered table lines; cell text goes through cell_renderer."""
    return render_table(parse_table(lines), cell_renderer)
