"""Unit tests for core/table.py"""

import html

import pytest

from dokupub.core.models import Alignment
from dokupub.core.table import MalformedRowError, _row_width, layout_table, parse_table, split_row


def _identity(text: str) -> str:
    return text


# --- splitting ---

def test_split_row_types_cells_by_delimiter():
    cells = split_row("^ Head | data ^ also head |")
    assert [c.content for c in cells] == ["Head", "data", "also head"]
    assert [c.header for c in cells] == [True, False, True]


def test_split_row_skips_delimiters_in_links_and_code():
    cells = split_row("| [[page|label]] | <code>a|b</code> | {{img.png|alt}} |")
    assert [c.content for c in cells] == ["[[page|label]]", "<code>a|b</code>", "{{img.png|alt}}"]


def test_split_row_unclosed_link_is_split_normally():
    assert len(split_row("| [[broken | x |")) == 2


@pytest.mark.parametrize("line", ["", "plain text", "|"])
def test_split_row_malformed(line):
    with pytest.raises(MalformedRowError):
        split_row(line)


@pytest.mark.parametrize("raw,align", [
    ("|  centered  |", Alignment.center),
    ("|  right|", Alignment.right),
    ("|left  |", Alignment.left),
    ("| plain |", None),
])
def test_alignment_from_padding(raw, align):
    assert split_row(raw)[0].align is align


# --- padding and spans ---

def test_short_rows_are_padded():
    rows = parse_table(["| a | b | c |", "| d |"])
    assert len(rows[1]) == 3
    assert all(c.filler for c in rows[1][1:])


def test_colspan_folds_bare_cells():
    rows = parse_table(["| wide |||", "| a | b | c |"])
    assert rows[0][0].colspan == 3
    assert rows[0][1].consumed and rows[0][2].consumed


def test_whitespace_cell_is_not_folded():
    rows = parse_table(["| a | | c |"])
    assert rows[0][0].colspan == 1
    assert not rows[0][1].consumed


def test_rowspan_sentinel():
    """':::' below a cell extends that cell down one row."""
    rows = parse_table(["| a | b |", "| c | ::: |"])
    assert rows[0][1].rowspan == 2
    assert rows[1][1].spanned


def test_rowspan_chain():
    rows = parse_table(["| a | b |", "| c | ::: |", "| d | ::: |"])
    assert rows[0][1].rowspan == 3
    assert rows[1][1].spanned and rows[2][1].spanned


def test_rowspan_without_open_cell_is_empty():
    rows = parse_table(["| ::: | b |"])
    assert rows[0][0].rowspan == 1
    assert not rows[0][0].spanned
    assert rows[0][0].content == ""


def test_rowspan_does_not_reach_past_a_colspan():
    """A cell folded into a colspan closes the column for ':::' below it."""
    rows = parse_table(["| a | b |", "| c ||", "| d | ::: |"])
    assert rows[0][1].rowspan == 1
    assert rows[1][0].colspan == 2
    assert not rows[2][1].spanned
    assert rows[2][1].content == ""


def test_parse_table_rows_match_column_count(caplog):
    with caplog.at_level("DEBUG", logger="dokupub.core.table"):
        parse_table(["| a | b |", "| c ||", "| d | ::: |"])
    assert "columns" not in caplog.text


@pytest.mark.parametrize("lines", [
    ["^ a ^ b ^ c ^", "| x ||| ", "| 1 | 2 |"],
    ["| a | b |", "| ::: | c |", "| d | ::: |"],
    ["^ h ||", "| wide || x |", "| y |"],
    ["| a | b |", "| c ||", "| d | ::: |"],
])
def test_every_row_covers_the_column_count(lines):
    rows = parse_table(lines)
    columns = max(len(r) for r in rows)
    assert all(_row_width(r) == columns for r in rows)
    assert all(c.rowspan >= 1 for r in rows for c in r)


# --- rendering ---

def test_rowspan_renders_without_continuation_cell():
    out = layout_table(["| a | b |", "| c | ::: |"], _identity)
    row0, row1 = [line for line in out.split("\n") if line.startswith("<tr")]
    assert '<td class="col1" rowspan="2">b</td>' in row0
    assert row1 == '<tr class="row1"><td class="col0">c</td></tr>'


def test_colspan_renders_attribute():
    out = layout_table(["| wide ||", "| a | b |"], _identity)
    assert '<td class="col0" colspan="2">wide</td>' in out


def test_header_rows_form_thead():
    out = layout_table(["^ A ^ B ^", "| 1 | 2 |"], _identity)
    assert out.startswith('<div class="table"><table class="inline">\n<thead>\n<tr class="row0">')
    assert '<th class="col0">A</th>' in out
    assert '<tbody>\n<tr class="row1"><td class="col0">1</td>' in out
    assert out.endswith('</tbody>\n</table></div>')


def test_mixed_row_is_body():
    out = layout_table(["^ key | value |"], _identity)
    assert "<thead>" not in out
    assert '<th class="col0">key</th><td class="col1">value</td>' in out


def test_alignment_class_rendered():
    out = layout_table(["|  mid  |"], _identity)
    assert '<td class="col0 centeralign">mid</td>' in out


def test_cell_renderer_applied():
    out = layout_table(["| <b> |"], html.escape)
    assert "<td class=\"col0\">&lt;b&gt;</td>" in out


def test_empty_table_renders_nothing():
    assert layout_table([], _identity) == ""
