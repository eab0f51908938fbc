"""Unit tests for core/classify.py"""

import pytest

from dokupub.core.classify import CLASSIFIERS, LineKind, classify


@pytest.mark.parametrize("line,kind", [
    ("<code python>", LineKind.literal_open),
    ("<file txt a.txt>", LineKind.literal_open),
    ("<html>", LineKind.literal_open),
    ("<PHP>", LineKind.literal_open),
    ("^ head ^ head ^", LineKind.table_row),
    ("| a | b |", LineKind.table_row),
    ("  * item", LineKind.list_item),
    ("    - item", LineKind.list_item),
    ("  indented text", LineKind.indented),
    ("\tindented text", LineKind.indented),
    ("> quoted", LineKind.quote),
    (">> deeper", LineKind.quote),
    ("====== Title ======", LineKind.heading),
    ("== Small ==", LineKind.heading),
    ("----", LineKind.rule),
    ("{{wiki:image.png}}", LineKind.media),
    ("plain text", LineKind.paragraph),
    ("* not a list without indent", LineKind.paragraph),
])
def test_classify(line, kind):
    assert classify(line)[0] is kind


def test_list_item_beats_indented():
    """An indented bullet is a list item, not an indented literal line."""
    kind, m = classify("  * one")
    assert kind is LineKind.list_item
    assert m.group(3) == "one"


def test_table_beats_list():
    assert classify("  | cell |")[0] is LineKind.table_row


def test_rss_embed_is_not_a_media_line():
    assert classify("{{rss>http://example.com/feed}}")[0] is LineKind.paragraph


def test_paragraph_has_no_match():
    assert classify("text")[1] is None


def test_classifier_order_is_fixed():
    """Precedence: literal > table > list > indented > quote > heading > rule > media."""
    assert [kind for kind, _ in CLASSIFIERS] == [
        LineKind.literal_open,
        LineKind.table_row,
        LineKind.list_item,
        LineKind.indented,
        LineKind.quote,
        LineKind.heading,
        LineKind.rule,
        LineKind.media,
    ]
