"""Unit tests for core/placeholders.py"""

import logging

import pytest

from dokupub.core.placeholders import TOKEN_CLOSE, TOKEN_OPEN, PlaceholderRegistry, scrub


@pytest.fixture(name="registry")
def registry_fixture():
    return PlaceholderRegistry()


def test_reserve_returns_opaque_token(registry):
    token = registry.reserve('link', '<a href="x">x</a>')
    assert token.startswith(TOKEN_OPEN) and token.endswith(TOKEN_CLOSE)
    assert '<' not in token and '*' not in token


def test_reserve_unknown_kind_raises(registry):
    with pytest.raises(ValueError, match="Unknown placeholder kind"):
        registry.reserve('bogus', 'x')


def test_tokens_are_unique_per_fragment(registry):
    a = registry.reserve('link', 'A')
    b = registry.reserve('link', 'B')
    assert a != b
    assert len(registry) == 2


def test_identical_fragment_reuses_token(registry):
    """Reserving the same fragment twice yields the same token."""
    assert registry.reserve('media', 'X') == registry.reserve('media', 'X')
    assert len(registry) == 1


def test_resolve_substitutes_fragments(registry):
    token = registry.reserve('link', '<a href="?a=1&amp;b=2">q</a>')
    assert registry.resolve(f"see {token}!") == 'see <a href="?a=1&amp;b=2">q</a>!'


def test_raw_fragments_are_escaped(registry):
    token = registry.reserve('raw', '<b>**not bold**</b>')
    assert registry.resolve(token) == '&lt;b&gt;**not bold**&lt;/b&gt;'


def test_resolve_is_recursive(registry):
    """A fragment holding another token is fully expanded."""
    inner = registry.reserve('media', '<img src="a.png" />')
    outer = registry.reserve('link', f'<a href="p">{inner}</a>')
    assert registry.resolve(outer) == '<a href="p"><img src="a.png" /></a>'


def test_resolve_is_idempotent(registry):
    token = registry.reserve('html', '<span>x</span>')
    once = registry.resolve(token)
    assert registry.resolve(once) == once


def test_unknown_token_left_in_place(registry):
    stray = f"{TOKEN_OPEN}link:42{TOKEN_CLOSE}"
    assert registry.resolve(stray) == stray
    assert registry.leaks(stray) == [stray]


def test_resolve_all_logs_leaks(registry, caplog):
    """Surviving tokens are reported at WARNING level, not raised."""
    stray = f"{TOKEN_OPEN}raw:7{TOKEN_CLOSE}"
    with caplog.at_level(logging.WARNING, logger="dokupub.core.placeholders"):
        out = registry.resolve_all(f"<p>{stray}</p>")
    assert out == f"<p>{stray}</p>"
    assert "Unresolved placeholders" in caplog.text


def test_resolve_all_clean_document_logs_nothing(registry, caplog):
    token = registry.reserve('link', '<a>x</a>')
    with caplog.at_level(logging.WARNING, logger="dokupub.core.placeholders"):
        assert registry.resolve_all(token) == '<a>x</a>'
    assert caplog.text == ""


def test_self_referencing_fragment_terminates(registry):
    cyclic = f"<a>{TOKEN_OPEN}link:0{TOKEN_CLOSE}</a>"
    token = registry.reserve('link', cyclic)
    assert registry.resolve(token) == cyclic


def test_mutually_referencing_fragments_terminate(registry):
    a = registry.reserve('link', f"x{TOKEN_OPEN}link:1{TOKEN_CLOSE}")
    registry.reserve('link', f"y{TOKEN_OPEN}link:0{TOKEN_CLOSE}")
    assert registry.resolve(a) == f"xy{TOKEN_OPEN}link:0{TOKEN_CLOSE}"


def test_repeated_token_expands_each_time(registry):
    token = registry.reserve('media', '<img />')
    outer = registry.reserve('link', f"{token}{token}")
    assert registry.resolve(outer) == '<img /><img />'


def test_scrub_removes_delimiters():
    assert scrub(f"a{TOKEN_OPEN}raw:0{TOKEN_CLOSE}b") == "araw:0b"
    assert scrub("plain") == "plain"
