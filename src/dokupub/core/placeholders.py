"""Opaque placeholder tokens that shield rendered fragments from later rewrite stages"""

import html
import logging
import re


logger = logging.getLogger(__name__)

# Private-use code points never produced by any rewrite stage, so no inline
# pattern can match across or inside a token.
TOKEN_OPEN = '\ue000'
TOKEN_CLOSE = '\ue001'
TOKEN_RE = re.compile(f'{TOKEN_OPEN}([a-z]+):(\\d+){TOKEN_CLOSE}')

KINDS = ('link', 'media', 'raw', 'html')


def scrub(text: str) -> str:
    """Remove token delimiters from source text so input can never spell a token."""
    return text.replace(TOKEN_OPEN, '').replace(TOKEN_CLOSE, '')


class PlaceholderRegistry:
    """Per-render table of deferred fragments addressed by token.

    'raw' fragments hold source text and are HTML-escaped when resolved; every
    other kind holds finished HTML. Reserving an identical fragment twice hands
    back the first token, so identical markup always yields identical text.
    """

    def __init__(self) -> None:
        self._fragments: list[tuple[str, str]] = []
        self._tokens: dict[tuple[str, str], str] = {}
        self._expanding: set[int] = set()   # indexes on the current resolution path

    def __len__(self) -> int:
        return len(self._fragments)

    def reserve(self, kind: str, fragment: str) -> str:
        """Store fragment and return the token standing in for it."""
        if kind not in KINDS:
            raise ValueError(f"Unknown placeholder kind: {kind!r}")
        key = (kind, fragment)
        token = self._tokens.get(key)
        if token is None:
            token = f'{TOKEN_OPEN}{kind}:{len(self._fragments)}{TOKEN_CLOSE}'
            self._fragments.append(key)
            self._tokens[key] = token
        return token

    def _expand(self, match: re.Match) -> str:
        kind, index = match.group(1), int(match.group(2))
        if index >= len(self._fragments) or self._fragments[index][0] != kind or index in self._expanding:
            return match.group(0)
        _, fragment = self._fragments[index]
        if kind == 'raw':
            return html.escape(fragment)
        self._expanding.add(index)
        try:
            return self.resolve(fragment)
        finally:
            self._expanding.discard(index)

    def resolve(self, text: str) -> str:
        """Replace every known token in text with its fragment; unknown tokens are left in place."""
        if TOKEN_OPEN not in text:
            return text
        return TOKEN_RE.sub(self._expand, text)

    def leaks(self, text: str) -> list[str]:
        """Return tokens still present in text."""
        return [m.group(0) for m in TOKEN_RE.finditer(text)]

    def resolve_all(self, document: str) -> str:
        """Final resolution pass over the assembled document; surviving tokens are logged, not raised."""
        document = self.resolve(document)
        leaked = self.leaks(document)
        if leaked:
            logger.warning("Unresolved placeholders in output: %s", ', '.join(t.strip(TOKEN_OPEN + TOKEN_CLOSE) for t in leaked))
        return document
