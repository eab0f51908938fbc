"""Namespace resolution for page and media targets"""

import re


SEPARATOR = ':'
START_PAGE = 'start'

_REPEATED_SEP_RE = re.compile(r':+')
_UNSAFE_ID_RE = re.compile(r'[^a-z0-9:._-]+')
_UNDERSCORE_RUN_RE = re.compile(r'_+')


def _split(namespace: str) -> list[str]:
    return [p for p in namespace.split(SEPARATOR) if p]


def _ascend(target: str, current: str) -> str:
    """Strip leading '..' / '..:' markers and climb that many levels, stopping at the root."""
    levels = 0
    while target.startswith('..'):
        target = target[3:] if target.startswith('..:') else target[2:]
        levels += 1
    parts = _split(current)
    del parts[max(len(parts) - levels, 0):]
    return SEPARATOR.join(parts + [target])


def _relative(target: str, current: str) -> str:
    target = target[2:] if target.startswith('.:') else target[1:]
    return SEPARATOR.join(_split(current) + [target])


def clean_id(path: str) -> str:
    """Lowercase a page id and replace characters outside [a-z0-9:._-] with '_'."""
    path = _UNSAFE_ID_RE.sub('_', path.lower())
    path = _UNDERSCORE_RUN_RE.sub('_', path)
    return SEPARATOR.join(seg.strip('_') or '_' for seg in path.split(SEPARATOR))


def resolve_namespace(target: str, current: str = '', *, media: bool = False, clean: bool = True) -> str:
    """Resolve target against the current namespace into a normalized colon path.

    ':a:b' is absolute, '..:x' climbs one level per '..', '.:x' is relative to
    current, and a trailing ':' names the start page of that namespace. Other
    targets are taken as-is when they already contain a separator (or name a
    media file), otherwise they live in the current namespace.
    """
    target = target.strip()
    start_page = target.endswith(SEPARATOR) and len(target) > 1
    has_separator = SEPARATOR in target
    if start_page:
        target = target[:-1]

    if target.startswith(SEPARATOR):
        resolved = target[1:]
    elif target.startswith('..'):
        resolved = _ascend(target, current)
    elif target.startswith('.'):
        resolved = _relative(target, current)
    elif has_separator or media:
        resolved = target
    else:
        resolved = SEPARATOR.join(_split(current) + [target])

    resolved = _REPEATED_SEP_RE.sub(SEPARATOR, resolved).strip(SEPARATOR)
    if clean and not media and resolved:
        resolved = clean_id(resolved)
    if start_page:
        resolved = f"{resolved}{SEPARATOR}{START_PAGE}" if resolved else START_PAGE
    return resolved or START_PAGE
