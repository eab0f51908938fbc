"""Link-target classification and HTML fragments for links and media embeds"""

import html
import re
from enum import Enum
from typing import Optional
from urllib.parse import quote

from dokupub.config import Settings
from dokupub.core.namespace import SEPARATOR, START_PAGE, resolve_namespace
from dokupub.core.utils.slug import section_id


EMAIL_RE = re.compile(r'^[\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[a-zA-Z]{2,}$')
URL_RE = re.compile(r'^(?:https?|ftp)://', re.IGNORECASE)
INTERWIKI_RE = re.compile(r'^([a-zA-Z0-9._-]+)>(.*)$', re.DOTALL)
SHARE_RE = re.compile(r'^\\\\[^\\/\s]+\\')
SIZE_RE = re.compile(r'^(\d*)(?:x(\d+))?$')
MEDIA_LINK_RE = re.compile(r'<a\s[^>]*class="media[^"]*"[^>]*>(.*?)</a>', re.DOTALL)

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'svg', 'webp', 'bmp', 'ico'}
MEDIA_FLAGS = {'linkonly', 'nolink', 'direct'}


class TargetKind(str, Enum):
    email = "email"
    url = "url"
    interwiki = "interwiki"
    share = "share"
    page = "page"


def classify_target(target: str) -> TargetKind:
    """Classify a [[...]] target: email, absolute URL, interwiki, Windows share, else page."""
    if EMAIL_RE.match(target):
        return TargetKind.email
    if URL_RE.match(target):
        return TargetKind.url
    if INTERWIKI_RE.match(target):
        return TargetKind.interwiki
    if SHARE_RE.match(target):
        return TargetKind.share
    return TargetKind.page


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def strip_media_links(fragment: str) -> str:
    """Unwrap generated media links so a rendered label can sit inside another link."""
    return MEDIA_LINK_RE.sub(r'\1', fragment)


def obfuscate_email(address: str) -> str:
    return address.replace('@', ' [at] ').replace('.', ' [dot] ')


class LinkBuilder:
    """Builds hrefs and anchor/img fragments from the immutable renderer settings."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    # --- hrefs ---

    def page_href(self, path: str, anchor: str = '') -> str:
        s = self.settings
        if not path:
            href = ''
        elif s.use_query_ids:
            href = f"{s.pages_base_path}doku.php?id={path}"
        else:
            ext = '.txt' if s.use_txt_extension else ''
            href = f"{s.pages_base_path}{path.replace(SEPARATOR, '/')}{ext}"
        return f"{href}#{anchor}" if anchor else href

    def media_href(self, path: str) -> str:
        s = self.settings
        if s.use_query_ids:
            return f"{s.pages_base_path}lib/exe/fetch.php?media={path}"
        return f"{s.media_base_path}{path.replace(SEPARATOR, '/')}"

    # --- links ---

    def email(self, address: str, label: Optional[str]) -> str:
        label = label if label is not None else html.escape(address)
        return (f'<a href="mailto:{_attr(address)}" class="mail" '
                f'title="{_attr(obfuscate_email(address))}">{label}</a>')

    def external(self, target: str, label: Optional[str]) -> str:
        url, _, section = target.partition('#')
        href = f"{url}#{section}" if section else url
        if label is None:
            display = re.sub(r'^(?:https?|ftp)://', '', url, flags=re.IGNORECASE)
            display = re.sub(r'^www\.', '', display).rstrip('/')
            label = html.escape(display or url)
        return f'<a href="{_attr(href)}" class="urlextern" title="{_attr(href)}" rel="nofollow">{label}</a>'

    def interwiki(self, target: str, label: Optional[str]) -> Optional[str]:
        """Interwiki anchor, or None when the prefix is not registered."""
        prefix, rest = INTERWIKI_RE.match(target).groups()
        base = self.settings.interwiki.get(prefix.lower())
        if base is None:
            return None
        page, _, section = rest.partition('#')
        quoted = quote(page, safe="!~*'()")
        href = base.replace('{NAME}', quoted) if '{NAME}' in base else f"{base}{quoted}"
        suffix = f"#{section}" if section else ''
        label = label if label is not None else html.escape(page)
        return (f'<a href="{_attr(href + suffix)}" class="interwiki iw_{_attr(prefix.lower())}" '
                f'title="{_attr(base + page + suffix)}" data-wiki-id="{_attr(target)}">{label}</a>')

    def share(self, target: str, label: Optional[str]) -> str:
        href = 'file://' + target.replace('\\', '/')
        label = label if label is not None else html.escape(target)
        return f'<a href="{_attr(href)}" class="windows" title="{_attr(target)}">{label}</a>'

    def page(self, target: str, label: Optional[str]) -> str:
        s = self.settings
        page, _, section = target.partition('#')
        page = page.strip()
        section = section.strip()
        path = resolve_namespace(page, s.current_namespace, clean=not s.use_query_ids) if page else ''
        href = self.page_href(path, section_id(section) if section else '')
        label = label if label is not None else html.escape(page or section)

        wiki_id = f"{page}#{section}" if section else page
        if section:
            css = 'wikilink2'
            attrs = f' title="{_attr(wiki_id)}" data-wiki-id="{_attr(wiki_id)}"'
        elif path == START_PAGE or path.endswith(SEPARATOR + START_PAGE):
            css = 'wikilink1 curid'
            attrs = f' title="{_attr(page)}" data-wiki-id="{_attr(page)}"'
        else:
            css = 'wikilink1'
            attrs = f' data-wiki-id="{_attr(page)}"'
        return f'<a href="{_attr(href)}" class="{css}"{attrs}>{label}</a>'

    def link(self, target: str, label: Optional[str]) -> Optional[str]:
        """Anchor fragment for a bracketed link target, or None when it must pass through unrendered."""
        kind = classify_target(target)
        if kind is TargetKind.email:
            return self.email(target, label)
        if kind is TargetKind.url:
            return self.external(target, label)
        if kind is TargetKind.interwiki:
            return self.interwiki(target, label)
        if kind is TargetKind.share:
            return self.share(target, label)
        return self.page(target, label)

    # --- media ---

    def media(self, inner: str) -> str:
        """Fragment for the inside of a {{...}} embed; padding spaces set alignment."""
        pad_left = inner.startswith(' ')
        pad_right = inner.endswith(' ')
        source, _, alt = inner.strip().partition('|')
        src, _, params = source.strip().partition('?')
        alt = alt.strip()

        css = 'media'
        if pad_left and pad_right:
            css += ' mediacenter'
        elif pad_left:
            css += ' mediaright'
        elif pad_right:
            css += ' medialeft'

        if URL_RE.match(src):
            href = src
        else:
            href = self.media_href(resolve_namespace(src, self.settings.current_namespace, media=True))

        flags = set()
        width = height = ''
        for param in filter(None, (p.strip() for p in params.split('&'))):
            if param in MEDIA_FLAGS:
                flags.add(param)
            elif m := SIZE_RE.match(param):
                width, height = m.group(1), m.group(2) or ''

        ext = src.rsplit('.', 1)[-1].lower() if '.' in src else ''
        if ext not in IMAGE_EXTENSIONS or 'linkonly' in flags:
            name = src.rsplit(SEPARATOR, 1)[-1] if ext not in IMAGE_EXTENSIONS else href
            css_file = 'media' if ext in IMAGE_EXTENSIONS else f'media mediafile mf_{ext or "file"}'
            return f'<a href="{_attr(href)}" class="{css_file}" title="{_attr(alt)}">{html.escape(alt or name)}</a>'

        img = f'<img src="{_attr(href)}" class="{css}" alt="{_attr(alt)}" loading="lazy"'
        if width:
            img += f' width="{width}"'
        if height:
            img += f' height="{height}"'
        img += ' />'
        if 'nolink' in flags:
            return img
        return f'<a href="{_attr(href)}" class="media" title="{_attr(alt)}">{img}</a>'
