"""Inline rule engine: an ordered pipeline of text-rewrite stages

Stage order is a contract; each stage sees the output of the previous one:

     1. strip no-op control macros
     2. protect <nowiki> and %%...%% spans (raw placeholders)
     3. bare URL / www / <email> autolinks
     4. bracketed [[...]] links
     5. {{...}} media embeds
     6. forced line breaks (\\\\)
     7. character formatting
     8. inline <html> / <php>
     9. typography (optional)
    10. emoticons
    11. escape the remaining plain text (only when HTML embedding is off)

then the footnote capture pass. Everything a stage renders (tags, entities,
attributes, URLs, raw text) is parked in the placeholder registry and only
spliced back in by the final resolution pass, so the text between tokens
stays plain and can be escaped on its own.
"""

import html
import logging
import re
from typing import Callable

from dokupub.config import Settings
from dokupub.core.context import RenderContext
from dokupub.core.links import LinkBuilder, strip_media_links


logger = logging.getLogger(__name__)

Stage = Callable[[str, RenderContext], str]

MACRO_RE = re.compile(r'~~(?:NOTOC|NOCACHE|INFO:syntaxplugins)~~')
PROTECTED_RE = re.compile(r'<nowiki>(.*?)</nowiki>|%%(.*?)%%', re.DOTALL)

AUTO_URL_RE = re.compile(r'(?<!\S)((?:https?|ftp)://[^\s<>\[\]"]+)(?!\S)')
AUTO_WWW_RE = re.compile(r'(?<!\S)(www\.[^\s<>\[\]"]+)(?!\S)')
AUTO_EMAIL_RE = re.compile(r'(?<!\S)<([\w.%+-]+@[\w-]+(?:\.[\w-]+)*\.[a-zA-Z]{2,})>(?!\S)')

LINK_RE = re.compile(r'\[\[(.+?)\]\]')
MEDIA_RE = re.compile(r'\{\{(.+?)\}\}')
BRACKETED_RE = re.compile(r'(\[\[.+?\]\]|\{\{.+?\}\})')

TRAILING_BREAK_RE = re.compile(r'\\\\\s*$')
BREAK_RE = re.compile(r'\\\\(?=\s)')

FORMAT_RULES = [
    (re.compile(r'\*\*(.+?)\*\*', re.DOTALL), 'strong'),
    (re.compile(r'(?<!:)//(.+?)(?<!:)//', re.DOTALL), 'em'),
    (re.compile(r'__(.+?)__', re.DOTALL), 'u'),
    (re.compile(r"''(.+?)''", re.DOTALL), 'code'),
]
TAG_FORMAT_RE = re.compile(r'<(del|sub|sup)>(.+?)</\1>', re.DOTALL | re.IGNORECASE)

HTML_INLINE_RE = re.compile(r'<(html|HTML)>(.*?)</\1>', re.DOTALL)
PHP_INLINE_RE = re.compile(r'<(php|PHP)>(.*?)</\1>', re.DOTALL)

# Longer tokens first so '<->' is not consumed as '<-' and '---' not as '--'.
TYPOGRAPHY_RULES = [
    (re.compile(r'(?<!\S)<->(?!\S)'), '&harr;'),
    (re.compile(r'(?<!\S)<=>(?!\S)'), '&hArr;'),
    (re.compile(r'(?<!\S)->(?!\S)'),  '&rarr;'),
    (re.compile(r'(?<!\S)<-(?!\S)'),  '&larr;'),
    (re.compile(r'(?<!\S)=>(?!\S)'),  '&rArr;'),
    (re.compile(r'(?<!\S)<=(?!\S)'),  '&lArr;'),
    (re.compile(r'(?<!\S)>>(?!\S)'),  '&raquo;'),
    (re.compile(r'(?<!\S)<<(?!\S)'),  '&laquo;'),
    (re.compile(r'(?<!\S)---(?!\S)'), '&mdash;'),
    (re.compile(r'(?<!\S)--(?!\S)'),  '&ndash;'),
    (re.compile(r'\(c\)', re.IGNORECASE),  '&copy;'),
    (re.compile(r'\(tm\)', re.IGNORECASE), '&trade;'),
    (re.compile(r'\(r\)', re.IGNORECASE),  '&reg;'),
]
TIMES_RE = re.compile(r'(\d+)x(\d+)')

FOOTNOTE_RE = re.compile(r'\(\((.+?)\)\)', re.DOTALL)

EMOJI = {
    '8-)': '😎', '8-O': '😲', ':-(': '😞', ':-)': '😊', '=-)': '🙂',
    ':-/': '😕', ':-\\': '😕', ':-D': '😁', ':-P': '😛', ':-O': '😮',
    ':-X': '😷', ':-|': '😐', ';-)': '😉', '^_^': '😄', 'm(': '😠',
    ':?:': '❓', ':!:': '❗', 'LOL': '😂', 'FIXME': '🚧', 'DELETEME': '🗑️',
}

SMILEY_IMAGES = {
    '8-)': 'cool.svg', '8-O': 'shocked.svg', ':-(': 'sad.svg', ':-)': 'smile.svg',
    '=-)': 'smile2.svg', ':-/': 'tired.svg', ':-\\': 'tired.svg', ':-D': 'grin.svg',
    ':-P': 'tongue.svg', ':-O': 'shocked.svg', ':-X': 'sick.svg', ':-|': 'neutral.svg',
    ';-)': 'wink.svg', '^_^': 'happy.svg', 'm(': 'angry.svg', ':?:': 'question.svg',
    ':!:': 'exclaim.svg', 'LOL': 'lol.svg', 'FIXME': 'fixme.svg', 'DELETEME': 'delete.svg',
}


class InlineEngine:
    """Applies the inline stages to block text using immutable settings and a per-call context."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.links = LinkBuilder(settings)
        self.smileys = EMOJI if settings.use_emoji else SMILEY_IMAGES
        alternatives = '|'.join(re.escape(k) for k in sorted(self.smileys, key=len, reverse=True))
        self._smiley_re = re.compile(f'(?<!\\S)(?:{alternatives})(?!\\S)')

        stages: list[Stage] = [
            self._strip_macros,
            self._protect_literals,
            self._autolinks,
            self._links,
            self._media,
            self._line_breaks,
            self._formatting,
            self._embedded,
        ]
        if settings.typography:
            stages.append(self._typography)
        stages.append(self._emoticons)
        if not settings.html_ok:
            stages.append(self._escape_text)
        self.stages: tuple[Stage, ...] = tuple(stages)

    def apply(self, text: str, ctx: RenderContext) -> str:
        """Run every stage then capture footnotes; placeholders are left in the result."""
        for stage in self.stages:
            text = stage(text, ctx)
        return self._footnotes(text, ctx)

    def render(self, text: str, ctx: RenderContext) -> str:
        """apply() with placeholders resolved immediately, for content embedded in other fragments."""
        return ctx.placeholders.resolve(self.apply(text, ctx))

    # --- stages ---

    def _strip_macros(self, text: str, ctx: RenderContext) -> str:
        if '~~NOTOC~~' in text:
            ctx.toc = False
        return MACRO_RE.sub('', text)

    def _protect_literals(self, text: str, ctx: RenderContext) -> str:
        def protect(m: re.Match) -> str:
            raw = m.group(1) if m.group(1) is not None else m.group(2)
            return ctx.placeholders.reserve('raw', raw)
        return PROTECTED_RE.sub(protect, text)

    def _autolinks(self, text: str, ctx: RenderContext) -> str:
        def url(m: re.Match) -> str:
            return ctx.placeholders.reserve('link', self.links.external(m.group(1), html.escape(m.group(1))))

        def www(m: re.Match) -> str:
            fragment = self.links.external(f"http://{m.group(1)}", html.escape(m.group(1)))
            return ctx.placeholders.reserve('link', fragment)

        def email(m: re.Match) -> str:
            return ctx.placeholders.reserve('link', self.links.email(m.group(1), None))

        # bracketed spans are left to the link and media stages
        parts = BRACKETED_RE.split(text)
        for i in range(0, len(parts), 2):
            part = AUTO_URL_RE.sub(url, parts[i])
            part = AUTO_WWW_RE.sub(www, part)
            parts[i] = AUTO_EMAIL_RE.sub(email, part)
        return ''.join(parts)

    def _label(self, label: str, ctx: RenderContext) -> str:
        if '{{' in label:
            return strip_media_links(self.render(label, ctx))
        return html.escape(label, quote=False)

    def _links(self, text: str, ctx: RenderContext) -> str:
        def link(m: re.Match) -> str:
            target, _, label = m.group(1).partition('|')
            target, label = target.strip(), label.strip()
            fragment = None
            if target:
                fragment = self.links.link(target, self._label(label, ctx) if label else None)
            if fragment is None:
                logger.debug("Link passed through unrendered: %s", m.group(0))
                return ctx.placeholders.reserve('raw', m.group(0))
            return ctx.placeholders.reserve('link', fragment)
        return LINK_RE.sub(link, text)

    def _media(self, text: str, ctx: RenderContext) -> str:
        def media(m: re.Match) -> str:
            if m.group(1).strip().lower().startswith('rss>'):
                # feed aggregation is not rendered; the embed is shown verbatim
                return ctx.placeholders.reserve('raw', m.group(0))
            return ctx.placeholders.reserve('media', self.links.media(m.group(1)))
        return MEDIA_RE.sub(media, text)

    def _line_breaks(self, text: str, ctx: RenderContext) -> str:
        text = TRAILING_BREAK_RE.sub('', text)
        return BREAK_RE.sub(lambda m: ctx.placeholders.reserve('html', '<br />'), text)

    def _formatting(self, text: str, ctx: RenderContext) -> str:
        def wrap(tag: str, content: str) -> str:
            return (ctx.placeholders.reserve('html', f'<{tag}>') + content
                    + ctx.placeholders.reserve('html', f'</{tag}>'))

        for pattern, tag in FORMAT_RULES:
            text = pattern.sub(lambda m: wrap(tag, m.group(1)), text)
        return TAG_FORMAT_RE.sub(lambda m: wrap(m.group(1).lower(), m.group(2)), text)

    def _embedded(self, text: str, ctx: RenderContext) -> str:
        def embed_html(m: re.Match) -> str:
            if self.settings.html_ok:
                return ctx.placeholders.reserve('html', m.group(2))
            return ctx.placeholders.reserve('html', f'<pre class="code html">{html.escape(m.group(2))}</pre>')

        def embed_php(m: re.Match) -> str:
            return ctx.placeholders.reserve('html', f'<pre class="code php">{html.escape(m.group(2))}</pre>')

        text = HTML_INLINE_RE.sub(embed_html, text)
        return PHP_INLINE_RE.sub(embed_php, text)

    def _typography(self, text: str, ctx: RenderContext) -> str:
        for pattern, entity in TYPOGRAPHY_RULES:
            text = pattern.sub(lambda m: ctx.placeholders.reserve('html', entity), text)
        return TIMES_RE.sub(
            lambda m: m.group(1) + ctx.placeholders.reserve('html', '&times;') + m.group(2), text)

    def _emoticons(self, text: str, ctx: RenderContext) -> str:
        def emoticon(m: re.Match) -> str:
            icon = self.smileys[m.group(0)]
            if self.settings.use_emoji:
                return icon
            return ctx.placeholders.reserve(
                'html',
                f'<img src="{html.escape(self.settings.smiley_base_path)}{icon}" '
                f'class="icon smiley" alt="{html.escape(m.group(0))}" />')
        return self._smiley_re.sub(emoticon, text)

    def _escape_text(self, text: str, ctx: RenderContext) -> str:
        return html.escape(text, quote=False)

    def _footnotes(self, text: str, ctx: RenderContext) -> str:
        def footnote(m: re.Match) -> str:
            body = m.group(1)
            if not body.strip():
                return m.group(0)
            n = ctx.footnotes.add(body)
            return f'<sup><a href="#fn__{n}" id="fnt__{n}" class="fn_top">{n})</a></sup>'
        return FOOTNOTE_RE.sub(footnote, text)
