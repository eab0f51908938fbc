"""Block state machine: classifies lines, tracks the open block, and emits HTML fragments"""

import html
import logging
import re
from typing import Optional

from dokupub.config import Settings
from dokupub.core.classify import LineKind, classify
from dokupub.core.context import RenderContext
from dokupub.core.inline import InlineEngine
from dokupub.core.models import BlockState, Heading, ListKind, ListLevel, LiteralKind, RenderedPage
from dokupub.core.placeholders import scrub
from dokupub.core.table import MalformedRowError, layout_table, split_row


logger = logging.getLogger(__name__)

ROOT_OPEN = '<div class="page group">'
ROOT_CLOSE = '</div>'

# States whose lines are consumed verbatim until a close tag.
_TAGGED_STATES = (BlockState.html, BlockState.php)


class Renderer:
    """Wiki markup to HTML renderer.

    Holds only the frozen settings and the compiled inline rules; each call to
    render() builds its own RenderContext, so one Renderer can be shared
    between threads.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.inline = InlineEngine(self.settings)
        self._literal_sections = {s.lower() for s in self.settings.literal_sections}
        self._handlers = {
            LineKind.literal_open: self._open_literal,
            LineKind.table_row:    self._table_row,
            LineKind.list_item:    self._list_item,
            LineKind.indented:     self._indented,
            LineKind.quote:        self._quote,
            LineKind.heading:      self._heading,
            LineKind.rule:         self._rule,
            LineKind.media:        self._media_line,
            LineKind.paragraph:    self._paragraph,
        }

    def render(self, text: str) -> str:
        """Render markup to one HTML fragment wrapped in the page container."""
        return self.render_document(text).html

    def render_document(self, text: str) -> RenderedPage:
        """Render markup and return the HTML with the headings and footnotes collected on the way."""
        ctx = RenderContext()
        text = scrub(text)
        for line in text.replace('\r\n', '\n').replace('\r', '\n').split('\n'):
            self._feed(line, ctx)
        self._finish(ctx)

        document = ctx.placeholders.resolve_all(ROOT_OPEN + '\n'.join(ctx.out) + ROOT_CLOSE)
        return RenderedPage(
            html=document,
            headings=ctx.headings,
            footnotes=[ctx.placeholders.resolve(body) for body in ctx.footnotes.bodies()],
            toc=ctx.toc,
        )

    # --- driver ---

    def _in_tagged_literal(self, ctx: RenderContext) -> bool:
        if ctx.state in _TAGGED_STATES:
            return True
        return ctx.state is BlockState.literal and ctx.literal_kind is not LiteralKind.pre

    def _feed(self, line: str, ctx: RenderContext) -> None:
        if self._in_tagged_literal(ctx):
            self._literal_line(line, ctx)
            return
        if not line.strip():
            self._blank(ctx)
            return
        kind, m = classify(line)
        self._handlers[kind](line, m, ctx)

    def _finish(self, ctx: RenderContext) -> None:
        if self._in_tagged_literal(ctx):
            logger.debug("Unterminated <%s> block closed at end of input", ctx.literal_tag)
        self._flush(ctx)
        if ctx.footnotes:
            ctx.emit('<div class="footnotes">')
            for n, body in ctx.footnotes.items():
                ctx.emit(
                    f'<div class="fn"><sup><a href="#fnt__{n}" id="fn__{n}" class="fn_bot">{n})</a></sup> '
                    f'<div class="content">{body}</div></div>'
                )
            ctx.emit('</div>')

    def _flush(self, ctx: RenderContext, keep: Optional[BlockState] = None) -> None:
        """Close the open block unless the incoming line continues it."""
        state = ctx.state
        if state is BlockState.none or state is keep:
            return
        if state is BlockState.paragraph:
            self._close_paragraph(ctx)
        elif state is BlockState.list:
            while ctx.list_stack:
                self._pop_list(ctx)
        elif state is BlockState.quote:
            self._set_quote_level(0, ctx)
        elif state is BlockState.table:
            self._close_table(ctx)
        elif state is BlockState.literal and ctx.literal_kind is LiteralKind.pre:
            self._close_pre(ctx)
        else:
            self._close_literal(ctx)
        ctx.state = BlockState.none

    def _blank(self, ctx: RenderContext) -> None:
        if ctx.state is BlockState.literal and ctx.literal_kind is LiteralKind.pre:
            ctx.literal_lines.append('')
            return
        self._flush(ctx)

    def _text(self, text: str, ctx: RenderContext) -> str:
        """Inline-render text, or escape it inside a section shown as literal markup."""
        if ctx.literal_section:
            return html.escape(text)
        return self.inline.apply(text, ctx)

    # --- paragraphs ---

    def _paragraph(self, line: str, m: Optional[re.Match], ctx: RenderContext) -> None:
        self._flush(ctx, keep=BlockState.paragraph)
        ctx.state = BlockState.paragraph
        ctx.paragraph.append(line.strip())

    def _close_paragraph(self, ctx: RenderContext) -> None:
        if ctx.literal_section:
            text = '\n'.join(html.escape(line) for line in ctx.paragraph)
        else:
            text = self.inline.apply('\n'.join(ctx.paragraph), ctx)
        ctx.paragraph = []
        if text.strip():
            ctx.emit(f'<p>{text}</p>')

    # --- lists ---

    def _list_item(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx, keep=BlockState.list)
        ctx.state = BlockState.list
        depth = (len(m.group(1)) - 2) // 2 + 1
        kind = ListKind.unordered if m.group(2) == '*' else ListKind.ordered
        stack = ctx.list_stack

        while stack and stack[-1].depth > depth:
            self._pop_list(ctx)
        if not stack or depth > stack[-1].depth:
            self._push_list(kind, depth, ctx)
        elif stack[-1].kind is not kind:
            self._pop_list(ctx)
            self._push_list(kind, depth, ctx)
        else:
            ctx.emit('</li>')
        ctx.emit(f'<li class="level{depth}"><div class="li">{self._text(m.group(3).strip(), ctx)}</div>')

    def _push_list(self, kind: ListKind, depth: int, ctx: RenderContext) -> None:
        ctx.emit(f'<{kind.value}>')
        ctx.list_stack.append(ListLevel(kind, depth))

    def _pop_list(self, ctx: RenderContext) -> None:
        level = ctx.list_stack.pop()
        ctx.emit('</li>')
        ctx.emit(f'</{level.kind.value}>')

    # --- quotes ---

    def _quote(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx, keep=BlockState.quote)
        ctx.state = BlockState.quote
        self._set_quote_level(len(m.group(1)), ctx)
        text = self._text(m.group(2).strip(), ctx)
        if text:
            ctx.emit(text)

    def _set_quote_level(self, level: int, ctx: RenderContext) -> None:
        while ctx.quote_level > level:
            ctx.emit('</div></blockquote>')
            ctx.quote_level -= 1
        while ctx.quote_level < level:
            ctx.emit('<blockquote><div class="no">')
            ctx.quote_level += 1

    # --- headings, rules, media ---

    def _heading(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx)
        level = 7 - len(m.group(1))
        title = m.group(2).strip()
        anchor = ctx.unique_id(title)
        ctx.section_count += 1
        ctx.literal_section = title.lower() in self._literal_sections
        content = self.inline.apply(title, ctx)
        ctx.emit(f'<h{level} class="sectionedit{ctx.section_count}" id="{anchor}">{content}</h{level}>')
        ctx.headings.append(Heading(level=level, id=anchor, title=title))

    def _rule(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx)
        ctx.emit('<hr />')
        ctx.literal_section = False

    def _media_line(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx)
        ctx.emit(self._text(line.strip(), ctx))

    # --- tables ---

    def _table_row(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        try:
            split_row(line)
        except MalformedRowError:
            logger.debug("Malformed table row kept as text: %r", line)
            self._flush(ctx)
            self._paragraph(line, None, ctx)
            return
        self._flush(ctx, keep=BlockState.table)
        ctx.state = BlockState.table
        ctx.table_rows.append(line)

    def _close_table(self, ctx: RenderContext) -> None:
        if ctx.literal_section:
            cell_renderer = html.escape
        else:
            def cell_renderer(text: str) -> str:
                return self.inline.render(text, ctx)
        fragment = layout_table(ctx.table_rows, cell_renderer)
        ctx.table_rows = []
        if fragment:
            ctx.emit(fragment)

    # --- literal blocks ---

    def _indented(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        if ctx.state is BlockState.literal and ctx.literal_kind is LiteralKind.pre:
            ctx.literal_lines.append(line)
            return
        self._flush(ctx)
        ctx.state = BlockState.literal
        ctx.literal_kind = LiteralKind.pre
        ctx.literal_indent = len(line) - len(line.lstrip())
        ctx.literal_lines = [line]

    def _close_pre(self, ctx: RenderContext) -> None:
        lines = ctx.literal_lines
        while lines and not lines[-1].strip():
            lines.pop()
        content = '\n'.join(l[min(ctx.literal_indent, len(l) - len(l.lstrip())):] for l in lines)
        ctx.literal_lines = []
        ctx.literal_kind = None
        if content:
            ctx.emit(f'<pre class="code">{html.escape(content)}</pre>')

    def _open_literal(self, line: str, m: re.Match, ctx: RenderContext) -> None:
        self._flush(ctx)
        tag = m.group(1)
        name = tag.lower()
        ctx.literal_tag = tag
        ctx.literal_lines = []
        if name in ('code', 'file'):
            ctx.state = BlockState.literal
            ctx.literal_kind = LiteralKind(name)
            lang = m.group(2) or ''
            ctx.literal_lang = '' if lang == '-' else lang
            ctx.literal_file = m.group(3) or ''
        else:
            ctx.state = BlockState.html if name == 'html' else BlockState.php
            ctx.literal_kind = None
            ctx.literal_lang = ctx.literal_file = ''
        self._literal_line(line[m.end():], ctx, first=True)

    def _literal_line(self, line: str, ctx: RenderContext, first: bool = False) -> None:
        close = f'</{ctx.literal_tag}>'
        stripped = line.rstrip()
        if first and close in stripped and not stripped.endswith(close):
            # one-line block followed by more text: close it and keep the rest as a paragraph
            before, _, rest = stripped.partition(close)
            if before.strip():
                ctx.literal_lines.append(before.strip())
            self._close_literal(ctx)
            ctx.state = BlockState.none
            if rest.strip():
                self._paragraph(rest, None, ctx)
        elif stripped.endswith(close):
            before = stripped[:-len(close)]
            if before.strip():
                ctx.literal_lines.append(before.strip() if first else before)
            self._close_literal(ctx)
            ctx.state = BlockState.none
        elif not first:
            ctx.literal_lines.append(line)
        elif line.strip():
            ctx.literal_lines.append(line.strip())

    def _close_literal(self, ctx: RenderContext) -> None:
        content = '\n'.join(ctx.literal_lines)
        state, kind = ctx.state, ctx.literal_kind
        ctx.literal_lines = []
        ctx.literal_kind = None
        if not content.strip():
            return

        if state is BlockState.html and self.settings.html_ok:
            ctx.emit(content)
        elif state in _TAGGED_STATES:
            ctx.emit(f'<pre class="code {state.value}">{html.escape(content.strip())}</pre>')
        else:
            css = f"{kind.value} {ctx.literal_lang}".strip()
            pre = f'<pre class="{css}">{html.escape(content)}</pre>'
            if kind is LiteralKind.file and ctx.literal_file:
                pre = f'<dl class="file"><dt>{html.escape(ctx.literal_file)}</dt><dd>{pre}</dd></dl>'
            ctx.emit(pre)


def render(text: str, settings: Optional[Settings] = None) -> str:
    """Render markup with a one-off Renderer."""
    return Renderer(settings).render(text)
