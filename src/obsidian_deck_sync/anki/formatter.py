"""Render note fields from Markdown to HTML for Anki.

Uses mistune for Markdown parsing, Pygments for syntax highlighting of fenced
code, and nh3 for HTML sanitization.
"""

import mistune
import nh3
from mistune.util import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from obsidian_deck_sync.domain.interfaces.formatter import IFormatter

# Allowed HTML tags for Anki cards (used by nh3 sanitizer)
ALLOWED_TAGS = {
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "del",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "blockquote",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "a",
    "img",
    "div",
    "span",
    "sup",
    "sub",
    "hr",
}

_GLOBAL_ATTRIBUTES = {"class", "style"}

# "rel" is left out of "a": nh3 sets it through link_rel
_TAG_SPECIFIC_ATTRIBUTES = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title", "width", "height"},
    "td": {"colspan", "rowspan", "align"},
    "th": {"colspan", "rowspan", "align"},
}

ALLOWED_ATTRIBUTES = {
    tag: _GLOBAL_ATTRIBUTES | _TAG_SPECIFIC_ATTRIBUTES.get(tag, set())
    for tag in ALLOWED_TAGS
}


class HighlightRenderer(mistune.HTMLRenderer):
    """Mistune renderer that highlights fenced code with Pygments."""

    def __init__(self) -> None:
        super().__init__(escape=False)
        self._formatter = HtmlFormatter(cssclass="codehilite", nowrap=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                highlighted: str = highlight(code, lexer, self._formatter)
                return highlighted

        lang_class = f"language-{lang}" if lang else "language-text"
        return f'<pre><code class="{lang_class}">{escape(code)}</code></pre>\n'


class MarkdownHtmlFormatter(IFormatter):
    """Convert authored Markdown into sanitized HTML fields."""

    def __init__(self, sanitize: bool = True) -> None:
        self._sanitize = sanitize
        self._markdown = mistune.create_markdown(
            renderer=HighlightRenderer(),
            plugins=["strikethrough", "table", "task_lists"],
        )

    def format(self, content: str) -> str:
        if not content.strip():
            return content

        html = str(self._markdown(content)).strip()
        if self._sanitize:
            html = sanitize_html(html)
        return html


class PlainFormatter(IFormatter):
    """Send fields verbatim (``render_markdown: false``)."""

    def format(self, content: str) -> str:
        return content


def sanitize_html(html: str) -> str:
    """Strip everything Anki should not render (scripts, event handlers...)."""
    if not html:
        return html

    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        link_rel="noopener noreferrer",
    )
