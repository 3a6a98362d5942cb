"""
HTML rendering of document trees.

Each node class has exactly one registered render method. Rendering an
unregistered node type is a programming error and raises TypeError rather
than producing empty output.
"""

import html
import logging
from functools import singledispatchmethod
from typing import Callable, Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .document import (
    CodeBlock, Document, Emphasis, Heading, Image, InlineCode, LineBreak, Link,
    List, ListItem, Node, Paragraph, Quote, RawHtml, Rule, Strong, Text,
    parse_document,
)
from .settings import SiteConfig
from .slugs import is_absolute_url

logger = logging.getLogger(__name__)

UrlTransform = Callable[[str], str]
Highlighter = Callable[[str, str], Optional[str]]


def escape(text: str) -> str:
    return html.escape(text, quote=True)


class PygmentsHighlighter:
    """Syntax-highlight code with Pygments, returning None for unknown languages."""

    def __init__(self, style: str = 'default', css_class: str = 'highlight'):
        self.formatter = HtmlFormatter(style=style, cssclass=css_class)

    def __call__(self, source: str, language: str) -> Optional[str]:
        try:
            lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
        except ClassNotFound:
            logger.debug(f"No Pygments lexer for language '{language}', rendering plain code block")
            return None
        return highlight(source, lexer, self.formatter)

    def stylesheet(self) -> str:
        return self.formatter.get_style_defs(f'.{self.formatter.cssclass}')


class HtmlRenderer:
    """
    Render document nodes to HTML.

    Args:
        config: Site configuration (highlight style)
        transform_url: Hook applied to relative link and image URLs
        highlighter: Callable (source, language) -> HTML or None
    """

    def __init__(self, config: Optional[SiteConfig] = None,
                 transform_url: Optional[UrlTransform] = None,
                 highlighter: Optional[Highlighter] = None):
        self.config = config or SiteConfig()
        self.transform_url = transform_url
        self.highlighter = highlighter or PygmentsHighlighter(self.config.highlight_style)

    def resolve_url(self, url: str) -> str:
        if not url or is_absolute_url(url) or self.transform_url is None:
            return url
        return self.transform_url(url)

    def render_children(self, children) -> str:
        return ''.join(self.render(child) for child in children)

    @singledispatchmethod
    def render(self, node: Node) -> str:
        raise TypeError(f"No renderer registered for node type {type(node).__name__}")

    @render.register
    def _(self, node: Document) -> str:
        return self.render_children(node.children)

    @render.register
    def _(self, node: Heading) -> str:
        tag = f"h{min(max(node.level, 1), 6)}"
        content = self.render_children(node.children)
        if not node.id:
            return f"<{tag}>{content}</{tag}>\n"
        anchor_id = escape(node.id)
        return (
            f'<{tag} id="{anchor_id}">{content}'
            f' <a class="anchor" href="#{anchor_id}" aria-label="Permalink">#</a></{tag}>\n'
        )

    @render.register
    def _(self, node: Paragraph) -> str:
        return f"<p>{self.render_children(node.children)}</p>\n"

    @render.register
    def _(self, node: Text) -> str:
        return escape(node.value)

    @render.register
    def _(self, node: Emphasis) -> str:
        return f"<em>{self.render_children(node.children)}</em>"

    @render.register
    def _(self, node: Strong) -> str:
        return f"<strong>{self.render_children(node.children)}</strong>"

    @render.register
    def _(self, node: Link) -> str:
        title = f' title="{escape(node.title)}"' if node.title else ''
        href = escape(self.resolve_url(node.href))
        return f'<a href="{href}"{title}>{self.render_children(node.children)}</a>'

    @render.register
    def _(self, node: Image) -> str:
        title = f' title="{escape(node.title)}"' if node.title else ''
        src = escape(self.resolve_url(node.src))
        return f'<img src="{src}" alt="{escape(node.alt)}"{title} loading="lazy" />'

    @render.register
    def _(self, node: List) -> str:
        items = ''.join(self.render(item) for item in node.items)
        if not node.ordered:
            return f"<ul>\n{items}</ul>\n"
        start = f' start="{node.start_index}"' if node.start_index != 1 else ''
        return f"<ol{start}>\n{items}</ol>\n"

    @render.register
    def _(self, node: ListItem) -> str:
        return f"<li>{self.render_children(node.children)}</li>\n"

    @render.register
    def _(self, node: Quote) -> str:
        return f"<blockquote>\n{self.render_children(node.children)}</blockquote>\n"

    @render.register
    def _(self, node: CodeBlock) -> str:
        if node.language:
            highlighted = self.highlighter(node.source, node.language)
            if highlighted is not None:
                return highlighted
            css_class = f' class="language-{escape(node.language)}"'
        else:
            css_class = ''
        return f"<pre><code{css_class}>{escape(node.source)}</code></pre>\n"

    @render.register
    def _(self, node: InlineCode) -> str:
        return f"<code>{self.render_children(node.children)}</code>"

    @render.register
    def _(self, node: Rule) -> str:
        return "<hr />\n"

    @render.register
    def _(self, node: LineBreak) -> str:
        return "<br />\n"

    @render.register
    def _(self, node: RawHtml) -> str:
        return node.html


def registered_node_types():
    """Node classes with a dedicated render method."""
    registry = HtmlRenderer.__dict__['render'].dispatcher.registry
    return {cls for cls in registry if cls is not Node and cls is not object}


def render_plain_text(node: Node) -> str:
    """Flatten a node to its readable text, dropping markup, images and raw HTML."""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, CodeBlock):
        return node.source
    if isinstance(node, (LineBreak, Rule)):
        return '\n'
    if isinstance(node, List):
        return '\n'.join(render_plain_text(item) for item in node.items)
    children = getattr(node, 'children', ())
    separator = '\n' if isinstance(node, (Document, Quote, ListItem)) else ''
    return separator.join(render_plain_text(child) for child in children)


def render_markdown(body: str, config: Optional[SiteConfig] = None,
                    transform_url: Optional[UrlTransform] = None) -> str:
    """Parse a markdown body and render it to HTML."""
    return HtmlRenderer(config, transform_url=transform_url).render(parse_document(body))
