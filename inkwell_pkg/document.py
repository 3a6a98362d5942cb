"""
Typed document tree for post bodies.

Markdown is tokenised by mistune in AST mode (block structure first, then
inline spans inside each block) and the resulting token dicts are converted
into the immutable node classes below. Token kinds without a node class
degrade to their literal text, so a post never fails to parse.
"""

import html
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List as ListType, Optional, Tuple

import mistune

from .slugs import slugify_for_anchor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Node:
    """Base class for every document tree node."""


@dataclass(frozen=True)
class Document(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Heading(Node):
    level: int
    children: Tuple[Node, ...] = ()
    id: Optional[str] = None


@dataclass(frozen=True)
class Paragraph(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Text(Node):
    value: str


@dataclass(frozen=True)
class Emphasis(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Strong(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Link(Node):
    href: str
    children: Tuple[Node, ...] = ()
    title: Optional[str] = None


@dataclass(frozen=True)
class Image(Node):
    src: str
    alt: str = ''
    title: Optional[str] = None


@dataclass(frozen=True)
class List(Node):
    ordered: bool
    start_index: int = 1
    items: Tuple['ListItem', ...] = ()


@dataclass(frozen=True)
class ListItem(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Quote(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class CodeBlock(Node):
    source: str
    language: Optional[str] = None


@dataclass(frozen=True)
class InlineCode(Node):
    children: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Rule(Node):
    pass


@dataclass(frozen=True)
class LineBreak(Node):
    pass


@dataclass(frozen=True)
class RawHtml(Node):
    html: str


# Every concrete node class; the renderer must handle all of them
NODE_TYPES = (
    Document, Heading, Paragraph, Text, Emphasis, Strong, Link, Image,
    List, ListItem, Quote, CodeBlock, InlineCode, Rule, LineBreak, RawHtml,
)

Token = Dict[str, Any]

_LANGUAGE_PREFIX = 'language-'


def parse_language(info: Optional[str]) -> Optional[str]:
    """Extract the language tag from a fence info string ('js', 'language-js', 'js title=x')."""
    if not info:
        return None
    words = info.split()
    if not words:
        return None
    language = words[0]
    if language.lower().startswith(_LANGUAGE_PREFIX):
        language = language[len(_LANGUAGE_PREFIX):]
    return language or None


def heading_anchor(children: Tuple[Node, ...]) -> Optional[str]:
    """Anchor id for a heading, only when its first child is plain text."""
    if not children or not isinstance(children[0], Text):
        return None
    return slugify_for_anchor(children[0].value) or None


def _merge_text(nodes: Iterable[Node]) -> Tuple[Node, ...]:
    merged: ListType[Node] = []
    for node in nodes:
        if isinstance(node, Text) and merged and isinstance(merged[-1], Text):
            merged[-1] = Text(merged[-1].value + node.value)
        elif isinstance(node, Text) and not node.value:
            continue
        else:
            merged.append(node)
    return tuple(merged)


def _token_text(token: Token) -> str:
    """Literal text of a token, used for alt text and degraded tokens."""
    if token.get('type') == 'text':
        return html.unescape(token.get('raw', ''))
    if 'raw' in token:
        return token['raw']
    if 'text' in token:
        return token['text']
    if token.get('type') == 'softbreak':
        return '\n'
    return ''.join(_token_text(child) for child in token.get('children', ()))


class DocumentBuilder:
    """Convert mistune AST tokens into document nodes."""

    def __init__(self):
        self.markdown = mistune.create_markdown(renderer='ast')

    def parse(self, body: str) -> Document:
        tokens = self.markdown(body or '')
        return Document(self.blocks(tokens))

    def blocks(self, tokens: Iterable[Token]) -> Tuple[Node, ...]:
        nodes: ListType[Node] = []
        for token in tokens:
            kind = token.get('type')
            if kind == 'blank_line':
                continue
            if kind == 'block_text':
                # Tight list items keep their inline content without a paragraph
                nodes.extend(self.inlines(token.get('children', ())))
                continue
            node = self.block(token)
            if node is not None:
                nodes.append(node)
        return _merge_text(nodes)

    def block(self, token: Token) -> Optional[Node]:
        kind = token.get('type')
        attrs = token.get('attrs') or {}
        children = token.get('children', ())

        if kind == 'heading':
            inline = self.inlines(children)
            return Heading(level=int(attrs.get('level', 1)), children=inline, id=heading_anchor(inline))
        if kind == 'paragraph':
            return Paragraph(self.inlines(children))
        if kind == 'block_quote':
            return Quote(self.blocks(children))
        if kind == 'block_code':
            return CodeBlock(source=token.get('raw', ''), language=parse_language(attrs.get('info')))
        if kind == 'list':
            start = attrs.get('start')
            return List(
                ordered=bool(attrs.get('ordered')),
                start_index=int(start) if start is not None else 1,
                items=tuple(ListItem(self.blocks(item.get('children', ()))) for item in children),
            )
        if kind == 'list_item':
            return ListItem(self.blocks(children))
        if kind == 'thematic_break':
            return Rule()
        if kind == 'block_html':
            return RawHtml(token.get('raw', ''))

        text = _token_text(token)
        logger.debug(f"No document node for block token '{kind}', keeping it as text")
        return Paragraph((Text(text),)) if text else None

    def inlines(self, tokens: Iterable[Token]) -> Tuple[Node, ...]:
        return _merge_text(self.inline(token) for token in tokens)

    def inline(self, token: Token) -> Node:
        kind = token.get('type')
        attrs = token.get('attrs') or {}
        children = token.get('children', ())

        if kind == 'text':
            # Entity references are left undecoded in text tokens
            return Text(html.unescape(token.get('raw', '')))
        if kind == 'softbreak':
            return Text(' ')
        if kind == 'linebreak':
            return LineBreak()
        if kind == 'emphasis':
            return Emphasis(self.inlines(children))
        if kind == 'strong':
            return Strong(self.inlines(children))
        if kind == 'codespan':
            return InlineCode((Text(token.get('raw', '')),))
        if kind == 'link':
            return Link(href=attrs.get('url', ''), children=self.inlines(children), title=attrs.get('title'))
        if kind == 'image':
            alt = ''.join(_token_text(child) for child in children)
            return Image(src=attrs.get('url', ''), alt=alt, title=attrs.get('title'))
        if kind == 'inline_html':
            return RawHtml(token.get('raw', ''))

        logger.debug(f"No document node for inline token '{kind}', keeping it as text")
        return Text(_token_text(token))


def parse_document(body: str) -> Document:
    """
    Parse a markdown body into a document tree.

    Args:
        body: Markdown text without frontmatter

    Returns:
        The synthetic root node; equal input always gives an equal tree
    """
    return DocumentBuilder().parse(body)
