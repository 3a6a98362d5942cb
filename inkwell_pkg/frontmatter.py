"""
YAML frontmatter parsing for blog posts.

A post starts with a metadata block fenced by ``---`` lines:

    ---
    title: 'Post Title'
    date: '2020-11-25'
    tags:
      - 'tag-one'
    ---
    <markdown body>
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional, TextIO, Tuple

import yaml

from .errors import MalformedFrontmatterError

FRONTMATTER_MARKER = '---'
REQUIRED_KEYS = ('title', 'date')
RECOGNIZED_KEYS = ('title', 'date', 'tags', 'cover')

DATE_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%SZ', '%Y-%m-%d %H:%M:%S']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frontmatter:
    title: str
    date: date
    tags: Tuple[str, ...] = ()
    cover: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


def _is_marker(line: str) -> bool:
    return line.rstrip('\r\n').rstrip() == FRONTMATTER_MARKER


def parse_date(value: Any, content_id: Optional[str] = None) -> date:
    """Normalise a frontmatter date (YAML-native or ISO-8601 string) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
    raise MalformedFrontmatterError(f"invalid date {value!r}", content_id)


def _parse_tags(value: Any, content_id: Optional[str]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(tag) for tag in value if tag is not None)
    if isinstance(value, (str, int, float)):
        return (str(value),)
    raise MalformedFrontmatterError(f"invalid tags {value!r}", content_id)


def _split_lines(lines: Iterable[str], content_id: Optional[str]) -> Tuple[Optional[str], int]:
    """
    Find the frontmatter block at the head of ``lines``.

    Returns:
        Tuple of (block text or None when there is no opening marker,
        number of lines consumed including both markers)
    """
    iterator = iter(lines)
    first = next(iterator, None)
    if first is None or not _is_marker(first):
        return None, 0

    block = []
    for line in iterator:
        if _is_marker(line):
            return ''.join(block), len(block) + 2
        block.append(line)

    raise MalformedFrontmatterError("frontmatter block is not terminated", content_id)


def _build(raw_block: Optional[str], content_id: Optional[str]) -> Frontmatter:
    if raw_block is None:
        metadata = {}
    else:
        try:
            metadata = yaml.safe_load(raw_block)
        except yaml.YAMLError as e:
            raise MalformedFrontmatterError(f"invalid YAML in frontmatter: {e}", content_id) from e
        if metadata is None:
            metadata = {}
        elif not isinstance(metadata, dict):
            raise MalformedFrontmatterError("frontmatter must be a mapping", content_id)

    for key in REQUIRED_KEYS:
        if metadata.get(key) in (None, ''):
            raise MalformedFrontmatterError(f"missing or invalid {key}", content_id)

    title = metadata['title']
    if not isinstance(title, str):
        raise MalformedFrontmatterError("missing or invalid title", content_id)

    cover = metadata.get('cover')
    extra = {key: value for key, value in metadata.items() if key not in RECOGNIZED_KEYS}
    if extra:
        logger.debug(f"Keeping unrecognized frontmatter keys for {content_id}: {', '.join(map(str, extra))}")

    return Frontmatter(
        title=title,
        date=parse_date(metadata['date'], content_id),
        tags=_parse_tags(metadata.get('tags'), content_id),
        cover=bool(cover) if cover is not None else None,
        extra=extra,
    )


def parse_frontmatter(text: str, content_id: Optional[str] = None) -> Tuple[Frontmatter, str]:
    """
    Split raw file text into frontmatter and body.

    Args:
        text: Full file contents
        content_id: Post id, used only in error messages

    Returns:
        Tuple of (Frontmatter, remaining body text)

    Raises:
        MalformedFrontmatterError: Unterminated block, bad YAML or missing title/date
    """
    if text.startswith('\ufeff'):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    raw_block, consumed = _split_lines(lines, content_id)
    body = ''.join(lines[consumed:])
    return _build(raw_block, content_id), body


def read_frontmatter(stream: TextIO, content_id: Optional[str] = None) -> Frontmatter:
    """Parse frontmatter from an open file, reading no further than the closing marker."""
    first = stream.readline()
    if first.startswith('\ufeff'):
        first = first[1:]

    def head():
        yield first
        if not _is_marker(first):
            return
        # Stop pulling lines once the block closes so the body is never read
        for line in iter(stream.readline, ''):
            yield line
            if _is_marker(line):
                return

    raw_block, _ = _split_lines(head(), content_id)
    return _build(raw_block, content_id)
