"""
Blog post discovery and loading.

Posts live in ``{content_dir}/{id}/index.md``; the folder name is the post id
and never changes with the title. Listing reads frontmatter only, loading
reads the whole file.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .document import Document, parse_document
from .errors import ContentNotFoundError, ContentReadError, InkwellError
from .frontmatter import parse_frontmatter, read_frontmatter
from .reading_time import estimate_reading_time
from .renderer import HtmlRenderer, render_plain_text
from .settings import SiteConfig
from .slugs import is_absolute_url, slugify_for_content_id

INDEX_FILE_NAME = 'index.md'
COVER_FILE_NAMES = ('cover.png', 'Cover.png')

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentRef:
    id: str
    title: str
    date: date
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContentItem:
    id: str
    title: str
    published_date: date
    tags: Tuple[str, ...]
    body_source: str
    has_cover_image: bool
    reading_time_minutes: int
    excerpt: str = ''
    cover_file_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def parse(self) -> Document:
        """Build the document tree; a new tree on every call."""
        return parse_document(self.body_source)


def make_excerpt(document: Document, length: int) -> str:
    """First ``length`` characters of the post's plain text, with an ellipsis when cut short."""
    text = ' '.join(render_plain_text(document).split())
    if length <= 0 or not text:
        return ''
    if len(text) <= length:
        return text
    return text[:length].rstrip() + '…'


class ContentRepository:
    """
    Read-only view of the posts under a content directory.

    Args:
        config: Site configuration; ``config.content_dir`` is the content root
    """

    def __init__(self, config: SiteConfig):
        self.config = config
        self.content_dir = config.content_dir

    def _post_dir(self, content_id: str) -> str:
        return os.path.join(self.content_dir, content_id)

    def _index_path(self, content_id: str) -> str:
        return os.path.join(self._post_dir(content_id), INDEX_FILE_NAME)

    def _cover_file_name(self, content_id: str) -> Optional[str]:
        post_dir = self._post_dir(content_id)
        try:
            names = set(os.listdir(post_dir))
        except OSError:
            return None
        for name in COVER_FILE_NAMES:
            if name in names:
                return name
        return None

    def _folder_names(self) -> List[str]:
        """Names of the visible folders under the content directory, sorted."""
        with os.scandir(self.content_dir) as entries:
            return sorted(entry.name for entry in entries
                          if entry.is_dir() and not entry.name.startswith('.'))

    def _scan_ids(self) -> Iterator[str]:
        """Yield ids of folders that contain an index file, in name order."""
        if not os.path.isdir(self.content_dir):
            logger.warning(f"Content directory not found: {self.content_dir}")
            return
        for name in self._folder_names():
            index_path = self._index_path(name)
            if not os.path.isfile(index_path):
                logger.debug(f"Skipping {name}: no {INDEX_FILE_NAME}")
                continue
            yield slugify_for_content_id(index_path)

    def _read_ref(self, content_id: str) -> ContentRef:
        try:
            with open(self._index_path(content_id), 'r', encoding='utf-8') as f:
                metadata = read_frontmatter(f, content_id)
        except (OSError, UnicodeDecodeError) as e:
            raise ContentReadError(f"could not read {INDEX_FILE_NAME}: {e}", content_id) from e
        return ContentRef(id=content_id, title=metadata.title, date=metadata.date, tags=metadata.tags)

    def list_content_refs(self) -> Iterator[ContentRef]:
        """
        Lazily list every post, reading frontmatter only.

        Each call rescans the content directory. A malformed post raises
        MalformedFrontmatterError naming the post.
        """
        for content_id in self._scan_ids():
            yield self._read_ref(content_id)

    def iter_content_refs(self, on_error: Callable[[str, Exception], None]) -> Iterator[ContentRef]:
        """Like list_content_refs, but reports broken posts to ``on_error`` and keeps going."""
        for content_id in self._scan_ids():
            try:
                yield self._read_ref(content_id)
            except InkwellError as e:
                logger.error(f"Failed to read blog post '{content_id}': {e}")
                on_error(content_id, e)

    @staticmethod
    def _is_valid_id(content_id: str) -> bool:
        return bool(content_id) and content_id not in ('.', '..') and \
            '/' not in content_id and '\\' not in content_id and os.sep not in content_id

    def _resolve_folder(self, content_id: str) -> Optional[str]:
        """On-disk folder a requested id refers to, matching case-insensitively."""
        if not self._is_valid_id(content_id) or not os.path.isdir(self.content_dir):
            return None
        names = self._folder_names()
        if content_id in names:
            return content_id
        wanted = content_id.casefold()
        for name in names:
            if name.casefold() == wanted:
                return name
        return None

    def load_content(self, content_id: str) -> ContentItem:
        """
        Load a single post with its full body.

        Args:
            content_id: Post id (its folder name)

        Returns:
            The fully populated ContentItem

        Raises:
            ContentNotFoundError: No such post, or the stored id does not match
            ContentReadError: The post's index file could not be read or decoded
            MalformedFrontmatterError: The post's frontmatter is broken
        """
        folder = self._resolve_folder(content_id)
        if folder is None or not os.path.isfile(self._index_path(folder)):
            raise ContentNotFoundError("not found", content_id)

        index_path = self._index_path(folder)
        resolved_id = slugify_for_content_id(index_path)
        if resolved_id != content_id:
            raise ContentNotFoundError(f"resolved to id '{resolved_id}'", content_id)

        try:
            with open(index_path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ContentReadError(f"could not read {INDEX_FILE_NAME}: {e}", content_id) from e
        metadata, body = parse_frontmatter(raw, content_id)

        cover_file_name = self._cover_file_name(content_id)
        has_cover = cover_file_name is not None
        if metadata.cover and not has_cover:
            logger.warning(f"Blog post '{content_id}' sets cover but has no {COVER_FILE_NAMES[0]}")

        item = ContentItem(
            id=resolved_id,
            title=metadata.title,
            published_date=metadata.date,
            tags=metadata.tags,
            body_source=body,
            has_cover_image=has_cover,
            reading_time_minutes=estimate_reading_time(body, self.config.words_per_minute),
            excerpt=make_excerpt(parse_document(body), self.config.excerpt_length),
            cover_file_name=cover_file_name,
            extra=metadata.extra,
        )
        logger.debug(f"Loaded blog post '{content_id}' ({item.reading_time_minutes} min read)")
        return item

    def post_url_transformer(self, content_id: str) -> Callable[[str], str]:
        """URL hook that rewrites post-relative paths to the post's site path."""
        base = self.config.post_path(content_id)

        def transform_url(url: str) -> str:
            if is_absolute_url(url) or url.startswith('/') or url.startswith('#'):
                return url
            relative = url[2:] if url.startswith('./') else url
            return f"{base}/{relative}"

        return transform_url

    def cover_url(self, item: ContentItem) -> Optional[str]:
        if not item.cover_file_name:
            return None
        return f"{self.config.post_path(item.id)}/{item.cover_file_name}"

    def render_content(self, item: ContentItem) -> str:
        """Render a post body to HTML with its relative URLs rewritten."""
        renderer = HtmlRenderer(self.config, transform_url=self.post_url_transformer(item.id))
        return renderer.render(item.parse())
