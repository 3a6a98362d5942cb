"""
Slug helpers shared by content ids and in-page heading anchors.
"""

import os
import re

# Scheme prefix such as "https:", "mailto:" or "data:"
ABSOLUTE_URL_PATTERN = re.compile(r'^[a-z][a-z\d+\-.]*:', re.IGNORECASE)

_ANCHOR_STRIP_PATTERN = re.compile(r'[^a-z0-9\-\s]')
_WHITESPACE_PATTERN = re.compile(r'\s+')


def slugify_for_content_id(storage_path: str) -> str:
    """
    Derive a post id from where it is stored.

    The id is the name of the post's folder, used verbatim. A path to the
    post's ``index.md`` resolves to its parent folder.

    Args:
        storage_path: Path to a post folder or to a markdown file inside it

    Returns:
        The folder name
    """
    path = os.path.normpath(storage_path)
    if os.path.splitext(path)[1].lower() == '.md':
        path = os.path.dirname(path)
    return os.path.basename(path)


def slugify_for_anchor(text: str) -> str:
    """Turn heading text into an anchor id, e.g. 'Hello World!' -> 'hello-world'."""
    slug = _ANCHOR_STRIP_PATTERN.sub('', text.lower())
    return _WHITESPACE_PATTERN.sub('-', slug.strip())


def is_absolute_url(url: str) -> bool:
    return bool(ABSOLUTE_URL_PATTERN.match(url))
