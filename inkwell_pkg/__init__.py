"""
Inkwell - the content pipeline behind a personal blog.

Inkwell loads markdown posts stored one per folder, parses their frontmatter,
turns each body into a typed document tree, renders it to HTML with syntax
highlighting, and writes the blog pages, post assets and RSS feed of a
static site.
"""

__version__ = "1.0.0"

from .errors import ContentNotFoundError, InkwellError, MalformedFrontmatterError
from .settings import SiteConfig
from .repository import ContentItem, ContentRef, ContentRepository
from .routes import RouteDescriptor, enumerate_routes
from .core import BuildReport, SiteBuilder

__all__ = [
    'BuildReport', 'ContentItem', 'ContentNotFoundError', 'ContentRef',
    'ContentRepository', 'InkwellError', 'MalformedFrontmatterError',
    'RouteDescriptor', 'SiteBuilder', 'SiteConfig', 'enumerate_routes',
]
