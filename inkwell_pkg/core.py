import os
import shutil
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape
from email.utils import formatdate
from datetime import datetime, time as dt_time, timezone
from concurrent.futures import ProcessPoolExecutor, as_completed

import csscompressor
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from PIL import Image, UnidentifiedImageError

from .errors import InkwellError
from .logs import LOGGER_NAME
from .renderer import PygmentsHighlighter
from .repository import ContentItem, ContentRepository
from .routes import RouteDescriptor, enumerate_routes
from .settings import SiteConfig

PACKAGE_TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

# Files copied from a post folder next to its generated page
ASSET_EXTENSIONS = ('.png', '.jpg', '.jpeg')

# Below this many posts a process pool costs more than it saves
MULTIPROCESSING_THRESHOLD = 12

RSS_ITEM_LIMIT = 20

# Per-process PostWriter used by pool workers
thread_local = threading.local()

BUILD_ERRORS = (InkwellError, OSError, TemplateError)


def initializer(config):
    """Initialize a PostWriter in each worker process."""
    thread_local.post_writer = PostWriter(config)


def process_route(content_id):
    """Build one post inside a worker process."""
    return thread_local.post_writer.write_post(content_id)


def create_template_environment(config):
    """Jinja2 environment over the configured templates, falling back to the packaged ones."""
    search_path = []
    if config.templates_dir:
        if not os.path.isdir(config.templates_dir):
            raise FileNotFoundError(f"Templates directory not found: {config.templates_dir}")
        search_path.append(config.templates_dir)
    search_path.append(PACKAGE_TEMPLATES_DIR)
    return Environment(loader=FileSystemLoader(search_path), autoescape=select_autoescape(['html', 'xml']))


def image_size(path) -> Optional[Tuple[int, int]]:
    """Pixel size of an image file, or None when Pillow cannot read it."""
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, UnidentifiedImageError) as e:
        logging.getLogger(LOGGER_NAME).warning(f"Could not read image size of {path}: {e}")
        return None


class PostWriter:
    """Render a single post and write its page and assets to the output directory."""

    def __init__(self, config: SiteConfig, repository: Optional[ContentRepository] = None):
        self.config = config
        self.repository = repository or ContentRepository(config)
        self.env = create_template_environment(config)
        self.logger = logging.getLogger(LOGGER_NAME)

    def post_output_dir(self, content_id: str) -> str:
        return os.path.join(self.config.output_dir, self.config.blog_slug, content_id)

    def copy_post_assets(self, content_id: str) -> int:
        """Copy images from the post folder and its subfolders next to its page."""
        source_dir = os.path.join(self.config.content_dir, content_id)
        target_dir = self.post_output_dir(content_id)
        copied = []

        def skip_non_assets(directory, names):
            return [name for name in names
                    if not os.path.isdir(os.path.join(directory, name))
                    and not name.lower().endswith(ASSET_EXTENSIONS)]

        def copy_asset(source_path, target_path):
            copied.append(os.path.relpath(source_path, source_dir))
            return shutil.copy2(source_path, target_path)

        shutil.copytree(source_dir, target_dir, ignore=skip_non_assets,
                        copy_function=copy_asset, dirs_exist_ok=True)
        for name in copied:
            self.logger.debug(f"Copied asset {name} for blog post '{content_id}'")
        return len(copied)

    def write_post(self, content_id: str) -> ContentItem:
        """
        Load, render and write one post.

        Returns:
            The loaded ContentItem, for listings and the feed

        Raises:
            InkwellError: The post is missing, unreadable or its frontmatter is broken
            OSError: Writing its output failed
        """
        item = self.repository.load_content(content_id)
        html = self.repository.render_content(item)

        cover_url = self.repository.cover_url(item)
        cover_size = None
        if item.cover_file_name:
            cover_size = image_size(os.path.join(self.config.content_dir, content_id, item.cover_file_name))

        page = self.env.get_template('post.html').render(
            site=self.config,
            post=item,
            content=html,
            cover_url=cover_url,
            cover_size=cover_size,
            url_path=self.config.post_path(content_id),
        )

        output_dir = self.post_output_dir(content_id)
        # Assets removed from the post folder must not survive a rebuild
        if os.path.isdir(output_dir):
            shutil.rmtree(output_dir)
        os.makedirs(output_dir)
        with open(os.path.join(output_dir, 'index.html'), 'w', encoding='utf-8') as f:
            f.write(page)

        assets = self.copy_post_assets(content_id)
        self.logger.debug(f"Wrote blog post '{content_id}' with {assets} assets")
        return item


@dataclass
class BuildReport:
    """Outcome of a build: which routes were written and which failed, with why."""
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    items: List[ContentItem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def record_failure(self, content_id: str, error: BaseException) -> None:
        self.failed[content_id] = str(error)


def sort_newest_first(items):
    """Newest post first; posts from the same day keep id order."""
    return sorted(sorted(items, key=lambda item: item.id), key=lambda item: item.published_date, reverse=True)


class SiteBuilder:
    """
    Build the blog: one page per post, the blog index, the RSS feed and the
    syntax-highlighting stylesheet.

    Args:
        config: Site configuration shared by every stage of the build
    """

    def __init__(self, config: SiteConfig):
        self.config = config
        self.logger = logging.getLogger(LOGGER_NAME)
        self.repository = ContentRepository(config)
        self.env = create_template_environment(config)

        if not os.path.isdir(config.content_dir):
            raise FileNotFoundError(f"Content directory not found: {config.content_dir}")

    @property
    def blog_output_dir(self) -> str:
        return os.path.join(self.config.output_dir, self.config.blog_slug)

    def enumerate_routes(self, report: BuildReport) -> List[RouteDescriptor]:
        def on_error(content_id, error):
            report.record_failure(content_id, error)

        return enumerate_routes(self.repository, on_error=on_error)

    def worker_count(self, total: int) -> int:
        """Processes to use for ``total`` posts; 1 means build in this process."""
        if self.config.workers:
            return max(1, self.config.workers)
        if total >= MULTIPROCESSING_THRESHOLD:
            return os.cpu_count() or 1
        return 1

    def build_posts(self, routes: List[RouteDescriptor], report: BuildReport) -> None:
        """Build all posts, adapting between a process pool and a plain loop."""
        if not routes:
            self.logger.warning(f"No blog posts found in {self.config.content_dir}")
            return

        workers = self.worker_count(len(routes))
        if workers > 1:
            self.logger.info(f"Using multiprocessing for {len(routes)} posts with {workers} workers")
            self._build_with_multiprocessing(routes, report, workers)
        else:
            self.logger.debug(f"Using single-threaded processing for {len(routes)} posts")
            self._build_single_threaded(routes, report)

    def _build_single_threaded(self, routes, report):
        writer = PostWriter(self.config, self.repository)
        for route in routes:
            try:
                item = writer.write_post(route.content_id)
            except BUILD_ERRORS as e:
                self.logger.error(f"Error building {route.url_path}: {e}")
                report.record_failure(route.content_id, e)
                continue
            report.succeeded.append(route.content_id)
            report.items.append(item)

    def _build_with_multiprocessing(self, routes, report, workers):
        with ProcessPoolExecutor(max_workers=workers, initializer=initializer, initargs=(self.config,)) as executor:
            futures = {executor.submit(process_route, route.content_id): route for route in routes}
            for future in as_completed(futures):
                route = futures[future]
                try:
                    item = future.result()
                except Exception as e:
                    # Worker failures arrive re-raised here; each one fails only its own route
                    self.logger.error(f"Error building {route.url_path}: {e}")
                    report.record_failure(route.content_id, e)
                    continue
                report.succeeded.append(route.content_id)
                report.items.append(item)

    def build_blog_index(self, items: List[ContentItem]) -> None:
        """Write the blog index page listing every built post, newest first."""
        self.logger.info("Building blog index page")
        posts = [
            {'post': item, 'url': self.config.post_path(item.id), 'cover_url': self.repository.cover_url(item)}
            for item in sort_newest_first(items)
        ]
        page = self.env.get_template('blog.html').render(site=self.config, posts=posts)

        os.makedirs(self.blog_output_dir, exist_ok=True)
        with open(os.path.join(self.blog_output_dir, 'index.html'), 'w', encoding='utf-8') as f:
            f.write(page)

    def generate_rss_feed(self, items: List[ContentItem]) -> Optional[str]:
        """Write ``{blog_slug}/rss.xml``; skipped when no site_url is configured."""
        if not self.config.site_url:
            self.logger.debug("Skipping RSS feed (no site_url).")
            return None

        self.logger.info("Generating RSS feed")
        site_name = self.config.site_title or self.config.site_url
        description = self.config.site_description or f"Latest posts from {site_name}"
        blog_url = self.config.absolute_url(self.config.blog_slug)

        rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{escape(site_name)}</title>
<link>{escape(blog_url)}</link>
<description>{escape(description)}</description>
<lastBuildDate>{formatdate()}</lastBuildDate>
'''

        for item in sort_newest_first(items)[:RSS_ITEM_LIMIT]:
            link = escape(self.config.absolute_url(self.config.post_path(item.id)))
            published = datetime.combine(item.published_date, dt_time(), tzinfo=timezone.utc)
            categories = ''.join(f"\n<category>{escape(tag)}</category>" for tag in item.tags)
            rss_content += f'''
<item>
<title>{escape(item.title)}</title>
<link>{link}</link>
<description>{escape(item.excerpt)}</description>
<pubDate>{formatdate(published.timestamp(), usegmt=True)}</pubDate>
<guid>{link}</guid>{categories}
</item>'''

        rss_content += '''
</channel>
</rss>
'''

        os.makedirs(self.blog_output_dir, exist_ok=True)
        rss_file = os.path.join(self.blog_output_dir, 'rss.xml')
        with open(rss_file, 'w', encoding='utf-8') as f:
            f.write(rss_content)
        return rss_file

    def write_syntax_stylesheet(self) -> str:
        """Write the Pygments stylesheet for the configured style, plus a minified copy if asked."""
        self.logger.info("Writing syntax stylesheet")
        css_dir = os.path.join(self.config.output_dir, 'assets', 'css')
        os.makedirs(css_dir, exist_ok=True)

        css = PygmentsHighlighter(self.config.highlight_style).stylesheet()
        css_path = os.path.join(css_dir, 'syntax.css')
        with open(css_path, 'w', encoding='utf-8') as f:
            f.write(css)

        if self.config.minify:
            with open(os.path.join(css_dir, 'syntax.min.css'), 'w', encoding='utf-8') as f:
                f.write(csscompressor.compress(css))
            self.logger.debug("Minified CSS: syntax.css")
        return css_path

    def build(self) -> BuildReport:
        """
        Main build process.

        A post that fails to load or render fails only its own route; the
        rest of the site is still written and the failure is in the report.
        """
        self.logger.debug("Starting site build...")
        report = BuildReport()

        routes = self.enumerate_routes(report)
        self.build_posts(routes, report)

        self.build_blog_index(report.items)
        self.generate_rss_feed(report.items)
        self.write_syntax_stylesheet()

        for content_id, message in sorted(report.failed.items()):
            self.logger.error(f"Failed route {self.config.post_path(content_id)}: {message}")
        return report
