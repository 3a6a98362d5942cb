#!/usr/bin/env python3
"""
Command-line interface for Inkwell - blog content pipeline.
"""

import os
import sys
import argparse
import time
from typing import List, Optional

from . import __version__
from .core import SiteBuilder
from .errors import InkwellError
from .logs import setup_logging
from .repository import ContentRepository
from .routes import enumerate_routes
from .settings import InkwellSettings

SAMPLE_POST = """---
title: 'Hello, World'
date: '{date}'
tags:
  - 'meta'
---

Welcome to your new blog. Each post lives in its own folder under
`content/`, and the folder name becomes the post's URL.

## Writing posts

- Put the post in `content/<post-id>/index.md`
- Drop images next to it and link them relatively: `![Chart](chart.png)`
- Add a `cover.png` to give the post a cover image

```python
print("Hello, World")
```
"""


def create_starter_content(content_dir: str = 'content') -> None:
    """Create a content directory with a sample post."""
    post_dir = os.path.join(os.getcwd(), content_dir, 'hello-world')
    post_path = os.path.join(post_dir, 'index.md')
    if os.path.exists(post_path):
        print(f"Sample post already exists: {os.path.relpath(post_path)}")
        return

    os.makedirs(post_dir, exist_ok=True)
    with open(post_path, 'w', encoding='utf-8') as f:
        f.write(SAMPLE_POST.format(date=time.strftime('%Y-%m-%d')))
    print(f"Created sample post: {os.path.relpath(post_path)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Inkwell - blog content pipeline')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--content', type=str,
                        help='Content directory holding one folder per post')
    parser.add_argument('--templates', type=str,
                        help='Templates directory overriding the built-in templates')
    parser.add_argument('--blog-slug', type=str,
                        help="URL prefix for posts instead of 'blog'")
    parser.add_argument('--words-per-minute', type=int,
                        help='Reading speed used for reading-time estimates')
    parser.add_argument('--excerpt-length', type=int,
                        help='Characters of plain text used for post excerpts')
    parser.add_argument('--highlight-style', type=str,
                        help='Pygments style for code blocks')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for the RSS feed and social metadata')
    parser.add_argument('--site-title', type=str, help='Site title for metadata')
    parser.add_argument('--site-description', type=str, help='Site description for metadata')
    parser.add_argument('--workers', type=int,
                        help='Worker processes (0 picks automatically, 1 disables multiprocessing)')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Also write a minified syntax stylesheet')
    parser.add_argument('--keep-going', action='store_true',
                        help='Exit successfully even when some posts failed to build')
    parser.add_argument('--list-routes', action='store_true',
                        help='Print the route of every post and exit')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and post')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def list_routes(repository: ContentRepository) -> int:
    """Print one line per route; broken posts go to stderr."""
    failures = []

    def on_error(content_id, error):
        failures.append(content_id)
        print(f"Error: {error}", file=sys.stderr)

    for route in enumerate_routes(repository, on_error=on_error):
        print(f"{route.url_path}\t{route.content_id}")
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = InkwellSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        create_starter_content()
        print("\nEdit the configuration file, then run 'inkwell' to build your blog.")
        return

    try:
        # Load settings from configuration file
        settings_loader = InkwellSettings()
        settings_loader.load_settings()

        # Argument names match the setting keys; unset options stay None and are skipped
        final_settings = settings_loader.merge_with_args(vars(args))
        config = settings_loader.to_config(final_settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.list_routes:
        sys.exit(list_routes(ContentRepository(config)))

    logger = setup_logging()
    overall_start_time = time.time()

    try:
        builder = SiteBuilder(config)
        report = builder.build()
    except (InkwellError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    total_time = time.time() - overall_start_time
    logger.info(f"Site build completed in {total_time:.6f} seconds.")
    logger.info(f"Total posts generated: {len(report.succeeded)}")
    if report.failed:
        logger.info(f"Total posts failed: {len(report.failed)}")
        if not args.keep_going:
            sys.exit(1)


if __name__ == '__main__':
    main()
