"""Test configuration and fixtures for Inkwell tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path

from PIL import Image

from inkwell_pkg.settings import SiteConfig
from inkwell_pkg.repository import ContentRepository

FIRST_POST = """---
title: 'Monadic Comprehension Syntax'
date: '2020-11-25'
tags:
  - 'haskell'
  - 'syntax'
---

# Monadic Comprehension Syntax

Some *emphasis* and a [relative link](notes.md) next to
an [absolute one](https://example.com).

![A chart](chart.png)

```js
const x = 1;
```
"""

SECOND_POST = """---
title: 'Second Post'
date: 2021-03-04
---

Plain body text.
"""


def write_post(content_dir, post_id, text, assets=()):
    """Create ``{content_dir}/{post_id}/index.md`` plus empty asset files."""
    post_dir = Path(content_dir) / post_id
    post_dir.mkdir(parents=True, exist_ok=True)
    (post_dir / 'index.md').write_text(text, encoding='utf-8')
    for name in assets:
        (post_dir / name).write_bytes(b'asset')
    return post_dir


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def content_dir(temp_dir):
    """Content tree with two valid posts, one with a cover image and an asset."""
    content_dir = Path(temp_dir) / 'content'
    first = write_post(content_dir, 'monadic-comprehension', FIRST_POST, assets=['chart.png'])
    Image.new('RGB', (8, 6), color='white').save(first / 'cover.png')
    write_post(content_dir, 'second-post', SECOND_POST)

    # Folders without an index.md are not posts
    (content_dir / 'drafts').mkdir()
    return str(content_dir)


@pytest.fixture
def make_post():
    """Factory for extra posts inside a test."""
    return write_post


@pytest.fixture
def output_dir(temp_dir):
    """Output directory path (created by the build)."""
    return os.path.join(temp_dir, 'output')


@pytest.fixture
def site_config(content_dir, output_dir):
    """Single-process configuration over the sample content tree."""
    return SiteConfig(
        content_dir=content_dir,
        output_dir=output_dir,
        site_url='https://example.com',
        site_title='Example Blog',
        workers=1,
    )


@pytest.fixture
def repository(site_config):
    return ContentRepository(site_config)
