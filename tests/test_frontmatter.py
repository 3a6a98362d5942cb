"""Tests for frontmatter parsing."""

import io
from datetime import date

import pytest

from inkwell_pkg.errors import MalformedFrontmatterError
from inkwell_pkg.frontmatter import Frontmatter, parse_date, parse_frontmatter, read_frontmatter


WELL_FORMED = """---
title: 'Post Title'
date: '2020-11-25'
tags:
  - 'tag-one'
  - 'tag-two'
---
Body line one.
Body line two.
"""


class TestParseFrontmatter:
    """Test cases for parse_frontmatter."""

    def test_well_formed(self):
        """Title, date and tags come back exactly as written."""
        metadata, body = parse_frontmatter(WELL_FORMED)

        assert metadata.title == 'Post Title'
        assert metadata.date == date(2020, 11, 25)
        assert metadata.tags == ('tag-one', 'tag-two')
        assert metadata.cover is None
        assert body == "Body line one.\nBody line two.\n"

    def test_idempotent(self):
        assert parse_frontmatter(WELL_FORMED) == parse_frontmatter(WELL_FORMED)

    def test_missing_date(self):
        text = "---\ntitle: 'No Date'\n---\nBody\n"
        with pytest.raises(MalformedFrontmatterError, match="date"):
            parse_frontmatter(text, 'no-date')

    def test_missing_title(self):
        text = "---\ndate: '2020-11-25'\n---\nBody\n"
        with pytest.raises(MalformedFrontmatterError, match="title"):
            parse_frontmatter(text)

    def test_error_names_post(self):
        text = "---\ntitle: 'No Date'\n---\n"
        with pytest.raises(MalformedFrontmatterError) as exc_info:
            parse_frontmatter(text, 'broken-post')

        assert exc_info.value.content_id == 'broken-post'
        assert 'broken-post' in str(exc_info.value)

    def test_unterminated_block(self):
        text = "---\ntitle: 'Open'\ndate: '2020-11-25'\nBody without closing marker\n"
        with pytest.raises(MalformedFrontmatterError, match="not terminated"):
            parse_frontmatter(text)

    def test_no_frontmatter_fails_required_keys(self):
        with pytest.raises(MalformedFrontmatterError):
            parse_frontmatter("# Just markdown\n")

    def test_invalid_yaml(self):
        text = "---\ntitle: [unclosed\ndate: '2020-11-25'\n---\n"
        with pytest.raises(MalformedFrontmatterError, match="invalid YAML"):
            parse_frontmatter(text)

    def test_non_mapping_block(self):
        text = "---\n- just\n- a list\n---\n"
        with pytest.raises(MalformedFrontmatterError, match="mapping"):
            parse_frontmatter(text)

    def test_yaml_native_date(self):
        metadata, _ = parse_frontmatter("---\ntitle: T\ndate: 2021-03-04\n---\n")
        assert metadata.date == date(2021, 3, 4)

    def test_datetime_string_is_reduced_to_date(self):
        metadata, _ = parse_frontmatter("---\ntitle: T\ndate: '2021-03-04T10:30:00'\n---\n")
        assert metadata.date == date(2021, 3, 4)

    def test_invalid_date(self):
        with pytest.raises(MalformedFrontmatterError, match="invalid date"):
            parse_frontmatter("---\ntitle: T\ndate: 'next tuesday'\n---\n")

    def test_single_tag_scalar(self):
        metadata, _ = parse_frontmatter("---\ntitle: T\ndate: '2020-01-01'\ntags: solo\n---\n")
        assert metadata.tags == ('solo',)

    def test_unrecognized_keys_are_kept(self):
        text = "---\ntitle: T\ndate: '2020-01-01'\nseries: monads\ncover: true\n---\n"
        metadata, _ = parse_frontmatter(text)

        assert metadata.extra == {'series': 'monads'}
        assert metadata.cover is True

    def test_byte_order_mark(self):
        metadata, body = parse_frontmatter('\ufeff' + WELL_FORMED)
        assert metadata.title == 'Post Title'
        assert body.startswith('Body line one.')

    def test_windows_line_endings(self):
        metadata, body = parse_frontmatter(WELL_FORMED.replace('\n', '\r\n'))
        assert metadata.title == 'Post Title'
        assert body.startswith('Body line one.')


class TestReadFrontmatter:
    """Test cases for streaming frontmatter reads."""

    def test_stops_at_closing_marker(self):
        """The body is left unread in the stream."""
        stream = io.StringIO(WELL_FORMED)
        metadata = read_frontmatter(stream)

        assert metadata == Frontmatter(title='Post Title', date=date(2020, 11, 25), tags=('tag-one', 'tag-two'))
        assert stream.read() == "Body line one.\nBody line two.\n"

    def test_matches_full_parse(self):
        assert read_frontmatter(io.StringIO(WELL_FORMED)) == parse_frontmatter(WELL_FORMED)[0]

    def test_unterminated(self):
        with pytest.raises(MalformedFrontmatterError):
            read_frontmatter(io.StringIO("---\ntitle: T\n"), 'open-post')


class TestParseDate:
    def test_date_passthrough(self):
        assert parse_date(date(2020, 1, 2)) == date(2020, 1, 2)

    def test_rejects_numbers(self):
        with pytest.raises(MalformedFrontmatterError):
            parse_date(20200102)
