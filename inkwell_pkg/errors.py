"""
Exceptions raised by the Inkwell content pipeline.

Every error is local to a single post and names the post it came from, so a
build can report the failing route and carry on with the rest.
"""

from typing import Optional


class InkwellError(Exception):
    """Base class for Inkwell errors."""

    def __init__(self, message: str, content_id: Optional[str] = None):
        self.content_id = content_id
        if content_id:
            message = f"Blog post '{content_id}': {message}"
        super().__init__(message)


class MalformedFrontmatterError(InkwellError, ValueError):
    """Frontmatter block is unterminated, unparseable or missing a required key."""


class ContentNotFoundError(InkwellError, LookupError):
    """No post exists for the requested id."""


class ContentReadError(InkwellError):
    """A post's index file exists but could not be read or decoded."""
