"""
Route enumeration for the static build.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .repository import ContentRepository


@dataclass(frozen=True)
class RouteDescriptor:
    url_path: str
    content_id: str


def enumerate_routes(repository: ContentRepository,
                     on_error: Optional[Callable[[str, Exception], None]] = None) -> List[RouteDescriptor]:
    """
    One route per post, e.g. ``/blog/my-post`` for the post ``my-post``.

    Without ``on_error`` a broken post raises whatever ``list_content_refs``
    raises; with it, the post is reported and left out.
    """
    if on_error is None:
        refs = repository.list_content_refs()
    else:
        refs = repository.iter_content_refs(on_error)
    return [
        RouteDescriptor(url_path=repository.config.post_path(ref.id), content_id=ref.id)
        for ref in refs
    ]
