"""Pagination: limit/offset slicing metadata and first/prev/next/last links."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import quote

from ..errors import BadRequestError

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


@dataclass(frozen=True)
class PagingDescriptor:
    limit: int
    offset: int
    total: int
    link: str
    first: str
    prev: str
    next: str
    last: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first": self.first,
            "last": self.last,
            "limit": self.limit,
            "next": self.next,
            "offset": self.offset,
            "prev": self.prev,
            "total": self.total,
        }


def resolve_paging(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
    """
    Apply defaults and validate request paging values.

    Raises:
        BadRequestError: If limit < 1 or offset < 0
    """
    limit = DEFAULT_LIMIT if limit is None else limit
    offset = DEFAULT_OFFSET if offset is None else offset
    if limit < 1:
        raise BadRequestError(f"limit must be a positive integer, got {limit}")
    if offset < 0:
        raise BadRequestError(f"offset must not be negative, got {offset}")
    return limit, offset


def build_link_template(path: str, params: Iterable[Tuple[str, Any]]) -> str:
    """
    Query-string prefix for paging links.

    ``params`` is an ordered sequence of (name, value); pairs whose value is
    None are skipped, so only filters actually applied appear. The field
    order is the caller's and stays fixed. The template ends with ``&``,
    ready for ``limit=..&offset=..``.

    Example:
        >>> build_link_template("/api/factories", [("name", "a b"), ("head", 3)])
        '/api/factories?name=a%20b&head=3&'
    """
    parts = []
    for name, value in params:
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        parts.append(f"{name}={quote(str(value), safe='')}&")
    return f"{path}?{''.join(parts)}"


def _page_link(template: str, limit: int, offset: int) -> str:
    return f"{template}limit={limit}&offset={offset}"


def paginate(
    total_count: int,
    limit: Optional[int],
    offset: Optional[int],
    link_template: str,
) -> PagingDescriptor:
    """
    Describe one page of a result set.

    All four navigation links are always present. ``prev`` clamps at 0 and
    ``next`` clamps at the last page, so the first page's ``prev`` and the
    last page's ``next`` point at themselves rather than being omitted.

    Args:
        total_count: Matching rows before slicing
        limit: Requested page size (default 100)
        offset: Requested offset (default 0)
        link_template: Output of ``build_link_template``

    Returns:
        PagingDescriptor
    """
    limit, offset = resolve_paging(limit, offset)
    last_offset = ((total_count - 1) // limit) * limit if total_count > 0 else 0
    next_offset = min(offset + limit, last_offset)
    prev_offset = max(offset - limit, 0)
    return PagingDescriptor(
        limit=limit,
        offset=offset,
        total=total_count,
        link=_page_link(link_template, limit, offset),
        first=_page_link(link_template, limit, 0),
        prev=_page_link(link_template, limit, prev_offset),
        next=_page_link(link_template, limit, next_offset),
        last=_page_link(link_template, limit, last_offset),
    )
