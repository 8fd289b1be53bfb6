"""Per-request read scope and the JSON response envelope."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database.versioned_store import VersionedEntityStore
from ..ops.metrics import MetricsPort, NullMetrics
from ..query.head import BlockHeightResolver
from ..query.paging import build_link_template, paginate
from ..query.planner import TemporalJoinPlanner
from ..search.matcher import SearchMatcher


@dataclass
class ReadScope:
    """Everything one request reads through, fixed to a single head."""
    head: int
    store: VersionedEntityStore
    planner: TemporalJoinPlanner
    matcher: SearchMatcher


def open_scope(
    session: Session,
    head: Optional[int] = None,
    metrics: Optional[MetricsPort] = None,
) -> ReadScope:
    """Count the request, resolve its head once and bind the readers to it."""
    (metrics or NullMetrics()).increment_http_req()
    resolved = BlockHeightResolver(session).resolve(head)
    store = VersionedEntityStore(session)
    return ReadScope(
        head=resolved,
        store=store,
        planner=TemporalJoinPlanner(store, resolved),
        matcher=SearchMatcher(store, resolved),
    )


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(exclude_none=True)


def single_response(data: Dict[str, Any], path: str, head: int) -> Dict[str, Any]:
    return {"data": data, "head": head, "link": f"{path}?head={head}"}


def page_response(
    data: List[Dict[str, Any]],
    path: str,
    filters: Iterable[Tuple[str, Any]],
    head: int,
    total: int,
    limit: int,
    offset: int,
    flags: Iterable[Tuple[str, Any]] = (),
) -> Dict[str, Any]:
    """
    Envelope for a list result.

    Args:
        data: Serialized page rows
        path: Resource path, e.g. ``/api/factories``
        filters: Applied filters in fixed order (None values are skipped)
        head: Resolved head
        total: Matching rows before slicing
        limit: Page size
        offset: Page offset
        flags: Output toggles appended after the head

    Returns:
        Dict with data, head, link and paging
    """
    template = build_link_template(path, [*filters, ("head", head), *flags])
    paging = paginate(total, limit, offset, template)
    return {
        "data": data,
        "head": head,
        "link": paging.link,
        "paging": paging.to_dict(),
    }
