"""Page arithmetic and ?page=&limit= resolution for list endpoints.

`calc_remaining_pages` deliberately returns ``current_page - total_pages``: that is
the value existing clients receive, and callers clamp it with
`clamp_remaining_pages` before it goes on the wire.
"""

import math
from typing import Any

from projecthub.config import settings
from projecthub.schemas.pagination import PageRequest, SkipTake

DEFAULT_PAGE = 1
# Largest OFFSET a signed 64-bit store column accepts
MAX_OFFSET = 2**63 - 1


def calc_total_pages(total_count: int, limit: int) -> int:
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    if total_count < 0:
        raise ValueError(f"total_count must not be negative, got {total_count}")
    return math.ceil(total_count / limit)


def calc_remaining_pages(total_pages: int, current_page: int) -> int:
    return current_page - total_pages


def clamp_remaining_pages(raw: int) -> int:
    """Negative results are reported as 0; 0 and positive values pass through."""
    return 0 if raw <= -1 else raw


def coerce_int(value: Any) -> int | None:
    """int(value) for query-string input; None when absent, blank or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_page_request(page: Any, limit: Any, *, default_limit: int) -> PageRequest:
    """Build a PageRequest from raw query values.

    Page below 1 is clamped to 1. Limit below 1 falls back to ``default_limit``
    and is capped at ``settings.max_page_limit``.
    """
    page_num = coerce_int(page)
    limit_num = coerce_int(limit)
    if page_num is None or page_num < 1:
        page_num = DEFAULT_PAGE
    if limit_num is None or limit_num < 1:
        limit_num = default_limit
    limit_num = min(limit_num, max(settings.max_page_limit, 1))
    return PageRequest(page=page_num, limit=limit_num)


def resolve_pagination(request: PageRequest) -> SkipTake:
    return SkipTake(skip=(request.page - 1) * request.limit, take=request.limit)
