"""Paginated, tenant-scoped listing: count + bounded fetch under one filter, enveloped.

The orchestrator talks to a narrow `ListingStore` (count, fetch) so it can run
against the database or a stub. Count and fetch are two separate reads with no
shared snapshot; under concurrent writes the total and the page may disagree.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.config import settings
from projecthub.schemas.envelope import PaginatedEnvelope, ResponseError, build_paginated_envelope
from projecthub.schemas.pagination import PageInfo
from projecthub.services.pagination import (
    MAX_OFFSET,
    calc_remaining_pages,
    calc_total_pages,
    clamp_remaining_pages,
    parse_page_request,
    resolve_pagination,
)

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ListingFilter:
    """Equality clauses plus case-insensitive substring clauses, keyed by model attribute."""

    equals: Mapping[str, Any] = field(default_factory=dict)
    contains: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SortOrder:
    attribute: str
    descending: bool = False


class ListingStore(Protocol):
    async def count(self, criteria: ListingFilter) -> int: ...

    async def fetch(
        self, criteria: ListingFilter, skip: int, take: int, order_by: SortOrder
    ) -> Sequence[Any]: ...


@dataclass(frozen=True)
class ListingSpec:
    """Per-entity listing configuration.

    ``sortable`` maps the public ``sortBy`` names to model attributes; anything
    outside it is rejected before the store is touched.
    """

    entity: str
    schema: type[BaseModel]
    sortable: Mapping[str, str]
    default_sort: str
    default_limit: int


class SqlAlchemyListingStore:
    """ListingStore over one mapped model within a request's session."""

    def __init__(self, session: AsyncSession, model: type, options: Sequence[Any] = ()):
        self.session = session
        self.model = model
        self.options = tuple(options)

    def _where(self, criteria: ListingFilter) -> list:
        clauses = [getattr(self.model, attr) == value for attr, value in criteria.equals.items()]
        clauses.extend(
            getattr(self.model, attr).icontains(value, autoescape=True) for attr, value in criteria.contains.items()
        )
        return clauses

    async def count(self, criteria: ListingFilter) -> int:
        stmt = select(func.count()).select_from(self.model).where(*self._where(criteria))
        return int(await self.session.scalar(stmt) or 0)

    def _order_expression(self, attribute: str):
        """Enum columns sort by declaration order, not by the stored label."""
        column = getattr(self.model, attribute)
        enum_class = getattr(column.type, "enum_class", None)
        if enum_class is None:
            return column
        return case({member: rank for rank, member in enumerate(enum_class)}, value=column, else_=len(enum_class))

    async def fetch(self, criteria: ListingFilter, skip: int, take: int, order_by: SortOrder) -> list[Any]:
        column = self._order_expression(order_by.attribute)
        stmt = (
            select(self.model)
            .where(*self._where(criteria))
            .order_by(column.desc() if order_by.descending else column.asc(), self.model.id.asc())
            .offset(skip)
            .limit(take)
        )
        if self.options:
            stmt = stmt.options(*self.options)
        return list((await self.session.execute(stmt)).scalars().all())


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _empty_pagination(page: int) -> PageInfo:
    return PageInfo(page=page, total_pages=0, remaining_pages=0)


def listing_error(
    spec: ListingSpec,
    page: Any,
    error: ResponseError | str,
    error_details: str | None = None,
) -> PaginatedEnvelope:
    """Error envelope for a listing rejected before any store read."""
    request = parse_page_request(page, None, default_limit=spec.default_limit)
    return build_paginated_envelope([], _empty_pagination(request.page), error=error, error_details=error_details)


async def list_page(
    store: ListingStore,
    spec: ListingSpec,
    *,
    scope: Mapping[str, Any],
    filters: Mapping[str, Any] | None = None,
    search: Mapping[str, str | None] | None = None,
    page: Any = None,
    limit: Any = None,
    sort_by: str | None = None,
    sort_dir: str | None = None,
) -> PaginatedEnvelope:
    """List one page of ``spec.entity``.

    ``scope`` clauses are mandatory: any missing value short-circuits with a
    Bad Request envelope. ``filters``/``search`` entries whose value is None are
    left out of the query entirely, so an absent filter means "any value".
    Never raises; store failures come back as a Bad Request envelope.
    """
    request = parse_page_request(page, limit, default_limit=spec.default_limit)

    missing = [name for name, value in scope.items() if _missing(value)]
    if missing:
        return listing_error(spec, request.page, ResponseError.BAD_REQUEST, f"Please provide {', '.join(missing)}.")

    sort_key = spec.default_sort if _missing(sort_by) else sort_by.strip()
    direction = "asc" if _missing(sort_dir) else sort_dir.strip().lower()
    if sort_key not in spec.sortable:
        return listing_error(
            spec,
            request.page,
            ResponseError.VALIDATION_ERROR,
            f"Cannot sort {spec.entity} by '{sort_key}'. Allowed: {', '.join(spec.sortable)}.",
        )
    if direction not in SORT_DIRECTIONS:
        return listing_error(spec, request.page, ResponseError.VALIDATION_ERROR, "sortDir must be 'asc' or 'desc'.")

    equals = dict(scope)
    equals.update({k: v for k, v in (filters or {}).items() if v is not None})
    contains = {k: v for k, v in (search or {}).items() if not _missing(v)}
    criteria = ListingFilter(equals=equals, contains=contains)
    order_by = SortOrder(attribute=spec.sortable[sort_key], descending=direction == "desc")
    window = resolve_pagination(request)
    if window.skip > MAX_OFFSET:
        # No store can hold rows that far out; same answer as any page past the end.
        return build_paginated_envelope([], _empty_pagination(request.page), error=ResponseError.NOT_FOUND)

    try:
        total = await store.count(criteria)
        rows = await store.fetch(criteria, window.skip, window.take, order_by)
    except Exception as e:
        logger.exception("Listing %s failed: %s", spec.entity, e)
        return build_paginated_envelope(
            [],
            _empty_pagination(request.page),
            error=ResponseError.BAD_REQUEST,
            error_details=f"{type(e).__name__}: {e}" if settings.debug else None,
        )

    if not rows:
        # Reported as "no page to show" even when total > 0 (page past the end).
        return build_paginated_envelope(
            [], _empty_pagination(request.page), error=ResponseError.NOT_FOUND
        )

    total_pages = calc_total_pages(total, request.limit)
    remaining = clamp_remaining_pages(calc_remaining_pages(total_pages, request.page))
    items = [spec.schema.model_validate(row).model_dump(mode="json", by_alias=True) for row in rows]
    logger.debug("Listed %d %s (page %d of %d)", len(items), spec.entity, request.page, total_pages)
    return build_paginated_envelope(
        items, PageInfo(page=request.page, total_pages=total_pages, remaining_pages=remaining)
    )
