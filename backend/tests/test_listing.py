"""Unit tests for the listing orchestrator against an in-memory store."""

from unittest.mock import patch

import pytest

from projecthub.config import settings
from projecthub.schemas.common import CamelModel
from projecthub.schemas.envelope import ResponseError
from projecthub.services.listing import ListingFilter, ListingSpec, SortOrder, list_page


class ItemOut(CamelModel):
    id: int
    name: str
    company_id: int


class Row:
    def __init__(self, id, name, company_id=1):
        self.id = id
        self.name = name
        self.company_id = company_id


class StubStore:
    """Serves `rows` sliced by skip/take; `total` overrides the count to simulate a racing write."""

    def __init__(self, rows=(), total=None, fail=None):
        self.rows = list(rows)
        self.total = len(self.rows) if total is None else total
        self.fail = fail
        self.count_calls = []
        self.fetch_calls = []

    async def count(self, criteria):
        self.count_calls.append(criteria)
        if self.fail is not None:
            raise self.fail
        return self.total

    async def fetch(self, criteria, skip, take, order_by):
        self.fetch_calls.append((criteria, skip, take, order_by))
        return self.rows[skip : skip + take]


ITEMS = ListingSpec(
    entity="items",
    schema=ItemOut,
    sortable={"name": "name", "createdAt": "created_at"},
    default_sort="createdAt",
    default_limit=4,
)


def _rows(n):
    return [Row(i, f"item-{i}") for i in range(1, n + 1)]


@pytest.mark.asyncio
async def test_first_page():
    store = StubStore(_rows(10))
    env = await list_page(store, ITEMS, scope={"company_id": 1})
    assert env.is_error is False
    assert [item["id"] for item in env.data] == [1, 2, 3, 4]
    assert env.data[0] == {"id": 1, "name": "item-1", "companyId": 1}
    assert env.pagination.page == 1
    assert env.pagination.total_pages == 3
    assert env.pagination.remaining_pages == 0
    _, skip, take, order_by = store.fetch_calls[0]
    assert (skip, take) == (0, 4)
    assert order_by == SortOrder(attribute="created_at", descending=False)


@pytest.mark.asyncio
async def test_last_page_is_partial():
    store = StubStore(_rows(10))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="3")
    assert [item["id"] for item in env.data] == [9, 10]
    assert env.pagination.total_pages == 3
    assert env.pagination.remaining_pages == 0


@pytest.mark.asyncio
async def test_skip_take_follow_page_and_limit():
    store = StubStore(_rows(20))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="2", limit="5")
    _, skip, take, _ = store.fetch_calls[0]
    assert (skip, take) == (5, 5)
    assert [item["id"] for item in env.data] == [6, 7, 8, 9, 10]
    assert env.pagination.total_pages == 4


@pytest.mark.asyncio
async def test_invalid_page_and_limit_use_defaults():
    store = StubStore(_rows(6))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="abc", limit="0")
    _, skip, take, _ = store.fetch_calls[0]
    assert (skip, take) == (0, 4)
    assert env.pagination.page == 1


@pytest.mark.asyncio
async def test_remaining_pages_positive_when_count_lags_fetch():
    """Count said one page, yet the fetch for page 2 returned rows: raw 2 - 1 = 1 passes through."""
    store = StubStore(_rows(8), total=4)
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="2")
    assert env.is_error is False
    assert env.pagination.total_pages == 1
    assert env.pagination.remaining_pages == 1


@pytest.mark.asyncio
async def test_empty_result_is_not_found_with_zero_pages():
    store = StubStore([])
    env = await list_page(store, ITEMS, scope={"company_id": 1})
    assert env.error == ResponseError.NOT_FOUND
    assert env.is_error is True
    assert env.data == []
    assert (env.pagination.page, env.pagination.total_pages, env.pagination.remaining_pages) == (1, 0, 0)


@pytest.mark.asyncio
async def test_page_past_end_is_not_found_even_with_rows_in_total():
    store = StubStore(_rows(7))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="5")
    assert env.error == ResponseError.NOT_FOUND
    assert env.pagination.page == 5
    assert env.pagination.total_pages == 0
    assert env.pagination.remaining_pages == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("scope_value", [None, "", "   "])
async def test_missing_scope_is_bad_request_without_store_access(scope_value):
    store = StubStore(_rows(3))
    env = await list_page(store, ITEMS, scope={"company_id": scope_value})
    assert env.error == ResponseError.BAD_REQUEST
    assert env.error_details == "Please provide company_id."
    assert env.data == []
    assert store.count_calls == []
    assert store.fetch_calls == []


@pytest.mark.asyncio
async def test_absent_optional_filter_is_left_out():
    store = StubStore(_rows(2))
    await list_page(store, ITEMS, scope={"company_id": 1}, filters={"status": None}, search={"name": None})
    criteria = store.count_calls[0]
    assert criteria == ListingFilter(equals={"company_id": 1}, contains={})
    assert store.fetch_calls[0][0] == criteria


@pytest.mark.asyncio
async def test_present_filters_are_applied_to_count_and_fetch():
    store = StubStore(_rows(2))
    await list_page(
        store, ITEMS, scope={"company_id": 1}, filters={"status": "DONE"}, search={"name": "item"}
    )
    criteria = store.count_calls[0]
    assert criteria.equals == {"company_id": 1, "status": "DONE"}
    assert criteria.contains == {"name": "item"}
    assert store.fetch_calls[0][0] == criteria


@pytest.mark.asyncio
async def test_blank_search_is_left_out():
    store = StubStore(_rows(2))
    await list_page(store, ITEMS, scope={"company_id": 1}, search={"name": "  "})
    assert store.count_calls[0].contains == {}


@pytest.mark.asyncio
async def test_sort_by_allowed_field_descending():
    store = StubStore(_rows(2))
    await list_page(store, ITEMS, scope={"company_id": 1}, sort_by="name", sort_dir="DESC")
    assert store.fetch_calls[0][3] == SortOrder(attribute="name", descending=True)


@pytest.mark.asyncio
async def test_unknown_sort_field_is_validation_error_without_store_access():
    store = StubStore(_rows(2))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, sort_by="password_hash")
    assert env.error == ResponseError.VALIDATION_ERROR
    assert "password_hash" in env.error_details
    assert store.count_calls == []
    assert store.fetch_calls == []


@pytest.mark.asyncio
async def test_unknown_sort_direction_is_validation_error():
    store = StubStore(_rows(2))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, sort_dir="sideways")
    assert env.error == ResponseError.VALIDATION_ERROR
    assert store.count_calls == []


@pytest.mark.asyncio
async def test_store_failure_is_bad_request_without_details():
    store = StubStore(_rows(2), fail=RuntimeError("connection reset"))
    with patch.object(settings, "debug", False):
        env = await list_page(store, ITEMS, scope={"company_id": 1})
    assert env.error == ResponseError.BAD_REQUEST
    assert env.error_details is None
    assert env.data == []
    assert env.pagination.total_pages == 0


@pytest.mark.asyncio
async def test_store_failure_details_in_debug():
    store = StubStore(_rows(2), fail=RuntimeError("connection reset"))
    with patch.object(settings, "debug", True):
        env = await list_page(store, ITEMS, scope={"company_id": 1})
    assert env.error == ResponseError.BAD_REQUEST
    assert env.error_details == "RuntimeError: connection reset"


@pytest.mark.asyncio
async def test_repeated_listing_is_identical():
    store = StubStore(_rows(9))
    first = await list_page(store, ITEMS, scope={"company_id": 1}, page="2")
    second = await list_page(store, ITEMS, scope={"company_id": 1}, page="2")
    assert first.model_dump(by_alias=True) == second.model_dump(by_alias=True)


@pytest.mark.asyncio
async def test_page_beyond_store_offset_range_is_not_found_without_store_access():
    store = StubStore(_rows(3))
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page="99999999999999999999")
    assert env.error == ResponseError.NOT_FOUND
    assert env.pagination.page == 99999999999999999999
    assert env.pagination.total_pages == 0
    assert env.pagination.remaining_pages == 0
    assert store.count_calls == []
    assert store.fetch_calls == []


@pytest.mark.asyncio
async def test_largest_representable_offset_still_reaches_store():
    store = StubStore(_rows(3))
    # limit 1 puts skip at 2**63 - 1 exactly
    env = await list_page(store, ITEMS, scope={"company_id": 1}, page=str(2**63), limit="1")
    assert env.error == ResponseError.NOT_FOUND
    assert store.fetch_calls[0][1] == 2**63 - 1
