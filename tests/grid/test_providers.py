"""Unit tests for grid data providers."""

import math

import pytest

from tatua.grid.providers import CallbackDataProvider, LocalDataProvider
from tatua.grid.rules import FilterRule, PageRequest, PageResult, SortDirection, SortRule


class TestLocalDataProvider:
    """Test cases for client-side paging."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,page_size,expected", [
        (1, 8, 8),
        (2, 8, 8),
        (3, 8, 4),
        (4, 8, 0),
        (1, 50, 20),
    ])
    async def test_page_length(self, numbered_records, page, page_size, expected):
        provider = LocalDataProvider(numbered_records)
        result = await provider.fetch(PageRequest(page=page, page_size=page_size))

        assert result.total_count == 20
        assert len(result.data) == expected
        assert len(result.data) == max(0, min(page_size, 20 - (page - 1) * page_size))

    @pytest.mark.asyncio
    async def test_pages_concatenate_to_full_collection(self, numbered_records):
        provider = LocalDataProvider(numbered_records)
        sorters = [SortRule(column="name", direction=SortDirection.DESCENDING)]
        filters = [FilterRule(column="name", value="1")]

        first = await provider.fetch(PageRequest(page=1, page_size=3, sorters=sorters, filters=filters))
        pages = math.ceil(first.total_count / 3)
        collected = list(first.data)
        for page in range(2, pages + 1):
            result = await provider.fetch(
                PageRequest(page=page, page_size=3, sorters=sorters, filters=filters)
            )
            collected.extend(result.data)

        expected = sorted(
            (r for r in numbered_records if "1" in r["name"]),
            key=lambda r: r["name"],
            reverse=True
        )
        assert collected == expected
        assert len({r["id"] for r in collected}) == len(collected)

    @pytest.mark.asyncio
    async def test_bug_filter_scenario(self, sample_records):
        provider = LocalDataProvider(sample_records)
        filters = [FilterRule(column="subject", value="bug")]

        page_one = await provider.fetch(PageRequest(page=1, page_size=2, filters=filters))
        page_two = await provider.fetch(PageRequest(page=2, page_size=2, filters=filters))

        assert len(page_one.data) == 2
        assert len(page_two.data) == 1
        assert page_one.total_count == 3
        assert math.ceil(page_one.total_count / 2) == 2

    @pytest.mark.asyncio
    async def test_callable_source_is_read_on_every_fetch(self):
        records = [{"id": 1}]
        provider = LocalDataProvider(lambda: records)

        assert (await provider.fetch(PageRequest())).total_count == 1
        records.append({"id": 2})
        assert (await provider.fetch(PageRequest())).total_count == 2

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, numbered_records):
        provider = LocalDataProvider(numbered_records)
        result = await provider.fetch(PageRequest(page=1, page_size=1))
        result.data[0]["name"] = "changed"
        assert numbered_records[0]["name"] == "Record 01"


class TestCallbackDataProvider:
    """Test cases for callback response normalization."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        PageResult(data=[{"id": 1}], total_count=7),
        {"data": [{"id": 1}], "totalCount": 7},
        {"data": [{"id": 1}], "total_count": 7},
        ([{"id": 1}], 7),
    ])
    async def test_response_shapes(self, response):
        async def callback(request):
            return response

        result = await CallbackDataProvider(callback).fetch(PageRequest())
        assert result.data == [{"id": 1}]
        assert result.total_count == 7

    @pytest.mark.asyncio
    async def test_missing_fields_become_empty_page(self):
        async def callback(request):
            return {}

        result = await CallbackDataProvider(callback).fetch(PageRequest())
        assert result.data == []
        assert result.total_count == 0

    @pytest.mark.asyncio
    async def test_request_is_passed_through(self):
        seen = []

        async def callback(request):
            seen.append(request)
            return [], 0

        request = PageRequest(page=3, page_size=5)
        await CallbackDataProvider(callback).fetch(request)
        assert seen == [request]

    @pytest.mark.asyncio
    async def test_unsupported_response_raises(self):
        async def callback(request):
            return "nonsense"

        with pytest.raises(TypeError):
            await CallbackDataProvider(callback).fetch(PageRequest())
