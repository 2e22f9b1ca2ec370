"""Unit tests for request parsing dependencies."""

import pytest
from fastapi import HTTPException

from src.bookshelf.api.http.deps import get_page_request
from src.bookshelf.entities.core.paging import SortOrder
from src.bookshelf.runtime.config.config_data import AppConfig, ConfigData, PaginationConfig
from src.bookshelf.runtime.context import with_context


class TestGetPageRequest:
    def test_defaults_from_config(self):
        override = ConfigData(app=AppConfig(pagination=PaginationConfig(default_size=7)))
        with with_context(override):
            page_request = get_page_request(page=0, size=None, sort=None)

        assert page_request.size == 7
        assert page_request.page == 0
        assert page_request.sort == []

    def test_parses_sort_orders(self):
        page_request = get_page_request(page=2, size=5, sort=["title,desc", "id"])

        assert page_request.sort == [
            SortOrder(field="title", direction="desc"),
            SortOrder(field="id", direction="asc"),
        ]
        assert page_request.offset == 10

    def test_rejects_oversized_pages(self):
        override = ConfigData(app=AppConfig(pagination=PaginationConfig(max_size=50)))
        with with_context(override):
            with pytest.raises(HTTPException) as exc_info:
                get_page_request(page=0, size=51, sort=None)

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("raw", ["isbn,asc", "title,sideways"])
    def test_rejects_bad_sort(self, raw):
        with pytest.raises(HTTPException) as exc_info:
            get_page_request(page=0, size=10, sort=[raw])

        assert exc_info.value.status_code == 400
