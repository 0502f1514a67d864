"""Tests for offset pagination metadata."""

import math

import pytest

from library_api.exceptions import ValidationError
from library_api.pagination import page_info


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 25, 100, 101])
@pytest.mark.parametrize("limit", [1, 3, 10, 50])
def test_total_pages_is_ceiling(total, limit):
    _, total_pages = page_info(total, limit, 0)
    assert total_pages == math.ceil(total / limit)


@pytest.mark.parametrize(
    "limit, offset, expected",
    [(10, 0, 1), (10, 10, 2), (10, 30, 4), (5, 5, 2), (10, 5, 1.5), (4, 2, 1.5)],
)
def test_current_page(limit, offset, expected):
    current_page, _ = page_info(100, limit, offset)
    assert current_page == offset / limit + 1
    assert current_page == expected


def test_whole_pages_are_integers():
    current_page, _ = page_info(42, 10, 20)
    assert isinstance(current_page, int)


def test_zero_limit_rejected():
    with pytest.raises(ValidationError):
        page_info(10, 0, 0)


def test_negative_offset_rejected():
    with pytest.raises(ValidationError):
        page_info(10, 10, -1)
