"""
Tests for row filtering, sorting and paging.
"""

import locale

import pytest

from analysis.calculations.table_ops import (
    filter_rows,
    sort_rows,
    compare_values,
    collation_key,
    paginate
)


@pytest.fixture
def people():
    return [
        {'name': 'Alice', 'city': 'Oslo', 'age': '30'},
        {'name': 'bob', 'city': 'Lima', 'age': '9'},
        {'name': 'Carol', 'city': 'oslo', 'age': '100'},
        {'name': 'Dan', 'city': None, 'age': 30.0},
    ]


class TestFilterRows:
    """Tests for filter_rows."""

    def test_empty_search_is_identity(self, people):
        assert filter_rows(people, '') == people
        assert filter_rows(people, None) == people

    def test_returns_new_list(self, people):
        assert filter_rows(people, '') is not people

    def test_case_insensitive_substring(self, people):
        result = filter_rows(people, 'OSL')
        assert [r['name'] for r in result] == ['Alice', 'Carol']

    def test_matches_any_field(self, people):
        assert [r['name'] for r in filter_rows(people, 'lim')] == ['bob']

    def test_integral_float_matches_as_integer(self, people):
        result = filter_rows(people, '30')
        assert [r['name'] for r in result] == ['Alice', 'Dan']
        assert filter_rows(people, '30.0') == []

    def test_none_never_matches(self, people):
        assert filter_rows(people, 'none') == []


class TestSortRows:
    """Tests for sort_rows."""

    def test_numeric_sort_not_lexicographic(self, people):
        result = sort_rows(people, 'age')
        assert [r['age'] for r in result] == ['9', '30', 30.0, '100']

    def test_descending(self, people):
        result = sort_rows(people, 'age', 'desc')
        assert [r['name'] for r in result] == ['Carol', 'Alice', 'Dan', 'bob']

    def test_text_sort_ignores_case(self, people):
        result = sort_rows(people, 'name')
        assert [r['name'] for r in result] == ['Alice', 'bob', 'Carol', 'Dan']

    def test_stable_for_equal_keys(self):
        rows = [{'k': '1', 'id': i} for i in range(5)] + [{'k': '0', 'id': 99}]
        ascending = sort_rows(rows, 'k')
        descending = sort_rows(rows, 'k', 'desc')
        assert [r['id'] for r in ascending] == [99, 0, 1, 2, 3, 4]
        assert [r['id'] for r in descending] == [0, 1, 2, 3, 4, 99]

    def test_no_column_keeps_order(self, people):
        assert sort_rows(people, None) == people

    def test_input_not_mutated(self, people):
        original = list(people)
        sort_rows(people, 'name', 'desc')
        assert people == original

    def test_invalid_direction(self, people):
        with pytest.raises(ValueError):
            sort_rows(people, 'name', 'up')

    def test_compare_values_mixed(self):
        assert compare_values('2', '10') == -1
        assert compare_values('b', 'A') == 1
        assert compare_values('x', 'X') == 0


class TestPaginate:
    """Tests for paginate."""

    def test_pages(self):
        rows = [{'i': i} for i in range(25)]
        assert len(paginate(rows, 1, 10)) == 10
        assert paginate(rows, 3, 10) == [{'i': i} for i in range(20, 25)]
        assert paginate(rows, 4, 10) == []

    def test_invalid_page(self):
        with pytest.raises(ValueError):
            paginate([], 0)


@pytest.fixture
def collation_locale():
    """Switch LC_COLLATE to an English UTF-8 locale for one test."""
    previous = locale.setlocale(locale.LC_COLLATE)
    for name in ('en_US.UTF-8', 'en_US.utf8', 'en_GB.UTF-8', 'de_DE.UTF-8'):
        try:
            locale.setlocale(locale.LC_COLLATE, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("No UTF-8 collation locale installed")

    yield
    locale.setlocale(locale.LC_COLLATE, previous)


class TestCollation:
    """Tests for text ordering."""

    def test_nul_character_sorts(self):
        rows = [{'k': 'c'}, {'k': 'a\x00b'}]
        assert [r['k'] for r in sort_rows(rows, 'k')] == ['a\x00b', 'c']

    def test_nul_character_compares(self):
        assert compare_values('a\x00b', 'ab') == 0
        assert collation_key('x\x00') == collation_key('x')

    def test_accented_text_follows_locale(self, collation_locale):
        rows = [{'k': 'zebra'}, {'k': 'éclair'}, {'k': 'apple'}]
        assert [r['k'] for r in sort_rows(rows, 'k')] == ['apple', 'éclair', 'zebra']
