"""Unit tests for date helpers."""

from datetime import date, datetime

import pytest

from cvtex.utils.dates import get_year, parse_date, sort_by_date, year_range


class TestParseDate:
    """Tests for parse_date function."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2020-01-01", date(2020, 1, 1)),
            ("2019-07", date(2019, 7, 1)),
            ("2018", date(2018, 1, 1)),
            (2017, date(2017, 1, 1)),
            ("May 2015", date(2015, 5, 1)),
            (date(2014, 3, 2), date(2014, 3, 2)),
            (datetime(2013, 4, 5, 12, 30), date(2013, 4, 5)),
            ("2021-03-04T10:00:00Z", date(2021, 3, 4)),
        ],
    )
    def test_parses_supported_shapes(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "   ", "soon", "not a date", True])
    def test_unparsable_returns_none(self, value):
        assert parse_date(value) is None


@pytest.mark.unit
def test_get_year():
    assert get_year("2018-09-01") == 2018
    assert get_year(None) is None


@pytest.mark.unit
def test_year_range():
    """Start and end years joined by an en dash."""
    assert year_range("2018-09-01", "2022-06-01") == "2018--2022"


@pytest.mark.unit
@pytest.mark.parametrize("start, end", [(None, "2022-06-01"), ("2018-09-01", None), ("fall", "spring")])
def test_year_range_unknown_year_is_empty(start, end):
    assert year_range(start, end) == ""


class TestSortByDate:
    """Tests for reverse-chronological sorting."""

    @pytest.mark.unit
    def test_most_recent_first(self):
        items = [
            {"name": "a", "date": "2019-01-01"},
            {"name": "b", "date": "2021-01-01"},
            {"name": "c", "date": "2020-01-01"},
        ]
        result = sort_by_date(items, "date")
        assert [item["name"] for item in result] == ["b", "c", "a"]

    @pytest.mark.unit
    def test_does_not_mutate_input(self):
        items = [{"date": "2019-01-01"}, {"date": "2021-01-01"}]
        original = list(items)
        sort_by_date(items, "date")
        assert items == original

    @pytest.mark.unit
    def test_ties_keep_input_order(self):
        items = [
            {"name": "first", "date": "2020-05-01"},
            {"name": "second", "date": "2020-05-01"},
            {"name": "third", "date": "2020-05-01"},
        ]
        result = sort_by_date(items, "date")
        assert [item["name"] for item in result] == ["first", "second", "third"]

    @pytest.mark.unit
    def test_undated_entries_keep_order_after_dated(self):
        items = [
            {"name": "undated-1"},
            {"name": "old", "date": "2010-01-01"},
            {"name": "undated-2", "date": "garbage"},
            {"name": "new", "date": "2020-01-01"},
        ]
        result = sort_by_date(items, "date")
        assert [item["name"] for item in result] == ["new", "old", "undated-1", "undated-2"]

    @pytest.mark.unit
    def test_is_permutation_and_idempotent(self):
        items = [
            {"name": str(i), "date": f"20{10 + (i * 7) % 11}-0{1 + i % 9}-01"} for i in range(12)
        ]
        once = sort_by_date(items, "date")
        twice = sort_by_date(once, "date")

        assert sorted(item["name"] for item in once) == sorted(item["name"] for item in items)
        assert once == twice
        years = [parse_date(item["date"]) for item in once]
        assert years == sorted(years, reverse=True)

    @pytest.mark.unit
    def test_works_with_attributes(self):
        class Talk:
            def __init__(self, date):
                self.date = date

        talks = [Talk("2018-01-01"), Talk("2022-01-01")]
        assert sort_by_date(talks, "date") == [talks[1], talks[0]]
