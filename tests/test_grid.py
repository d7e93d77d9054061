from datetime import date, datetime
from decimal import Decimal

from modules.grid import GridState, SortOrder, filter_rows, format_cell, sort_rows


def column_values(rows, column="v"):
    return [row[column] for row in rows]


class TestSortRows:
    def test_dates_ascending_with_null_first(self):
        rows = [{"v": None}, {"v": "2024-01-01T00:00:00Z"}, {"v": "2023-01-01T00:00:00Z"}]

        result = sort_rows(rows, "v", SortOrder.ASCENDING)

        assert column_values(result) == [None, "2023-01-01T00:00:00Z", "2024-01-01T00:00:00Z"]

    def test_empty_values_last_in_descending(self):
        rows = [{"v": ""}, {"v": 3}, {"v": None}, {"v": 10}]

        result = sort_rows(rows, "v", SortOrder.DESCENDING)

        assert column_values(result)[:2] == [10, 3]
        assert set(column_values(result)[2:]) == {"", None}

    def test_numbers_compare_numerically(self):
        rows = [{"v": 10}, {"v": Decimal("2.5")}, {"v": 9.75}]
        assert column_values(sort_rows(rows, "v", SortOrder.ASCENDING)) == [Decimal("2.5"), 9.75, 10]

    def test_strings_case_insensitive(self):
        rows = [{"v": "banana"}, {"v": "Apple"}, {"v": "cherry"}]
        assert column_values(sort_rows(rows, "v", SortOrder.ASCENDING)) == ["Apple", "banana", "cherry"]

    def test_datetime_objects(self):
        rows = [{"v": datetime(2024, 5, 1)}, {"v": date(2023, 1, 1)}]
        assert column_values(sort_rows(rows, "v", SortOrder.ASCENDING)) == [date(2023, 1, 1), datetime(2024, 5, 1)]

    def test_input_is_not_mutated(self):
        rows = [{"v": 2}, {"v": 1}]
        sort_rows(rows, "v", SortOrder.ASCENDING)
        assert column_values(rows) == [2, 1]


class TestGridState:
    def test_sort_cycle(self):
        grid = GridState(["a", "b"])

        grid.cycle_sort("a")
        assert (grid.sort_column, grid.sort_order) == ("a", SortOrder.ASCENDING)
        grid.cycle_sort("a")
        assert (grid.sort_column, grid.sort_order) == ("a", SortOrder.DESCENDING)
        grid.cycle_sort("a")
        assert (grid.sort_column, grid.sort_order) == (None, None)

    def test_other_column_starts_ascending(self):
        grid = GridState(["a", "b"])
        grid.cycle_sort("a")
        grid.cycle_sort("a")

        grid.cycle_sort("b")

        assert (grid.sort_column, grid.sort_order) == ("b", SortOrder.ASCENDING)

    def test_columns_visible_by_default_and_toggle_independently_of_sort(self):
        grid = GridState(["a", "b", "c"])
        assert grid.visible_columns == ["a", "b", "c"]

        grid.cycle_sort("b")
        grid.toggle_column("b")

        assert grid.visible_columns == ["a", "c"]
        assert grid.sort_column == "b"
        grid.toggle_column("b")
        assert grid.visible_columns == ["a", "b", "c"]

    def test_apply_filters_and_sorts(self):
        rows = [{"a": "x", "b": 2}, {"a": "y", "b": 1}, {"a": "xy", "b": 3}]
        grid = GridState(["a", "b"])
        grid.filter_text = " X "
        grid.cycle_sort("b")
        grid.cycle_sort("b")

        assert grid.apply(rows) == [{"a": "xy", "b": 3}, {"a": "x", "b": 2}]
        assert len(rows) == 3


def test_filter_rows_searches_given_columns_only():
    rows = [{"a": "needle", "b": ""}, {"a": "", "b": "needle"}]
    assert filter_rows(rows, ["a"], "NEEDLE") == [{"a": "needle", "b": ""}]


def test_format_cell_truncates_long_text():
    assert format_cell(None) == ""
    assert format_cell("x" * 60) == "x" * 50 + "..."
    assert format_cell(12) == "12"
