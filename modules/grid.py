from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from schema.values import parse_iso_datetime

MAX_CELL_LENGTH = 50


class SortOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def sort_key(value: Any) -> Tuple:
    """
    Ключ сортировки ячейки.

    Пустые значения всегда меньше остальных, поэтому при обратной сортировке оказываются в конце.
    Числа сравниваются как числа, даты (и строки в формате ISO 8601) по времени, остальное как строки.
    """
    if is_empty(value):
        return (0, 0, 0)
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return (1, 0, value)
    if isinstance(value, datetime):
        return (1, 1, value.timestamp())
    if isinstance(value, date):
        return (1, 1, datetime.combine(value, time.min).timestamp())
    if isinstance(value, str):
        parsed = parse_iso_datetime(value)
        if parsed is not None:
            return (1, 1, parsed.timestamp())
    return (1, 2, str(value).lower())


def sort_rows(rows: Sequence[dict], column: str, order: SortOrder) -> List[dict]:
    return sorted(rows, key=lambda row: sort_key(row.get(column)), reverse=order == SortOrder.DESCENDING)


def format_cell(value: Any, max_length: int = MAX_CELL_LENGTH) -> str:
    text = "" if value is None else str(value)
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def filter_rows(rows: Sequence[dict], columns: Iterable[str], filter_text: str) -> List[dict]:
    filter_text = filter_text.strip().lower()
    if not filter_text:
        return list(rows)
    columns = list(columns)
    return [
        row for row in rows
        if any(filter_text in ("" if row.get(column) is None else str(row.get(column))).lower() for column in columns)
    ]


class GridState:
    """Состояние отображения таблицы: сортировка, видимость колонок и фильтр. Данные не изменяет"""

    def __init__(self, columns: Sequence[str] = ()):
        self.columns = list(columns)
        self.sort_column: Optional[str] = None
        self.sort_order: Optional[SortOrder] = None
        self.hidden_columns: Set[str] = set()
        self.filter_text = ""

    def cycle_sort(self, column: str) -> None:
        if self.sort_column != column or self.sort_order is None:
            self.sort_column, self.sort_order = column, SortOrder.ASCENDING
        elif self.sort_order == SortOrder.ASCENDING:
            self.sort_order = SortOrder.DESCENDING
        else:
            self.sort_column, self.sort_order = None, None

    def set_column_visible(self, column: str, visible: bool) -> None:
        if visible:
            self.hidden_columns.discard(column)
        else:
            self.hidden_columns.add(column)

    def toggle_column(self, column: str) -> None:
        self.set_column_visible(column, column in self.hidden_columns)

    def is_visible(self, column: str) -> bool:
        return column not in self.hidden_columns

    @property
    def visible_columns(self) -> List[str]:
        return [column for column in self.columns if self.is_visible(column)]

    def apply(self, rows: Sequence[dict]) -> List[dict]:
        result = filter_rows(rows, self.visible_columns, self.filter_text)
        if self.sort_column is not None and self.sort_order is not None:
            result = sort_rows(result, self.sort_column, self.sort_order)
        return result
