"""
Типы полей формы и преобразование значений между базой данных и виджетами.

Значения из psycopg уже типизированы (int, Decimal, bool, datetime, UUID, str),
поэтому форматирование и разбор опираются на вид поля, а не на содержимое строки.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from schema.table import ColumnDetail

DATETIME_FORMAT = "%Y-%m-%dT%H:%M"
DATETIME_TYPES = ("timestamp", "date")
BOOLEAN_TYPES = ("bool",)
INTEGER_TYPES = ("integer", "smallint", "bigint")
NUMBER_TYPES = INTEGER_TYPES + ("numeric", "decimal", "real", "double")
TEXT_TYPES = ("text", "varchar", "char")
MULTILINE_HINTS = ("description", "content", "notes", "comment", "detail")


class FieldWidget(str, Enum):
    DATETIME = "datetime"
    CHECKBOX = "checkbox"
    NUMBER = "number"
    MULTILINE = "multiline"
    SELECT = "select"
    TEXT = "text"


def _mentions(data_type: str, names) -> bool:
    return any(name in data_type for name in names)


def widget_for(column: ColumnDetail) -> FieldWidget:
    if column.is_foreign_key:
        return FieldWidget.SELECT
    data_type = column.data_type.lower()
    if _mentions(data_type, DATETIME_TYPES):
        return FieldWidget.DATETIME
    if _mentions(data_type, BOOLEAN_TYPES):
        return FieldWidget.CHECKBOX
    if _mentions(data_type, NUMBER_TYPES):
        return FieldWidget.NUMBER
    if _mentions(data_type, TEXT_TYPES) and _mentions(column.column_name.lower(), MULTILINE_HINTS):
        return FieldWidget.MULTILINE
    return FieldWidget.TEXT


def is_text_widget(widget: FieldWidget) -> bool:
    return widget in (FieldWidget.TEXT, FieldWidget.MULTILINE)


def parse_iso_datetime(text: str) -> Optional[datetime]:
    """ISO 8601 строка в datetime, None если строка датой не является"""
    text = text.strip()
    if len(text) < 10:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_datetime(value: Any) -> str:
    if isinstance(value, str):
        parsed = parse_iso_datetime(value)
        if parsed is None:
            return value
        value = parsed
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time()).strftime(DATETIME_FORMAT)
    return str(value)


def format_value(value: Any, widget: FieldWidget) -> Any:
    """Значение записи в значение для виджета"""
    if widget == FieldWidget.CHECKBOX:
        return bool(value)
    if widget == FieldWidget.SELECT:
        return value
    if value is None:
        return ""
    if widget == FieldWidget.DATETIME:
        return format_datetime(value)
    return str(value)


def parse_datetime(text: str, column: ColumnDetail) -> Any:
    text = text.strip()
    if not text:
        return None if column.nullable else ""
    parsed = parse_iso_datetime(text)
    if parsed is None:
        return text
    if column.data_type.lower() == "date":
        return parsed.date()
    if parsed.tzinfo is None:
        # Поле ввода показывает локальное время
        parsed = parsed.astimezone()
    return parsed


def parse_number(text: str, column: ColumnDetail) -> Any:
    text = text.strip()
    if not text:
        return None if column.nullable else 0
    data_type = column.data_type.lower()
    try:
        if _mentions(data_type, INTEGER_TYPES):
            return int(text)
        if _mentions(data_type, ("numeric", "decimal")):
            return Decimal(text)
        return float(text)
    except (ValueError, InvalidOperation):
        # Нечисловой ввод оставляем как есть, ошибку вернёт база данных
        return text


def parse_value(raw: Any, column: ColumnDetail, widget: FieldWidget) -> Any:
    """Значение из виджета в значение записи"""
    if widget == FieldWidget.CHECKBOX:
        return bool(raw)
    if widget == FieldWidget.SELECT:
        return raw
    if widget == FieldWidget.DATETIME:
        return parse_datetime(str(raw), column)
    if widget == FieldWidget.NUMBER:
        return parse_number(str(raw), column)
    return raw
