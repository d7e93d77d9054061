from typing import Any, Dict, List, Tuple

from loguru import logger
from pydantic import BaseModel

from database.errors import MissingPrimaryKey, NoPrimaryKey
from schema.table import ColumnDetail, TableSchema
from schema.values import FieldWidget, format_value, is_text_widget, widget_for

AUTO_GENERATED_PLACEHOLDER = "Генерируется автоматически (UUID)"
OPTIONAL_PLACEHOLDER = "Необязательно"


class FieldSpec(BaseModel):
    column: ColumnDetail
    widget: FieldWidget
    read_only: bool
    value: Any = None
    auto_generated: bool = False
    placeholder: str = ""


def is_uuid(column: ColumnDetail) -> bool:
    return column.data_type.lower() == "uuid"


def is_auto_managed_timestamp(column: ColumnDetail) -> bool:
    return column.column_name.lower().endswith("_at") and "timestamp" in column.data_type.lower()


def is_auto_generated_key(column: ColumnDetail, is_new: bool) -> bool:
    return is_new and column.is_primary_key and is_uuid(column)


def is_read_only(column: ColumnDetail, is_new: bool) -> bool:
    if column.is_primary_key and not is_new:
        return True
    return is_auto_generated_key(column, is_new) or is_auto_managed_timestamp(column)


def _placeholder(column: ColumnDetail, widget: FieldWidget) -> str:
    if column.nullable:
        return OPTIONAL_PLACEHOLDER
    if widget == FieldWidget.NUMBER:
        return "0"
    return ""


def build_fields(schema: TableSchema, record: Dict[str, Any], is_new: bool) -> List[FieldSpec]:
    fields = []
    for column in schema.columns:
        widget = widget_for(column)
        if is_auto_generated_key(column, is_new):
            fields.append(FieldSpec(column=column, widget=FieldWidget.TEXT, read_only=True,
                                    value=AUTO_GENERATED_PLACEHOLDER, auto_generated=True))
            continue
        fields.append(FieldSpec(
            column=column,
            widget=widget,
            read_only=is_read_only(column, is_new),
            value=format_value(record.get(column.column_name), widget),
            placeholder=_placeholder(column, widget)
        ))
    return fields


def scaffold_record(schema: TableSchema) -> Dict[str, Any]:
    """Заготовка новой записи: без первичных ключей, служебных и временных колонок"""
    record = {}
    for column in schema.columns:
        if column.is_primary_key or column.column_name.lower().endswith("_at"):
            continue
        widget = widget_for(column)
        if widget == FieldWidget.SELECT:
            record[column.column_name] = None
        elif widget == FieldWidget.DATETIME:
            continue
        elif widget == FieldWidget.CHECKBOX:
            record[column.column_name] = False
        else:
            record[column.column_name] = ""
    return record


def _payload_value(column: ColumnDetail, value: Any) -> Any:
    if isinstance(value, str) and value == "" and column.nullable and not is_text_widget(widget_for(column)):
        return None
    return value


def build_insert_payload(schema: TableSchema, record: Dict[str, Any]) -> Dict[str, Any]:
    payload = {}
    for column in schema.columns:
        name = column.column_name
        if name not in record:
            continue
        value = record[name]
        if column.is_primary_key and (is_uuid(column) or value is None or value == ""):
            # Значение ключа сгенерирует база данных
            continue
        payload[name] = _payload_value(column, value)
    return payload


def build_update_payload(schema: TableSchema, record: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Данные для обновления записи и условие поиска по первичному ключу.

    Колонки первичного ключа не изменяются, а используются как условие (поддерживаются составные ключи).
    """
    primary_keys = schema.primary_keys
    if not primary_keys:
        raise NoPrimaryKey(f"У таблицы {schema.name} нет первичного ключа, обновление невозможно")

    match = {}
    for column in primary_keys:
        value = record.get(column.column_name)
        if value is None or value == "":
            raise MissingPrimaryKey(f"В записи таблицы {schema.name} нет значения ключа {column.column_name}")
        match[column.column_name] = value

    payload = {}
    for column in schema.columns:
        name = column.column_name
        if column.is_primary_key or name not in record:
            continue
        payload[name] = _payload_value(column, record[name])
    logger.debug(f"Обновление {schema.name}: условие {match}, данные {payload}")
    return payload, match
