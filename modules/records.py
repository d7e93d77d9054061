from typing import Any, Dict, List

from loguru import logger

from database.rpc import SchemaSource
from modules.forms import build_insert_payload, build_update_payload
from schema.table import TableSchema


def fetch_rows(source: SchemaSource, table_name: str) -> List[dict]:
    return source.table(table_name).select()


def save_record(source: SchemaSource, schema: TableSchema, record: Dict[str, Any], is_new: bool) -> dict:
    """Сохраняет запись и возвращает её актуальное состояние из базы данных"""
    table = source.table(schema.name)
    if is_new:
        payload = build_insert_payload(schema, record)
        saved = table.insert(payload)
        logger.success(f"Создана запись в таблице {schema.name}")
    else:
        payload, match = build_update_payload(schema, record)
        saved = table.update(payload, match)
        logger.success(f"Обновлена запись {match} в таблице {schema.name}")
    return saved
