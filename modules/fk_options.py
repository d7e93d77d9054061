from typing import Any, List, Sequence

import psycopg
from loguru import logger

from database.errors import AdminError
from database.rpc import SchemaSource
from schema.table import FkOption

LABEL_PREFERENCES = ["name", "title", "code", "label", "city", "email"]
DEFAULT_OPTIONS_LIMIT = 200


def choose_label_column(columns: Sequence[str], key_column: str) -> str:
    """
    Колонка с человекочитаемой подписью для значений внешнего ключа.

    Порядок списка предпочтений определяет приоритет, сравнение по подстроке без учёта регистра.
    """
    for preference in LABEL_PREFERENCES:
        for column in columns:
            if preference in column.lower():
                return column
    if len(columns) > 1:
        return next(column for column in columns if column != key_column)
    return key_column


def with_current_value(options: List[FkOption], value: Any) -> List[FkOption]:
    """Добавляет текущее значение записи, если его нет среди загруженных вариантов"""
    if value is None or any(not option.is_null and option.value == value for option in options):
        return options
    return options + [FkOption(value=value, label=str(value))]


class ForeignKeyOptionLoader:
    def __init__(self, source: SchemaSource, limit: int = DEFAULT_OPTIONS_LIMIT):
        self.source = source
        self.limit = limit

    def _fetch(self, foreign_table: str, key_column: str, limit: int) -> List[FkOption]:
        table = self.source.table(foreign_table)
        sample = table.sample()
        columns = list(sample) if sample else [key_column]
        label_column = choose_label_column(columns, key_column)
        logger.debug(f"Подписи для {foreign_table}.{key_column} берутся из колонки {label_column}")

        fields = [key_column] if label_column == key_column else [key_column, label_column]
        rows = table.select(fields, limit=limit)
        options = []
        for row in rows:
            value = row.get(key_column)
            if value is None:
                continue
            label = row.get(label_column)
            options.append(FkOption(value=value, label=str(value if label is None else label)))
        return sorted(options, key=lambda option: option.label.lower())

    def load_options(self, foreign_table: str, key_column: str, nullable: bool) -> List[FkOption]:
        logger.info(f"Загрузка вариантов внешнего ключа {foreign_table}.{key_column}")
        try:
            # Вариант "-- Нет --" входит в общий лимит
            options = self._fetch(foreign_table, key_column, self.limit - 1 if nullable else self.limit)
        except (AdminError, psycopg.Error) as e:
            logger.warning(f"Не удалось загрузить варианты для {foreign_table}.{key_column}: {e}")
            options = []

        if nullable:
            options.insert(0, FkOption.null())
        logger.debug(f"Загружено вариантов для {foreign_table}.{key_column}: {len(options)}")
        return options
