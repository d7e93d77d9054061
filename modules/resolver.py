from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from database.errors import (
    AdminError, DescribeTableFailed, ListTablesFailed, RowFetchFailed, SchemaUnavailable, describe_error
)
from database.rpc import SchemaSource
from schema.table import MAX_DISPLAY_COLUMNS, ColumnDetail, TableSchema

PREFERRED_DISPLAY_COLUMNS = ["name", "title", "label", "description"]

Strategy = Callable[[str], Optional[List[ColumnDetail]]]


def fallback_columns() -> List[ColumnDetail]:
    return [ColumnDetail(column_name="id", data_type="uuid", ordinal_position=1,
                         is_nullable="NO", is_primary_key=True)]


def columns_from_sample(row: Dict[str, object]) -> List[ColumnDetail]:
    return [
        ColumnDetail(column_name=name, data_type="unknown", ordinal_position=position,
                     is_nullable="YES", is_primary_key=name == "id")
        for position, name in enumerate(row, start=1)
    ]


def select_display_columns(columns: Sequence[ColumnDetail]) -> List[str]:
    """
    Выбирает до четырёх колонок для компактного отображения таблицы.

    Сначала одна колонка из списка предпочтений (name, title, label, description),
    если её нет, то id, затем остальные колонки в порядке следования.
    """
    names = [column.column_name for column in sorted(columns, key=lambda column: column.ordinal_position)]
    selected = []
    preferred = next((name for name in PREFERRED_DISPLAY_COLUMNS if name in names), None)
    if preferred:
        selected.append(preferred)
    elif "id" in names:
        selected.append("id")

    for name in names:
        if len(selected) >= MAX_DISPLAY_COLUMNS:
            break
        if name not in selected:
            selected.append(name)
    return selected


class SchemaResolver:
    def __init__(self, source: SchemaSource, strategies: Optional[List[Strategy]] = None, max_workers: int = 4):
        self.source = source
        self.max_workers = max_workers
        self.strategies: List[Strategy] = strategies or [self.from_describe, self.from_sample, self.from_fallback]

    def from_describe(self, table_name: str) -> Optional[List[ColumnDetail]]:
        try:
            columns = self.source.describe_table(table_name)
        except DescribeTableFailed as e:
            logger.warning(f"Не удалось получить описание таблицы {table_name}: {e}. "
                           f"Пробуем определить колонки по записи")
            return None
        return columns or None

    def from_sample(self, table_name: str) -> Optional[List[ColumnDetail]]:
        try:
            row = self.source.table(table_name).sample()
        except RowFetchFailed as e:
            logger.warning(f"Не удалось получить запись таблицы {table_name}: {e}")
            return None
        if not row:
            logger.info(f"Таблица {table_name} пуста, колонки по записи определить нельзя")
            return None
        return columns_from_sample(row)

    @staticmethod
    def from_fallback(table_name: str) -> List[ColumnDetail]:
        logger.warning(f"Колонки таблицы {table_name} определить не удалось, используется колонка id. "
                       f"Проверьте функцию описания колонок или добавьте записи в таблицу")
        return fallback_columns()

    def resolve(self, table_name: str) -> TableSchema:
        for strategy in self.strategies:
            columns = strategy(table_name)
            if columns:
                break
        else:
            raise SchemaUnavailable(f"Не удалось определить колонки таблицы {table_name}")

        columns = sorted(columns, key=lambda column: column.ordinal_position)
        display_columns = select_display_columns(columns)
        if not display_columns:
            raise SchemaUnavailable(f"Не удалось выбрать колонки для отображения таблицы {table_name}")
        logger.debug(f"Таблица {table_name}: колонки {[column.column_name for column in columns]}, "
                     f"отображаются {display_columns}")
        return TableSchema(name=table_name, columns=columns, display_columns=display_columns)

    def _resolve_listed(self, table_name: str) -> Optional[TableSchema]:
        try:
            return self.resolve(table_name)
        except SchemaUnavailable as e:
            logger.warning(f"Таблица {table_name} исключена из списка: {e}")
            return None

    def resolve_all(self) -> List[TableSchema]:
        """Схемы всех таблиц. Любая необработанная ошибка прерывает загрузку целиком"""
        logger.info("Загрузка схем таблиц...")
        try:
            table_names = self.source.list_tables()
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                schemas = list(executor.map(self._resolve_listed, table_names))
        except ListTablesFailed:
            raise
        except Exception as e:
            if isinstance(e, AdminError):
                error = ListTablesFailed(e.message, details=e.details, hint=e.hint, code=e.code)
            else:
                error = ListTablesFailed(describe_error(e))
            raise error from e

        schemas = [schema for schema in schemas if schema is not None and schema.display_columns]
        logger.success(f"Загружено схем таблиц: {len(schemas)}")
        return schemas
