from typing import Any, Dict, List, Optional

from loguru import logger
from psycopg import sql
from pydantic import ValidationError

from database.base import Table
from database.connection import Connection
from database.errors import DescribeTableFailed, ListTablesFailed
from modules.config import Settings, get_settings
from schema.table import ColumnDetail

SYSTEM_TABLE_PREFIXES = ("pg_", "sql_")


class SchemaSource:
    """
    Источник схемы: две функции интроспекции в базе данных и доступ к строкам таблиц.

    list_tables() -> [table_name]
    describe_table(table_name) -> [ColumnDetail]
    """

    def __init__(self, connection: Connection, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.connection = connection
        self.schema_name = settings.db_schema
        self.list_tables_rpc = settings.list_tables_rpc
        self.describe_table_rpc = settings.describe_table_rpc

    def _rpc(self, function_name: str, *args: Any) -> sql.Composable:
        return sql.SQL("SELECT * FROM {function}({args})").format(
            function=sql.Identifier(self.schema_name, function_name),
            args=sql.SQL(", ").join(sql.Placeholder() * len(args))
        )

    def list_tables(self) -> List[str]:
        logger.info(f"Получение списка таблиц через {self.list_tables_rpc}")
        table = Table(self.list_tables_rpc, self.connection, self.schema_name)
        query = self._rpc(self.list_tables_rpc)
        with table.exception_handler(ListTablesFailed), self.connection.cursor(commit=False) as cur:
            table._log_query(cur, query)
            cur.execute(query)
            rows = cur.fetchall()

        names = []
        for row in rows:
            name = row.get("table_name")
            if not name or name.startswith(SYSTEM_TABLE_PREFIXES):
                continue
            names.append(name)
        logger.debug(f"Найдено таблиц: {len(names)}")
        return names

    def describe_table(self, table_name: str) -> List[ColumnDetail]:
        logger.info(f"Получение колонок таблицы {table_name} через {self.describe_table_rpc}")
        table = Table(self.describe_table_rpc, self.connection, self.schema_name)
        query = self._rpc(self.describe_table_rpc, table_name)
        with table.exception_handler(DescribeTableFailed), self.connection.cursor(commit=False) as cur:
            table._log_query(cur, query, [table_name])
            cur.execute(query, [table_name])
            rows = cur.fetchall()
        logger.debug(f"Получено колонок для {table_name}: {len(rows)}")
        try:
            return [self._column_from_row(row, position) for position, row in enumerate(rows, start=1)]
        except (KeyError, ValidationError) as e:
            logger.error(f"Некорректное описание колонок таблицы {table_name}: {e}")
            raise DescribeTableFailed(f"Функция {self.describe_table_rpc} вернула некорректное описание "
                                      f"колонок таблицы {table_name}", details=str(e)) from e

    @staticmethod
    def _column_from_row(row: Dict[str, Any], position: int) -> ColumnDetail:
        # Старая версия функции возвращает только имя, тип и позицию колонки
        is_nullable = row.get("is_nullable")
        if isinstance(is_nullable, bool):
            is_nullable = "YES" if is_nullable else "NO"
        # NULL и нестандартные значения считаем допускающими NULL
        is_nullable = "NO" if str(is_nullable).strip().upper() == "NO" else "YES"
        foreign_key_table = row.get("foreign_key_table")
        foreign_key_column = row.get("foreign_key_column")
        if not (foreign_key_table and foreign_key_column):
            foreign_key_table = foreign_key_column = None
        return ColumnDetail(
            column_name=row["column_name"],
            data_type=row.get("data_type") or "unknown",
            ordinal_position=row.get("ordinal_position") or position,
            is_nullable=is_nullable,
            is_primary_key=bool(row.get("is_primary_key", False)),
            foreign_key_table=foreign_key_table,
            foreign_key_column=foreign_key_column
        )

    def table(self, table_name: str) -> Table:
        return Table(table_name, self.connection, self.schema_name)
