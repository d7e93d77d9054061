from typing import Optional

from loguru import logger
from psycopg import sql

from database.connection import Connection
from modules.config import Settings, get_settings

LIST_TABLES_FUNCTION = """
CREATE OR REPLACE FUNCTION {function}()
RETURNS TABLE(table_name TEXT)
LANGUAGE sql STABLE AS $$
    SELECT c.relname::text
    FROM pg_catalog.pg_class c
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE c.relkind = 'r'
      AND n.nspname = {schema}
      AND c.relname NOT LIKE 'pg\\_%'
      AND c.relname NOT LIKE 'sql\\_%'
    ORDER BY c.relname;
$$;
"""

DESCRIBE_TABLE_FUNCTION = """
CREATE OR REPLACE FUNCTION {function}(p_table_name TEXT)
RETURNS TABLE(
    column_name TEXT,
    data_type TEXT,
    ordinal_position INTEGER,
    is_nullable TEXT,
    is_primary_key BOOLEAN,
    foreign_key_table TEXT,
    foreign_key_column TEXT
)
LANGUAGE sql STABLE AS $$
    SELECT
        c.column_name::text,
        c.data_type::text,
        c.ordinal_position::integer,
        c.is_nullable::text,
        EXISTS (
            SELECT 1
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON kcu.constraint_name = tc.constraint_name
             AND kcu.constraint_schema = tc.constraint_schema
            WHERE tc.constraint_type = 'PRIMARY KEY'
              AND tc.table_schema = c.table_schema
              AND tc.table_name = c.table_name
              AND kcu.column_name = c.column_name
        ),
        fk.foreign_table::text,
        fk.foreign_column::text
    FROM information_schema.columns c
    LEFT JOIN LATERAL (
        SELECT ccu.table_name AS foreign_table, ccu.column_name AS foreign_column
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON kcu.constraint_name = tc.constraint_name
         AND kcu.constraint_schema = tc.constraint_schema
        JOIN information_schema.constraint_column_usage ccu
          ON ccu.constraint_name = tc.constraint_name
         AND ccu.constraint_schema = tc.constraint_schema
        WHERE tc.constraint_type = 'FOREIGN KEY'
          AND tc.table_schema = c.table_schema
          AND tc.table_name = c.table_name
          AND kcu.column_name = c.column_name
        LIMIT 1
    ) fk ON TRUE
    WHERE c.table_schema = {schema}
      AND c.table_name = p_table_name
    ORDER BY c.ordinal_position;
$$;
"""


def schema_functions_sql(settings: Settings) -> list[sql.Composable]:
    schema = sql.Literal(settings.db_schema)
    return [
        sql.SQL(LIST_TABLES_FUNCTION).format(
            function=sql.Identifier(settings.db_schema, settings.list_tables_rpc), schema=schema),
        sql.SQL(DESCRIBE_TABLE_FUNCTION).format(
            function=sql.Identifier(settings.db_schema, settings.describe_table_rpc), schema=schema),
    ]


def install_schema_functions(connection: Connection, settings: Optional[Settings] = None):
    """Создаёт или обновляет функции интроспекции схемы в базе данных"""
    settings = settings or get_settings()
    logger.warning(f"Установка функций {settings.list_tables_rpc} и {settings.describe_table_rpc}...")
    with connection.cursor() as cursor:
        for statement in schema_functions_sql(settings):
            cursor.execute(statement)
    logger.success("Функции интроспекции схемы установлены")
