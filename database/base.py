import contextlib
from typing import Any, Dict, List, Optional, Sequence, Type

import psycopg
from loguru import logger
from psycopg import errors as psycopg_errors
from psycopg import sql

from database.connection import Connection
from database.errors import AdminError, RowFetchFailed, SaveFailed, from_psycopg


class Table:
    """Доступ к строкам одной таблицы: выборка, вставка и обновление"""

    def __init__(self, table_name: str, connection: Connection, schema_name: str = "public"):
        self.table_name = table_name
        self.schema_name = schema_name
        self.connection = connection
        self.identifier = sql.Identifier(schema_name, table_name)

    @staticmethod
    def _log_query(cursor: psycopg.Cursor, query: sql.Composable, params: Optional[Sequence[Any]] = None) -> None:
        """
        Логирование SQL запроса с параметрами

        Args:
            cursor: Курсор, в контексте которого собирается текст запроса
            query: SQL запрос
            params: Параметры запроса
        """
        try:
            text = query.as_string(cursor)
        except Exception:
            text = repr(query)
        if params:
            text = f"{text} [params: {list(params)}]"
        logger.debug(f"SQL запрос:\n{text.strip()}")

    @staticmethod
    def _fields(columns: Optional[Sequence[str]]) -> sql.Composable:
        if not columns:
            return sql.SQL("*")
        return sql.SQL(", ").join(sql.Identifier(column) for column in columns)

    @staticmethod
    def _conditions(match: Dict[str, Any]) -> sql.Composable:
        return sql.SQL(" AND ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder()) for column in match
        )

    def select(self, columns: Optional[Sequence[str]] = None, limit: Optional[int] = None) -> List[dict]:
        logger.info(f"Получение записей из таблицы {self.table_name}")
        query = sql.SQL("SELECT {fields} FROM {table}").format(fields=self._fields(columns), table=self.identifier)
        params = []
        if limit is not None:
            query += sql.SQL(" LIMIT {}").format(sql.Placeholder())
            params.append(limit)

        with self.exception_handler(RowFetchFailed), self.connection.cursor(commit=False) as cur:
            self._log_query(cur, query, params)
            cur.execute(query, params)
            result = cur.fetchall()
            logger.debug(f"Получено записей: {len(result)}")
            return [dict(row) for row in result]

    def sample(self) -> Optional[dict]:
        """Одна произвольная запись таблицы или None, если таблица пуста"""
        rows = self.select(limit=1)
        return rows[0] if rows else None

    def insert(self, payload: Dict[str, Any]) -> dict:
        logger.info(f"Создание записи в таблице {self.table_name} с данными {payload}")
        if payload:
            query = sql.SQL("INSERT INTO {table} ({fields}) VALUES ({values}) RETURNING *").format(
                table=self.identifier,
                fields=self._fields(list(payload)),
                values=sql.SQL(", ").join(sql.Placeholder() * len(payload))
            )
        else:
            query = sql.SQL("INSERT INTO {table} DEFAULT VALUES RETURNING *").format(table=self.identifier)
        params = list(payload.values())

        with self.exception_handler(SaveFailed), self.connection.cursor() as cur:
            self._log_query(cur, query, params)
            cur.execute(query, params)
            result = cur.fetchone()
        if result is None:
            raise SaveFailed("Вставка не вернула созданную запись")
        logger.success(f"Запись в таблице {self.table_name} создана")
        return dict(result)

    def update(self, payload: Dict[str, Any], match: Dict[str, Any]) -> dict:
        logger.info(f"Обновление записи {match} в таблице {self.table_name} данными {payload}")
        if not match:
            raise SaveFailed("Не задано условие для обновления записи")

        if payload:
            set_expr = sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder()) for column in payload
            )
            query = sql.SQL("UPDATE {table} SET {set_expr} WHERE {where} RETURNING *").format(
                table=self.identifier, set_expr=set_expr, where=self._conditions(match)
            )
        else:
            # Менять нечего, возвращаем актуальное состояние записи
            query = sql.SQL("SELECT * FROM {table} WHERE {where} LIMIT 1").format(
                table=self.identifier, where=self._conditions(match)
            )
        params = list(payload.values()) + list(match.values())

        with self.exception_handler(SaveFailed), self.connection.cursor() as cur:
            self._log_query(cur, query, params)
            cur.execute(query, params)
            result = cur.fetchone()
            logger.debug(f"Обновлено записей: {cur.rowcount}")
        if result is None:
            raise SaveFailed(f"Запись {match} не найдена в таблице {self.table_name}")
        logger.success(f"Запись {match} в таблице {self.table_name} обновлена")
        return dict(result)

    @contextlib.contextmanager
    def exception_handler(self, error_cls: Type[AdminError]):
        """Расширенный обработчик исключений для операций с БД"""
        try:
            yield
        except AdminError:
            raise
        except (psycopg_errors.OperationalError, psycopg_errors.InterfaceError) as e:
            logger.error(f"Потеряно соединение с базой данных: {str(e)}")
            raise
        except psycopg_errors.UniqueViolation as e:
            logger.error(f"Нарушение уникальности: {e.diag.message_detail or str(e)}")
            raise from_psycopg(error_cls, e, "Нарушение уникальности значения") from e
        except psycopg_errors.ForeignKeyViolation as e:
            logger.error(f"Нарушение внешнего ключа: {e.diag.message_detail or str(e)}")
            raise from_psycopg(error_cls, e, "Нарушение ссылочной целостности") from e
        except psycopg_errors.NotNullViolation as e:
            logger.error(f"Попытка записи NULL в NOT NULL поле: {e.diag.message_detail or str(e)}")
            raise from_psycopg(error_cls, e, "Обязательное поле не может быть пустым") from e
        except psycopg_errors.NumericValueOutOfRange as e:
            logger.error(f"Значение вне допустимого диапазона: {str(e)}")
            raise from_psycopg(error_cls, e, "Значение вне допустимого диапазона") from e
        except psycopg.Error as e:
            logger.error(f"Ошибка базы данных в таблице {self.table_name}: {str(e)}")
            raise from_psycopg(error_cls, e) from e
        except Exception as e:
            logger.error(f"Неожиданная ошибка при работе с БД: {str(e)}")
            raise
