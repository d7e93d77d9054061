import contextlib
import threading
from typing import Optional

import psycopg
from loguru import logger
from psycopg.rows import dict_row

from modules.config import Settings, get_settings


class Connection:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.host = settings.db_host
        self.port = settings.db_port
        self.user = settings.db_user
        self.password = settings.db_password
        self.database = settings.db_name
        self.sslmode = settings.db_sslmode
        self.connection: Optional[psycopg.Connection] = None
        # Одно соединение на все фоновые задачи, операции выполняются по очереди
        self._lock = threading.RLock()

    def connect(self):
        logger.info(f"Подключение к базе данных {self.database} на {self.host}:{self.port}...")
        try:
            self.connection = psycopg.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                dbname=self.database,
                sslmode=self.sslmode,
                row_factory=dict_row
            )
            logger.success("Подключение к базе данных успешно выполнено")
        except Exception as exception:
            logger.error(f"Ошибка при подключении к базе данных: {str(exception)}")
            raise
        return True

    def close(self):
        with self._lock:
            if self.connection and not self.connection.closed:
                self.connection.close()
                logger.info("Подключение к базе данных закрыто")
            self.connection = None

    @contextlib.contextmanager
    def cursor(self, commit=True) -> psycopg.Cursor:
        with self._lock:
            if not self.connection or self.connection.closed:
                logger.warning("Подключение к базе данных ещё не было установлено")
                self.connect()
            cursor = self.connection.cursor()
            try:
                yield cursor
                if commit:
                    self.connection.commit()
                else:
                    self.connection.rollback()
            except Exception as e:
                logger.error(f"Ошибка при выполнении запроса: {str(e)}")
                if not self.connection.closed:
                    self.connection.rollback()
                raise e
            finally:
                cursor.close()
