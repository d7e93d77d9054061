import json
from typing import Optional, Type

import psycopg

EMPTY_ERROR_MESSAGE = (
    "Получена пустая или неинформативная ошибка. Чаще всего это означает проблему "
    "с функциями get_public_tables или get_table_columns_info (функция не существует, "
    "нет прав на выполнение или внутренняя ошибка), либо проблему с сетью. "
    "Проверьте обе функции в базе данных"
)


class AdminError(Exception):
    """
    Базовая ошибка приложения

    Args:
        message: Человекочитаемое описание ошибки
        details: Подробности от сервера базы данных
        hint: Подсказка от сервера базы данных
        code: Код ошибки (SQLSTATE)
    """
    default_message = "Ошибка при работе с базой данных"

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None,
                 hint: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        self.hint = hint
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        text = self.message
        if self.details:
            text += f" Подробности: {self.details}"
        if self.hint:
            text += f" Подсказка: {self.hint}"
        if self.code:
            text += f" Код: {self.code}"
        return text


class ListTablesFailed(AdminError):
    default_message = "Не удалось получить список таблиц"


class DescribeTableFailed(AdminError):
    default_message = "Не удалось получить описание колонок таблицы"


class SchemaUnavailable(AdminError):
    default_message = "Не удалось определить колонки таблицы"


class RowFetchFailed(AdminError):
    default_message = "Не удалось загрузить записи таблицы"


class SaveFailed(AdminError):
    default_message = "Не удалось сохранить запись"


class MissingPrimaryKey(AdminError):
    default_message = "У записи отсутствует значение первичного ключа"


class NoPrimaryKey(AdminError):
    default_message = "У таблицы нет первичного ключа"


def from_psycopg(error_cls: Type[AdminError], error: psycopg.Error,
                 message: Optional[str] = None) -> AdminError:
    """Переносит диагностику psycopg в ошибку приложения"""
    diag = error.diag
    return error_cls(
        message or diag.message_primary or str(error).strip() or None,
        details=diag.message_detail,
        hint=diag.message_hint,
        code=error.sqlstate
    )


def describe_error(error: Optional[BaseException]) -> str:
    """
    Собирает одно сообщение об ошибке для пользователя.

    Приоритет: явное сообщение, затем сериализованные аргументы ошибки,
    затем текст о пустой ошибке с советом проверить функции интроспекции.
    """
    if isinstance(error, AdminError):
        return str(error)
    if error is None:
        return EMPTY_ERROR_MESSAGE

    message = str(error).strip()
    if message:
        return message

    args = [arg for arg in error.args if arg not in (None, "", {}, [])]
    if args:
        try:
            return f"Подробности ошибки: {json.dumps(args, default=str, ensure_ascii=False)}"
        except (TypeError, ValueError):
            return f"Подробности ошибки: {args!r}"
    return EMPTY_ERROR_MESSAGE
