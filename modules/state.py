from itertools import count
from typing import Any, Dict, List, Optional

from loguru import logger

from modules.forms import scaffold_record
from modules.grid import GridState
from schema.table import FkOption, TableSchema

LEFT_PANEL = "left"
RIGHT_PANEL = "right"

_tokens = count(1)


class PanelState:
    """Таблица, открытая в одной из панелей, и её записи"""

    def __init__(self, name: str):
        self.name = name
        self.schema: Optional[TableSchema] = None
        self.rows: Optional[List[dict]] = None
        self.error: Optional[str] = None
        self.loading = False
        self.token = 0
        self.grid = GridState()

    @property
    def table_name(self) -> Optional[str]:
        return self.schema.name if self.schema else None

    def begin_load(self, schema: TableSchema) -> int:
        self.schema = schema
        self.rows = None
        self.error = None
        self.loading = True
        self.grid = GridState(schema.display_columns)
        self.token = next(_tokens)
        return self.token

    def is_current(self, token: int) -> bool:
        return token == self.token

    def finish_load(self, token: int, rows: List[dict]) -> bool:
        if not self.is_current(token):
            logger.debug(f"Панель {self.name}: устаревший результат загрузки отброшен")
            return False
        self.rows = list(rows)
        self.loading = False
        return True

    def fail_load(self, token: int, message: str) -> bool:
        if not self.is_current(token):
            logger.debug(f"Панель {self.name}: устаревшая ошибка загрузки отброшена")
            return False
        self.rows = None
        self.error = message
        self.loading = False
        return True

    def clear(self) -> None:
        self.schema = None
        self.rows = None
        self.error = None
        self.loading = False
        self.grid = GridState()
        self.token = next(_tokens)

    def _same_record(self, row: dict, saved: dict) -> bool:
        keys = [column.column_name for column in self.schema.primary_keys]
        return bool(keys) and all(key in row and row.get(key) == saved.get(key) for key in keys)

    def apply_saved(self, saved: dict, is_new: bool) -> None:
        """Заменяет локальную копию записи строкой, которую вернула база данных"""
        if self.rows is None:
            self.rows = []
        if is_new:
            self.rows.insert(0, saved)
            return
        for index, row in enumerate(self.rows):
            if self._same_record(row, saved):
                self.rows[index] = saved
                return
        logger.warning(f"Панель {self.name}: обновлённая запись не найдена среди загруженных, добавлена в начало")
        self.rows.insert(0, saved)


class EditorState:
    """Рабочая копия записи, открытой в редакторе"""

    def __init__(self, panel: str, schema: TableSchema, record: Dict[str, Any], is_new: bool):
        self.panel = panel
        self.schema = schema
        self.record = dict(record)
        self.original = None if is_new else dict(record)
        self.is_new = is_new
        self.token = next(_tokens)
        self.fk_options: Dict[str, List[FkOption]] = {}
        self.error: Optional[str] = None

    def set_field(self, column_name: str, value: Any) -> None:
        self.record[column_name] = value

    def accept_fk_options(self, token: int, column_name: str, options: List[FkOption]) -> bool:
        if token != self.token:
            return False
        self.fk_options[column_name] = options
        return True


class AppState:
    def __init__(self):
        self.tables: List[TableSchema] = []
        self.tables_error: Optional[str] = None
        self.loading_tables = False
        self.panels = {LEFT_PANEL: PanelState(LEFT_PANEL), RIGHT_PANEL: PanelState(RIGHT_PANEL)}
        self.editor: Optional[EditorState] = None

    def set_tables(self, tables: List[TableSchema]) -> None:
        self.tables = list(tables)
        self.tables_error = None
        self.loading_tables = False
        # Схемы пересобраны, открытые панели получают новые объекты схем
        for panel in self.panels.values():
            if panel.schema is not None:
                schema = self.schema_for(panel.schema.name)
                if schema is None:
                    panel.clear()
                else:
                    panel.schema = schema

    def fail_tables(self, message: str) -> None:
        self.tables_error = message
        self.loading_tables = False

    def schema_for(self, table_name: str) -> Optional[TableSchema]:
        return next((schema for schema in self.tables if schema.name == table_name), None)

    def open_editor(self, panel_name: str, record: Optional[Dict[str, Any]] = None) -> Optional[EditorState]:
        panel = self.panels[panel_name]
        if panel.schema is None:
            return None
        if record is None:
            self.editor = EditorState(panel_name, panel.schema, scaffold_record(panel.schema), is_new=True)
        else:
            self.editor = EditorState(panel_name, panel.schema, record, is_new=False)
        return self.editor

    def close_editor(self) -> None:
        self.editor = None

    def editor_saved(self, token: int, saved: dict) -> bool:
        """Применяет сохранённую запись к панели, из которой открыт редактор"""
        editor = self.editor
        if editor is None or editor.token != token:
            return False
        panel = self.panels[editor.panel]
        if panel.table_name == editor.schema.name:
            panel.apply_saved(saved, editor.is_new)
        self.close_editor()
        return True
