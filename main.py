import sys
from typing import Dict, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import QAction, QApplication, QMainWindow, QMenu, QMessageBox, QSplitter
from loguru import logger
from pyqtexcept_forgenet.main import create_exceptions_hook

from database.connection import Connection
from database.errors import describe_error
from database.rpc import SchemaSource
from modules.config import Settings, get_settings
from modules.fk_options import ForeignKeyOptionLoader
from modules.install import install_schema_functions
from modules.records import fetch_rows, save_record
from modules.resolver import SchemaResolver
from modules.state import LEFT_PANEL, RIGHT_PANEL, AppState, EditorState
from ui.editor import RecordEditorDialog
from ui.sidebar import TablesSidebar
from ui.table import TablePanel
from ui.tasks import TaskRunner

NOTIFICATION_TIMEOUT_MS = 7000


def setup_logging(settings: Settings):
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=10, encoding="utf-8")


class App(QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()
        self.setWindowTitle("Table Admin Lite")
        self.resize(1400, 800)

        self.settings = settings
        self.connection = Connection(settings)
        self.source = SchemaSource(self.connection, settings)
        self.resolver = SchemaResolver(self.source)
        self.fk_loader = ForeignKeyOptionLoader(self.source, settings.fk_options_limit)
        self.tasks = TaskRunner(parent=self)
        self.state = AppState()
        self.editor_dialog: Optional[RecordEditorDialog] = None

        self.sidebar = TablesSidebar()
        self.sidebar.table_selected.connect(lambda name: self.select_table(LEFT_PANEL, name))
        self.sidebar.table_selected_right.connect(lambda name: self.select_table(RIGHT_PANEL, name))

        self.panels: Dict[str, TablePanel] = {}
        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.sidebar)
        for name, panel_state in self.state.panels.items():
            panel = TablePanel(panel_state)
            panel.create_requested.connect(self.open_new_record_editor)
            panel.edit_requested.connect(self.open_editor)
            self.panels[name] = panel
            splitter.addWidget(panel)
        self.panels[RIGHT_PANEL].setVisible(False)
        self.setCentralWidget(splitter)

        menu_bar = self.menuBar()
        tables_menu = QMenu("&Таблицы", self)
        refresh_action = QAction("&Обновить список таблиц", self)
        refresh_action.setShortcut(QKeySequence(Qt.Key_F5))
        refresh_action.triggered.connect(self.load_tables)
        tables_menu.addAction(refresh_action)
        tables_menu.addAction("&Закрыть правую панель", self.close_right_panel)
        menu_bar.addMenu(tables_menu)

        settings_menu = QMenu("&Утилиты", self)
        settings_menu.addAction("&Установить функции интроспекции", self.install_functions_dialog)
        menu_bar.addMenu(settings_menu)

        self.load_tables()

    def notify(self, message: str):
        self.statusBar().showMessage(message, NOTIFICATION_TIMEOUT_MS)

    def notify_error(self, title: str, error: BaseException) -> str:
        message = describe_error(error)
        logger.error(f"{title}: {message}")
        self.statusBar().showMessage(f"{title}: {message}", NOTIFICATION_TIMEOUT_MS)
        return message

    def load_tables(self):
        self.state.loading_tables = True
        self.sidebar.set_loading()
        self.tasks.submit(self.resolver.resolve_all, self.on_tables_loaded, self.on_tables_failed)

    def on_tables_loaded(self, tables):
        self.state.set_tables(tables)
        self.sidebar.set_tables(tables, self.state.panels[LEFT_PANEL].table_name)
        for name, panel in self.panels.items():
            if self.state.panels[name].schema is None:
                panel.bind()
            panel.refresh(has_tables=bool(tables))
        self.notify(f"Загружено таблиц: {len(tables)}")

    def on_tables_failed(self, error: BaseException):
        message = self.notify_error("Ошибка загрузки таблиц", error)
        self.state.fail_tables(message)
        self.sidebar.set_error(message)
        self.panels[LEFT_PANEL].refresh(has_tables=False)
        QMessageBox.critical(
            self, "Ошибка загрузки таблиц",
            f"Не удалось загрузить таблицы: {message}\n\n"
            f"Убедитесь, что функции интроспекции схемы установлены и доступны."
        )

    def select_table(self, panel_name: str, table_name: str):
        schema = self.state.schema_for(table_name)
        if schema is None:
            logger.warning(f"Схема таблицы {table_name} не найдена")
            return
        panel_state = self.state.panels[panel_name]
        token = panel_state.begin_load(schema)
        panel = self.panels[panel_name]
        panel.setVisible(True)
        panel.bind()
        logger.info(f"Панель {panel_name}: открыта таблица {table_name}")

        self.tasks.submit(
            fetch_rows,
            lambda rows: self.on_rows_loaded(panel_name, token, rows),
            lambda error: self.on_rows_failed(panel_name, token, error),
            self.source, table_name
        )

    def on_rows_loaded(self, panel_name: str, token: int, rows):
        if self.state.panels[panel_name].finish_load(token, rows):
            self.panels[panel_name].refresh()

    def on_rows_failed(self, panel_name: str, token: int, error: BaseException):
        panel_state = self.state.panels[panel_name]
        if not panel_state.is_current(token):
            return
        message = self.notify_error(f"Ошибка загрузки данных таблицы {panel_state.table_name}", error)
        panel_state.fail_load(token, message)
        self.panels[panel_name].refresh()

    def close_right_panel(self):
        self.state.panels[RIGHT_PANEL].clear()
        self.panels[RIGHT_PANEL].bind()
        self.panels[RIGHT_PANEL].setVisible(False)

    def open_new_record_editor(self, panel_name: str):
        editor = self.state.open_editor(panel_name)
        if editor is not None:
            self.show_editor(editor)

    def open_editor(self, panel_name: str, record: dict):
        editor = self.state.open_editor(panel_name, record)
        if editor is not None:
            self.show_editor(editor)

    def show_editor(self, editor: EditorState):
        dialog = RecordEditorDialog(editor, self)
        dialog.save_requested.connect(lambda: self.save_editor(editor))
        dialog.finished.connect(lambda _: self.close_editor(editor))
        self.editor_dialog = dialog

        for column_name in dialog.foreign_key_columns:
            column = editor.schema.column(column_name)
            self.tasks.submit(
                self.fk_loader.load_options,
                lambda options, name=column_name: self.on_fk_options(editor.token, name, options),
                None,
                column.foreign_key_table, column.foreign_key_column, column.nullable
            )
        dialog.open()

    def on_fk_options(self, token: int, column_name: str, options):
        editor = self.state.editor
        if editor is None or not editor.accept_fk_options(token, column_name, options):
            return
        if self.editor_dialog is not None:
            self.editor_dialog.set_fk_options(column_name, options)

    def close_editor(self, editor: EditorState):
        if self.state.editor is editor:
            self.state.close_editor()
            self.editor_dialog = None

    def save_editor(self, editor: EditorState):
        if self.state.editor is not editor:
            return
        self.editor_dialog.set_busy(True)
        self.editor_dialog.show_error("")
        self.tasks.submit(
            save_record,
            lambda saved: self.on_record_saved(editor, saved),
            lambda error: self.on_save_failed(editor, error),
            self.source, editor.schema, dict(editor.record), editor.is_new
        )

    def on_record_saved(self, editor: EditorState, saved: dict):
        is_new = editor.is_new
        if not self.state.editor_saved(editor.token, saved):
            return
        self.panels[editor.panel].refresh()
        self.notify("Запись создана" if is_new else "Изменения сохранены")
        if self.editor_dialog is not None:
            dialog, self.editor_dialog = self.editor_dialog, None
            dialog.accept()

    def on_save_failed(self, editor: EditorState, error: BaseException):
        title = "Не удалось создать запись" if editor.is_new else "Не удалось сохранить изменения"
        message = self.notify_error(title, error)
        if self.state.editor is editor and self.editor_dialog is not None:
            editor.error = message
            self.editor_dialog.show_error(message)
            self.editor_dialog.set_busy(False)

    def install_functions_dialog(self):
        approval = QMessageBox(QMessageBox.Warning, "Вы уверены?",
                               f"В схеме {self.settings.db_schema} будут созданы или заменены функции "
                               f"{self.settings.list_tables_rpc} и {self.settings.describe_table_rpc}.",
                               QMessageBox.Yes | QMessageBox.No)
        approval.setDefaultButton(QMessageBox.No)
        approval.button(QMessageBox.Yes).setText("Да")
        approval.button(QMessageBox.No).setText("Нет")

        chosen_variant = approval.exec()
        if chosen_variant == QMessageBox.Yes:
            self.tasks.submit(
                install_schema_functions,
                lambda _: self.load_tables(),
                lambda error: self.notify_error("Не удалось установить функции", error),
                self.connection, self.settings
            )

    def closeEvent(self, event):
        self.tasks.shutdown()
        self.connection.close()
        super().closeEvent(event)


def main():
    settings = get_settings()
    setup_logging(settings)
    app = QApplication(sys.argv)
    window = App(settings)
    sys.excepthook = create_exceptions_hook(window)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
