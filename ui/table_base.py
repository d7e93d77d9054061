from typing import Any, Dict, List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import QAbstractItemView, QAction, QHeaderView, QMenu, QTableWidget, QTableWidgetItem
from loguru import logger

from modules.grid import GridState, SortOrder, format_cell
from schema.table import TableSchema
from ui.utils import SafeTableInserter

SORT_MARKS = {SortOrder.ASCENDING: " ▲", SortOrder.DESCENDING: " ▼"}


class RecordTableWidget(QTableWidget):
    """Таблица записей: сортировка по клику на заголовок, скрытие колонок, открытие записи в редакторе"""
    record_activated = pyqtSignal(dict)
    create_requested = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.schema: Optional[TableSchema] = None
        self.grid = GridState()
        self.rows: List[Dict[str, Any]] = []
        self.shown_rows: List[Dict[str, Any]] = []

        self.verticalHeader().setVisible(False)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.horizontalHeader().setSectionsClickable(True)
        self.horizontalHeader().sectionClicked.connect(self.handle_header_click)
        self.horizontalHeader().setContextMenuPolicy(Qt.CustomContextMenu)
        self.horizontalHeader().customContextMenuRequested.connect(self.show_columns_menu)
        self.setSortingEnabled(False)
        self.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)

        self.mousePressEvent = self.handle_mouse_press
        self.itemDoubleClicked.connect(lambda item: self.edit_row(item.row()))

        self.create_action = QAction("Создать запись", self)
        self.create_action.triggered.connect(self.create_requested.emit)
        self.create_action.setShortcut(QKeySequence(Qt.Key_Insert))
        self.create_action.setEnabled(False)
        self.addAction(self.create_action)

        self.edit_action = QAction("Редактировать запись", self)
        self.edit_action.triggered.connect(lambda: self.edit_row(self.currentRow()))
        self.edit_action.setShortcut(QKeySequence(Qt.Key_Return))
        self.edit_action.setEnabled(False)
        self.addAction(self.edit_action)

        self.itemSelectionChanged.connect(self.handle_selection_change)

    def handle_selection_change(self):
        self.edit_action.setEnabled(self.currentRow() >= 0 and bool(self.selectedItems()))

    def handle_mouse_press(self, event):
        super().mousePressEvent(event)
        self.handle_selection_change()

        if event.button() != Qt.RightButton:
            return

        menu = QMenu()
        menu.addAction(self.create_action)
        menu.addAction(self.edit_action)
        menu.exec_(self.mapToGlobal(event.pos()))

    def show_columns_menu(self, position):
        menu = QMenu(self)
        for column in self.grid.columns:
            action = menu.addAction(column)
            action.setCheckable(True)
            action.setChecked(self.grid.is_visible(column))
            action.toggled.connect(lambda visible, name=column: self.set_column_visible(name, visible))
        menu.exec_(self.horizontalHeader().mapToGlobal(position))

    def set_column_visible(self, column: str, visible: bool):
        self.grid.set_column_visible(column, visible)
        logger.debug(f"Колонка {column}: {'показана' if visible else 'скрыта'}")
        self.render()

    def handle_header_click(self, index: int):
        columns = self.grid.visible_columns
        if not 0 <= index < len(columns):
            return
        self.grid.cycle_sort(columns[index])
        logger.debug(f"Сортировка: {self.grid.sort_column} {self.grid.sort_order}")
        self.render()

    def set_filter(self, filter_text: str):
        self.grid.filter_text = filter_text
        self.render()

    def set_table(self, schema: Optional[TableSchema], grid: Optional[GridState] = None):
        self.schema = schema
        self.grid = grid or GridState(schema.display_columns if schema else ())
        self.rows = []
        self.create_action.setEnabled(schema is not None)
        self.render()

    def set_rows(self, rows: List[Dict[str, Any]]):
        self.rows = rows
        self.render()

    def load_headers(self, columns: List[str]):
        self.setColumnCount(len(columns))
        headers = []
        for column in columns:
            title = column
            if column == self.grid.sort_column:
                title += SORT_MARKS[self.grid.sort_order]
            headers.append(title)
        self.setHorizontalHeaderLabels(headers)

    def render(self):
        columns = self.grid.visible_columns
        self.shown_rows = self.grid.apply(self.rows)
        with SafeTableInserter(self):
            self.clear()
            self.load_headers(columns)
            self.setRowCount(len(self.shown_rows))
            for row_index, row in enumerate(self.shown_rows):
                for column_index, column in enumerate(columns):
                    value = row.get(column)
                    item = QTableWidgetItem(format_cell(value))
                    if value is not None:
                        item.setToolTip(str(value))
                    self.setItem(row_index, column_index, item)
        self.handle_selection_change()
        logger.debug(f"Отображено записей: {len(self.shown_rows)} из {len(self.rows)}")

    def edit_row(self, row: int):
        if 0 <= row < len(self.shown_rows):
            self.record_activated.emit(dict(self.shown_rows[row]))
