from typing import List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtWidgets import QLabel, QListWidget, QListWidgetItem, QMenu, QVBoxLayout, QWidget

from schema.table import TableSchema


class TablesSidebar(QWidget):
    """Список таблиц базы данных. Контекстное меню открывает таблицу в правой панели"""
    table_selected = pyqtSignal(str)
    table_selected_right = pyqtSignal(str)

    def __init__(self):
        super().__init__()
        self.setFixedWidth(240)
        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        self.list_widget = QListWidget()
        self.list_widget.itemClicked.connect(lambda item: self.table_selected.emit(item.data(Qt.UserRole)))
        self.list_widget.setContextMenuPolicy(Qt.CustomContextMenu)
        self.list_widget.customContextMenuRequested.connect(self.show_context_menu)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Таблицы"))
        layout.addWidget(self.status_label)
        layout.addWidget(self.list_widget)

    def set_loading(self):
        self.list_widget.clear()
        self.status_label.setText("Загрузка таблиц...")
        self.status_label.setVisible(True)

    def set_error(self, message: str):
        self.status_label.setText(f"Ошибка загрузки таблиц: {message}")
        self.status_label.setVisible(True)

    def set_tables(self, tables: List[TableSchema], selected: Optional[str] = None):
        self.list_widget.clear()
        for schema in tables:
            item = QListWidgetItem(schema.name)
            item.setData(Qt.UserRole, schema.name)
            item.setToolTip(", ".join(schema.column_names))
            self.list_widget.addItem(item)
            if schema.name == selected:
                item.setSelected(True)
        self.status_label.setText("" if tables else "Таблицы не найдены")
        self.status_label.setVisible(not tables)

    def show_context_menu(self, position):
        item = self.list_widget.itemAt(position)
        if item is None:
            return
        table_name = item.data(Qt.UserRole)
        menu = QMenu(self)
        menu.addAction("Открыть", lambda: self.table_selected.emit(table_name))
        menu.addAction("Открыть в правой панели", lambda: self.table_selected_right.emit(table_name))
        menu.exec_(self.list_widget.mapToGlobal(position))
