from PyQt5.QtCore import pyqtSignal
from PyQt5.QtGui import QFont
from PyQt5.QtWidgets import QHBoxLayout, QLabel, QLineEdit, QVBoxLayout, QWidget

from modules.state import PanelState
from ui.table_base import RecordTableWidget
from ui.utils import get_action_button

WELCOME_TEXT = "Выберите таблицу в списке слева, чтобы просмотреть и изменить её записи."
NO_TABLES_TEXT = (
    "Таблицы не найдены. Проверьте подключение к базе данных, наличие функций "
    "get_public_tables и get_table_columns_info и прав на их выполнение."
)


class SearchWidget(QWidget):
    def __init__(self, table: RecordTableWidget):
        super().__init__()
        self.table = table
        self.setFixedWidth(200)
        self.search_line_edit = QLineEdit()
        self.search_line_edit.setPlaceholderText("Поиск...")
        self.search_line_edit.textEdited.connect(self.search)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.search_line_edit)

    def search(self):
        self.table.set_filter(self.search_line_edit.text())

    def reset(self):
        self.search_line_edit.clear()


class TablePanel(QWidget):
    """Панель с одной таблицей: заголовок, поиск, создание записи, сообщение об ошибке и сама таблица"""
    create_requested = pyqtSignal(str)
    edit_requested = pyqtSignal(str, dict)

    def __init__(self, state: PanelState):
        super().__init__()
        self.state = state
        self.table = RecordTableWidget()
        self.table.create_requested.connect(lambda: self.create_requested.emit(self.state.name))
        self.table.record_activated.connect(lambda record: self.edit_requested.emit(self.state.name, record))

        layout = QVBoxLayout(self)

        self.title_label = QLabel()
        font = QFont()
        font.setPointSize(12)
        font.setBold(True)
        self.title_label.setFont(font)

        control_panel_layout = QHBoxLayout()
        control_panel_layout.addWidget(self.title_label)
        control_panel_layout.addStretch()
        self.search_widget = SearchWidget(self.table)
        control_panel_layout.addWidget(self.search_widget)
        create_button = get_action_button(self.table.create_action)
        control_panel_layout.addWidget(create_button)

        self.message_label = QLabel()
        self.message_label.setWordWrap(True)

        layout.addLayout(control_panel_layout)
        layout.addWidget(self.message_label)
        layout.addWidget(self.table)
        self.refresh()

    def show_message(self, text: str, is_error: bool = False):
        self.message_label.setText(text)
        self.message_label.setStyleSheet("color: #c0392b;" if is_error else "color: gray;")
        self.message_label.setVisible(bool(text))

    def bind(self):
        """Переключает виджет на таблицу из состояния панели"""
        self.search_widget.reset()
        self.table.set_table(self.state.schema, self.state.grid)
        self.refresh()

    def refresh(self, has_tables: bool = True):
        state = self.state
        self.title_label.setText(f"Таблица: {state.table_name}" if state.table_name else "")
        self.search_widget.setVisible(state.schema is not None)

        if state.schema is None:
            self.show_message(WELCOME_TEXT if has_tables else NO_TABLES_TEXT)
        elif state.loading:
            self.show_message("Загрузка записей...")
        elif state.error:
            self.show_message(state.error, is_error=True)
        elif not state.rows:
            self.show_message(f"В таблице {state.table_name} нет записей.")
        else:
            self.show_message("")

        self.table.setVisible(state.schema is not None and not state.loading and not state.error)
        self.table.set_rows(state.rows or [])
