from typing import Any, List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtWidgets import QComboBox, QCompleter, QWidget

from schema.table import FkOption

LOADING_TEXT = "Загрузка..."
NO_OPTIONS_TEXT = "Нет доступных значений"


class SearchableComboBox(QComboBox):
    """
    Выпадающий список с поиском по подстроке.

    Варианты хранятся списком FkOption, выбор определяется индексом,
    поэтому пустой вариант передаёт настоящий None.
    """
    value_changed = pyqtSignal(object)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.options: List[FkOption] = []
        self.setEditable(True)
        self.setInsertPolicy(QComboBox.NoInsert)
        completer = self.completer()
        completer.setFilterMode(Qt.MatchContains)
        completer.setCaseSensitivity(Qt.CaseInsensitive)
        completer.setCompletionMode(QCompleter.PopupCompletion)
        self.lineEdit().setPlaceholderText(LOADING_TEXT)
        self.setEnabled(False)
        self.activated.connect(self._on_activated)

    def set_options(self, options: List[FkOption], value: Any = None):
        self.blockSignals(True)
        try:
            self.clear()
            self.options = list(options)
            for option in self.options:
                self.addItem(option.label)
            index = self.index_of(value)
            self.setCurrentIndex(index)
            if index < 0:
                self.lineEdit().clear()
        finally:
            self.blockSignals(False)

        self.lineEdit().setPlaceholderText(NO_OPTIONS_TEXT if not self.options else "")
        self.setEnabled(bool(self.options))

    def index_of(self, value: Any) -> int:
        for i, option in enumerate(self.options):
            if option.is_null and value is None:
                return i
            if not option.is_null and value is not None and option.value == value:
                return i
        return -1

    def current_value(self) -> Any:
        index = self.currentIndex()
        if 0 <= index < len(self.options):
            return self.options[index].value
        return None

    def _on_activated(self, index: int):
        if 0 <= index < len(self.options):
            self.value_changed.emit(self.options[index].value)
