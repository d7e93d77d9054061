from PyQt5.QtWidgets import QAction, QPushButton, QTableWidget
from loguru import logger


class SafeTableInserter:
    """
    Контекстный менеджер для безопасного заполнения QTableWidget.

    :param table: Объект QTableWidget, в который добавляются данные.
    """
    def __init__(self, table: QTableWidget):
        if not isinstance(table, QTableWidget):
            raise TypeError("SafeTableInserter работает только с QTableWidget.")
        self.table = table
        self.sorting_enabled = table.isSortingEnabled()
        self.updates_blocked = table.signalsBlocked()
        self.edit_triggers = table.editTriggers()

    def __enter__(self):
        self.table.setSortingEnabled(False)
        self.table.blockSignals(True)
        self.table.setUpdatesEnabled(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        return self.table

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.table.setSortingEnabled(self.sorting_enabled)
        self.table.blockSignals(self.updates_blocked)
        self.table.setEditTriggers(self.edit_triggers)
        self.table.setUpdatesEnabled(True)
        if exc_type is not None:
            logger.error(f"Ошибка при заполнении таблицы: {exc_type.__name__}, {exc_val}")


def get_action_button(action: QAction) -> QPushButton:
    def checkout_properties():
        logger.debug(f"Проверка состояния кнопки для действия {action.text()}")
        button.setVisible(action.isVisible())
        button.setEnabled(action.isEnabled())
        button.setText(action.text())
    button = QPushButton(action.text())
    button.pressed.connect(action.trigger)
    action.changed.connect(checkout_properties)
    checkout_properties()
    return button
