from typing import Any, Dict, List

from PyQt5.QtCore import pyqtSignal
from PyQt5.QtWidgets import (
    QCheckBox, QDialog, QDialogButtonBox, QFormLayout, QLabel, QLineEdit, QPlainTextEdit, QScrollArea,
    QVBoxLayout, QWidget
)
from loguru import logger

from modules.fk_options import with_current_value
from modules.forms import FieldSpec, build_fields
from modules.state import EditorState
from schema.table import FkOption
from schema.values import FieldWidget, parse_value
from ui.combobox import SearchableComboBox

DATETIME_PLACEHOLDER = "ГГГГ-ММ-ДДTчч:мм"


class RecordEditorDialog(QDialog):
    save_requested = pyqtSignal()

    def __init__(self, editor: EditorState, parent: QWidget = None):
        super().__init__(parent)
        self.editor = editor
        self.comboboxes: Dict[str, SearchableComboBox] = {}
        self.read_only_columns = set()

        schema = editor.schema
        if editor.is_new:
            self.setWindowTitle(f"Новая запись: {schema.name}")
            description = f"Заполните поля новой записи таблицы {schema.name}."
        else:
            self.setWindowTitle(f"Редактирование записи: {schema.name}")
            description = f"Измените поля записи таблицы {schema.name} и нажмите «Сохранить»."
        description += " Первичные ключи и служебные отметки времени недоступны для изменения."
        self.resize(600, 500)

        description_label = QLabel(description)
        description_label.setWordWrap(True)

        form_widget = QWidget()
        form_layout = QFormLayout(form_widget)
        for field in build_fields(schema, editor.record, editor.is_new):
            form_layout.addRow(field.column.ui_title, self.create_field_widget(field))

        scroll_area = QScrollArea()
        scroll_area.setWidgetResizable(True)
        scroll_area.setWidget(form_widget)

        self.error_label = QLabel()
        self.error_label.setWordWrap(True)
        self.error_label.setStyleSheet("color: #c0392b;")
        self.error_label.setVisible(False)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        self.buttons.button(QDialogButtonBox.Save).setText("Создать запись" if editor.is_new else "Сохранить")
        self.buttons.button(QDialogButtonBox.Cancel).setText("Отмена")
        self.buttons.accepted.connect(self.save_requested.emit)
        self.buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(description_label)
        layout.addWidget(scroll_area)
        layout.addWidget(self.error_label)
        layout.addWidget(self.buttons)

    def _change_handler(self, field: FieldSpec):
        column = field.column

        def handle(raw: Any):
            value = parse_value(raw, column, field.widget)
            logger.debug(f"Поле {column.column_name} изменено: {value!r}")
            self.editor.set_field(column.column_name, value)
        return handle

    def create_field_widget(self, field: FieldSpec) -> QWidget:
        if field.auto_generated:
            widget = QLineEdit(str(field.value))
            widget.setEnabled(False)
            return widget

        handler = self._change_handler(field)
        if field.widget == FieldWidget.SELECT:
            widget = SearchableComboBox()
            widget.value_changed.connect(handler)
            self.comboboxes[field.column.column_name] = widget
        elif field.widget == FieldWidget.CHECKBOX:
            widget = QCheckBox()
            widget.setChecked(bool(field.value))
            widget.toggled.connect(handler)
        elif field.widget == FieldWidget.MULTILINE:
            widget = QPlainTextEdit(str(field.value))
            widget.setPlaceholderText(field.placeholder)
            widget.textChanged.connect(lambda: handler(widget.toPlainText()))
        else:
            widget = QLineEdit(str(field.value))
            placeholder = DATETIME_PLACEHOLDER if field.widget == FieldWidget.DATETIME else field.placeholder
            widget.setPlaceholderText(placeholder)
            widget.textEdited.connect(handler)
            widget.setReadOnly(field.read_only)

        if field.read_only:
            self.read_only_columns.add(field.column.column_name)
            widget.setEnabled(False)
        return widget

    @property
    def foreign_key_columns(self) -> List[str]:
        return list(self.comboboxes)

    def set_fk_options(self, column_name: str, options: List[FkOption]):
        combobox = self.comboboxes.get(column_name)
        if combobox is None:
            return
        value = self.editor.record.get(column_name)
        combobox.set_options(with_current_value(options, value), value)
        if column_name in self.read_only_columns:
            combobox.setEnabled(False)

    def set_busy(self, busy: bool):
        self.buttons.button(QDialogButtonBox.Save).setEnabled(not busy)

    def show_error(self, message: str):
        self.error_label.setText(message)
        self.error_label.setVisible(bool(message))
