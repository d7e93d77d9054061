from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

MAX_DISPLAY_COLUMNS = 4
NULL_OPTION_LABEL = "-- Нет --"


class ColumnDetail(BaseModel):
    column_name: str
    data_type: str = "unknown"
    ordinal_position: int = Field(1, ge=1)
    is_nullable: Literal["YES", "NO"] = "YES"
    is_primary_key: bool = False
    foreign_key_table: Optional[str] = None
    foreign_key_column: Optional[str] = None

    @model_validator(mode="after")
    def check_foreign_key(self):
        if (self.foreign_key_table is None) != (self.foreign_key_column is None):
            raise ValueError(f"Для колонки {self.column_name} внешний ключ задан не полностью: "
                             f"{self.foreign_key_table}.{self.foreign_key_column}")
        return self

    @property
    def nullable(self) -> bool:
        return self.is_nullable == "YES"

    @property
    def is_foreign_key(self) -> bool:
        return bool(self.foreign_key_table and self.foreign_key_column)

    @property
    def ui_title(self) -> str:
        title = " ".join(word.capitalize() for word in self.column_name.split("_") if word)
        if self.is_foreign_key:
            title += f" (FK → {self.foreign_key_table}.{self.foreign_key_column})"
        return title


class TableSchema(BaseModel):
    name: str
    columns: list[ColumnDetail]
    display_columns: list[str] = Field(default_factory=list, max_length=MAX_DISPLAY_COLUMNS)

    @model_validator(mode="after")
    def check_display_columns(self):
        unknown = set(self.display_columns) - set(self.column_names)
        if unknown:
            raise ValueError(f"Колонки {sorted(unknown)} отсутствуют в таблице {self.name}")
        return self

    @property
    def column_names(self) -> list[str]:
        return [column.column_name for column in self.columns]

    @property
    def primary_keys(self) -> list[ColumnDetail]:
        return [column for column in self.columns if column.is_primary_key]

    def column(self, column_name: str) -> Optional[ColumnDetail]:
        return next((column for column in self.columns if column.column_name == column_name), None)


class FkOption(BaseModel):
    value: Any
    label: str

    @classmethod
    def null(cls) -> "FkOption":
        return cls(value=None, label=NULL_OPTION_LABEL)

    @property
    def is_null(self) -> bool:
        return self.value is None
