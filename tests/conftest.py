from typing import Dict, List, Optional

import pytest

from schema.table import ColumnDetail, TableSchema


class FakeTable:
    def __init__(self, name: str, rows: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.name = name
        self.rows = rows or []
        self.error = error
        self.select_calls = []
        self.sample_calls = 0
        self.inserted = []
        self.updated = []

    def select(self, columns=None, limit=None):
        self.select_calls.append((columns, limit))
        if self.error:
            raise self.error
        rows = self.rows[:limit] if limit is not None else self.rows
        if columns:
            return [{column: row.get(column) for column in columns} for row in rows]
        return [dict(row) for row in rows]

    def sample(self):
        self.sample_calls += 1
        rows = self.select(limit=1)
        return rows[0] if rows else None

    def insert(self, payload):
        self.inserted.append(payload)
        return {"id": len(self.rows) + 1, **payload}

    def update(self, payload, match):
        self.updated.append((payload, match))
        return {**match, **payload}


class FakeSource:
    def __init__(self):
        self.tables: Dict[str, FakeTable] = {}
        self.descriptions: Dict[str, List[ColumnDetail]] = {}
        self.describe_errors: Dict[str, Exception] = {}
        self.list_error: Optional[Exception] = None
        self.describe_calls = []

    def add_table(self, name: str, rows=None, columns=None, error=None) -> FakeTable:
        self.tables[name] = FakeTable(name, rows, error)
        if columns is not None:
            self.descriptions[name] = columns
        return self.tables[name]

    def list_tables(self):
        if self.list_error:
            raise self.list_error
        return list(self.tables)

    def describe_table(self, table_name):
        self.describe_calls.append(table_name)
        if table_name in self.describe_errors:
            raise self.describe_errors[table_name]
        return list(self.descriptions.get(table_name, []))

    def table(self, table_name):
        return self.tables[table_name]


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def orders_schema() -> TableSchema:
    columns = [
        ColumnDetail(column_name="id", data_type="bigint", ordinal_position=1, is_nullable="NO", is_primary_key=True),
        ColumnDetail(column_name="user_id", data_type="uuid", ordinal_position=2, is_nullable="YES",
                     foreign_key_table="users", foreign_key_column="id"),
        ColumnDetail(column_name="total_amount", data_type="numeric", ordinal_position=3, is_nullable="YES"),
        ColumnDetail(column_name="status", data_type="text", ordinal_position=4, is_nullable="YES"),
        ColumnDetail(column_name="order_date", data_type="timestamp with time zone", ordinal_position=5,
                     is_nullable="YES"),
    ]
    return TableSchema(name="orders", columns=columns,
                       display_columns=["id", "user_id", "total_amount", "status"])
