import pytest

from database.errors import DescribeTableFailed, ListTablesFailed, RowFetchFailed, SchemaUnavailable
from modules.resolver import SchemaResolver, select_display_columns
from schema.table import ColumnDetail


def make_columns(*names, primary_key="id"):
    return [
        ColumnDetail(column_name=name, data_type="text", ordinal_position=position,
                     is_nullable="NO" if name == primary_key else "YES", is_primary_key=name == primary_key)
        for position, name in enumerate(names, start=1)
    ]


class TestSelectDisplayColumns:
    def test_preferred_column_then_id_then_ordinal(self):
        columns = make_columns("id", "sku", "name", "description", "notes")
        assert select_display_columns(columns) == ["name", "id", "sku", "description"]

    def test_only_one_preferred_column(self):
        columns = make_columns("id", "title", "name", "label")
        assert select_display_columns(columns) == ["name", "id", "title", "label"]

    def test_id_first_without_preferred_column(self):
        columns = make_columns("sku", "price", "id")
        assert select_display_columns(columns) == ["id", "sku", "price"]

    def test_ordinal_fill_without_id(self):
        columns = make_columns("a", "b", "c", "d", "e", primary_key=None)
        assert select_display_columns(columns) == ["a", "b", "c", "d"]

    def test_empty(self):
        assert select_display_columns([]) == []


class TestResolve:
    def test_describe_result_used_without_sampling(self, source):
        columns = make_columns("id", "name")
        table = source.add_table("products", rows=[{"id": 1, "name": "x", "extra": True}], columns=columns)

        schema = SchemaResolver(source).resolve("products")

        assert schema.columns == columns
        assert table.sample_calls == 0
        assert schema.display_columns == ["name", "id"]

    def test_columns_sorted_by_ordinal_position(self, source):
        columns = list(reversed(make_columns("id", "name", "price")))
        source.add_table("products", columns=columns)

        schema = SchemaResolver(source).resolve("products")

        assert schema.column_names == ["id", "name", "price"]

    def test_falls_back_to_sample_row(self, source):
        source.add_table("events", rows=[{"id": 7, "kind": "login", "payload": None}])

        schema = SchemaResolver(source).resolve("events")

        assert schema.column_names == ["id", "kind", "payload"]
        assert [column.is_primary_key for column in schema.columns] == [True, False, False]
        assert all(column.data_type == "unknown" for column in schema.columns)
        assert all(column.is_nullable == "YES" for column in schema.columns)
        assert all(not column.is_foreign_key for column in schema.columns)

    def test_describe_failure_falls_back_to_sample(self, source):
        source.add_table("events", rows=[{"kind": "login"}])
        source.describe_errors["events"] = DescribeTableFailed("function does not exist")

        schema = SchemaResolver(source).resolve("events")

        assert schema.column_names == ["kind"]
        assert schema.primary_keys == []

    def test_synthetic_id_when_nothing_found(self, source):
        source.add_table("empty_table")

        schema = SchemaResolver(source).resolve("empty_table")

        assert len(schema.columns) == 1
        column = schema.columns[0]
        assert column.column_name == "id"
        assert column.data_type == "uuid"
        assert column.is_primary_key
        assert column.is_nullable == "NO"
        assert schema.display_columns == ["id"]

    def test_synthetic_id_when_sample_fails(self, source):
        source.add_table("secret", error=RowFetchFailed("permission denied"))

        schema = SchemaResolver(source).resolve("secret")

        assert schema.column_names == ["id"]

    def test_schema_unavailable_when_every_strategy_fails(self, source):
        resolver = SchemaResolver(source, strategies=[lambda name: None, lambda name: []])

        with pytest.raises(SchemaUnavailable):
            resolver.resolve("anything")


class TestResolveAll:
    def test_resolves_every_listed_table_in_order(self, source):
        source.add_table("users", columns=make_columns("id", "email"))
        source.add_table("orders", rows=[{"id": 1, "total": 10}])
        source.add_table("logs")

        schemas = SchemaResolver(source).resolve_all()

        assert [schema.name for schema in schemas] == ["users", "orders", "logs"]
        assert all(1 <= len(schema.display_columns) <= 4 for schema in schemas)

    def test_tables_without_columns_are_excluded(self, source):
        source.add_table("users")
        source.add_table("ghost")
        resolver = SchemaResolver(source)
        resolver.strategies = [lambda name: make_columns("id") if name == "users" else None]

        schemas = resolver.resolve_all()

        assert [schema.name for schema in schemas] == ["users"]

    def test_broken_description_does_not_drop_other_tables(self, source):
        source.add_table("users", columns=make_columns("id", "email"))
        source.add_table("legacy", rows=[{"id": 1, "code": "a"}])
        source.describe_errors["legacy"] = DescribeTableFailed("некорректное описание колонок")

        schemas = SchemaResolver(source).resolve_all()

        assert [schema.name for schema in schemas] == ["users", "legacy"]
        assert schemas[1].column_names == ["id", "code"]

    def test_listing_failure_is_fatal(self, source):
        source.list_error = ListTablesFailed("function get_public_tables() does not exist", code="42883")

        with pytest.raises(ListTablesFailed) as exc_info:
            SchemaResolver(source).resolve_all()

        assert exc_info.value.code == "42883"

    def test_hard_error_aborts_whole_pass(self, source):
        source.add_table("users", columns=make_columns("id"))
        source.add_table("orders", error=ConnectionError("server closed the connection"))

        with pytest.raises(ListTablesFailed) as exc_info:
            SchemaResolver(source).resolve_all()

        assert "server closed the connection" in str(exc_info.value)

    def test_empty_error_gets_helpful_message(self, source):
        source.add_table("orders", error=RuntimeError())

        with pytest.raises(ListTablesFailed) as exc_info:
            SchemaResolver(source).resolve_all()

        assert "get_public_tables" in exc_info.value.message
