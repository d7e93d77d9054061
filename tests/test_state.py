import pytest

from modules.state import LEFT_PANEL, RIGHT_PANEL, AppState, PanelState
from schema.table import FkOption, TableSchema


@pytest.fixture
def app_state(orders_schema) -> AppState:
    state = AppState()
    state.set_tables([orders_schema])
    return state


class TestPanelState:
    def test_stale_rows_are_ignored(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        first = panel.begin_load(orders_schema)
        second = panel.begin_load(orders_schema)

        assert not panel.finish_load(first, [{"id": 1}])
        assert panel.rows is None
        assert panel.loading

        assert panel.finish_load(second, [{"id": 2}])
        assert panel.rows == [{"id": 2}]
        assert not panel.loading

    def test_stale_error_is_ignored(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        first = panel.begin_load(orders_schema)
        second = panel.begin_load(orders_schema)

        assert not panel.fail_load(first, "boom")
        assert panel.error is None
        assert panel.fail_load(second, "boom")
        assert panel.error == "boom"

    def test_clear_invalidates_pending_load(self, orders_schema):
        panel = PanelState(RIGHT_PANEL)
        token = panel.begin_load(orders_schema)

        panel.clear()

        assert not panel.finish_load(token, [{"id": 1}])
        assert panel.table_name is None

    def test_new_load_resets_grid(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        panel.begin_load(orders_schema)
        panel.grid.cycle_sort("status")

        panel.begin_load(orders_schema)

        assert panel.grid.sort_column is None
        assert panel.grid.columns == orders_schema.display_columns

    def test_saved_new_record_goes_first(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        panel.finish_load(panel.begin_load(orders_schema), [{"id": 1}])

        panel.apply_saved({"id": 2, "status": "new"}, is_new=True)

        assert panel.rows == [{"id": 2, "status": "new"}, {"id": 1}]

    def test_saved_update_replaces_matching_row(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        panel.finish_load(panel.begin_load(orders_schema), [{"id": 1, "status": "a"}, {"id": 2, "status": "b"}])

        panel.apply_saved({"id": 2, "status": "paid"}, is_new=False)

        assert panel.rows == [{"id": 1, "status": "a"}, {"id": 2, "status": "paid"}]

    def test_saved_update_without_match_is_prepended(self, orders_schema):
        panel = PanelState(LEFT_PANEL)
        panel.finish_load(panel.begin_load(orders_schema), [{"id": 1}])

        panel.apply_saved({"id": 9}, is_new=False)

        assert panel.rows == [{"id": 9}, {"id": 1}]


class TestAppState:
    def test_new_record_editor_is_scaffolded(self, app_state, orders_schema):
        app_state.panels[LEFT_PANEL].begin_load(orders_schema)

        editor = app_state.open_editor(LEFT_PANEL)

        assert editor.is_new
        assert editor.record == {"user_id": None, "total_amount": "", "status": ""}
        assert editor.original is None

    def test_editor_works_on_a_copy(self, app_state, orders_schema):
        app_state.panels[LEFT_PANEL].begin_load(orders_schema)
        record = {"id": 1, "status": "new"}

        editor = app_state.open_editor(LEFT_PANEL, record)
        editor.set_field("status", "paid")

        assert record == {"id": 1, "status": "new"}
        assert editor.original == {"id": 1, "status": "new"}

    def test_no_editor_for_empty_panel(self, app_state):
        assert app_state.open_editor(RIGHT_PANEL) is None

    def test_fk_options_from_previous_editor_are_ignored(self, app_state, orders_schema):
        app_state.panels[LEFT_PANEL].begin_load(orders_schema)
        old = app_state.open_editor(LEFT_PANEL)
        old_token = old.token
        editor = app_state.open_editor(LEFT_PANEL)

        assert not editor.accept_fk_options(old_token, "user_id", [FkOption(value=1, label="a")])
        assert editor.fk_options == {}
        assert editor.accept_fk_options(editor.token, "user_id", [FkOption(value=1, label="a")])
        assert editor.fk_options["user_id"][0].value == 1

    def test_saved_record_updates_panel_and_closes_editor(self, app_state, orders_schema):
        panel = app_state.panels[LEFT_PANEL]
        panel.finish_load(panel.begin_load(orders_schema), [{"id": 1, "status": "a"}])
        editor = app_state.open_editor(LEFT_PANEL, {"id": 1, "status": "a"})

        assert app_state.editor_saved(editor.token, {"id": 1, "status": "b"})

        assert panel.rows == [{"id": 1, "status": "b"}]
        assert app_state.editor is None

    def test_save_result_for_closed_editor_is_ignored(self, app_state, orders_schema):
        panel = app_state.panels[LEFT_PANEL]
        panel.finish_load(panel.begin_load(orders_schema), [{"id": 1}])
        editor = app_state.open_editor(LEFT_PANEL, {"id": 1})
        app_state.close_editor()

        assert not app_state.editor_saved(editor.token, {"id": 1, "status": "b"})
        assert panel.rows == [{"id": 1}]

    def test_reloaded_tables_rebind_or_clear_panels(self, app_state, orders_schema):
        app_state.panels[LEFT_PANEL].begin_load(orders_schema)
        app_state.panels[RIGHT_PANEL].begin_load(orders_schema)
        users = TableSchema(name="users", columns=orders_schema.columns[:1], display_columns=["id"])

        app_state.set_tables([users])

        assert app_state.panels[LEFT_PANEL].schema is None
        assert app_state.panels[RIGHT_PANEL].schema is None

        app_state.set_tables([users, orders_schema])
        app_state.panels[LEFT_PANEL].begin_load(orders_schema)
        refreshed = orders_schema.model_copy()
        app_state.set_tables([refreshed])

        assert app_state.panels[LEFT_PANEL].schema is refreshed

    def test_listing_failure_is_kept(self, app_state):
        app_state.loading_tables = True

        app_state.fail_tables("нет доступа")

        assert app_state.tables_error == "нет доступа"
        assert not app_state.loading_tables
