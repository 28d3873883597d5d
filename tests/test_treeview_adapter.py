"""Tests for the Qt treeview model adapter."""

from menu_tree_editor.controller.menu_treeview_adapter import COLUMN_INDEX, MODIFIED_FLAG, MenuTreeViewModelAdapter
from menu_tree_editor.model.nodes import NodeKind, PersistedId as P
from menu_tree_editor.qt.qt_roles import COLUMN_ID_ROLE, IS_MODIFIED_ROLE, NODE_ID_ROLE, NODE_KIND_ROLE


class TestBuildTreeviewModel:
    """MenuTreeViewModelAdapter.build_treeview_model."""

    def test_root_rows_and_headers(self, qapp, sample_tree):
        """Each root item is a top-level row."""
        model, selected = MenuTreeViewModelAdapter.build_treeview_model(sample_tree)

        assert model.rowCount() == 3
        assert model.columnCount() == len(COLUMN_INDEX)
        assert model.horizontalHeaderItem(COLUMN_INDEX["route"]).text() == "Route"
        assert [model.item(row, 0).text() for row in range(3)] == ["Home", "Catalog", "Reports"]
        assert model.item(2, COLUMN_INDEX["status"]).text() == "Inactive"
        assert selected is None

    def test_submenu_then_column_rows(self, qapp, sample_tree):
        """Submenu items come first, then one row per column holding its items."""
        model, _ = MenuTreeViewModelAdapter.build_treeview_model(sample_tree)
        catalog = model.item(1, 0)

        assert catalog.rowCount() == 2
        assert catalog.child(0, 0).text() == "Products"
        column_row = catalog.child(1, 0)
        assert column_row.text() == "[Stock]"
        assert column_row.data(NODE_KIND_ROLE) == NodeKind.COLUMN
        assert column_row.data(NODE_ID_ROLE) == P("c1")
        inventory = column_row.child(0, 0)
        assert inventory.data(NODE_ID_ROLE) == P("4")
        assert inventory.data(COLUMN_ID_ROLE) == P("c1")
        assert inventory.data(NODE_KIND_ROLE) == NodeKind.ITEM

    def test_modified_flag(self, qapp, sample_tree):
        """Modified items carry the flag and the role."""
        model, _ = MenuTreeViewModelAdapter.build_treeview_model(sample_tree, modified={P("1"): NodeKind.ITEM})

        assert model.item(0, COLUMN_INDEX["modified"]).text() == MODIFIED_FLAG
        assert model.item(0, 0).data(IS_MODIFIED_ROLE) is True
        assert model.item(1, COLUMN_INDEX["modified"]).text() == ""

    def test_search_filters_rows(self, qapp, sample_tree):
        """Only matching branches are shown."""
        model, _ = MenuTreeViewModelAdapter.build_treeview_model(sample_tree, search_text="report")

        assert model.rowCount() == 1
        assert model.item(0, 0).data(NODE_ID_ROLE) == P("8")

    def test_selected_item_is_returned(self, qapp, sample_tree):
        """The row of the selected node is returned for restoring the selection."""
        _, selected = MenuTreeViewModelAdapter.build_treeview_model(sample_tree, selected_id=P("5"))

        assert selected.text() == "Transfers"
