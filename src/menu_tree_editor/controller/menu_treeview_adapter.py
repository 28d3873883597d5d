"""Adapter class for converting the menu tree model to a Qt treeview model."""

from typing import Optional, Tuple

from PySide6.QtGui import QStandardItem, QStandardItemModel

from menu_tree_editor.model.differ import ModifiedSet
from menu_tree_editor.model.nodes import ItemStatus, MenuColumn, MenuItem, NodeId, NodeKind
from menu_tree_editor.model.query import filter_tree, text_predicate
from menu_tree_editor.model.tree import MenuTree
from menu_tree_editor.qt.qt_roles import COLUMN_ID_ROLE, IS_MODIFIED_ROLE, NODE_ID_ROLE, NODE_KIND_ROLE

# Define mapping of column names to their indices
COLUMN_INDEX = {
    "label": 0,
    "route": 1,
    "status": 2,
    "modified": 3,
}

STATUS_TEXT = {
    ItemStatus.DELETED: "Deleted",
    ItemStatus.INACTIVE: "Inactive",
    ItemStatus.ACTIVE: "Active",
    ItemStatus.PENDING: "Pending",
}

MODIFIED_FLAG = "●"


class MenuTreeViewModelAdapter:
    """Adapt the menu tree to a Qt treeview model."""

    @staticmethod
    def build_treeview_model(
        tree: MenuTree,
        modified: Optional[ModifiedSet] = None,
        search_text: str = "",
        selected_id: Optional[NodeId] = None,
    ) -> Tuple[QStandardItemModel, Optional[QStandardItem]]:
        """Build a QStandardItemModel for the treeview.

        The Qt Treeview model is rebuilt each time the tree changes or a filter is requested.
        Submenu items are shown under their item, followed by one row per column holding the
        column's items.

        Args:
            tree (MenuTree): The tree to display.
            modified (ModifiedSet, optional): Ids of the items to flag as modified.
            search_text (str, optional): Text to filter the displayed items, case insensitive.
            selected_id (NodeId, optional): Id of the selected item or column.

        Returns:
            Tuple[QStandardItemModel, Optional[QStandardItem]]: The treeview model and the
            first-column item of the selected node, if it is displayed.

        """
        modified = modified or {}
        if search_text and search_text.strip():
            tree = filter_tree(tree, text_predicate(search_text))

        model = QStandardItemModel()
        model.setHorizontalHeaderLabels(["Label", "Route", "Status", "Modified"])

        rows = {}
        for item in tree.items:
            MenuTreeViewModelAdapter._append_item(model.invisibleRootItem(), item, None, modified, rows)
        return model, rows.get(selected_id) if selected_id is not None else None

    @staticmethod
    def _append_item(parent_row: QStandardItem, item: MenuItem, column: Optional[MenuColumn], modified, rows) -> None:
        is_modified = item.id in modified
        label = QStandardItem(item.label or "(no label)")
        route = QStandardItem(item.route or "")
        status = QStandardItem(STATUS_TEXT.get(item.status, str(int(item.status))))
        flag = QStandardItem(MODIFIED_FLAG if is_modified else "")

        label.setData(item.id, role=NODE_ID_ROLE)
        label.setData(NodeKind.ITEM, role=NODE_KIND_ROLE)
        label.setData(column.id if column is not None else None, role=COLUMN_ID_ROLE)
        label.setData(is_modified, role=IS_MODIFIED_ROLE)
        for cell in (label, route, status, flag):
            cell.setEditable(False)

        parent_row.appendRow([label, route, status, flag])
        rows[item.id] = label

        for child in item.submenu:
            MenuTreeViewModelAdapter._append_item(label, child, None, modified, rows)
        for item_column in item.columns:
            MenuTreeViewModelAdapter._append_column(label, item_column, modified, rows)

    @staticmethod
    def _append_column(parent_row: QStandardItem, column: MenuColumn, modified, rows) -> None:
        title = QStandardItem(f"[{column.title or 'Untitled column'}]")
        title.setData(column.id, role=NODE_ID_ROLE)
        title.setData(NodeKind.COLUMN, role=NODE_KIND_ROLE)
        title.setData(column.id, role=COLUMN_ID_ROLE)
        title.setData(False, role=IS_MODIFIED_ROLE)
        cells = [title, QStandardItem(""), QStandardItem(""), QStandardItem("")]
        for cell in cells:
            cell.setEditable(False)
        parent_row.appendRow(cells)
        rows[column.id] = title

        for item in column.items:
            MenuTreeViewModelAdapter._append_item(title, item, column, modified, rows)
