"""Tests for the menu node types."""

import pytest
from anytree.node.exceptions import TreeError

from menu_tree_editor.model.nodes import (
    ContainerKind,
    ItemStatus,
    MenuColumn,
    MenuItem,
    MenuRoot,
    PersistedId,
    TemporaryId,
    create_column,
    create_item,
    is_temporary,
    owner_item,
)


class TestIds:
    """Tagged node ids."""

    def test_temporary_id_renders_with_prefix(self):
        """Temporary ids render as tmp-<counter>."""
        assert str(TemporaryId(3)) == "tmp-3"

    def test_ids_compare_by_value(self):
        """Ids of the same variant and value are equal and hashable."""
        assert PersistedId("42") == PersistedId("42")
        assert len({TemporaryId(1), TemporaryId(1), PersistedId("1")}) == 2

    def test_temporary_and_persisted_never_equal(self):
        """A temporary id never equals a persisted id with the same text."""
        assert TemporaryId(1) != PersistedId("tmp-1")

    def test_is_temporary(self):
        """Only TemporaryId values are temporary."""
        assert is_temporary(TemporaryId(1))
        assert not is_temporary(PersistedId("1"))
        assert not is_temporary(None)


class TestStructure:
    """Container structure enforced on attach."""

    def test_root_rejects_columns(self):
        """Columns cannot be placed at root level."""
        with pytest.raises(TreeError):
            MenuRoot(children=[MenuColumn(PersistedId("c"))])

    def test_column_rejects_columns(self):
        """A column only holds items."""
        column = MenuColumn(PersistedId("c1"))
        with pytest.raises(TreeError):
            column.children = [MenuColumn(PersistedId("c2"))]

    def test_containers_yield_submenu_then_columns(self):
        """An item exposes its submenu first, then one container per column."""
        sub = MenuItem(PersistedId("s"))
        col_item = MenuItem(PersistedId("ci"))
        column = MenuColumn(PersistedId("c"), children=[col_item])
        item = MenuItem(PersistedId("i"))
        item.set_containers(submenu=[sub], columns=[column])

        containers = list(item.containers())

        assert [c.kind for c in containers] == [ContainerKind.SUBMENU, ContainerKind.COLUMN]
        assert containers[0].items == (sub,)
        assert containers[1].column is column
        assert containers[1].items == (col_item,)
        assert owner_item(col_item) is item

    def test_set_containers_keeps_the_other_container(self):
        """Replacing the submenu leaves the columns untouched."""
        column = MenuColumn(PersistedId("c"))
        item = MenuItem(PersistedId("i"), children=[column])

        item.set_containers(submenu=[MenuItem(PersistedId("s"))])

        assert item.columns == (column,)
        assert len(item.submenu) == 1


class TestConstructors:
    """Node constructors."""

    def test_create_item_is_pending_and_appended(self):
        """New items get a temporary id, PENDING status and the next order."""
        root = MenuRoot(scope="main")
        parent = MenuItem(PersistedId("p"), level=1, parent=root)
        create_item(root, parent, label="First")

        item = create_item(root, parent, label="Second")

        assert item.id == TemporaryId(2)
        assert item.status == ItemStatus.PENDING
        assert item.order == 1
        assert item.level == 2
        assert item.parent_id == PersistedId("p")
        assert parent.submenu[-1] is item

    def test_create_column_is_inserted_first(self):
        """New columns are placed before the existing ones."""
        root = MenuRoot()
        owner = MenuItem(PersistedId("o"), parent=root)
        existing = create_column(root, owner, "Old")

        column = create_column(root, owner, "New")

        assert owner.columns == (column, existing)
        assert column.parent_id == PersistedId("o")
        assert column.items == ()
