"""Dirty tracking: compare the working tree with the last synced baseline."""

from typing import Dict, Iterable, Optional, Set

from menu_tree_editor.model.nodes import MenuItem, NodeId, NodeKind
from menu_tree_editor.model.tree import MenuTree

ModifiedSet = Dict[NodeId, NodeKind]

COMPARED_FIELDS = ("label", "route", "description", "icon", "is_public", "status", "order", "parent_id")


def compute_modified_set(current: MenuTree, baseline: MenuTree) -> ModifiedSet:
    """Return the ids of every item that must be sent to the backend.

    An item is dirty when it is new, when one of its compared fields changed, or when it moved
    between its owner's submenu and columns. Column changes (count, title, order, membership)
    mark the owning item, since columns are synced as part of their owner.

    The result is a set keyed by id; running it twice on unchanged trees gives the same result.
    """
    modified: ModifiedSet = {}
    _compare_items(current.root.items, baseline.root.items, modified)
    return modified


def _mark(modified: ModifiedSet, item: MenuItem) -> None:
    modified[item.id] = NodeKind.ITEM


def _compare_items(current_items: Iterable[MenuItem], baseline_items: Iterable[MenuItem], modified: ModifiedSet):
    baseline_by_id = {item.id: item for item in baseline_items}
    for item in current_items:
        original = baseline_by_id.get(item.id)
        if original is None:
            _mark(modified, item)
        elif any(getattr(item, field) != getattr(original, field) for field in COMPARED_FIELDS):
            _mark(modified, item)

        if original is not None:
            _compare_columns(item, original, modified)
            _detect_container_moves(item, original, modified)
        _compare_items(item.submenu, original.submenu if original is not None else (), modified)
        # Columns are paired by id so that inserting a column does not shift its siblings
        original_columns = {column.id: column for column in original.columns} if original is not None else {}
        for column in item.columns:
            original_column = original_columns.get(column.id)
            _compare_items(column.items, original_column.items if original_column is not None else (), modified)


def _compare_columns(item: MenuItem, original: MenuItem, modified: ModifiedSet) -> None:
    if len(item.columns) != len(original.columns):
        _mark(modified, item)
        return
    for column, original_column in zip(item.columns, original.columns):
        if column.title != original_column.title or column.order != original_column.order:
            _mark(modified, item)
            return


def _column_membership(item: MenuItem) -> Dict[NodeId, NodeId]:
    return {child.id: column.id for column in item.columns for child in column.items}


def _detect_container_moves(item: MenuItem, original: MenuItem, modified: ModifiedSet) -> None:
    current_submenu: Set[NodeId] = {child.id for child in item.submenu}
    original_submenu: Set[NodeId] = {child.id for child in original.submenu}
    current_columns = _column_membership(item)
    original_columns = _column_membership(original)

    moved: Set[NodeId] = (original_submenu & current_columns.keys()) | (original_columns.keys() & current_submenu)
    moved |= {
        child_id
        for child_id, column_id in current_columns.items()
        if original_columns.get(child_id, column_id) != column_id
    }
    if not moved:
        return
    _mark(modified, item)
    for child in _children_by_id(item, moved):
        _mark(modified, child)


def _children_by_id(item: MenuItem, ids: Set[NodeId]):
    for container in item.containers():
        for child in container.items:
            if child.id in ids:
                yield child


def modified_count(current: MenuTree, baseline: Optional[MenuTree]) -> int:
    """Return the number of dirty items, 0 when nothing has been loaded."""
    if baseline is None:
        return 0
    return len(compute_modified_set(current, baseline))
