"""Build the minimal forest of subtrees to submit to the backend."""

from typing import Any, Dict, List, Optional

from menu_tree_editor.model.differ import ModifiedSet
from menu_tree_editor.model.errors import ValidationFailed
from menu_tree_editor.model.nodes import ItemStatus, MenuColumn, MenuItem, TemporaryId
from menu_tree_editor.model.tree import MenuTree, column_fields, item_fields
from menu_tree_editor.model.validation import validate_item

Payload = List[Dict[str, Any]]


def build_sync_payload(tree: MenuTree, modified: ModifiedSet) -> Payload:
    """Return the root-level entries to submit for the given modified set.

    A modified item is emitted with its complete current substructure, because the backend
    stores an item's children as a whole and would orphan any child left out. An unmodified item
    with modified descendants is emitted as a wrapper (id, label, order) holding only the
    branches that lead to them. Everything else is omitted.

    Items with a temporary id are emitted without ``id``, which tells the backend to create them.
    """
    forest = []
    for item in tree.root.items:
        entry = _extract(item, modified)
        if entry is not None:
            forest.append(entry)
    return forest


def collect_pending_problems(tree: MenuTree, modified: ModifiedSet, require_root_icon: bool = True):
    """Return the validation problems of modified items that are new or pending."""
    problems: List[ValidationFailed] = []
    for item in tree.iter_items():
        if item.id not in modified:
            continue
        if isinstance(item.id, TemporaryId) or item.status == ItemStatus.PENDING:
            problems.extend(validate_item(item, require_root_icon))
    return problems


def _with_id(item: MenuItem, data: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(item.id, TemporaryId):
        return data
    return dict({"id": str(item.id)}, **data)


def _full_entry(item: MenuItem) -> Dict[str, Any]:
    entry = _with_id(item, item_fields(item))
    if item.submenu:
        entry["submenu"] = [_full_entry(child) for child in item.submenu]
    if item.columns:
        entry["columns"] = [
            _column_entry(column, [_full_entry(child) for child in column.items]) for column in item.columns
        ]
    return entry


def _column_entry(column: MenuColumn, items: Payload) -> Dict[str, Any]:
    return dict(column_fields(column), items=items)


def _extract(item: MenuItem, modified: ModifiedSet) -> Optional[Dict[str, Any]]:
    submenu = [entry for entry in (_extract(child, modified) for child in item.submenu) if entry is not None]
    columns = []
    for column in item.columns:
        items = [entry for entry in (_extract(child, modified) for child in column.items) if entry is not None]
        if items:
            columns.append(_column_entry(column, items))

    if item.id in modified:
        return _full_entry(item)
    if not submenu and not columns:
        return None
    wrapper = _with_id(item, {"label": item.label, "order": item.order})
    if submenu:
        wrapper["submenu"] = submenu
    if columns:
        wrapper["columns"] = columns
    return wrapper
