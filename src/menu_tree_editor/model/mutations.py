"""Structural edits of the menu tree.

Every operation takes a ``MenuTree`` and returns a ``MutationResult``. Edits are applied to a
copy of the input tree through ``_apply`` (copy, locate, edit, renumber); when an edit is
rejected the result carries the original tree object and a ``StructuralError``, so callers never
see a half-applied change.
"""

from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple, Union

from menu_tree_editor.model.errors import StructuralError, StructuralErrorKind, ValidationFailed
from menu_tree_editor.model.nodes import (
    Holder,
    ItemStatus,
    MenuColumn,
    MenuItem,
    NodeId,
    container_items,
    create_column,
    create_item,
    is_temporary,
    set_container_items,
)
from menu_tree_editor.model.query import find_by_id, find_column, find_item, is_descendant
from menu_tree_editor.model.tree import MenuTree
from menu_tree_editor.model.validation import validate_item

EDITABLE_FIELDS = ("label", "route", "description", "icon", "is_public", "status")
OPTIONAL_TEXT_FIELDS = ("route", "description", "icon")


class DropIntent(Enum):
    """How a drop onto a target must be interpreted."""

    REORDER = "reorder"
    NEST = "nest"
    INTO_COLUMN = "into_column"
    SIBLING = "sibling"


class DropPosition(Enum):
    """Side of the target a dragged item is placed on."""

    BEFORE = "before"
    AFTER = "after"


class MutationResult(NamedTuple):
    """Outcome of a structural edit.

    Attributes:
        tree: The new tree, or the unchanged input tree when ``error`` is set.
        node_id: Id of the node created or affected by the edit.
        error: Why the edit was rejected, if it was.
        problems: Non-blocking validation problems of the edited item.

    """

    tree: MenuTree
    node_id: Optional[NodeId] = None
    error: Optional[StructuralError] = None
    problems: Tuple[ValidationFailed, ...] = ()

    @property
    def ok(self) -> bool:
        """Return True if the edit was applied."""
        return self.error is None


EditOutcome = Union[NodeId, StructuralError, None]


def _apply(tree: MenuTree, edit: Callable[[MenuTree], EditOutcome]) -> MutationResult:
    working = tree.copy()
    outcome = edit(working)
    if isinstance(outcome, StructuralError):
        return MutationResult(tree, error=outcome)
    working.renumber()
    return MutationResult(working, node_id=outcome)


def _not_found(node_id: NodeId, what: str = "Node") -> StructuralError:
    return StructuralError(StructuralErrorKind.NOT_FOUND, node_id, f"{what} {node_id} not found.")


def _invalid_target(node_id: NodeId, message: str) -> StructuralError:
    return StructuralError(StructuralErrorKind.INVALID_TARGET, node_id, message)


def _same_node(node_id: NodeId) -> StructuralError:
    return StructuralError(StructuralErrorKind.SAME_NODE, node_id, f"Cannot drop {node_id} onto itself.")


def insert_root_item(tree: MenuTree, **fields) -> MutationResult:
    """Append a new pending item at root level."""
    return _apply(tree, lambda working: create_item(working.root, working.root, **fields).id)


def add_submenu_item(tree: MenuTree, parent_id: NodeId, **fields) -> MutationResult:
    """Append a new pending item to the submenu of ``parent_id``."""

    def edit(working: MenuTree) -> EditOutcome:
        parent = find_item(working, parent_id)
        if parent is None:
            return _not_found(parent_id, "Item")
        return create_item(working.root, parent, **fields).id

    return _apply(tree, edit)


def add_column(tree: MenuTree, parent_id: NodeId, title: str = "") -> MutationResult:
    """Insert a new empty column first among the columns of ``parent_id``."""

    def edit(working: MenuTree) -> EditOutcome:
        parent = find_item(working, parent_id)
        if parent is None:
            return _not_found(parent_id, "Item")
        return create_column(working.root, parent, title).id

    return _apply(tree, edit)


def add_item_to_column(tree: MenuTree, parent_id: NodeId, column_id: NodeId, **fields) -> MutationResult:
    """Append a new pending item to a column of ``parent_id``."""

    def edit(working: MenuTree) -> EditOutcome:
        column = find_column(working, parent_id, column_id)
        if column is None:
            return _not_found(column_id, "Column")
        return create_item(working.root, column, **fields).id

    return _apply(tree, edit)


def rename_column(tree: MenuTree, parent_id: NodeId, column_id: NodeId, title: str) -> MutationResult:
    """Change the title of a column."""

    def edit(working: MenuTree) -> EditOutcome:
        column = find_column(working, parent_id, column_id)
        if column is None:
            return _not_found(column_id, "Column")
        column.title = title
        return column.id

    return _apply(tree, edit)


def delete_column(tree: MenuTree, parent_id: NodeId, column_id: NodeId) -> MutationResult:
    """Remove a column, moving its items to the end of the owner's submenu."""

    def edit(working: MenuTree) -> EditOutcome:
        column = find_column(working, parent_id, column_id)
        if column is None:
            return _not_found(column_id, "Column")
        owner = column.parent
        owner.set_containers(
            submenu=owner.submenu + column.items,
            columns=[other for other in owner.columns if other is not column],
        )
        return owner.id

    return _apply(tree, edit)


def update_item_fields(tree: MenuTree, item_id: NodeId, require_root_icon: bool = True, **patch) -> MutationResult:
    """Update scalar fields of an item in place; structure, order and level are untouched.

    Empty strings for route, description and icon are stored as None.

    Raises:
        TypeError: If ``patch`` names a field that cannot be edited.

    """
    unknown = sorted(set(patch) - set(EDITABLE_FIELDS))
    if unknown:
        raise TypeError(f"Fields cannot be edited: {', '.join(unknown)}")

    refused: List[ValidationFailed] = []

    def edit(working: MenuTree) -> EditOutcome:
        item = find_item(working, item_id)
        if item is None:
            return _not_found(item_id, "Item")
        for field, value in patch.items():
            if field in OPTIONAL_TEXT_FIELDS:
                value = value or None
            elif field == "status":
                try:
                    value = ItemStatus(value)
                except ValueError:
                    # Unknown status codes leave the current status in place
                    refused.append(ValidationFailed(item.id, "status", f"is not a known status: {value!r}"))
                    continue
            elif field == "is_public":
                value = bool(value)
            setattr(item, field, value)
        return item.id

    result = _apply(tree, edit)
    if not result.ok:
        return result
    problems = refused + validate_item(find_item(result.tree, item_id), require_root_icon)
    return result._replace(problems=tuple(problems))


def remove_item(tree: MenuTree, item_id: NodeId) -> MutationResult:
    """Remove an item.

    A subtree made only of unsaved nodes is dropped outright. Anything the backend already knows
    is soft-deleted (status DELETED) so the deletion is part of the next sync.
    """

    def edit(working: MenuTree) -> EditOutcome:
        item = find_item(working, item_id)
        if item is None:
            return _not_found(item_id, "Item")
        if is_temporary(item.id) and all(is_temporary(node.id) for node in item.descendants):
            item.parent = None
        else:
            item.status = ItemStatus.DELETED
        return item.id

    return _apply(tree, edit)


def move(
    tree: MenuTree,
    dragged_id: NodeId,
    target_id: NodeId,
    intent: DropIntent,
    position: DropPosition = DropPosition.BEFORE,
    index: Optional[int] = None,
) -> MutationResult:
    """Move an item according to a drop on ``target_id``.

    Args:
        tree: The tree to edit.
        dragged_id: Id of the item being dragged.
        target_id: Id of the item (or, for INTO_COLUMN, of the column) it was dropped on.
        intent: REORDER within the shared container, NEST under the target, INTO_COLUMN,
            or SIBLING next to the target in the target's container.
        position: Side of the target for REORDER and SIBLING.
        index: Insertion index for INTO_COLUMN; appended when None.

    Returns:
        MutationResult: The new tree, or the unchanged tree with SAME_NODE, NOT_FOUND or
        INVALID_TARGET.

    """
    if dragged_id == target_id:
        return MutationResult(tree, error=_same_node(dragged_id))

    def edit(working: MenuTree) -> EditOutcome:
        dragged = find_by_id(working, dragged_id)
        if dragged is None:
            return _not_found(dragged_id)
        target = find_by_id(working, target_id)
        if target is None:
            return _not_found(target_id)
        if not isinstance(dragged, MenuItem):
            return _invalid_target(dragged_id, "Columns are reordered with move_column.")
        if is_descendant(target, dragged):
            return _invalid_target(target_id, f"Cannot move {dragged_id} into its own descendant {target_id}.")

        if intent is DropIntent.INTO_COLUMN:
            if not isinstance(target, MenuColumn):
                return _invalid_target(target_id, f"{target_id} is not a column.")
            _insert_at(dragged, target, index)
            return dragged.id

        if not isinstance(target, MenuItem):
            return _invalid_target(target_id, f"{target_id} is a column; drop into it instead.")

        if intent is DropIntent.REORDER:
            if dragged.parent is not target.parent:
                return _invalid_target(target_id, f"{dragged_id} and {target_id} are not in the same container.")
            _place_next_to(dragged, target, position)
        elif intent is DropIntent.SIBLING:
            _place_next_to(dragged, target, position)
        elif intent is DropIntent.NEST:
            # Once an item has columns, they are its primary grouping
            holder = target.columns[0] if target.columns else target
            _insert_at(dragged, holder, None)
        else:
            return _invalid_target(target_id, f"Unsupported drop intent {intent!r}.")
        return dragged.id

    return _apply(tree, edit)


def move_column(
    tree: MenuTree,
    parent_id: NodeId,
    dragged_column_id: NodeId,
    target_column_id: NodeId,
    position: DropPosition = DropPosition.BEFORE,
) -> MutationResult:
    """Reorder a column next to another column of the same item."""
    if dragged_column_id == target_column_id:
        return MutationResult(tree, error=_same_node(dragged_column_id))

    def edit(working: MenuTree) -> EditOutcome:
        parent = find_item(working, parent_id)
        if parent is None:
            return _not_found(parent_id, "Item")
        dragged = find_column(working, parent_id, dragged_column_id)
        if dragged is None:
            return _not_found(dragged_column_id, "Column")
        target = find_column(working, parent_id, target_column_id)
        if target is None:
            return _not_found(target_column_id, "Column")
        columns = [column for column in parent.columns if column is not dragged]
        offset = 1 if position is DropPosition.AFTER else 0
        columns.insert(columns.index(target) + offset, dragged)
        parent.set_containers(columns=columns)
        return dragged.id

    return _apply(tree, edit)


def _detach_from_other(item: MenuItem, holder: Holder) -> None:
    if item.parent is not holder:
        item.parent = None


def _place_next_to(item: MenuItem, target: MenuItem, position: DropPosition) -> None:
    holder = target.parent
    _detach_from_other(item, holder)
    siblings = [sibling for sibling in container_items(holder) if sibling is not item]
    offset = 1 if position is DropPosition.AFTER else 0
    siblings.insert(siblings.index(target) + offset, item)
    set_container_items(holder, siblings)


def _insert_at(item: MenuItem, holder: Holder, index: Optional[int]) -> None:
    _detach_from_other(item, holder)
    siblings = [sibling for sibling in container_items(holder) if sibling is not item]
    position = len(siblings) if index is None else max(0, min(index, len(siblings)))
    siblings.insert(position, item)
    set_container_items(holder, siblings)
