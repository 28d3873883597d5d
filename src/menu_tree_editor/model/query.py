"""Lookup helpers over a menu tree. None of these functions modify the tree."""

from typing import Callable, NamedTuple, Optional

from anytree import PreOrderIter

from menu_tree_editor.model.nodes import (
    ContainerKind,
    MenuColumn,
    MenuItem,
    MenuNode,
    MenuRoot,
    NodeId,
    container_items,
    holder_level,
    owner_item,
)
from menu_tree_editor.model.tree import MenuTree

ItemPredicate = Callable[[MenuItem], bool]


class NodeContext(NamedTuple):
    """Where a node sits in the tree.

    Attributes:
        node: The item or column found.
        parent: The structural parent item, or None for root-level items.
        container_kind: ROOT, SUBMENU or COLUMN. Columns themselves report COLUMN.
        column_id: Id of the column holding the item (or of the column itself), else None.
        index: Position of the node in its container (the owner's columns list for a column).
        level: Level of the node; for a column, the level of the items it holds.

    """

    node: MenuNode
    parent: Optional[MenuItem]
    container_kind: ContainerKind
    column_id: Optional[NodeId]
    index: int
    level: int


def find_by_id(tree: MenuTree, node_id: NodeId) -> Optional[MenuNode]:
    """Return the first node with ``node_id`` in visual top-to-bottom order, or None."""
    return next(PreOrderIter(tree.root, filter_=lambda node: getattr(node, "id", None) == node_id), None)


def find_item(tree: MenuTree, item_id: NodeId) -> Optional[MenuItem]:
    """Return the item with ``item_id``, or None if absent or if the id belongs to a column."""
    node = find_by_id(tree, item_id)
    return node if isinstance(node, MenuItem) else None


def find_column(tree: MenuTree, parent_id: NodeId, column_id: NodeId) -> Optional[MenuColumn]:
    """Return the column ``column_id`` of item ``parent_id``, or None."""
    parent = find_item(tree, parent_id)
    if parent is None:
        return None
    return next((column for column in parent.columns if column.id == column_id), None)


def find_context(tree: MenuTree, node_id: NodeId) -> Optional[NodeContext]:
    """Locate a node and describe its container, or return None if it is not in the tree."""
    node = find_by_id(tree, node_id)
    if node is None:
        return None
    if isinstance(node, MenuColumn):
        owner = node.parent
        return NodeContext(
            node=node,
            parent=owner,
            container_kind=ContainerKind.COLUMN,
            column_id=node.id,
            index=owner.columns.index(node),
            level=owner.level + 1,
        )
    holder = node.parent
    if isinstance(holder, MenuRoot):
        kind, column_id = ContainerKind.ROOT, None
    elif isinstance(holder, MenuColumn):
        kind, column_id = ContainerKind.COLUMN, holder.id
    else:
        kind, column_id = ContainerKind.SUBMENU, None
    return NodeContext(
        node=node,
        parent=owner_item(node),
        container_kind=kind,
        column_id=column_id,
        index=container_items(holder).index(node),
        level=holder_level(holder),
    )


def is_descendant(node: MenuNode, ancestor: MenuNode) -> bool:
    """Return True if ``node`` is strictly below ``ancestor`` (through submenus or columns)."""
    return ancestor in node.ancestors


def matches_predicate(item: MenuItem, predicate: ItemPredicate) -> bool:
    """Return True if the item or any item below it satisfies ``predicate``."""
    if predicate(item):
        return True
    return any(
        matches_predicate(child, predicate) for container in item.containers() for child in container.items
    )


def filter_tree(tree: MenuTree, predicate: ItemPredicate) -> MenuTree:
    """Return a copy of the tree keeping only matching items and the items leading to them.

    Columns left without items are dropped. Kept nodes keep their order and level unchanged, so
    the result is a view for display and must not be fed back to the mutation engine.
    """
    filtered = tree.copy()
    filtered.root.children = _filter_items(filtered.root.items, predicate)
    return filtered


def text_predicate(text: str) -> ItemPredicate:
    """Build a case-insensitive search predicate over label, route and description."""
    needle = (text or "").strip().lower()

    def predicate(item: MenuItem) -> bool:
        if not needle:
            return True
        haystack = (item.label or "", item.route or "", item.description or "")
        return any(needle in value.lower() for value in haystack)

    return predicate


def _filter_items(items, predicate: ItemPredicate):
    kept = []
    for item in items:
        if not matches_predicate(item, predicate):
            continue
        columns = []
        for column in item.columns:
            column.children = _filter_items(column.items, predicate)
            if column.items:
                columns.append(column)
        item.set_containers(submenu=_filter_items(item.submenu, predicate), columns=columns)
        kept.append(item)
    return kept
