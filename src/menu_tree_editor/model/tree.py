"""Menu tree container, load/export codec and invariant maintenance."""

import copy
from typing import Any, Dict, Iterator, List, Optional

from anytree import PreOrderIter, RenderTree

from menu_tree_editor.model.errors import BaselineIntegrityError
from menu_tree_editor.model.nodes import (
    ItemStatus,
    MenuColumn,
    MenuItem,
    MenuNode,
    MenuRoot,
    NodeId,
    PersistedId,
    TemporaryId,
    holder_level,
    holder_owner_id,
)

# Scalar fields of an item, as (attribute name, wire key)
ITEM_FIELDS = (
    ("label", "label"),
    ("route", "route"),
    ("description", "description"),
    ("icon", "icon"),
    ("is_public", "isPublic"),
    ("status", "status"),
)


class MenuTree:
    """A menu tree for one scope, wrapping the AnyTree ``MenuRoot``.

    Mutations never modify a tree in place: the mutation engine works on ``copy()`` and returns
    the copy, so a tree handed to the presentation layer stays valid as long as it is held.
    """

    def __init__(self, root: Optional[MenuRoot] = None, scope: Optional[str] = None):
        """Initialize the tree, creating an empty root if none is given."""
        self.root = root if root is not None else MenuRoot(scope=scope)

    @property
    def scope(self) -> Optional[str]:
        """Return the scope the tree belongs to."""
        return self.root.scope

    @property
    def items(self):
        """Return the root-level items."""
        return self.root.items

    def copy(self) -> "MenuTree":
        """Return a deep copy of the tree."""
        return MenuTree(copy.deepcopy(self.root))

    def iter_nodes(self) -> Iterator[MenuNode]:
        """Iterate over all items and columns, depth-first, submenu before columns."""
        for node in PreOrderIter(self.root):
            if node is not self.root:
                yield node

    def iter_items(self) -> Iterator[MenuItem]:
        """Iterate over all items, depth-first."""
        return (node for node in self.iter_nodes() if isinstance(node, MenuItem))

    def index(self) -> Dict[NodeId, MenuNode]:
        """Return a mapping of id to node for the whole tree."""
        return {node.id: node for node in self.iter_nodes()}

    def next_temporary_id(self) -> TemporaryId:
        """Allocate a temporary id for a new node."""
        return self.root.next_temporary_id()

    def renumber(self) -> None:
        """Recompute order, level and parent id of every node from the structure, in one pass."""
        _renumber_items(self.root.items, 0, None)

    def validate(self) -> List[str]:
        """Check the tree invariants and return a description of every violation found."""
        problems: List[str] = []
        seen: Dict[NodeId, MenuNode] = {}
        for node in self.iter_nodes():
            if node.id in seen:
                problems.append(f"Duplicate id {node.id}.")
            seen[node.id] = node
        _validate_items(self.root.items, self.root, problems)
        return problems

    def render(self) -> str:
        """Return a text rendering of the tree, one node per line."""
        lines = []
        for pre, _, node in RenderTree(self.root):
            if node is self.root:
                lines.append(f"[{self.scope or 'menu'}]")
            elif isinstance(node, MenuColumn):
                lines.append(f"{pre}<{node.title}> ({node.id})")
            else:
                route = f" {node.route}" if node.route else ""
                lines.append(f"{pre}{node.label}{route} ({node.id}, {node.status.name.lower()})")
        return "\n".join(lines)

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Export the tree as nested dicts, the inverse of ``from_dicts``."""
        return [item_to_dict(item) for item in self.root.items]

    @classmethod
    def from_dicts(cls, items: List[Dict[str, Any]], scope: Optional[str] = None) -> "MenuTree":
        """Build a tree from nested dicts as returned by the backend.

        Order, level and parent id are derived from list position and nesting. Columns without an
        id get ``col-<owner id>-<index>``.

        Args:
            items: Root-level items, each with optional ``submenu`` and ``columns`` lists.
            scope: The scope the tree belongs to.

        Returns:
            MenuTree: The loaded tree.

        Raises:
            BaselineIntegrityError: If the data contains duplicate ids or malformed nodes.

        """
        root = MenuRoot(scope=scope)
        try:
            root.children = [_item_from_dict(data) for data in items or []]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise BaselineIntegrityError(f"Malformed menu data: {e}") from e
        tree = cls(root)
        tree.renumber()
        problems = tree.validate()
        if problems:
            raise BaselineIntegrityError("Invalid menu baseline: " + " ".join(problems))
        return tree

    def __repr__(self) -> str:
        return f"MenuTree(scope={self.scope!r}, items={len(self.root.items)})"


def parse_persisted_id(value: Any) -> PersistedId:
    """Wrap a backend id, rejecting missing or empty values."""
    if value is None or str(value) == "":
        raise ValueError("node without id")
    return PersistedId(str(value))


def item_fields(item: MenuItem) -> Dict[str, Any]:
    """Return the scalar fields of an item with wire keys, leaving out empty optional ones."""
    data: Dict[str, Any] = {"label": item.label, "order": item.order}
    for attr in ("route", "description", "icon"):
        value = getattr(item, attr)
        if value:
            data[attr] = value
    data["isPublic"] = bool(item.is_public)
    data["status"] = int(item.status)
    return data


def column_fields(column: MenuColumn) -> Dict[str, Any]:
    """Return the scalar fields of a column with wire keys."""
    data: Dict[str, Any] = {"title": column.title, "order": column.order}
    if column.menu_id:
        data["menuId"] = column.menu_id
    return data


def item_to_dict(item: MenuItem) -> Dict[str, Any]:
    """Export an item and its whole substructure, ids included."""
    data: Dict[str, Any] = {"id": str(item.id)}
    data.update(item_fields(item))
    if item.submenu:
        data["submenu"] = [item_to_dict(child) for child in item.submenu]
    if item.columns:
        data["columns"] = [
            dict(column_fields(column), id=str(column.id), items=[item_to_dict(child) for child in column.items])
            for column in item.columns
        ]
    return data


def _item_from_dict(data: Dict[str, Any]) -> MenuItem:
    item_id = parse_persisted_id(data.get("id"))
    item = MenuItem(
        id=item_id,
        label=data.get("label") or "",
        route=data.get("route") or None,
        description=data.get("description") or None,
        icon=data.get("icon") or None,
        is_public=bool(data.get("isPublic", False)),
        status=ItemStatus(int(data.get("status", ItemStatus.ACTIVE))),
    )
    submenu = [_item_from_dict(child) for child in data.get("submenu") or []]
    columns = []
    for index, column_data in enumerate(data.get("columns") or []):
        column_id = column_data.get("id") or f"col-{item_id}-{index}"
        columns.append(
            MenuColumn(
                id=PersistedId(str(column_id)),
                title=column_data.get("title") or "",
                menu_id=column_data.get("menuId"),
                children=[_item_from_dict(child) for child in column_data.get("items") or []],
            )
        )
    item.set_containers(submenu=submenu, columns=columns)
    return item


def _renumber_items(items, level: int, parent_id: Optional[NodeId]) -> None:
    for index, item in enumerate(items):
        item.order = index
        item.level = level
        item.parent_id = parent_id
        _renumber_items(item.submenu, level + 1, item.id)
        for column_index, column in enumerate(item.columns):
            column.order = column_index
            column.parent_id = item.id
            _renumber_items(column.items, level + 1, item.id)


def _validate_items(items, holder, problems: List[str]) -> None:
    expected_level = holder_level(holder)
    expected_parent = holder_owner_id(holder)
    for index, item in enumerate(items):
        if item.order != index:
            problems.append(f"Item {item.id} has order {item.order}, expected {index}.")
        if item.level != expected_level:
            problems.append(f"Item {item.id} has level {item.level}, expected {expected_level}.")
        if item.parent_id != expected_parent:
            problems.append(f"Item {item.id} has parent id {item.parent_id}, expected {expected_parent}.")
        _validate_items(item.submenu, item, problems)
        for column_index, column in enumerate(item.columns):
            if column.order != column_index:
                problems.append(f"Column {column.id} has order {column.order}, expected {column_index}.")
            if column.parent_id != item.id:
                problems.append(f"Column {column.id} has parent id {column.parent_id}, expected {item.id}.")
            _validate_items(column.items, column, problems)
