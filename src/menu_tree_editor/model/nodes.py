"""Node types of the menu tree.

The tree is built with AnyTree. A ``MenuRoot`` holds the root-level items, a ``MenuItem`` holds
its submenu items followed by its columns, and a ``MenuColumn`` holds the items grouped under it.
Submenu and columns are two independent child containers of an item; every traversal goes
through ``containers()`` so both are handled the same way.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, NamedTuple, Optional, Tuple, Union

from anytree import NodeMixin
from anytree.node.exceptions import TreeError

TEMPORARY_ID_PREFIX = "tmp-"


@dataclass(frozen=True)
class TemporaryId:
    """Identifier of a node created locally and not yet persisted by the backend."""

    counter: int

    def __str__(self) -> str:
        return f"{TEMPORARY_ID_PREFIX}{self.counter}"


@dataclass(frozen=True)
class PersistedId:
    """Identifier assigned by the backend."""

    value: str

    def __str__(self) -> str:
        return self.value


NodeId = Union[TemporaryId, PersistedId]


def is_temporary(node_id: Optional[NodeId]) -> bool:
    """Return True if the id was generated locally."""
    return isinstance(node_id, TemporaryId)


class ItemStatus(IntEnum):
    """Lifecycle status of a menu item, with the backend's numeric codes."""

    DELETED = -1
    INACTIVE = 0
    ACTIVE = 1
    PENDING = 2


class NodeKind(Enum):
    """Kind of a node in the tree."""

    ITEM = "item"
    COLUMN = "column"


class ContainerKind(Enum):
    """Kind of list that directly holds an item."""

    ROOT = "root"
    SUBMENU = "submenu"
    COLUMN = "column"


class ChildContainer(NamedTuple):
    """One child container of a node: the root list, a submenu, or a single column."""

    kind: ContainerKind
    column: Optional["MenuColumn"]
    items: Tuple["MenuItem", ...]


class MenuRoot(NodeMixin):
    """Invisible root holding the root-level items of a menu scope.

    Attributes:
        scope: The menu scope the tree was loaded for (e.g. a company or a role).
        temporary_counter: Last counter handed out to a ``TemporaryId``.

    """

    def __init__(self, scope: Optional[str] = None, temporary_counter: int = 0, children=None):
        """Initialize the root node."""
        super().__init__()
        self.scope = scope
        self.temporary_counter = temporary_counter
        if children:
            self.children = children

    @property
    def items(self) -> Tuple["MenuItem", ...]:
        """Return the root-level items."""
        return self.children

    def containers(self) -> Iterator[ChildContainer]:
        """Yield the single root container."""
        yield ChildContainer(ContainerKind.ROOT, None, self.children)

    def next_temporary_id(self) -> TemporaryId:
        """Hand out a new temporary id, unique within this tree and its copies."""
        self.temporary_counter += 1
        return TemporaryId(self.temporary_counter)

    def _pre_attach_children(self, children):
        for child in children:
            if not isinstance(child, MenuItem):
                raise TreeError(f"Only menu items can be placed at root level, got {type(child).__name__}.")

    def __repr__(self) -> str:
        return f"MenuRoot(scope={self.scope!r}, items={len(self.children)})"


class MenuItem(NodeMixin):
    """A navigation entry of the menu.

    ``order``, ``level`` and ``parent_id`` are kept in sync with the structure by
    ``MenuTree.renumber()``; they are stored because the backend and the differ compare them.
    """

    def __init__(
        self,
        id: NodeId,
        label: str = "",
        route: Optional[str] = None,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        is_public: bool = False,
        status: ItemStatus = ItemStatus.ACTIVE,
        order: int = 0,
        level: int = 0,
        parent_id: Optional[NodeId] = None,
        parent=None,
        children=None,
    ):
        """Initialize a menu item."""
        super().__init__()
        self.id = id
        self.label = label
        self.route = route
        self.description = description
        self.icon = icon
        self.is_public = is_public
        self.status = ItemStatus(status)
        self.order = order
        self.level = level
        self.parent_id = parent_id
        self.parent = parent
        if children:
            self.children = children

    @property
    def submenu(self) -> Tuple["MenuItem", ...]:
        """Return the submenu items, in order."""
        return tuple(child for child in self.children if isinstance(child, MenuItem))

    @property
    def columns(self) -> Tuple["MenuColumn", ...]:
        """Return the columns, in order."""
        return tuple(child for child in self.children if isinstance(child, MenuColumn))

    @property
    def has_children(self) -> bool:
        """Return True if the item has a submenu item or any column."""
        return bool(self.children)

    def containers(self) -> Iterator[ChildContainer]:
        """Yield the submenu container, then one container per column."""
        yield ChildContainer(ContainerKind.SUBMENU, None, self.submenu)
        for column in self.columns:
            yield ChildContainer(ContainerKind.COLUMN, column, column.items)

    def set_containers(self, submenu=None, columns=None) -> None:
        """Replace the submenu and/or the columns, keeping the container not given."""
        submenu = self.submenu if submenu is None else tuple(submenu)
        columns = self.columns if columns is None else tuple(columns)
        self.children = submenu + columns

    def _pre_attach(self, parent):
        if not isinstance(parent, (MenuRoot, MenuItem, MenuColumn)):
            raise TreeError(f"A menu item cannot be attached to {type(parent).__name__}.")

    def __repr__(self) -> str:
        return f"MenuItem(id={str(self.id)!r}, label={self.label!r}, order={self.order}, level={self.level})"


class MenuColumn(NodeMixin):
    """A named group of items inside an item. Columns group items but do not own them.

    Attributes:
        menu_id: Backend node identifier of the column, when the backend provided one.

    """

    def __init__(
        self,
        id: NodeId,
        title: str = "",
        order: int = 0,
        parent_id: Optional[NodeId] = None,
        menu_id: Optional[str] = None,
        parent=None,
        children=None,
    ):
        """Initialize a column."""
        super().__init__()
        self.id = id
        self.title = title
        self.order = order
        self.parent_id = parent_id
        self.menu_id = menu_id
        self.parent = parent
        if children:
            self.children = children

    @property
    def items(self) -> Tuple[MenuItem, ...]:
        """Return the items of the column, in order."""
        return self.children

    def _pre_attach(self, parent):
        if not isinstance(parent, MenuItem):
            raise TreeError("A column can only belong to a menu item.")

    def _pre_attach_children(self, children):
        for child in children:
            if not isinstance(child, MenuItem):
                raise TreeError(f"A column can only hold menu items, got {type(child).__name__}.")

    def __repr__(self) -> str:
        return f"MenuColumn(id={str(self.id)!r}, title={self.title!r}, order={self.order})"


MenuNode = Union[MenuItem, MenuColumn]
Holder = Union[MenuRoot, MenuItem, MenuColumn]


def node_kind(node: MenuNode) -> NodeKind:
    """Return the kind of a node."""
    return NodeKind.COLUMN if isinstance(node, MenuColumn) else NodeKind.ITEM


def owner_item(node: MenuNode) -> Optional[MenuItem]:
    """Return the structural parent item of a node (columns are skipped), or None at root."""
    parent = node.parent
    if isinstance(parent, MenuColumn):
        return parent.parent
    if isinstance(parent, MenuItem):
        return parent
    return None


def holder_level(holder: Holder) -> int:
    """Return the level that items placed in ``holder`` must have."""
    if isinstance(holder, MenuRoot):
        return 0
    owner = holder if isinstance(holder, MenuItem) else holder.parent
    return owner.level + 1


def holder_owner_id(holder: Holder) -> Optional[NodeId]:
    """Return the parent id that items placed in ``holder`` must carry."""
    if isinstance(holder, MenuRoot):
        return None
    owner = holder if isinstance(holder, MenuItem) else holder.parent
    return owner.id


def container_items(holder: Holder) -> Tuple[MenuItem, ...]:
    """Return the items of the container held by ``holder`` (an item's submenu for an item)."""
    if isinstance(holder, MenuItem):
        return holder.submenu
    return holder.children


def set_container_items(holder: Holder, items) -> None:
    """Replace the items of the container held by ``holder``."""
    if isinstance(holder, MenuItem):
        holder.set_containers(submenu=items)
    else:
        holder.children = items


def create_item(root: MenuRoot, holder: Holder, **fields) -> MenuItem:
    """Create a pending item with a temporary id and append it to ``holder``'s container.

    Args:
        root: The root of the tree, used to allocate the temporary id.
        holder: The root, an item (its submenu) or a column.
        **fields: Initial values for label, route, description, icon and is_public.

    Returns:
        MenuItem: The new item, already attached.

    """
    siblings = container_items(holder)
    item = MenuItem(
        id=root.next_temporary_id(),
        status=ItemStatus.PENDING,
        order=len(siblings),
        level=holder_level(holder),
        parent_id=holder_owner_id(holder),
        **fields,
    )
    set_container_items(holder, siblings + (item,))
    return item


def create_column(root: MenuRoot, owner: MenuItem, title: str = "") -> MenuColumn:
    """Create an empty column with a temporary id and insert it first among ``owner``'s columns."""
    column = MenuColumn(id=root.next_temporary_id(), title=title, order=0, parent_id=owner.id)
    owner.set_containers(columns=(column,) + owner.columns)
    return column
