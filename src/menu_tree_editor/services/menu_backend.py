"""Menu persistence collaborators for the Menu Tree Editor."""

import json
import os
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from menu_tree_editor.model.errors import TransportFailure
from menu_tree_editor.model.nodes import Holder, ItemStatus, MenuColumn, MenuItem, NodeId, PersistedId
from menu_tree_editor.model.nodes import container_items, set_container_items
from menu_tree_editor.model.tree import MenuTree, item_fields


@dataclass(frozen=True)
class PerNodeRejected:
    """A payload entry the backend refused; other entries of the same sync are unaffected.

    Attributes:
        node_ref: Id of the refused entry, or its label when it has no id.
        message: Why the entry was refused.

    """

    node_ref: str
    message: str


@dataclass
class SyncResult:
    """Outcome of a sync: counts of accepted nodes and per-node rejections."""

    created_count: int = 0
    updated_count: int = 0
    reactivated_count: int = 0
    per_node_errors: List[PerNodeRejected] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True if no node was rejected."""
        return not self.per_node_errors

    def summary_message(self) -> str:
        """Return a one-line summary for the user."""
        parts = [
            f"{count} {label}"
            for count, label in (
                (self.created_count, "created"),
                (self.updated_count, "updated"),
                (self.reactivated_count, "reactivated"),
            )
            if count > 0
        ]
        message = "Menu updated successfully"
        if parts:
            message += f" ({', '.join(parts)})"
        if self.per_node_errors:
            message += f"; {len(self.per_node_errors)} rejected"
        return message


class MenuBackend(ABC):
    """Persistence collaborator the editor loads from and syncs to."""

    @abstractmethod
    def load_tree(self, scope: str) -> MenuTree:
        """Return the full current tree of ``scope``.

        Raises:
            TransportFailure: If the tree could not be fetched.

        """

    @abstractmethod
    def sync_tree(self, forest: List[Dict[str, Any]], scope: str) -> SyncResult:
        """Persist a payload built by ``build_sync_payload``.

        Raises:
            TransportFailure: If nothing could be persisted.

        """


class JsonFileMenuBackend(MenuBackend):
    """Store each menu scope in a JSON file of the configured store directory.

    Entries carrying ``status`` are complete nodes: their fields are updated and their children
    become exactly the listed ones. Entries without it are wrappers that only locate the
    changed branches. Entries without ``id`` are created with a new persisted id.

    Writes go to a temporary file which replaces the store only after a successful write.

    Args:
        config: The application configuration (``menu_store_dir``).
        logger: An optional logger for logging events.

    """

    def __init__(self, config, logger=None):
        """Initialize the backend."""
        self.config = config
        self.logger = logger
        self.store_dir = config.get_param("menu_store_dir")

    def scope_file(self, scope: str) -> str:
        """Return the path of the JSON file holding ``scope``."""
        safe_scope = re.sub(r"[^A-Za-z0-9_.-]", "_", scope or "main")
        return os.path.join(self.store_dir, f"menu_{safe_scope}.json")

    def load_tree(self, scope: str) -> MenuTree:
        """Load the tree of ``scope``; a missing store yields an empty tree."""
        document = self._read_document(scope)
        tree = MenuTree.from_dicts(document.get("items", []), scope=scope)
        if self.logger:
            self.logger.debug(f"Loaded {len(tree.items)} root items from {self.scope_file(scope)}")
        return tree

    def sync_tree(self, forest: List[Dict[str, Any]], scope: str) -> SyncResult:
        """Apply the payload to the stored tree and write it back."""
        stored = self.load_tree(scope)
        index: Dict[NodeId, Any] = stored.index()
        known_items = [node for node in index.values() if isinstance(node, MenuItem)]
        result = SyncResult()

        for entry in forest:
            self._apply_entry(entry, stored.root, index, result)

        self._reattach_orphans(stored, known_items)
        stored.renumber()
        self._write_document(scope, stored)
        if self.logger:
            self.logger.info(f"Synced scope {scope!r}: {result.summary_message()}")
            for error in result.per_node_errors:
                self.logger.warning(f"Rejected {error.node_ref}: {error.message}")
        return result

    def _apply_entry(self, entry: Dict[str, Any], holder: Holder, index, result: SyncResult) -> Optional[MenuItem]:
        label = entry.get("label") or ""
        node_ref = str(entry.get("id") or label or "<unnamed>")
        if not label.strip():
            result.per_node_errors.append(PerNodeRejected(node_ref, "label is required"))
            return None

        full = "status" in entry
        if "id" in entry:
            node = index.get(PersistedId(str(entry["id"])))
            if not isinstance(node, MenuItem):
                result.per_node_errors.append(PerNodeRejected(node_ref, "unknown item id"))
                return None
            before = self._snapshot(node)
            if full:
                self._update_fields(node, entry)
            self._place(node, holder, entry.get("order"))
            if full:
                was_inactive = before[0]["status"] in (ItemStatus.INACTIVE, ItemStatus.DELETED)
                if was_inactive and node.status == ItemStatus.ACTIVE:
                    result.reactivated_count += 1
                elif self._snapshot(node) != before:
                    result.updated_count += 1
        else:
            node = MenuItem(id=PersistedId(uuid.uuid4().hex))
            self._update_fields(node, entry)
            index[node.id] = node
            result.created_count += 1
            full = True
            self._place(node, holder, entry.get("order"))

        self._apply_children(node, entry, full, index, result)
        return node

    @staticmethod
    def _snapshot(node: MenuItem):
        fields = {key: value for key, value in item_fields(node).items() if key != "order"}
        position = container_items(node.parent).index(node) if node.parent is not None else None
        return fields, node.parent, position

    def _apply_children(self, node: MenuItem, entry: Dict[str, Any], full: bool, index, result: SyncResult) -> None:
        # Ids of the children listed by the entry, rejected ones included so they stay in place
        mentioned: Set[str] = set()
        for child_entry in entry.get("submenu") or []:
            child = self._apply_entry(child_entry, node, index, result)
            mentioned.add(str(child.id) if child is not None else str(child_entry.get("id")))

        column_entries = entry.get("columns") or []
        for position, column_entry in enumerate(column_entries):
            column = self._column_for(node, column_entry, position, full)
            for child_entry in column_entry.get("items") or []:
                child = self._apply_entry(child_entry, column, index, result)
                mentioned.add(str(child.id) if child is not None else str(child_entry.get("id")))

        if not full:
            return
        # A complete node owns exactly the children it lists
        for container in list(node.containers()):
            for child in container.items:
                if str(child.id) not in mentioned:
                    child.parent = None
        node.set_containers(columns=node.columns[: len(column_entries)])

    def _column_for(self, node: MenuItem, column_entry: Dict[str, Any], position: int, full: bool) -> MenuColumn:
        column_index = column_entry.get("order", position)
        columns = node.columns
        if 0 <= column_index < len(columns):
            column = columns[column_index]
            if full:
                column.title = column_entry.get("title") or ""
                column.menu_id = column_entry.get("menuId") or column.menu_id
            return column
        column = MenuColumn(
            id=PersistedId(uuid.uuid4().hex),
            title=column_entry.get("title") or "",
            menu_id=column_entry.get("menuId"),
        )
        node.set_containers(columns=columns + (column,))
        return column

    @staticmethod
    def _update_fields(node: MenuItem, entry: Dict[str, Any]) -> None:
        node.label = entry.get("label") or ""
        node.route = entry.get("route") or None
        node.description = entry.get("description") or None
        node.icon = entry.get("icon") or None
        node.is_public = bool(entry.get("isPublic", node.is_public))
        status = ItemStatus(int(entry.get("status", node.status)))
        # Accepted items are no longer pending
        node.status = ItemStatus.ACTIVE if status == ItemStatus.PENDING else status

    @staticmethod
    def _place(node: MenuItem, holder: Holder, order: Optional[int]) -> None:
        if node.parent is not holder:
            node.parent = None
        siblings = [sibling for sibling in container_items(holder) if sibling is not node]
        position = len(siblings) if order is None else max(0, min(int(order), len(siblings)))
        siblings.insert(position, node)
        set_container_items(holder, siblings)

    def _reattach_orphans(self, stored: MenuTree, known_items: List[MenuItem]) -> None:
        for item in known_items:
            if item.parent is None:
                if self.logger:
                    self.logger.warning(f"Item {item.id} lost its container; kept inactive at root.")
                item.status = ItemStatus.INACTIVE
                stored.root.children = stored.root.items + (item,)

    def _read_document(self, scope: str) -> Dict[str, Any]:
        """Read the store file of ``scope``, backing it up and starting empty if it is corrupted."""
        path = self.scope_file(scope)
        if not os.path.exists(path):
            return {"items": []}
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            if self.logger:
                self.logger.error(f"Menu store {path} is corrupted: {e}")
            self._backup_corrupted_file(path)
            return {"items": []}
        except OSError as e:
            raise TransportFailure(f"Failed to read menu store {path}: {e}", e) from e

    def _backup_corrupted_file(self, path: str) -> None:
        """Backup the corrupted store file with a timestamp."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_file = f"{path}.{timestamp}.bak"
        try:
            os.rename(path, backup_file)
            if self.logger:
                self.logger.error(f"Backed up corrupted menu store to {backup_file}")
        except OSError as backup_exc:
            if self.logger:
                self.logger.error(f"Failed to backup corrupted menu store: {backup_exc}")

    def _write_document(self, scope: str, tree: MenuTree) -> None:
        """Write the tree of ``scope`` through a temporary file."""
        path = self.scope_file(scope)
        data = {
            "scope": scope,
            "items": tree.to_dicts(),
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f"),
        }
        temp_file = f"{path}.tmp"
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, path)
        except OSError as e:
            if os.path.exists(temp_file):
                try:
                    os.remove(temp_file)
                except OSError as cleanup_exc:
                    if self.logger:
                        self.logger.error(f"Failed to clean up temp menu store file: {cleanup_exc}")
            raise TransportFailure(f"Failed to write menu store {path}: {e}", e) from e
