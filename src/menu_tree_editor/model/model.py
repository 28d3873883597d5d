"""Model class for the Menu Tree Editor application."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from dcmspec.config import Config

from menu_tree_editor.app_config import parse_bool
from menu_tree_editor.model import mutations
from menu_tree_editor.model.differ import ModifiedSet, compute_modified_set
from menu_tree_editor.model.drag_session import DragSession
from menu_tree_editor.model.errors import BaselineIntegrityError, ValidationError
from menu_tree_editor.model.mutations import DropIntent, DropPosition, MutationResult
from menu_tree_editor.model.nodes import NodeId, is_temporary
from menu_tree_editor.model.payload import Payload, build_sync_payload, collect_pending_problems
from menu_tree_editor.model.query import filter_tree, find_item, text_predicate
from menu_tree_editor.model.tree import MenuTree


class Model:
    """Data model for the menu tree editor.

    This class holds the baseline (the tree as last synced with the backend) and the working
    tree the user edits. Edits replace the working tree with the tree returned by the mutation
    engine; the baseline only changes on load and commit.

    Attributes:
        _baseline: The last synced tree, None until a tree is loaded.
        _working: The tree being edited.

    """

    def __init__(self, config: Config, logger: logging.Logger):
        """Initialize an empty model."""
        self.config = config
        self.logger = logger
        self._baseline: Optional[MenuTree] = None
        self._working: Optional[MenuTree] = None
        # Modified set of the (working, baseline) pair it was computed for
        self._modified_cache: Optional[tuple] = None

    @property
    def is_loaded(self) -> bool:
        """Return True once a baseline has been loaded."""
        return self._baseline is not None

    @property
    def baseline(self) -> Optional[MenuTree]:
        """Return the last synced tree."""
        return self._baseline

    @property
    def working_tree(self) -> Optional[MenuTree]:
        """Return the tree being edited."""
        return self._working

    @property
    def scope(self) -> Optional[str]:
        """Return the scope of the loaded tree."""
        return self._baseline.scope if self._baseline is not None else None

    @property
    def require_root_icon(self) -> bool:
        """Return True if root items need an icon before they can be synced."""
        value = self.config.get_param("require_root_icon")
        return True if value is None else parse_bool(value)

    @property
    def modified_set(self) -> ModifiedSet:
        """Return the ids of the items changed since the baseline."""
        if self._working is None or self._baseline is None:
            return {}
        cache = self._modified_cache
        if cache is None or cache[0] is not self._working or cache[1] is not self._baseline:
            modified = compute_modified_set(self._working, self._baseline)
            self._modified_cache = (self._working, self._baseline, modified)
            return modified
        return cache[2]

    @property
    def modified_count(self) -> int:
        """Return the number of unsaved changes."""
        return len(self.modified_set)

    def is_modified(self, node_id: NodeId) -> bool:
        """Return True if the item changed since the baseline."""
        return node_id in self.modified_set

    def load_tree(self, tree: MenuTree) -> None:
        """Install a freshly loaded tree as baseline and start a new working copy.

        Raises:
            BaselineIntegrityError: If the tree violates an invariant. The current state is kept.

        """
        problems = tree.validate()
        if problems:
            self.logger.error(f"Refusing to load menu scope {tree.scope!r}: {problems}")
            raise BaselineIntegrityError("Invalid menu baseline: " + " ".join(problems))
        self._baseline = tree
        self._working = tree.copy()
        self.logger.info(f"Loaded menu scope {tree.scope!r} with {len(tree.items)} root items.")

    def commit(self, new_baseline: Optional[MenuTree] = None, rejected_refs: Iterable[str] = ()) -> None:
        """Make the synced state the new baseline.

        Args:
            new_baseline: The tree reloaded from the backend after a sync, which also resolves
                temporary ids. When None, the working tree itself becomes the baseline.
            rejected_refs: References of the nodes the backend refused. The edited fields of the
                matching persisted items are applied again on top of ``new_baseline`` so they
                stay modified and can be corrected and saved again.

        """
        if new_baseline is not None:
            kept = self._edited_fields(rejected_refs)
            self.load_tree(new_baseline)
            for item_id, fields in kept.items():
                if find_item(self._working, item_id) is None:
                    self.logger.warning(f"Rejected item {item_id} is missing from the reloaded menu.")
                    continue
                self.update_item(item_id, **fields)
            return
        self._require_loaded()
        self._baseline = self._working.copy()
        self.logger.debug("Working tree committed as baseline.")

    def _edited_fields(self, refs: Iterable[str]) -> Dict[NodeId, Dict[str, Any]]:
        refs = set(refs)
        if not refs or self._working is None:
            return {}
        return {
            item.id: {field: getattr(item, field) for field in mutations.EDITABLE_FIELDS}
            for item in self._working.iter_items()
            if not is_temporary(item.id) and str(item.id) in refs
        }

    def rollback(self) -> None:
        """Discard every unsaved change."""
        self._require_loaded()
        discarded = self.modified_count
        self._working = self._baseline.copy()
        self.logger.info(f"Discarded {discarded} unsaved change(s).")

    def edit(self, operation: Callable[..., MutationResult], *args: Any, **kwargs: Any) -> MutationResult:
        """Run a mutation on the working tree and keep its result if it succeeded.

        Args:
            operation: A function of ``menu_tree_editor.model.mutations``.
            *args: Arguments following the tree.
            **kwargs: Keyword arguments of the operation.

        Returns:
            MutationResult: The result of the operation.

        """
        self._require_loaded()
        return self._accept(operation(self._working, *args, **kwargs), operation.__name__)

    def end_drag(self, session: DragSession) -> Optional[MutationResult]:
        """Finish a drag session on the working tree.

        Returns:
            MutationResult: The result of the drop, or None if the session had no drop target.

        """
        self._require_loaded()
        result = session.end(self._working)
        if result is None:
            self.logger.debug("Drag ended without a drop target.")
            return None
        return self._accept(result, "drop")

    def _accept(self, result: MutationResult, name: str) -> MutationResult:
        if result.ok:
            self._working = result.tree
            self.logger.debug(f"{name} applied to {result.node_id}.")
        else:
            self.logger.warning(f"{name} rejected: {result.error}")
        return result

    def add_root_item(self, **fields: Any) -> MutationResult:
        """Append a new item at root level."""
        return self.edit(mutations.insert_root_item, **fields)

    def add_submenu_item(self, parent_id: NodeId, **fields: Any) -> MutationResult:
        """Append a new item to the submenu of ``parent_id``."""
        return self.edit(mutations.add_submenu_item, parent_id, **fields)

    def add_column(self, parent_id: NodeId, title: str = "") -> MutationResult:
        """Insert a new column first among the columns of ``parent_id``."""
        return self.edit(mutations.add_column, parent_id, title)

    def add_item_to_column(self, parent_id: NodeId, column_id: NodeId, **fields: Any) -> MutationResult:
        """Append a new item to a column."""
        return self.edit(mutations.add_item_to_column, parent_id, column_id, **fields)

    def rename_column(self, parent_id: NodeId, column_id: NodeId, title: str) -> MutationResult:
        """Retitle a column."""
        return self.edit(mutations.rename_column, parent_id, column_id, title)

    def delete_column(self, parent_id: NodeId, column_id: NodeId) -> MutationResult:
        """Delete a column, keeping its items in the owner's submenu."""
        return self.edit(mutations.delete_column, parent_id, column_id)

    def update_item(self, item_id: NodeId, **patch: Any) -> MutationResult:
        """Update the editable fields of an item."""
        return self.edit(mutations.update_item_fields, item_id, require_root_icon=self.require_root_icon, **patch)

    def remove_item(self, item_id: NodeId) -> MutationResult:
        """Remove an item (soft delete for items the backend knows)."""
        return self.edit(mutations.remove_item, item_id)

    def move(
        self,
        dragged_id: NodeId,
        target_id: NodeId,
        intent: DropIntent,
        position: DropPosition = DropPosition.BEFORE,
        index: Optional[int] = None,
    ) -> MutationResult:
        """Move an item; see ``mutations.move``."""
        return self.edit(mutations.move, dragged_id, target_id, intent, position, index)

    def move_column(
        self,
        parent_id: NodeId,
        dragged_column_id: NodeId,
        target_column_id: NodeId,
        position: DropPosition = DropPosition.BEFORE,
    ) -> MutationResult:
        """Reorder a column among its siblings."""
        return self.edit(mutations.move_column, parent_id, dragged_column_id, target_column_id, position)

    def prepare_sync(self) -> Payload:
        """Return the payload for the unsaved changes, or an empty list if there are none.

        Raises:
            ValidationError: If a new or pending modified item misses a required field.

        """
        self._require_loaded()
        modified = self.modified_set
        if not modified:
            return []
        problems = collect_pending_problems(self._working, modified, self.require_root_icon)
        if problems:
            self.logger.warning(f"{len(problems)} validation problem(s) block the sync.")
            raise ValidationError(problems)
        payload = build_sync_payload(self._working, modified)
        self.logger.debug(f"Sync payload built: {len(modified)} modified item(s), {len(payload)} root entries.")
        return payload

    def filtered_tree(self, search_text: str = "") -> Optional[MenuTree]:
        """Return the working tree filtered by a search text, for display."""
        if self._working is None:
            return None
        if not (search_text or "").strip():
            return self._working
        return filter_tree(self._working, text_predicate(search_text))

    def pending_problems(self) -> List:
        """Return the validation problems that would block a sync right now."""
        if self._working is None:
            return []
        return collect_pending_problems(self._working, self.modified_set, self.require_root_icon)

    def _require_loaded(self) -> None:
        if self._working is None or self._baseline is None:
            raise RuntimeError("No menu tree loaded.")
