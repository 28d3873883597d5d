"""Controller class for the Menu Tree Editor application."""

import threading
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Qt, Signal

from menu_tree_editor.app_config import load_app_config, setup_logger

from menu_tree_editor.model.errors import BaselineIntegrityError, SyncError, ValidationError
from menu_tree_editor.model.drag_session import DragSession
from menu_tree_editor.model.model import Model
from menu_tree_editor.model.mutations import DropIntent, DropPosition, MutationResult
from menu_tree_editor.model.nodes import NodeId

from menu_tree_editor.services.menu_backend import JsonFileMenuBackend, MenuBackend
from menu_tree_editor.services.service_mediator import MenuLoaderServiceMediator, MenuSyncServiceMediator

from menu_tree_editor.controller.menu_treeview_adapter import MenuTreeViewModelAdapter


class MenuEditorController(QObject):
    """Manage the interaction between the menu model and the presentation layer, following the MVP pattern.

    This class is responsible for:
    - Loading the menu of a scope and saving the unsaved changes through background services.
    - Applying user edits and drag-and-drop drops to the model.
    - Publishing the state to the presentation layer through Qt signals.

    Edits and saves are refused while a sync is in flight. Cancel stays available and only
    discards the local changes. When a sync was stored but the menu could not be reloaded,
    edits and saves stay refused until the next successful load, since the working tree still
    holds the temporary ids of nodes the backend has already created.

    Signals:
        tree_changed: Emitted with the rebuilt QStandardItemModel after every change.
        modified_count_changed: Emitted with the number of unsaved changes.
        error_reported: Emitted with a StructuralError, an exception or a list of PerNodeRejected.
        sync_completed: Emitted with the SyncResult of a finished save.
        status_message: Emitted with a short message for a status bar.

    """

    tree_changed = Signal(object)
    modified_count_changed = Signal(int)
    error_reported = Signal(object)
    sync_completed = Signal(object)
    status_message = Signal(str)

    def __init__(
        self,
        config: Any = None,
        logger: Any = None,
        backend: Optional[MenuBackend] = None,
        loader_service: Optional[MenuLoaderServiceMediator] = None,
        sync_service: Optional[MenuSyncServiceMediator] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the controller, creating the collaborators that are not given."""
        super().__init__(parent)

        self.config = config if config is not None else load_app_config()
        self.logger = logger if logger is not None else setup_logger(self.config)

        self.logger.info("Starting Menu Tree Editor...")
        config_file_display = self.config.config_file or "none (using defaults)"
        self.logger.info(f"Config file: {config_file_display}")
        self.logger.info(f"Menu store directory: {self.config.get_param('menu_store_dir')}")
        self.logger.debug(f"MenuEditorController created in thread: {threading.current_thread().name}")

        self.model = Model(self.config, self.logger)
        self.backend = backend if backend is not None else JsonFileMenuBackend(self.config, self.logger)
        self.drag_session = DragSession()
        self.treeview_model = None

        # Initialize the service mediators
        self.loader_service = loader_service or MenuLoaderServiceMediator(self.backend, self.logger, parent=self)
        self.sync_service = sync_service or MenuSyncServiceMediator(self.backend, self.logger, parent=self)

        # Slots run in the thread owning the controller, the GUI thread
        self.loader_service.menu_loaded_signal.connect(self._handle_menu_loaded, Qt.QueuedConnection)
        self.loader_service.menu_error_signal.connect(self._handle_load_error, Qt.QueuedConnection)
        self.sync_service.menu_synced_signal.connect(self._handle_menu_synced, Qt.QueuedConnection)
        self.sync_service.menu_sync_error_signal.connect(self._handle_sync_error, Qt.QueuedConnection)

        self.search_text = ""
        self.selected_id: Optional[NodeId] = None
        self._sync_in_flight = False
        self._reload_required = False

    @property
    def is_syncing(self) -> bool:
        """Return True while a save is in flight."""
        return self._sync_in_flight

    @property
    def reload_required(self) -> bool:
        """Return True after a stored sync whose reload failed, until the menu is loaded again."""
        return self._reload_required

    def load(self, scope: Optional[str] = None) -> None:
        """Load the menu of ``scope`` (the configured default scope if None) in the background."""
        scope = scope or self.config.get_param("default_scope") or "main"
        self.status_message.emit(f"Loading menu {scope}...")
        self.loader_service.start_load_worker(scope)

    def save(self) -> bool:
        """Submit the unsaved changes in the background.

        Returns:
            bool: True if a sync was started.

        """
        if self._sync_in_flight:
            self.status_message.emit("A save is already in progress.")
            return False
        if not self.model.is_loaded:
            self.status_message.emit("No menu loaded.")
            return False
        if self._reload_required:
            self.status_message.emit("Reload the menu before saving again.")
            return False
        try:
            payload = self.model.prepare_sync()
        except ValidationError as e:
            self.error_reported.emit(e)
            self.status_message.emit(f"{len(e.problems)} field(s) must be completed before saving.")
            return False
        if not payload:
            self.status_message.emit("No changes to save.")
            return False

        self._sync_in_flight = True
        self.status_message.emit(f"Saving {self.model.modified_count} change(s)...")
        self.sync_service.start_sync_worker(payload, self.model.scope)
        return True

    def cancel(self) -> None:
        """Discard every unsaved change."""
        if not self.model.is_loaded:
            return
        self.model.rollback()
        self.drag_session.cancel()
        self.status_message.emit("Changes discarded.")
        self.refresh()

    def search(self, text: str) -> None:
        """Filter the displayed tree by a search text."""
        self.search_text = text or ""
        self.refresh()

    def select(self, node_id: Optional[NodeId]) -> None:
        """Remember the selected node so it survives tree rebuilds."""
        self.selected_id = node_id

    def refresh(self) -> None:
        """Rebuild the treeview model from the working tree and publish it."""
        if not self.model.is_loaded:
            return
        qt_tree_model, _ = MenuTreeViewModelAdapter.build_treeview_model(
            self.model.working_tree,
            modified=self.model.modified_set,
            search_text=self.search_text,
            selected_id=self.selected_id,
        )
        self.treeview_model = qt_tree_model
        self.tree_changed.emit(qt_tree_model)
        self.modified_count_changed.emit(self.model.modified_count)

    def add_root_item(self, **fields: Any) -> Optional[MutationResult]:
        """Append a new item at root level."""
        return self._run_edit(self.model.add_root_item, **fields)

    def add_submenu_item(self, parent_id: NodeId, **fields: Any) -> Optional[MutationResult]:
        """Append a new item to the submenu of ``parent_id``."""
        return self._run_edit(self.model.add_submenu_item, parent_id, **fields)

    def add_column(self, parent_id: NodeId, title: str = "") -> Optional[MutationResult]:
        """Insert a new column first among the columns of ``parent_id``."""
        return self._run_edit(self.model.add_column, parent_id, title)

    def add_item_to_column(self, parent_id: NodeId, column_id: NodeId, **fields: Any) -> Optional[MutationResult]:
        """Append a new item to a column."""
        return self._run_edit(self.model.add_item_to_column, parent_id, column_id, **fields)

    def rename_column(self, parent_id: NodeId, column_id: NodeId, title: str) -> Optional[MutationResult]:
        """Retitle a column."""
        return self._run_edit(self.model.rename_column, parent_id, column_id, title)

    def delete_column(self, parent_id: NodeId, column_id: NodeId) -> Optional[MutationResult]:
        """Delete a column, keeping its items in the owner's submenu."""
        return self._run_edit(self.model.delete_column, parent_id, column_id)

    def update_item(self, item_id: NodeId, **patch: Any) -> Optional[MutationResult]:
        """Update the editable fields of an item."""
        return self._run_edit(self.model.update_item, item_id, **patch)

    def remove_item(self, item_id: NodeId) -> Optional[MutationResult]:
        """Remove an item."""
        return self._run_edit(self.model.remove_item, item_id)

    def move(
        self,
        dragged_id: NodeId,
        target_id: NodeId,
        intent: DropIntent,
        position: DropPosition = DropPosition.BEFORE,
        index: Optional[int] = None,
    ) -> Optional[MutationResult]:
        """Move an item without a drag session, e.g. from a keyboard shortcut."""
        return self._run_edit(self.model.move, dragged_id, target_id, intent, position, index)

    def move_column(
        self,
        parent_id: NodeId,
        dragged_column_id: NodeId,
        target_column_id: NodeId,
        position: DropPosition = DropPosition.BEFORE,
    ) -> Optional[MutationResult]:
        """Reorder a column among its siblings."""
        return self._run_edit(self.model.move_column, parent_id, dragged_column_id, target_column_id, position)

    def begin_drag(self, dragged_id: NodeId) -> None:
        """Start dragging an item."""
        if self._sync_in_flight:
            return
        self.drag_session.begin(dragged_id)

    def hover_drag(
        self,
        target_id: Optional[NodeId],
        intent: DropIntent = DropIntent.REORDER,
        position: DropPosition = DropPosition.BEFORE,
        index: Optional[int] = None,
    ) -> None:
        """Record the current drop target of the drag."""
        self.drag_session.hover(target_id, intent, position, index)

    def end_drag(self) -> Optional[MutationResult]:
        """Drop the dragged item on the last hovered target."""
        if self._sync_in_flight:
            self.drag_session.cancel()
            self.status_message.emit("Edits are disabled while saving.")
            return None
        return self._run_edit(self.model.end_drag, self.drag_session)

    def cancel_drag(self) -> None:
        """Abort the drag without changing the tree."""
        self.drag_session.cancel()

    def _run_edit(self, method: Callable[..., Optional[MutationResult]], *args: Any, **kwargs: Any):
        """Apply an edit through the model and publish its outcome."""
        if self._sync_in_flight:
            self.status_message.emit("Edits are disabled while saving.")
            return None
        if not self.model.is_loaded:
            self.status_message.emit("No menu loaded.")
            return None
        if self._reload_required:
            self.status_message.emit("Reload the menu before editing.")
            return None
        result = method(*args, **kwargs)
        if result is None:
            return None
        if not result.ok:
            self.error_reported.emit(result.error)
            self.status_message.emit(result.error.message)
            return result
        if result.problems:
            self.status_message.emit(f"{len(result.problems)} field(s) need attention before saving.")
        self.refresh()
        return result

    def _handle_menu_loaded(self, sender: object, tree: Any) -> None:
        try:
            self.model.load_tree(tree)
        except BaselineIntegrityError as e:
            self.logger.error(f"Loaded menu rejected: {e}")
            self.error_reported.emit(e)
            self.status_message.emit("Error loading menu.")
            return
        self._reload_required = False
        self.drag_session.cancel()
        self.status_message.emit(f"Loaded menu {tree.scope} ({len(tree.items)} root items).")
        self.refresh()

    def _handle_load_error(self, sender: object, error: Exception) -> None:
        self.logger.error(f"Error signal received from {sender}: {error}")
        self.error_reported.emit(error)
        self.status_message.emit("Error loading menu.")

    def _handle_menu_synced(self, sender: object, data: Any) -> None:
        result, reloaded = data
        self._sync_in_flight = False
        if result.per_node_errors:
            self.error_reported.emit(list(result.per_node_errors))
        if reloaded is None:
            # Stored, so the same payload must not be submitted again
            self._reload_required = True
            self.logger.warning("Menu synced but not reloaded; edits are locked until the next load.")
            self.error_reported.emit(SyncError("The menu was saved but could not be reloaded."))
            self.sync_completed.emit(result)
            self.status_message.emit(f"{result.summary_message()}; reload the menu before editing.")
            return
        try:
            self.model.commit(reloaded, rejected_refs=[error.node_ref for error in result.per_node_errors])
        except BaselineIntegrityError as e:
            self.logger.error(f"Reloaded menu rejected after sync: {e}")
            self._reload_required = True
            self.error_reported.emit(e)
        self.sync_completed.emit(result)
        self.status_message.emit(result.summary_message())
        self.refresh()

    def _handle_sync_error(self, sender: object, error: Exception) -> None:
        self._sync_in_flight = False
        self.logger.error(f"Error signal received from {sender}: {error}")
        self.error_reported.emit(error)
        self.status_message.emit("Error saving menu; unsaved changes are kept.")
