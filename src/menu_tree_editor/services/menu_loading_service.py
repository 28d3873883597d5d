"""Menu load and sync workers for the Menu Tree Editor.

Workers run in a background thread started by a service mediator. They never touch Qt
objects: results are put on the event queue as ``(event_type, data)`` tuples which the
mediator turns into signals on the GUI thread.
"""

import threading
from typing import Any, Dict, List


class MenuTreeLoaderWorker:
    """Load the menu tree of a scope from the backend in a background thread."""

    def __init__(self, backend, scope: str, logger, event_queue):
        """Initialize the worker with the backend and the scope to load."""
        self.backend = backend
        self.scope = scope
        self.logger = logger
        self.event_queue = event_queue

    def run(self):
        """Run the worker to load the menu tree."""
        self.logger.debug(f"MenuTreeLoaderWorker running in thread: {threading.current_thread().name}")
        try:
            tree = self.backend.load_tree(self.scope)
            self.event_queue.put(("loaded", tree))
        except Exception as e:
            self.logger.error(f"Failed to load menu scope {self.scope!r}: {e}")
            self.event_queue.put(("error", e))


class MenuSyncWorker:
    """Submit a sync payload to the backend, then reload the tree to pick up assigned ids.

    A failed submission is reported as an ``error`` event. Once the backend has accepted the
    payload the outcome is always a ``synced`` event, with ``None`` in place of the tree when
    the reload failed: the changes are stored and must not be submitted again.
    """

    def __init__(self, backend, payload: List[Dict[str, Any]], scope: str, logger, event_queue):
        """Initialize the worker with the backend, the payload and the target scope."""
        self.backend = backend
        self.payload = payload
        self.scope = scope
        self.logger = logger
        self.event_queue = event_queue

    def run(self):
        """Run the worker to sync the payload."""
        self.logger.debug(f"MenuSyncWorker running in thread: {threading.current_thread().name}")
        try:
            result = self.backend.sync_tree(self.payload, self.scope)
        except Exception as e:
            self.logger.error(f"Failed to sync menu scope {self.scope!r}: {e}")
            self.event_queue.put(("error", e))
            return
        try:
            tree = self.backend.load_tree(self.scope)
        except Exception as e:
            self.logger.error(f"Menu scope {self.scope!r} was synced but could not be reloaded: {e}")
            tree = None
        self.event_queue.put(("synced", (result, tree)))
