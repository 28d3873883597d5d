"""Mediator between service layer and controller of the Menu Tree Editor."""

import queue
from typing import Any, Dict, List, Optional, Tuple
import threading

from PySide6.QtCore import QObject, Signal, QTimer

from menu_tree_editor.services.menu_loading_service import MenuSyncWorker, MenuTreeLoaderWorker


class BaseServiceMediator(QObject):
    """Manage background worker lifecycle and event-to-signal dispatch for service mediators.

    This base class handles starting a background worker in a thread, polling its event queue,
    and emitting Qt signals mapped to worker events.
    Subclasses must define a `_signal_map` attribute mapping event type strings
    (e.g., 'loaded', 'synced', 'error') to tuples of (Qt Signal, boolean),
    where the boolean indicates whether to perform cleanup after handling that event.
    Call `start_worker(worker_cls, *worker_args)` to launch the worker.

    Args:
        backend: The menu backend the worker talks to.
        logger: Logger instance for logging progress and errors.
        parent: Optional QObject parent for proper Qt object ownership.

    """

    def __init__(self, backend: Any, logger: Any, parent: Optional[QObject] = None) -> None:
        """Initialize the service mediator."""
        super().__init__(parent)
        self.backend = backend
        self.logger = logger
        self._signal_map: Dict[str, Tuple[Any, bool]] = {}

        self._event_queue = None
        self._worker = None
        self._thread = None
        self._poll_timer = None

    @property
    def is_running(self) -> bool:
        """Return True while a worker has been started and not cleaned up."""
        return self._thread is not None

    def start_worker(self, worker_cls: type, *worker_args: Any) -> Tuple[Any, threading.Thread]:
        """Start the given worker in a background thread and begin polling its event queue."""
        self._event_queue = queue.Queue()
        self._worker = worker_cls(*worker_args, logger=self.logger, event_queue=self._event_queue)
        self._thread = threading.Thread(target=self._worker.run, daemon=True)
        self._thread.start()

        self._poll_timer = QTimer(self)
        self._poll_timer.timeout.connect(self._poll_event_queue)
        self._poll_timer.start(50)
        return self._worker, self._thread

    def _poll_event_queue(self) -> None:
        """Poll the event queue for worker events and emit mapped Qt signals."""
        while self._event_queue and not self._event_queue.empty():
            event_type, data = self._event_queue.get()
            signal_tuple = self._signal_map.get(event_type)
            if signal_tuple:
                signal, should_cleanup = signal_tuple
                if should_cleanup:
                    self._poll_timer.stop()
                    self.cleanup_worker_thread()
                signal.emit(self, data)

    def cleanup_worker_thread(self) -> None:
        """Clean up the worker and its thread after completion or error."""
        if self._thread is not None and self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=1)
        self._worker = None
        self._thread = None
        self._event_queue = None
        self.logger.debug("Worker and thread cleaned up successfully.")


class MenuLoaderServiceMediator(BaseServiceMediator):
    """Mediator for MenuTreeLoaderWorker, bridges service worker and Qt signals."""

    # Signals carry (mediator, data)
    menu_loaded_signal = Signal(object, object)
    menu_error_signal = Signal(object, object)

    def __init__(self, backend: Any, logger: Any, parent: Optional[QObject] = None) -> None:
        """Initialize the MenuLoaderServiceMediator."""
        super().__init__(backend, logger, parent)
        self._signal_map = {
            "loaded": (self.menu_loaded_signal, True),
            "error": (self.menu_error_signal, True),
        }

    def start_load_worker(self, scope: str) -> Tuple[MenuTreeLoaderWorker, threading.Thread]:
        """Start loading ``scope`` in a background thread."""
        return self.start_worker(MenuTreeLoaderWorker, self.backend, scope)


class MenuSyncServiceMediator(BaseServiceMediator):
    """Mediator for MenuSyncWorker, bridges service worker and Qt signals."""

    # Signals carry (mediator, data); synced data is a (SyncResult, reloaded MenuTree) tuple
    menu_synced_signal = Signal(object, object)
    menu_sync_error_signal = Signal(object, object)

    def __init__(self, backend: Any, logger: Any, parent: Optional[QObject] = None) -> None:
        """Initialize the MenuSyncServiceMediator."""
        super().__init__(backend, logger, parent)
        self._signal_map = {
            "synced": (self.menu_synced_signal, True),
            "error": (self.menu_sync_error_signal, True),
        }

    def start_sync_worker(self, payload: List[Dict[str, Any]], scope: str) -> Tuple[MenuSyncWorker, threading.Thread]:
        """Start submitting ``payload`` for ``scope`` in a background thread."""
        return self.start_worker(MenuSyncWorker, self.backend, payload, scope)
