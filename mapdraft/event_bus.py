# mapdraft/event_bus.py
import logging
import threading
from typing import Any, Callable, Protocol

from PySide6.QtCore import QObject, Signal

log = logging.getLogger(__name__)

# Inbound lifecycle signals
NEW_EDIT = "new.edit"
FINISH_EDIT = "finish.edit"
EDIT_END = "edit.end"
# Outbound render signal
FEATURE_UPDATE = "edit.feature.update"

Handler = Callable[[Any], None]


class EventBus(Protocol):
    def subscribe(self, name: str, handler: Handler) -> None:
        ...

    def unsubscribe(self, name: str, handler: Handler) -> None:
        ...

    def publish(self, name: str, payload: Any = None) -> None:
        ...


class QtEventBus(QObject):
    """
    Named-event bus on top of a Qt signal.

    Python callables subscribed to a name are called synchronously, in
    subscription order, on the publishing thread. Afterwards the event is
    emitted on `fired` (name, payload) so widgets can connect to it like
    any other Qt signal.

    A subscriber that raises does not stop the others: the error is
    logged, the remaining subscribers run, and the first error is raised
    to the publisher once `fired` has been emitted.
    """

    fired = Signal(str, object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._handlers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: Handler) -> None:
        with self._lock:
            self._handlers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._handlers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

    def subscribers(self, name: str) -> tuple[Handler, ...]:
        with self._lock:
            return tuple(self._handlers.get(name, ()))

    def publish(self, name: str, payload: Any = None) -> None:
        log.debug("publish %s", name)
        error = None
        # snapshot: a handler may unsubscribe while we iterate
        for handler in self.subscribers(name):
            try:
                handler(payload)
            except Exception as e:
                log.exception("Subscriber %r of %s failed", handler, name)
                if error is None:
                    error = e
        self.fired.emit(name, payload)
        if error is not None:
            raise error
