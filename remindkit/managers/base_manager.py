"""Base manager class for remindkit managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..coordinator import ReminderCoordinator


class SignalDispatcher:
    """Synchronous in-process dispatcher, one per coordinator instance.

    Listeners run in subscription order inside emit(). A failing listener is
    logged and does not stop the others or the emitting mutation.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[[dict[str, Any]], Any]]] = (
            defaultdict(list)
        )

    def connect(
        self, signal: str, callback: Callable[[dict[str, Any]], Any]
    ) -> Callable[[], None]:
        """Subscribe to a signal; returns an unsubscribe callable."""
        self._listeners[signal].append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners.get(signal, []):
                self._listeners[signal].remove(callback)

        return _unsubscribe

    def send(self, signal: str, payload: dict[str, Any]) -> None:
        """Deliver payload to every listener of `signal`."""
        for callback in list(self._listeners.get(signal, [])):
            try:
                callback(payload)
            except Exception:  # noqa: BLE001
                const.LOGGER.exception(
                    "Listener %s failed while handling '%s'", callback, signal
                )


class BaseManager(ABC):
    """Base class for all remindkit managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen)
    - Unsubscribe handles collected for coordinator shutdown

    Subclasses must implement:
    - setup(): Subscribe to events, initialize state
    """

    def __init__(self, coordinator: ReminderCoordinator) -> None:
        """Initialize manager.

        Args:
            coordinator: Parent coordinator owning the store, clock and sink
        """
        self.coordinator = coordinator
        self._unsubscribers: list[Callable[[], None]] = []

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_REMINDERS_CHANGED)
            **payload: Event data passed to listeners as a single dict

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_REMINDER_DELETED,
                reminder_id=reminder_id,
            )
        """
        const.LOGGER.debug(
            "Emitting event '%s' with payload keys: %s", suffix, list(payload.keys())
        )
        self.coordinator.signals.send(suffix, payload)

    def listen(self, suffix: str, callback: Callable[[dict[str, Any]], Any]) -> None:
        """Subscribe to instance-scoped event.

        Args:
            suffix: Signal suffix constant to listen for
            callback: Function called with the payload dict when the event fires
        """
        self._unsubscribers.append(self.coordinator.signals.connect(suffix, callback))
        const.LOGGER.debug(
            "Manager %s listening to event '%s'", self.__class__.__name__, suffix
        )

    def shutdown(self) -> None:
        """Drop every subscription made through listen()."""
        while self._unsubscribers:
            self._unsubscribers.pop()()

    @abstractmethod
    def setup(self) -> None:
        """Set up the manager (subscribe to events, initialize state).

        Called once during coordinator initialization.
        """
