"""Base manager class for RemindMe managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..coordinator import RemindMeCoordinator


class BaseManager(ABC):
    """Base class for all RemindMe managers with event support.

    Provides:
    - Event emitting over the coordinator's pyee EventEmitter (emit)
    - Event listening with cleanup on coordinator shutdown (listen)

    Data Persistence:
    - Use coordinator.persist() after every change to the stored document

    Subclasses must implement:
    - setup(): Subscribe to events, initialize state
    """

    def __init__(self, coordinator: RemindMeCoordinator) -> None:
        """Initialize manager.

        Args:
            coordinator: Parent coordinator owning the store and event emitter
        """
        self.coordinator = coordinator

    def emit(self, signal: str, **payload: Any) -> None:
        """Emit an event to other managers and external listeners.

        Args:
            signal: Signal constant (e.g., const.SIGNAL_REMINDER_TAKEN)
            **payload: Event data dict passed to listeners as one argument

        Example:
            self.emit(
                const.SIGNAL_REMINDER_TAKEN,
                reminder_id=reminder_id,
                instance_key="2024-01-01_08:00",
                timestamp="2024-01-01T08:05:00",
            )
        """
        const.LOGGER.debug(
            "Emitting event '%s' with payload keys: %s", signal, list(payload.keys())
        )
        self.coordinator.emitter.emit(signal, payload)

    def listen(self, signal: str, callback: Callable[[dict[str, Any]], Any]) -> None:
        """Subscribe to an event with automatic cleanup.

        The subscription is removed when the coordinator shuts down.

        Args:
            signal: Signal constant to listen for
            callback: Function called with the payload dict when the event fires
        """
        self.coordinator.emitter.on(signal, callback)
        self.coordinator.on_shutdown(
            lambda: self.coordinator.emitter.remove_listener(signal, callback)
        )
        const.LOGGER.debug(
            "Manager %s listening to event '%s'", self.__class__.__name__, signal
        )

    @abstractmethod
    def setup(self) -> None:
        """Set up the manager (subscribe to events, initialize state).

        Called once during coordinator initialization.
        Subclasses should subscribe to events here using self.listen().
        """
