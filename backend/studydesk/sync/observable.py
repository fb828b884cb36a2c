"""Change notification shared by the sync engines."""

import logging
from collections.abc import Callable

from studydesk.services.base import Unsubscribe

logger = logging.getLogger(__name__)


class Observable:
    """
    Holds snapshot listeners.

    Listeners take no arguments and read the engine's snapshot() themselves.
    A failing listener is logged and does not stop the others.
    """

    def __init__(self):
        self._listeners: list[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Snapshot listener failed in %s", type(self).__name__)
