"""One-shot notification bus keyed by model name.

Used as a future surrogate: "call me once model X has been built".
The bus remembers which names were announced, so a subscriber arriving
after the announcement fires immediately with the last payload instead
of waiting forever.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class NotificationBus:
    """Synchronous one-shot publish/subscribe channel."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callback]] = {}
        self._announced: dict[str, Any] = {}

    def subscribe_once(self, name: str, callback: Callback) -> None:
        """Run *callback* once when *name* is announced.

        If *name* was already announced the callback runs now, in the
        caller's stack, with the last announced payload.
        """
        if name in self._announced:
            callback(self._announced[name])
            return
        self._subscribers.setdefault(name, []).append(callback)

    def announce(self, name: str, payload: Any = None) -> int:
        """Invoke and drop every current subscriber of *name*, in order.

        A failing callback does not stop the ones after it; once all of
        them have run, the first error is re-raised.  Returns the number
        of callbacks invoked.
        """
        self._announced[name] = payload
        callbacks = self._subscribers.pop(name, [])
        logger.debug("announce name=%s subscribers=%d", name, len(callbacks))
        errors: list[Exception] = []
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as exc:
                logger.exception("subscriber of %s failed", name)
                errors.append(exc)
        if errors:
            raise errors[0]
        return len(callbacks)

    def is_announced(self, name: str) -> bool:
        return name in self._announced

    def pending(self, name: str) -> int:
        """Number of subscribers still waiting on *name*."""
        return len(self._subscribers.get(name, ()))

    def waiting_names(self) -> list[str]:
        return sorted(name for name, subs in self._subscribers.items() if subs)
