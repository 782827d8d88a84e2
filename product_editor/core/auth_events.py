"""Auth-change notifications.

The host owns one ``AuthChangeNotifier`` and hands it to the pieces that
care: the catalog client publishes on a rejected token, editor sessions
subscribe to refresh their tenant context.
"""

import inspect
from collections.abc import Awaitable, Callable

from product_editor.infra.logging import get_logger

logger = get_logger(__name__)

AuthListener = Callable[[str], Awaitable[None] | None]


class AuthChangeNotifier:
    """Explicit subscribe/publish channel for authentication changes."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, reason: str = "changed") -> None:
        """Notify every listener, in subscription order."""
        logger.info("Auth change published", reason=reason, listeners=len(self._listeners))
        for listener in list(self._listeners):
            result = listener(reason)
            if inspect.isawaitable(result):
                await result
