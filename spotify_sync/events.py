"""In-process publish/subscribe bus shared by every component.

Delivery is synchronous and in subscription order. Handlers that return an
awaitable are scheduled on the running loop and not awaited by ``emit``.
"""

import asyncio
import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from spotify_sync.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

Handler = Callable[[Any], Any]


class Topic(str, Enum):
    """Well-known bus topics."""

    STATE = "state"
    ACTIVE_ACCOUNT = "activeAccount"
    SHOW_UPDATE = "showUpdate"
    EVENT = "event"
    READY = "ready"
    ACCOUNT_SWITCH = "accountSwitch"
    NOTIFICATION = "notification"


def _topic_key(topic: "Topic | str") -> str:
    return topic.value if isinstance(topic, Enum) else topic


class _Registration:
    __slots__ = ("handler", "active")

    def __init__(self, handler: Handler):
        self.handler = handler
        self.active = True


class Subscription:
    """Handle returned by ``EventBus.on``.

    Calling it unsubscribes. ``on`` registers another handler on the same
    bus so registrations can be chained.
    """

    def __init__(self, bus: "EventBus", topic: str, registration: _Registration):
        self._bus = bus
        self._topic = topic
        self._registration = registration

    @property
    def bus(self) -> "EventBus":
        return self._bus

    @property
    def active(self) -> bool:
        return self._registration.active

    def on(self, topic: "Topic | str", handler: Handler) -> "Subscription":
        return self._bus.on(topic, handler)

    def unsubscribe(self) -> None:
        self._bus._remove(self._topic, self._registration)

    def __call__(self) -> None:
        self.unsubscribe()


class EventBus:
    """Synchronous typed event bus.

    A handler that raises is logged and does not stop delivery to the
    handlers registered after it.
    """

    def __init__(self):
        self._handlers: dict[str, list[_Registration]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, topic: "Topic | str", handler: Handler) -> Subscription:
        """Register a handler for a topic.

        Args:
            topic: Topic to listen on
            handler: Callable receiving the emitted payload

        Returns:
            Subscription that unsubscribes when called and chains further ``on`` calls
        """
        key = _topic_key(topic)
        registration = _Registration(handler)
        self._handlers.setdefault(key, []).append(registration)
        return Subscription(self, key, registration)

    def off(self, topic: "Topic | str", handler: Handler) -> None:
        """Remove every registration of ``handler`` on ``topic``."""
        key = _topic_key(topic)
        for registration in list(self._handlers.get(key, ())):
            if registration.handler == handler:
                self._remove(key, registration)

    def emit(self, topic: "Topic | str", payload: Any = None) -> None:
        """Deliver ``payload`` to the handlers registered on ``topic`` right now.

        Args:
            topic: Topic to publish on
            payload: Value passed to every handler
        """
        key = _topic_key(topic)
        # Snapshot: handlers added during delivery wait for the next emit
        for registration in tuple(self._handlers.get(key, ())):
            if not registration.active:
                continue
            try:
                result = registration.handler(payload)
                if inspect.isawaitable(result):
                    self._schedule(key, result)
            except Exception as e:
                logger.exception(
                    "Event handler failed",
                    extra={"topic": key, "error": str(e), "event_type": "bus_handler_error"},
                )

    def listener_count(self, topic: "Topic | str") -> int:
        return len(self._handlers.get(_topic_key(topic), ()))

    async def drain(self) -> None:
        """Wait for every scheduled async handler to finish."""
        while self._pending:
            await asyncio.gather(*tuple(self._pending), return_exceptions=True)

    def clear(self) -> None:
        """Drop every registration."""
        for registrations in self._handlers.values():
            for registration in registrations:
                registration.active = False
        self._handlers.clear()

    def _remove(self, key: str, registration: _Registration) -> None:
        registration.active = False
        registrations = self._handlers.get(key)
        if registrations and registration in registrations:
            registrations.remove(registration)
            if not registrations:
                del self._handlers[key]

    def _schedule(self, key: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            log_with_context(
                logger,
                "error",
                "Async handler emitted outside of a running event loop, dropped",
                topic=key,
                event_type="bus_no_loop",
            )
            return
        task = loop.create_task(self._run_async_handler(key, awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_async_handler(self, key: str, awaitable: Any) -> None:
        try:
            await awaitable
        except Exception as e:
            log_with_context(
                logger,
                "error",
                "Async event handler failed",
                topic=key,
                error=str(e),
                error_type=type(e).__name__,
                event_type="bus_async_handler_error",
            )
