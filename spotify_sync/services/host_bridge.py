"""Adapts host lifecycle signals and raw dealer frames into bus events."""

import json
from typing import Any

from pydantic import ValidationError

from spotify_sync.context import SyncContext
from spotify_sync.events import Topic
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.models import InboundEvent

logger = get_logger(__name__)


class HostBridge:
    """Turns host signals into ``accountSwitch``, ``ready`` and ``event``.

    ``ready`` is emitted on the first connection-open, and again on the
    first connection-open after each login.
    """

    def __init__(self, context: SyncContext):
        self._context = context
        self._awaiting_connection = True

    @property
    def awaiting_connection(self) -> bool:
        return self._awaiting_connection

    def on_login_success(self) -> None:
        """A (possibly different) user logged in: reset and wait for the connection."""
        self._context.bus.emit(Topic.ACCOUNT_SWITCH)
        self._awaiting_connection = True

    def on_connection_open(self) -> None:
        if not self._awaiting_connection:
            return
        self._awaiting_connection = False
        log_with_context(logger, "debug", "Connection open, emitting ready", event_type="host_ready")
        self._context.bus.emit(Topic.READY)

    def on_socket_message(self, account_id: str, frame: str | bytes) -> bool:
        """Forward the first player event in a dealer frame.

        Args:
            account_id: Connected account the socket belongs to
            frame: Raw JSON text of the frame

        Returns:
            True if an event was emitted
        """
        try:
            raw = json.loads(frame)
        except ValueError as e:
            log_with_context(
                logger,
                "debug",
                "Dropping undecodable socket frame",
                account_id=account_id,
                error=str(e),
                event_type="host_frame_invalid",
            )
            return False

        event = _first_event(raw)
        if event is None:
            return False

        try:
            inbound = InboundEvent(account_id=account_id, data=event)
        except ValidationError as e:
            log_with_context(
                logger,
                "debug",
                "Dropping socket frame with malformed event",
                account_id=account_id,
                error=str(e),
                event_type="host_frame_malformed",
            )
            return False

        self._context.bus.emit(Topic.EVENT, inbound)
        return True


def _first_event(raw: Any) -> Any:
    if not isinstance(raw, dict) or raw.get("type") != "message":
        return None
    payloads = raw.get("payloads")
    if not isinstance(payloads, list) or not payloads or not isinstance(payloads[0], dict):
        return None
    events = payloads[0].get("events")
    if not isinstance(events, list) or not events:
        return None
    return events[0] or None
