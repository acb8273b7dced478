"""Sync controller: applies inbound host events to the account registry and state store."""

import time
from typing import Any

from pydantic import ValidationError

from spotify_sync.config import Settings, get_settings
from spotify_sync.context import SyncContext
from spotify_sync.events import Subscription, Topic
from spotify_sync.exceptions import MalformedResponseException, TransportUnreachableException
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.models import InboundEvent, PlayerEvent, PlayerEventType
from spotify_sync.protocols import ActivityVisibilityPredicate, ConnectedAccountsProvider
from spotify_sync.services.remote_client import RemoteControlClient

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncController:
    """Consumes ``accountSwitch``, ``event`` and ``ready`` from the bus.

    The first account to send an event while none is active becomes the
    active account; events from other accounts are ignored until it is
    cleared again.
    """

    def __init__(
        self,
        context: SyncContext,
        client: RemoteControlClient,
        accounts: ConnectedAccountsProvider,
        should_show_activity: ActivityVisibilityPredicate | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the sync controller.

        Args:
            context: Sync context shared with the client and controls
            client: Remote client used for the startup poll
            accounts: Provider of connected accounts to poll
            should_show_activity: Host predicate gating the startup poll (defaults to always)
            settings: Settings instance (defaults to singleton)
        """
        self._context = context
        self._client = client
        self._accounts = accounts
        self._should_show_activity = should_show_activity or (lambda: True)
        self._settings = settings or get_settings()
        self._subscriptions: list[Subscription] = []

    def start(self) -> None:
        """Subscribe to the inbound topics."""
        if self._subscriptions:
            return
        bus = self._context.bus
        first = bus.on(Topic.ACCOUNT_SWITCH, self.handle_account_switch)
        self._subscriptions = [
            first,
            first.on(Topic.EVENT, self.handle_event),
            first.on(Topic.READY, self.handle_ready),
        ]

    def stop(self) -> None:
        for subscription in self._subscriptions:
            subscription()
        self._subscriptions = []

    def handle_account_switch(self, _payload: Any = None) -> None:
        """Forget the active account and its state, and hide the UI."""
        log_with_context(logger, "info", "Account switch, clearing states", event_type="sync_account_switch")

        self._context.registry.set_active("")
        self._context.store.reset()
        self._context.bus.emit(Topic.SHOW_UPDATE, False)

    def handle_event(self, payload: Any) -> None:
        """Apply one inbound player event.

        Args:
            payload: InboundEvent or its ``{accountId, data}`` mapping
        """
        try:
            inbound = payload if isinstance(payload, InboundEvent) else InboundEvent.model_validate(payload)
        except ValidationError as e:
            log_with_context(
                logger,
                "warning",
                "Ignoring malformed inbound event",
                error=str(e),
                event_type="sync_event_malformed",
            )
            return

        registry = self._context.registry
        if not registry.get_active():
            registry.set_active(inbound.account_id)

        if registry.get_active() != inbound.account_id:
            log_with_context(
                logger,
                "debug",
                "Ignoring event from inactive account",
                account_id=inbound.account_id,
                active_account_id=registry.get_active(),
                event_type="sync_event_inactive_account",
            )
            return

        data = inbound.data
        if data.type == PlayerEventType.PLAYER_STATE_CHANGED:
            self._context.store.set_state(data.state)
        elif data.type == PlayerEventType.DEVICE_STATE_CHANGED:
            self._handle_device_state(data)
        else:
            log_with_context(
                logger,
                "info",
                "Unknown player event",
                account_id=inbound.account_id,
                player_event_type=data.type,
                event_type="sync_event_unknown",
            )

    def _handle_device_state(self, data: PlayerEvent) -> None:
        if self._context.suppression.consume():
            log_with_context(
                logger,
                "info",
                "showUpdate not fired (request in flight)",
                event_type="sync_show_update_suppressed",
            )
            return

        has_devices = len(data.devices) > 0
        if not has_devices:
            self._context.registry.set_active("")
            self._context.store.reset()

        self._context.bus.emit(Topic.SHOW_UPDATE, has_devices)
        log_with_context(
            logger,
            "info",
            "showUpdate fired (player device state)",
            has_devices=has_devices,
            event_type="sync_show_update",
        )

    async def handle_ready(self, _payload: Any = None) -> None:
        await self.poll_initial_state()

    async def poll_initial_state(self) -> str | None:
        """
        Fetch the current player state of the first account that has one.

        Connected accounts of the configured type with activity sharing enabled
        are queried in order; the first successful response is injected as a
        ``PLAYER_STATE_CHANGED`` event and the remaining accounts are skipped.

        Returns:
            Id of the account whose state was injected, or None.
        """
        if not self._should_show_activity():
            log_with_context(logger, "debug", "Activity hidden, skipping state poll", event_type="sync_poll_skipped")
            return None

        log_with_context(logger, "info", "Fetching initial player state", event_type="sync_poll_start")

        account_ids = [
            account.id
            for account in self._accounts.get_accounts()
            if account.type == self._settings.service_type and account.show_activity
        ]
        for account_id in account_ids:
            try:
                state = await self._fetch_player_state(account_id)
            except (TransportUnreachableException, MalformedResponseException) as e:
                log_with_context(
                    logger,
                    "error",
                    "Failed fetching state for account",
                    account_id=account_id,
                    error=e.message,
                    error_code=e.code.value,
                    event_type="sync_poll_account_failed",
                )
                continue

            if state is None:
                continue

            self._context.bus.emit(
                Topic.EVENT,
                InboundEvent(
                    account_id=account_id,
                    data=PlayerEvent(
                        type=PlayerEventType.PLAYER_STATE_CHANGED.value,
                        event={"state": {**state, "timestamp": _now_ms()}},
                    ),
                ),
            )
            return account_id

        log_with_context(logger, "info", "No account returned a player state", event_type="sync_poll_empty")
        return None

    async def _fetch_player_state(self, account_id: str) -> dict[str, Any] | None:
        """GET ``player`` for one account; None if the request was not successful."""
        outcome = await self._client.send(account_id, "player", "GET")
        if not outcome.ok or outcome.response is None:
            return None

        try:
            state = outcome.response.json()
        except ValueError as e:
            raise MalformedResponseException(
                f"Failed parsing state: {str(e)}",
                details={"account_id": account_id, "status_code": outcome.response.status_code},
            ) from e
        if not isinstance(state, dict):
            raise MalformedResponseException(
                "Player state is not a JSON object",
                details={"account_id": account_id},
            )
        return state
