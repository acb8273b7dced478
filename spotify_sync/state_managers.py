"""State managers for the mutable state the sync core owns.

Everything here runs on a single asyncio event loop: mutations happen
synchronously inside one inbound event or one request step, so no locks are
needed. All state managers inherit from StateManager ABC.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from spotify_sync.events import EventBus, Subscription, Topic
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.models import ConnectedAccount, ControlStates, PlaybackState

logger = get_logger(__name__)


class StateManager(ABC):
    """Base class for all state managers.

    Subclasses implement the lifecycle methods called by the runtime
    lifespan on startup and shutdown.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during shutdown)."""
        pass


# Derived per-field views over the ``state`` topic
FIELD_SELECTORS: dict[str, Callable[[PlaybackState], Any]] = {
    "duration": lambda state: state.duration_ms,
    "playing": lambda state: state.is_playing,
    "progress": lambda state: state.progress_ms,
    "repeat": lambda state: state.repeat_mode,
    "shuffle": lambda state: state.shuffle,
    "volume": lambda state: state.volume_percent,
    "disallows": lambda state: state.disallows,
    "timestamp": lambda state: state.timestamp_ms,
}


class PlaybackStateStore(StateManager):
    """Holds the single current PlaybackState and publishes every replacement.

    The current state is never None; the placeholder stands in for "nothing
    observed yet".
    """

    def __init__(self, bus: EventBus):
        """Initialize the store with the placeholder state.

        Args:
            bus: Event bus that ``state`` notifications are emitted on
        """
        self._bus = bus
        self._state = PlaybackState.placeholder()

    async def initialize(self) -> None:
        """Initialize the playback state store."""
        # Placeholder is already in place
        pass

    async def cleanup(self) -> None:
        """Reset to the placeholder without notifying subscribers."""
        self._state = PlaybackState.placeholder()

    def get_state(self) -> PlaybackState:
        """Get the current snapshot."""
        return self._state

    def set_state(self, snapshot: Any) -> PlaybackState:
        """Replace the current state and emit ``state``.

        A mapping with a truthy ``item`` becomes a real state; anything else,
        including a snapshot that fails validation, becomes the placeholder.
        The event is emitted even when the new state equals the old one.

        Args:
            snapshot: Raw Spotify player snapshot, or None

        Returns:
            The new current state
        """
        self._state = self._normalize(snapshot)

        log_with_context(
            logger,
            "debug",
            "New playback state",
            is_placeholder=self._state.is_placeholder,
            is_playing=self._state.is_playing,
            track=self._state.track.name if self._state.track else None,
            event_type="playback_state_set",
        )

        self._bus.emit(Topic.STATE, self._state)
        return self._state

    def reset(self) -> PlaybackState:
        """Replace the current state with the placeholder."""
        return self.set_state(None)

    def control_states(self) -> ControlStates:
        """Get the per-field control view of the current state."""
        return ControlStates.from_state(self._state)

    def subscribe(self, handler: Callable[[PlaybackState], Any]) -> Subscription:
        """Subscribe to full-state replacements."""
        return self._bus.on(Topic.STATE, handler)

    def subscribe_field(self, field: str, handler: Callable[[Any], Any]) -> Subscription:
        """Subscribe to one derived field, recomputed from every new state.

        Args:
            field: One of duration, playing, progress, repeat, shuffle, volume,
                disallows, timestamp
            handler: Called with the field value on every ``state`` event

        Raises:
            KeyError: If the field name is unknown
        """
        selector = FIELD_SELECTORS[field]
        return self._bus.on(Topic.STATE, lambda state: handler(selector(state)))

    def subscribe_controls(self, handler: Callable[[ControlStates], Any]) -> Subscription:
        """Subscribe to the full control view, recomputed from every new state."""
        return self._bus.on(Topic.STATE, lambda state: handler(ControlStates.from_state(state)))

    @staticmethod
    def _normalize(snapshot: Any) -> PlaybackState:
        if not isinstance(snapshot, dict) or not snapshot.get("item"):
            return PlaybackState.placeholder()
        try:
            return PlaybackState.from_snapshot(snapshot)
        except (ValidationError, AttributeError, TypeError, ValueError) as e:
            log_with_context(
                logger,
                "warning",
                "Malformed playback snapshot, using placeholder",
                error=str(e),
                event_type="playback_state_malformed",
            )
            return PlaybackState.placeholder()


class AccountRegistry(StateManager):
    """Tracks which connected account currently drives the store.

    The sync controller decides when this changes; no validation happens here.
    """

    def __init__(self, bus: EventBus):
        self._bus = bus
        self._active_account_id = ""

    async def initialize(self) -> None:
        """Initialize the account registry."""
        pass

    async def cleanup(self) -> None:
        """Forget the active account without notifying subscribers."""
        self._active_account_id = ""

    def get_active(self) -> str:
        return self._active_account_id

    def set_active(self, account_id: str) -> None:
        """Store the active account id (or "") and emit ``activeAccount``."""
        self._active_account_id = account_id or ""

        if self._active_account_id:
            log_with_context(
                logger,
                "info",
                "New active account",
                account_id=self._active_account_id,
                event_type="active_account_set",
            )
        else:
            log_with_context(logger, "info", "Cleared active account", event_type="active_account_cleared")

        self._bus.emit(Topic.ACTIVE_ACCOUNT, self._active_account_id)

    def subscribe(self, handler: Callable[[str], Any]) -> Subscription:
        return self._bus.on(Topic.ACTIVE_ACCOUNT, handler)


class SuppressionFlag:
    """Single bit marking that a locally issued request is in flight.

    Not a counter: overlapping requests share the bit and the first one to
    finish clears it.
    """

    def __init__(self):
        self._set = False

    @property
    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def clear(self) -> None:
        self._set = False

    def consume(self) -> bool:
        """Clear the bit and report whether it was set."""
        was_set = self._set
        self._set = False
        return was_set


class ConnectedAccountsManager(StateManager):
    """In-process record of the accounts connected to the host profile.

    Holds the access tokens used for outbound requests and the refresh
    tokens used to renew them.
    """

    def __init__(self, accounts: list[ConnectedAccount] | None = None):
        self._accounts: dict[str, ConnectedAccount] = {}
        for account in accounts or ():
            self.add_account(account)

    async def initialize(self) -> None:
        """Initialize the connected accounts manager."""
        pass

    async def cleanup(self) -> None:
        """Drop cached access tokens on shutdown."""
        for account_id, account in list(self._accounts.items()):
            self._accounts[account_id] = account.model_copy(update={"access_token": None})

    def add_account(self, account: ConnectedAccount) -> None:
        """Add or replace an account, keyed by id."""
        self._accounts[account.id] = account

    def remove_account(self, account_id: str) -> None:
        self._accounts.pop(account_id, None)

    def get_account(self, account_id: str, account_type: str) -> ConnectedAccount | None:
        """Get an account by id if it is of the given type."""
        account = self._accounts.get(account_id)
        if account is None or account.type != account_type:
            return None
        return account

    def get_accounts(self) -> list[ConnectedAccount]:
        """Get all accounts in the order they were connected."""
        return list(self._accounts.values())

    def set_access_token(self, account_id: str, access_token: str, refresh_token: str | None = None) -> None:
        """Store renewed tokens for an account.

        Args:
            account_id: Account to update
            access_token: New access token
            refresh_token: Rotated refresh token, if the accounts service issued one

        Raises:
            KeyError: If the account is not connected
        """
        account = self._accounts[account_id]
        update: dict[str, Any] = {"access_token": access_token}
        if refresh_token:
            update["refresh_token"] = refresh_token
        self._accounts[account_id] = account.model_copy(update=update)
