"""Owned context object shared by the sync core components."""

from dataclasses import dataclass, field

from spotify_sync.events import EventBus
from spotify_sync.state_managers import AccountRegistry, PlaybackStateStore, SuppressionFlag


@dataclass
class SyncContext:
    """The mutable state of one sync core instance.

    Constructed once at startup and passed to the controller, the remote
    client and the player controls.
    """

    bus: EventBus = field(default_factory=EventBus)
    store: PlaybackStateStore = field(init=False)
    registry: AccountRegistry = field(init=False)
    suppression: SuppressionFlag = field(default_factory=SuppressionFlag)

    def __post_init__(self) -> None:
        self.store = PlaybackStateStore(self.bus)
        self.registry = AccountRegistry(self.bus)

    async def initialize(self) -> None:
        await self.store.initialize()
        await self.registry.initialize()

    async def cleanup(self) -> None:
        await self.store.cleanup()
        await self.registry.cleanup()
        self.suppression.clear()
