"""Runtime factory wiring the sync core components together."""

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from spotify_sync.config import Settings, get_settings
from spotify_sync.context import SyncContext
from spotify_sync.services.host_bridge import HostBridge
from spotify_sync.services.player_controls import PlayerControls
from spotify_sync.services.remote_client import RemoteControlClient
from spotify_sync.services.sync_controller import SyncController
from spotify_sync.services.token_service import SpotifyTokenRefresher
from spotify_sync.state_managers import ConnectedAccountsManager


@dataclass
class SyncRuntime:
    """Every component of one running sync core."""

    settings: Settings
    http_client: httpx.AsyncClient
    context: SyncContext
    accounts: ConnectedAccountsManager
    refresher: SpotifyTokenRefresher
    client: RemoteControlClient
    controls: PlayerControls
    controller: SyncController
    bridge: HostBridge

    async def initialize(self) -> None:
        await self.context.initialize()
        await self.accounts.initialize()
        self.controller.start()

    async def cleanup(self) -> None:
        self.controller.stop()
        await self.context.bus.drain()
        await self.context.cleanup()
        await self.accounts.cleanup()


def create_runtime(
    http_client: httpx.AsyncClient,
    accounts: ConnectedAccountsManager | None = None,
    settings: Settings | None = None,
    should_show_activity: Callable[[], bool] | None = None,
) -> SyncRuntime:
    """Build the sync core around an existing HTTP client.

    Nothing is subscribed until ``SyncRuntime.initialize`` runs.

    Args:
        http_client: Shared HTTP client for API and token requests
        accounts: Connected accounts (empty manager if omitted)
        settings: Settings instance (defaults to singleton)
        should_show_activity: Host predicate gating the startup poll

    Returns:
        Wired SyncRuntime
    """
    settings = settings or get_settings()
    accounts = accounts if accounts is not None else ConnectedAccountsManager()

    context = SyncContext()
    refresher = SpotifyTokenRefresher(http_client, accounts, settings)
    client = RemoteControlClient(http_client, context, accounts, refresher, settings)

    return SyncRuntime(
        settings=settings,
        http_client=http_client,
        context=context,
        accounts=accounts,
        refresher=refresher,
        client=client,
        controls=PlayerControls(client, context, settings),
        controller=SyncController(context, client, accounts, should_show_activity, settings),
        bridge=HostBridge(context),
    )
