"""One-shot entry point: fetch and log the current player state.

Reads the account from settings (``SPOTIFY_ACCOUNT_ID``,
``SPOTIFY_ACCESS_TOKEN``, ``SPOTIFY_REFRESH_TOKEN``), runs the startup poll
and logs the resulting playback state.
"""

import asyncio

from spotify_sync.config import Settings, get_settings
from spotify_sync.core.lifespan import sync_lifespan
from spotify_sync.events import Topic
from spotify_sync.logging_config import get_logger, log_with_context, setup_logging
from spotify_sync.models import ConnectedAccount, PlaybackState
from spotify_sync.state_managers import ConnectedAccountsManager

logger = get_logger(__name__)


def accounts_from_settings(settings: Settings) -> ConnectedAccountsManager:
    """Build the connected accounts for the configured account, if any."""
    manager = ConnectedAccountsManager()
    if settings.spotify_account_id:
        manager.add_account(
            ConnectedAccount(
                id=settings.spotify_account_id,
                type=settings.service_type,
                access_token=settings.spotify_access_token or None,
                refresh_token=settings.spotify_refresh_token or None,
            )
        )
    return manager


async def fetch_state(settings: Settings) -> PlaybackState:
    async with sync_lifespan(accounts_from_settings(settings), settings) as runtime:
        runtime.context.bus.emit(Topic.READY)
        await runtime.context.bus.drain()
        return runtime.context.store.get_state()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)

    state = asyncio.run(fetch_state(settings))
    log_with_context(
        logger,
        "info",
        "Current playback state",
        is_placeholder=state.is_placeholder,
        track=state.track.name if state.track else None,
        artists=list(state.track.artists) if state.track else [],
        is_playing=state.is_playing,
        progress_ms=state.progress_ms,
        event_type="main_state",
    )


if __name__ == "__main__":
    main()
