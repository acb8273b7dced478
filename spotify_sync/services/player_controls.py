"""Player commands for the presentation layer, targeting the active account."""

import math

from spotify_sync.config import Settings, get_settings
from spotify_sync.context import SyncContext
from spotify_sync.models import Disallow, RepeatMode
from spotify_sync.services.remote_client import RemoteControlClient, RequestOutcome

# Next repeat mode when cycling, depending on which repeat toggles are allowed
NEXT_REPEAT_STATES: dict[str, dict[RepeatMode, RepeatMode]] = {
    "normal": {
        RepeatMode.OFF: RepeatMode.CONTEXT,
        RepeatMode.CONTEXT: RepeatMode.TRACK,
        RepeatMode.TRACK: RepeatMode.OFF,
    },
    "no_context": {
        RepeatMode.OFF: RepeatMode.TRACK,
        RepeatMode.CONTEXT: RepeatMode.OFF,
        RepeatMode.TRACK: RepeatMode.OFF,
    },
    "no_track": {
        RepeatMode.OFF: RepeatMode.CONTEXT,
        RepeatMode.CONTEXT: RepeatMode.OFF,
        RepeatMode.TRACK: RepeatMode.OFF,
    },
}


def next_repeat_mode(current: RepeatMode, disallows: frozenset[Disallow]) -> RepeatMode:
    """Pick the repeat mode that follows ``current`` given the disallowed toggles."""
    if Disallow.TOGGLING_REPEAT_CONTEXT in disallows:
        table = NEXT_REPEAT_STATES["no_context"]
    elif Disallow.TOGGLING_REPEAT_TRACK in disallows:
        table = NEXT_REPEAT_STATES["no_track"]
    else:
        table = NEXT_REPEAT_STATES["normal"]
    return table[RepeatMode(current)]


def _volume_percent(volume: float) -> int:
    # Round half up, then clamp to the API's range
    return max(0, min(100, math.floor(volume + 0.5)))


class PlayerControls:
    """Control actions for the current active account.

    Every method returns the RequestOutcome from the remote client, or None
    when the current state disallows the action and no request was sent.
    """

    def __init__(self, client: RemoteControlClient, context: SyncContext, settings: Settings | None = None):
        self._client = client
        self._context = context
        self._settings = settings or get_settings()

    async def _send(self, endpoint: str, method: str) -> RequestOutcome:
        return await self._client.send(self._context.registry.get_active(), endpoint, method)

    async def set_playing(self, playing: bool) -> RequestOutcome:
        return await self._send(f"player/{'play' if playing else 'pause'}", "PUT")

    async def toggle_playing(self) -> RequestOutcome | None:
        state = self._context.store.get_state()
        action = Disallow.PAUSING if state.is_playing else Disallow.RESUMING
        if not state.is_allowed(action):
            return None
        return await self.set_playing(not state.is_playing)

    async def set_repeat(self, mode: RepeatMode | str) -> RequestOutcome:
        return await self._send(f"player/repeat?state={RepeatMode(mode).value}", "PUT")

    async def cycle_repeat(self) -> RequestOutcome | None:
        """Advance to the next repeat mode the player allows."""
        state = self._context.store.get_state()
        if {Disallow.TOGGLING_REPEAT_CONTEXT, Disallow.TOGGLING_REPEAT_TRACK} <= state.disallows:
            return None
        return await self.set_repeat(next_repeat_mode(state.repeat_mode, state.disallows))

    async def set_shuffle(self, shuffle: bool) -> RequestOutcome:
        return await self._send(f"player/shuffle?state={'true' if shuffle else 'false'}", "PUT")

    async def toggle_shuffle(self) -> RequestOutcome | None:
        state = self._context.store.get_state()
        if not state.is_allowed(Disallow.TOGGLING_SHUFFLE):
            return None
        return await self.set_shuffle(not state.shuffle)

    async def set_progress(self, position_ms: int) -> RequestOutcome:
        return await self._send(f"player/seek?position_ms={max(0, int(position_ms))}", "PUT")

    async def set_volume(self, volume: float) -> RequestOutcome:
        return await self._send(f"player/volume?volume_percent={_volume_percent(volume)}", "PUT")

    async def skip(self, next_track: bool) -> RequestOutcome:
        return await self._send(f"player/{'next' if next_track else 'previous'}", "POST")

    async def skip_next(self) -> RequestOutcome | None:
        if not self._context.store.get_state().is_allowed(Disallow.SKIPPING_NEXT):
            return None
        return await self.skip(True)

    async def skip_previous(self, progress_ms: int | None = None) -> RequestOutcome | None:
        """Restart the track once it is far enough in and seeking is allowed, otherwise skip back.

        Args:
            progress_ms: Current (possibly extrapolated) progress; defaults to
                the stored progress

        Returns:
            Outcome of the seek or skip, or None if neither is allowed
        """
        state = self._context.store.get_state()
        progress = state.progress_ms if progress_ms is None else progress_ms

        if self.restarts_track(state.duration_ms, progress) and state.is_allowed(Disallow.SEEKING):
            return await self.set_progress(0)
        if not state.is_allowed(Disallow.SKIPPING_PREV):
            return None
        return await self.skip(False)

    def restarts_track(self, duration_ms: int, progress_ms: int) -> bool:
        """Whether skip previous should seek to the start instead of skipping."""
        settings = self._settings
        return (
            settings.skip_previous_should_reset_progress
            and settings.skip_previous_progress_reset_threshold * duration_ms <= progress_ms
        )
