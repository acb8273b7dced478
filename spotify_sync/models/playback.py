"""Playback state models and the mapping from raw Spotify snapshots."""

import copy
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class RepeatMode(str, Enum):
    """Spotify repeat states."""

    OFF = "off"
    CONTEXT = "context"
    TRACK = "track"


class Disallow(str, Enum):
    """Player actions the remote can forbid."""

    RESUMING = "resuming"
    PAUSING = "pausing"
    SEEKING = "seeking"
    SKIPPING_NEXT = "skipping_next"
    SKIPPING_PREV = "skipping_prev"
    TOGGLING_SHUFFLE = "toggling_shuffle"
    TOGGLING_REPEAT_CONTEXT = "toggling_repeat_context"
    TOGGLING_REPEAT_TRACK = "toggling_repeat_track"


PLACEHOLDER_DISALLOWS = frozenset(
    {
        Disallow.RESUMING,
        Disallow.SEEKING,
        Disallow.SKIPPING_NEXT,
        Disallow.SKIPPING_PREV,
        Disallow.TOGGLING_SHUFFLE,
        Disallow.TOGGLING_REPEAT_CONTEXT,
        Disallow.TOGGLING_REPEAT_TRACK,
    }
)


class Track(BaseModel):
    """The item currently loaded in the player."""

    model_config = ConfigDict(frozen=True)

    name: str
    artists: tuple[str, ...] = ()
    album_name: str | None = None
    duration_ms: int = Field(default=0, ge=0)
    uri: str | None = None


class PlaybackState(BaseModel):
    """One full snapshot of player status.

    Instances are immutable; the store replaces them wholesale.
    """

    model_config = ConfigDict(frozen=True)

    is_placeholder: bool = True
    track: Track | None = None
    is_playing: bool = False
    progress_ms: int = Field(default=0, ge=0)
    duration_ms: int = Field(default=0, ge=0)
    repeat_mode: RepeatMode = RepeatMode.OFF
    shuffle: bool = False
    volume_percent: int = Field(default=0, ge=0, le=100)
    timestamp_ms: int = 0
    disallows: frozenset[Disallow] = PLACEHOLDER_DISALLOWS
    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def raw(self) -> dict[str, Any]:
        """Copy of the Spotify snapshot this state was built from."""
        return copy.deepcopy(self._raw)

    def is_allowed(self, action: Disallow) -> bool:
        return action not in self.disallows

    @classmethod
    def placeholder(cls) -> "PlaybackState":
        return PLACEHOLDER_STATE

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> "PlaybackState":
        """Build a state from a Spotify ``CurrentPlaybackResponse`` payload.

        Args:
            snapshot: Raw player snapshot containing an ``item``

        Returns:
            Non-placeholder PlaybackState

        Raises:
            pydantic.ValidationError: If the snapshot fields have unusable types
            TypeError, AttributeError: If nested objects are not mappings
        """
        item = snapshot["item"]
        album = item.get("album") or {}
        device = snapshot.get("device") or {}
        actions = snapshot.get("actions") or {}
        raw_disallows = actions.get("disallows")

        if raw_disallows is None:
            disallows = PLACEHOLDER_DISALLOWS
        else:
            disallows = frozenset(
                Disallow(key) for key, value in raw_disallows.items() if value and key in _DISALLOW_KEYS
            )

        duration_ms = item.get("duration_ms") or 0
        track = Track(
            name=item.get("name") or "",
            artists=tuple(artist.get("name") or "" for artist in item.get("artists") or ()),
            album_name=album.get("name"),
            duration_ms=duration_ms,
            uri=item.get("uri"),
        )

        state = cls(
            is_placeholder=False,
            track=track,
            is_playing=bool(snapshot.get("is_playing")),
            progress_ms=snapshot.get("progress_ms") or 0,
            duration_ms=duration_ms,
            repeat_mode=snapshot.get("repeat_state") or RepeatMode.OFF,
            shuffle=bool(snapshot.get("shuffle_state")),
            volume_percent=device.get("volume_percent") or 0,
            timestamp_ms=snapshot.get("timestamp") or 0,
            disallows=disallows,
        )
        # Deep copy so later changes to the caller's payload never reach the state
        state._raw = copy.deepcopy(dict(snapshot))
        return state


_DISALLOW_KEYS = frozenset(member.value for member in Disallow)

PLACEHOLDER_STATE = PlaybackState()


class ControlStates(BaseModel):
    """Per-field slice of the current state used by player controls."""

    model_config = ConfigDict(frozen=True)

    disallows: frozenset[Disallow]
    duration: int
    playing: bool
    progress: int
    repeat: RepeatMode
    shuffle: bool
    timestamp: int
    volume: int

    @classmethod
    def from_state(cls, state: PlaybackState) -> "ControlStates":
        return cls(
            disallows=state.disallows,
            duration=state.duration_ms,
            playing=state.is_playing,
            progress=state.progress_ms,
            repeat=state.repeat_mode,
            shuffle=state.shuffle,
            timestamp=state.timestamp_ms,
            volume=state.volume_percent,
        )
