"""spotify-sync models"""

from spotify_sync.models.inbound import (
    ConnectedAccount,
    InboundEvent,
    Notification,
    NotificationKind,
    PlayerEvent,
    PlayerEventType,
)
from spotify_sync.models.playback import (
    PLACEHOLDER_STATE,
    ControlStates,
    Disallow,
    PlaybackState,
    RepeatMode,
    Track,
)

__all__ = [
    "ConnectedAccount",
    "ControlStates",
    "Disallow",
    "InboundEvent",
    "Notification",
    "NotificationKind",
    "PLACEHOLDER_STATE",
    "PlaybackState",
    "PlayerEvent",
    "PlayerEventType",
    "RepeatMode",
    "Track",
]
