"""Pydantic models for inbound host events, connected accounts and notifications."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PlayerEventType(str, Enum):
    """Player event kinds the sync controller understands."""

    PLAYER_STATE_CHANGED = "PLAYER_STATE_CHANGED"
    DEVICE_STATE_CHANGED = "DEVICE_STATE_CHANGED"


class PlayerEvent(BaseModel):
    """A single event from the Spotify dealer connection.

    ``type`` stays a plain string so unknown kinds still parse.
    """

    type: str
    event: dict[str, Any] = Field(default_factory=dict)

    @property
    def state(self) -> dict[str, Any] | None:
        return self.event.get("state")

    @property
    def devices(self) -> list[Any]:
        return self.event.get("devices") or []


class InboundEvent(BaseModel):
    """Player event tagged with the connected account it came from."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(alias="accountId", min_length=1)
    data: PlayerEvent


class ConnectedAccount(BaseModel):
    """A third-party account connected to the host profile."""

    id: str = Field(min_length=1)
    type: str = "spotify"
    name: str | None = None
    show_activity: bool = True
    access_token: str | None = Field(default=None, repr=False)
    refresh_token: str | None = Field(default=None, repr=False)


class NotificationKind(str, Enum):
    """Severity of a user-visible notification."""

    SUCCESS = "success"
    FAILURE = "failure"
    INFO = "info"


class Notification(BaseModel):
    """Transient user-visible message (a toast) for the presentation layer."""

    message: str
    kind: NotificationKind = NotificationKind.INFO
