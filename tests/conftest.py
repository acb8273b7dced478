"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock

import httpx
import pytest

from spotify_sync.config import Settings
from spotify_sync.context import SyncContext
from spotify_sync.events import Topic
from spotify_sync.models import ConnectedAccount
from spotify_sync.services.player_controls import PlayerControls
from spotify_sync.services.remote_client import RemoteControlClient
from spotify_sync.services.sync_controller import SyncController
from spotify_sync.state_managers import ConnectedAccountsManager

API_ROOT = "https://api.spotify.com/v1/me/"


def build_response(status_code: int, json_body=None, method: str = "GET", url: str = API_ROOT + "player") -> httpx.Response:
    """Build a real httpx.Response bound to a request."""
    request = httpx.Request(method, url)
    if json_body is None:
        return httpx.Response(status_code, request=request)
    return httpx.Response(status_code, json=json_body, request=request)


@pytest.fixture
def make_response():
    """Factory for real httpx.Response objects."""
    return build_response


@pytest.fixture
def mock_settings():
    """Settings instance with test values."""
    return Settings(
        _env_file=None,
        spotify_client_id="test-spotify-client-id",
        spotify_client_secret="test-spotify-client-secret",
        skip_previous_should_reset_progress=True,
        skip_previous_progress_reset_threshold=0.15,
    )


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for external API calls."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.request = AsyncMock()
    mock_client.get = AsyncMock()
    mock_client.post = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def mock_token_refresher():
    """Mock token refresher that succeeds by default."""
    refresher = AsyncMock()
    refresher.refresh_access_token = AsyncMock(return_value="refreshed-access-token")
    return refresher


@pytest.fixture
def accounts():
    """Three connected Spotify accounts plus one unrelated account."""
    return ConnectedAccountsManager(
        [
            ConnectedAccount(id="account-a", access_token="token-a", refresh_token="refresh-a"),
            ConnectedAccount(id="account-b", access_token="token-b", refresh_token="refresh-b"),
            ConnectedAccount(id="account-c", access_token="token-c", refresh_token="refresh-c"),
            ConnectedAccount(id="steam-1", type="steam", access_token="steam-token"),
        ]
    )


@pytest.fixture
def context():
    """Fresh sync context."""
    return SyncContext()


@pytest.fixture
def remote_client(mock_http_client, context, accounts, mock_token_refresher, mock_settings):
    """Remote control client over the mocked HTTP client."""
    return RemoteControlClient(mock_http_client, context, accounts, mock_token_refresher, mock_settings)


@pytest.fixture
def controls(remote_client, context, mock_settings):
    """Player controls over the remote client."""
    return PlayerControls(remote_client, context, mock_settings)


@pytest.fixture
def controller(context, remote_client, accounts, mock_settings):
    """Started sync controller."""
    sync_controller = SyncController(context, remote_client, accounts, settings=mock_settings)
    sync_controller.start()
    yield sync_controller
    sync_controller.stop()


@pytest.fixture
def spotify_playback_response():
    """Mock Spotify playback state response."""
    return {
        "device": {"id": "test-device-id", "is_active": True, "name": "Living Room", "type": "Speaker", "volume_percent": 50},
        "is_playing": True,
        "item": {
            "name": "Test Song",
            "artists": [{"name": "Test Artist"}, {"name": "Featured Artist"}],
            "album": {"name": "Test Album", "images": [{"url": "https://example.com/image.jpg"}]},
            "duration_ms": 240000,
            "uri": "spotify:track:test123",
        },
        "progress_ms": 60000,
        "shuffle_state": False,
        "repeat_state": "context",
        "timestamp": 1700000000000,
        "actions": {"disallows": {"resuming": True}},
    }


@pytest.fixture
def emitted(context):
    """Record every payload emitted on the user-facing topics."""
    records: dict[str, list] = {topic.value: [] for topic in Topic}
    for topic in Topic:
        context.bus.on(topic, records[topic.value].append)
    return records
