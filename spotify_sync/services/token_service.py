"""On-demand Spotify access token refresh."""

import httpx

from spotify_sync.config import Settings, get_settings
from spotify_sync.exceptions import ConfigurationException, NotAuthenticatedException, TokenRefreshException
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.state_managers import ConnectedAccountsManager

logger = get_logger(__name__)


class SpotifyTokenRefresher:
    """Exchanges a connected account's refresh token for a new access token.

    The new token is written back to the ConnectedAccountsManager so the
    next request for the account picks it up.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        accounts: ConnectedAccountsManager,
        settings: Settings | None = None,
    ):
        """Initialize the refresher.

        Args:
            client: Shared HTTP client
            accounts: Connected accounts manager holding the refresh tokens
            settings: Settings instance (defaults to singleton)
        """
        self._client = client
        self._accounts = accounts
        self._settings = settings or get_settings()

    async def refresh_access_token(self, account_id: str) -> str:
        """
        Get a new access token using the refresh token flow.

        Args:
            account_id: Connected account whose token expired.

        Returns:
            Access token string.

        Raises:
            NotAuthenticatedException: If the account has no refresh token.
            ConfigurationException: If client credentials are not configured.
            TokenRefreshException: If the token request fails.
        """
        settings = self._settings
        account = self._accounts.get_account(account_id, settings.service_type)
        if account is None or not account.refresh_token:
            raise NotAuthenticatedException(
                "No refresh token available for account",
                details={"account_id": account_id},
            )
        if not settings.has_client_credentials:
            raise ConfigurationException("Spotify client credentials are not configured")

        log_with_context(
            logger,
            "info",
            "Refreshing Spotify access token",
            account_id=account_id,
            event_type="token_refresh",
        )

        try:
            response = await self._client.post(
                settings.spotify_token_url,
                auth=(settings.spotify_client_id, settings.spotify_client_secret),
                data={"grant_type": "refresh_token", "refresh_token": account.refresh_token},
            )
            response.raise_for_status()
            data = response.json()
            access_token = data["access_token"]
        except httpx.HTTPStatusError as e:
            raise TokenRefreshException(
                f"Spotify token refresh failed: HTTP {e.response.status_code}",
                details={"account_id": account_id, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise TokenRefreshException(
                f"Spotify token refresh failed: {str(e)}",
                details={"account_id": account_id},
            ) from e
        except (KeyError, ValueError, TypeError) as e:
            raise TokenRefreshException(
                f"Invalid Spotify auth response: {str(e)}",
                details={"account_id": account_id},
            ) from e

        # If a new refresh token is provided, keep it
        self._accounts.set_access_token(account_id, access_token, data.get("refresh_token"))

        log_with_context(
            logger,
            "info",
            "Spotify access token refreshed",
            account_id=account_id,
            expires_in=data.get("expires_in"),
            event_type="token_refreshed",
        )
        return access_token
