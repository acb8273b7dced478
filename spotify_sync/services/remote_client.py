"""Authenticated Spotify Web API client for player commands.

Every request refreshes the access token at most once on HTTP 401 and
holds the suppression flag while it is in flight.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from spotify_sync.config import Settings, get_settings
from spotify_sync.context import SyncContext
from spotify_sync.events import Topic
from spotify_sync.exceptions import (
    ErrorCode,
    MalformedResponseException,
    NoAccountException,
    NotAuthenticatedException,
    RemoteRequestException,
    SyncException,
    TokenRefreshException,
    TransportUnreachableException,
)
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.models import Notification, NotificationKind
from spotify_sync.protocols import ConnectedAccountsProvider, TokenRefresherProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestOutcome:
    """Result of one logical command, retries included.

    ``response`` is None only for requests short-circuited before the
    network was touched.
    """

    response: httpx.Response | None = None
    error: ErrorCode | None = None
    retried: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None

    def raise_for_error(self) -> None:
        """Raise the taxonomy exception matching ``error``, if any."""
        if self.error is None:
            return
        if self.error == ErrorCode.NO_ACCOUNT:
            raise NoAccountException()
        if self.error == ErrorCode.UNAUTHENTICATED:
            raise NotAuthenticatedException()
        if self.error == ErrorCode.REFRESH_FAILED:
            raise TokenRefreshException(details={"status_code": self.status_code})
        if self.error == ErrorCode.TRANSPORT_UNREACHABLE:
            raise TransportUnreachableException()
        if self.error == ErrorCode.MALFORMED_RESPONSE:
            raise MalformedResponseException(details={"status_code": self.status_code})
        if self.error == ErrorCode.REMOTE_REQUEST_FAILED:
            raise RemoteRequestException(
                f"Spotify request failed (HTTP {self.status_code})",
                status_code=self.status_code or 502,
            )
        # AUTH_EXPIRED and generic codes keep their own code on the base exception
        raise SyncException(
            f"Spotify request failed: {self.error.value}",
            code=self.error,
            status_code=self.status_code,
        )


class RemoteControlClient:
    """Issues player requests on behalf of a connected account.

    Callers only ever see the final RequestOutcome; token refresh and the
    single retry happen inside ``send``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        context: SyncContext,
        accounts: ConnectedAccountsProvider,
        refresher: TokenRefresherProtocol,
        settings: Settings | None = None,
    ):
        """Initialize the remote control client.

        Args:
            client: Shared HTTP client
            context: Sync context (bus for notifications, suppression flag)
            accounts: Provider of connected accounts and their access tokens
            refresher: Token-issuance collaborator used on HTTP 401
            settings: Settings instance (defaults to singleton)
        """
        self._client = client
        self._context = context
        self._accounts = accounts
        self._refresher = refresher
        self._settings = settings or get_settings()

    def build_url(self, endpoint: str) -> str:
        return self._settings.spotify_api_base_url + endpoint.lstrip("/")

    async def send(
        self,
        account_id: str,
        endpoint: str,
        method: str = "GET",
        *,
        json: Any = None,
        is_retry: bool = False,
    ) -> RequestOutcome:
        """
        Send an authenticated request to the Spotify player API.

        Args:
            account_id: Connected account to act as.
            endpoint: Path below the API root, e.g. ``player/seek?position_ms=0``.
            method: HTTP method.
            json: Optional JSON body.
            is_retry: True for the single retry after a token refresh.

        Returns:
            RequestOutcome; non-2xx responses are returned with ``error`` set.

        Raises:
            TransportUnreachableException: If the API could not be reached.
        """
        if not account_id:
            log_with_context(
                logger,
                "debug",
                "Request skipped, no account id",
                endpoint=endpoint,
                event_type="spotify_request_no_account",
            )
            return RequestOutcome(error=ErrorCode.NO_ACCOUNT)

        account = self._accounts.get_account(account_id, self._settings.service_type)
        token = account.access_token if account is not None else None
        if not token:
            log_with_context(
                logger,
                "debug",
                "Request skipped, account has no access token",
                account_id=account_id,
                endpoint=endpoint,
                event_type="spotify_request_unauthenticated",
            )
            return RequestOutcome(error=ErrorCode.UNAUTHENTICATED)

        suppression = self._context.suppression
        suppression.set()
        try:
            try:
                response = await self._client.request(
                    method,
                    self.build_url(endpoint),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {token}",
                    },
                    json=json,
                )
            except httpx.TransportError as e:
                log_with_context(
                    logger,
                    "error",
                    "Spotify API unreachable",
                    account_id=account_id,
                    endpoint=endpoint,
                    error=str(e),
                    error_type=type(e).__name__,
                    event_type="spotify_transport_error",
                )
                raise TransportUnreachableException(
                    f"Spotify API unreachable: {str(e)}",
                    details={"account_id": account_id, "endpoint": endpoint},
                ) from e

            if response.status_code == 401:
                if not is_retry and await self._refresh(account_id):
                    log_with_context(
                        logger,
                        "info",
                        "Retrying with refreshed token",
                        account_id=account_id,
                        endpoint=endpoint,
                        error_code=ErrorCode.AUTH_EXPIRED.value,
                        event_type="spotify_request_retry",
                    )
                    outcome = await self.send(account_id, endpoint, method, json=json, is_retry=True)
                    return RequestOutcome(response=outcome.response, error=outcome.error, retried=True)

                log_with_context(
                    logger,
                    "error",
                    "Retrying request failed",
                    account_id=account_id,
                    endpoint=endpoint,
                    status_code=response.status_code,
                    event_type="spotify_request_refresh_failed",
                )
                self._notify_failure(response.status_code)
                return RequestOutcome(response=response, error=ErrorCode.REFRESH_FAILED)

            if not response.is_success:
                log_with_context(
                    logger,
                    "error",
                    "Control action failed",
                    account_id=account_id,
                    endpoint=endpoint,
                    method=method,
                    status_code=response.status_code,
                    event_type="spotify_request_failed",
                )
                self._notify_failure(response.status_code)
                return RequestOutcome(response=response, error=ErrorCode.REMOTE_REQUEST_FAILED)

            return RequestOutcome(response=response)
        finally:
            # Unconditional: a concurrent request loses its window early
            suppression.clear()

    async def _refresh(self, account_id: str) -> bool:
        log_with_context(logger, "info", "Reauthenticating", account_id=account_id, event_type="spotify_reauth")
        try:
            await self._refresher.refresh_access_token(account_id)
        except SyncException as e:
            log_with_context(
                logger,
                "warning",
                "Token refresh failed",
                account_id=account_id,
                error=e.message,
                error_code=e.code.value,
                event_type="spotify_reauth_failed",
            )
            return False
        return True

    def _notify_failure(self, status_code: int) -> None:
        self._context.bus.emit(
            Topic.NOTIFICATION,
            Notification(
                message=f"{self._settings.notification_prefix} control action failed (HTTP {status_code})",
                kind=NotificationKind.FAILURE,
            ),
        )
