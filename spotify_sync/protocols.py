"""Protocol definitions for the collaborators the core depends on."""

from typing import Protocol

from spotify_sync.models import ConnectedAccount


class ConnectedAccountsProvider(Protocol):
    """Source of connected accounts and their access tokens.

    ConnectedAccountsManager implements this; hosts with their own account
    store can pass any object with the same shape.
    """

    def get_account(self, account_id: str, account_type: str) -> ConnectedAccount | None:
        """Get a connected account of the given type, or None."""
        ...

    def get_accounts(self) -> list[ConnectedAccount]:
        """Get all connected accounts in connection order."""
        ...


class TokenRefresherProtocol(Protocol):
    """Token-issuance collaborator used on HTTP 401."""

    async def refresh_access_token(self, account_id: str) -> str:
        """Obtain a new access token and make it visible to the accounts provider.

        Args:
            account_id: Account whose token expired

        Returns:
            The new access token

        Raises:
            SyncException: If no new token could be obtained
        """
        ...


class ActivityVisibilityPredicate(Protocol):
    """Host setting deciding whether player activity is shown at all."""

    def __call__(self) -> bool: ...
