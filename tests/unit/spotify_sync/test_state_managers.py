"""Unit tests for state managers."""

import pytest

from spotify_sync.context import SyncContext
from spotify_sync.events import EventBus, Topic
from spotify_sync.models import ConnectedAccount
from spotify_sync.state_managers import AccountRegistry, ConnectedAccountsManager, SuppressionFlag

# AccountRegistry Tests


def test_account_registry_starts_empty():
    """Test no account is active initially."""
    registry = AccountRegistry(EventBus())

    assert registry.get_active() == ""


def test_account_registry_set_active_emits():
    """Test setting the active account emits activeAccount."""
    bus = EventBus()
    registry = AccountRegistry(bus)
    received = []
    registry.subscribe(received.append)

    registry.set_active("account-a")
    registry.set_active("")

    assert received == ["account-a", ""]
    assert registry.get_active() == ""


def test_account_registry_normalizes_none():
    """Test None is stored as the empty id."""
    registry = AccountRegistry(EventBus())

    registry.set_active(None)

    assert registry.get_active() == ""


@pytest.mark.asyncio
async def test_account_registry_cleanup():
    """Test cleanup forgets the active account without notifying."""
    bus = EventBus()
    registry = AccountRegistry(bus)
    registry.set_active("account-a")
    received = []
    bus.on(Topic.ACTIVE_ACCOUNT, received.append)

    await registry.cleanup()

    assert registry.get_active() == ""
    assert received == []


# SuppressionFlag Tests


def test_suppression_flag_is_a_single_bit():
    """Test setting twice and clearing once leaves the flag cleared."""
    flag = SuppressionFlag()

    flag.set()
    flag.set()
    flag.clear()

    assert flag.is_set is False


def test_suppression_flag_consume():
    """Test consume reports the previous value and resets."""
    flag = SuppressionFlag()

    assert flag.consume() is False

    flag.set()
    assert flag.consume() is True
    assert flag.is_set is False
    assert flag.consume() is False


# ConnectedAccountsManager Tests


def test_accounts_manager_get_account_filters_by_type(accounts):
    """Test accounts are only returned for the requested type."""
    assert accounts.get_account("account-a", "spotify").access_token == "token-a"
    assert accounts.get_account("steam-1", "spotify") is None
    assert accounts.get_account("steam-1", "steam") is not None
    assert accounts.get_account("missing", "spotify") is None


def test_accounts_manager_preserves_connection_order(accounts):
    """Test get_accounts returns accounts in insertion order."""
    assert [account.id for account in accounts.get_accounts()] == ["account-a", "account-b", "account-c", "steam-1"]


def test_accounts_manager_add_and_remove():
    """Test adding, replacing and removing accounts."""
    manager = ConnectedAccountsManager()
    manager.add_account(ConnectedAccount(id="one", access_token="t1"))
    manager.add_account(ConnectedAccount(id="one", access_token="t2"))

    assert manager.get_account("one", "spotify").access_token == "t2"

    manager.remove_account("one")
    manager.remove_account("one")

    assert manager.get_accounts() == []


def test_accounts_manager_set_access_token(accounts):
    """Test renewed tokens replace the stored ones."""
    accounts.set_access_token("account-a", "new-token")

    account = accounts.get_account("account-a", "spotify")
    assert account.access_token == "new-token"
    assert account.refresh_token == "refresh-a"

    accounts.set_access_token("account-a", "newer-token", "rotated-refresh")

    account = accounts.get_account("account-a", "spotify")
    assert account.access_token == "newer-token"
    assert account.refresh_token == "rotated-refresh"


def test_accounts_manager_set_access_token_unknown_account(accounts):
    """Test updating an unknown account raises KeyError."""
    with pytest.raises(KeyError):
        accounts.set_access_token("missing", "token")


@pytest.mark.asyncio
async def test_accounts_manager_cleanup_drops_access_tokens(accounts):
    """Test cleanup clears access tokens but keeps the accounts."""
    await accounts.initialize()
    await accounts.cleanup()

    account = accounts.get_account("account-b", "spotify")
    assert account.access_token is None
    assert account.refresh_token == "refresh-b"


# SyncContext Tests


@pytest.mark.asyncio
async def test_sync_context_shares_one_bus(spotify_playback_response):
    """Test store and registry publish on the context bus."""
    context = SyncContext()
    received = []
    context.bus.on(Topic.STATE, received.append).on(Topic.ACTIVE_ACCOUNT, received.append)

    await context.initialize()
    context.registry.set_active("account-a")
    context.store.set_state(spotify_playback_response)

    assert received[0] == "account-a"
    assert received[1].is_placeholder is False

    context.suppression.set()
    await context.cleanup()

    assert context.registry.get_active() == ""
    assert context.store.get_state().is_placeholder is True
    assert context.suppression.is_set is False
