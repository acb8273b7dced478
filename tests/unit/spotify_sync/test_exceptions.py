"""Tests for custom exception classes."""

from spotify_sync.exceptions import (
    ConfigurationException,
    ErrorCode,
    MalformedResponseException,
    NoAccountException,
    NotAuthenticatedException,
    RemoteRequestException,
    SyncException,
    TokenRefreshException,
    TransportUnreachableException,
)


class TestErrorCodes:
    """Tests for ErrorCode enum."""

    def test_error_code_values(self):
        """Test that error codes have correct values."""
        assert ErrorCode.SYNC_ERROR == "SYNC_ERROR"
        assert ErrorCode.NO_ACCOUNT == "NO_ACCOUNT"
        assert ErrorCode.REFRESH_FAILED == "REFRESH_FAILED"
        assert ErrorCode.TRANSPORT_UNREACHABLE == "TRANSPORT_UNREACHABLE"


class TestSyncException:
    """Tests for SyncException."""

    def test_sync_exception_basic(self):
        """Test creating basic sync exception."""
        exc = SyncException(message="Test error")

        assert exc.message == "Test error"
        assert exc.code == ErrorCode.SYNC_ERROR
        assert exc.status_code is None
        assert exc.details == {}
        assert str(exc) == "Test error"

    def test_sync_exception_with_details(self):
        """Test sync exception with details."""
        exc = SyncException(
            message="Test error", code=ErrorCode.AUTH_EXPIRED, status_code=401, details={"account_id": "a", "count": 2}
        )

        assert exc.code == ErrorCode.AUTH_EXPIRED
        assert exc.status_code == 401
        assert exc.details["account_id"] == "a"
        assert exc.details["count"] == 2


class TestRequestExceptions:
    """Tests for outbound request exceptions."""

    def test_defaults(self):
        """Test each request failure carries its code."""
        assert NoAccountException().code == ErrorCode.NO_ACCOUNT
        assert NotAuthenticatedException().status_code == 401
        assert TokenRefreshException().message == "Spotify token refresh failed"
        assert TransportUnreachableException().code == ErrorCode.TRANSPORT_UNREACHABLE
        assert MalformedResponseException().code == ErrorCode.MALFORMED_RESPONSE

    def test_remote_request_exception(self):
        """Test remote failures keep the response status."""
        exc = RemoteRequestException("Not found", status_code=404, details={"endpoint": "player"})

        assert exc.code == ErrorCode.REMOTE_REQUEST_FAILED
        assert exc.status_code == 404
        assert exc.details == {"endpoint": "player"}

    def test_inherit_from_sync_exception(self):
        """Test that all request exceptions inherit from SyncException."""
        for exc_type in (
            NoAccountException,
            NotAuthenticatedException,
            TokenRefreshException,
            TransportUnreachableException,
            MalformedResponseException,
        ):
            assert isinstance(exc_type(), SyncException)


class TestConfigurationException:
    """Tests for ConfigurationException."""

    def test_configuration_exception(self):
        """Test configuration exception."""
        exc = ConfigurationException(message="Missing client secret", details={"field": "spotify_client_secret"})

        assert exc.code == ErrorCode.CONFIG_ERROR
        assert exc.status_code is None
        assert isinstance(exc, SyncException)
