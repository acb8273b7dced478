"""Runtime lifespan management."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx

from spotify_sync import __version__
from spotify_sync.config import Settings, get_settings
from spotify_sync.core.app_factory import SyncRuntime, create_runtime
from spotify_sync.logging_config import get_logger, log_with_context
from spotify_sync.state_managers import ConnectedAccountsManager
from spotify_sync.utils.redaction import redact_headers, redact_sensitive_data

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log requests with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        headers=redact_headers(dict(request.headers)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log responses with redacted sensitive data."""
    log_with_context(
        logger,
        "debug",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared HTTP client with granular timeouts and logging hooks."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=settings.http_connect_timeout,
            read=settings.http_read_timeout,
            write=5.0,
            pool=5.0,
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,  # How long to keep idle connections
        ),
        follow_redirects=True,
        event_hooks=event_hooks,
    )


@asynccontextmanager
async def sync_lifespan(
    accounts: ConnectedAccountsManager | None = None,
    settings: Settings | None = None,
    should_show_activity: Callable[[], bool] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[SyncRuntime]:
    """Run the sync core for the duration of the ``async with`` block.

    Exceptions raised inside the block are logged and re-raised after
    cleanup has run. A client passed in by the caller is not closed here.
    """
    settings = settings or get_settings()

    log_with_context(
        logger,
        "info",
        "Starting spotify-sync",
        version=__version__,
        event_type="app_startup",
    )

    owns_client = http_client is None
    client = http_client or create_http_client(settings)
    runtime = create_runtime(client, accounts, settings, should_show_activity)

    await runtime.initialize()
    log_with_context(
        logger,
        "info",
        "State managers initialized",
        event_type="state_managers_ready",
    )

    try:
        yield runtime
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Error during sync lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        # Cleanup always runs, even if exception was raised
        log_with_context(
            logger,
            "info",
            "Shutting down spotify-sync",
            event_type="app_shutdown",
        )

        await runtime.cleanup()
        log_with_context(
            logger,
            "info",
            "State managers cleaned up",
            event_type="state_managers_cleanup",
        )

        if owns_client:
            await client.aclose()
            log_with_context(
                logger,
                "info",
                "HTTP client closed",
                event_type="http_client_cleanup",
            )
