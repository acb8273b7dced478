"""Runtime construction and lifecycle."""

from spotify_sync.core.app_factory import SyncRuntime, create_runtime
from spotify_sync.core.lifespan import sync_lifespan

__all__ = ["SyncRuntime", "create_runtime", "sync_lifespan"]
