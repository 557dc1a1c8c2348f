"""Backend configuration module"""

from .sync_config import (
    DEFAULT_SEARCH_QUERIES,
    SyncConfig,
    load_sync_config,
)

__all__ = [
    "DEFAULT_SEARCH_QUERIES",
    "SyncConfig",
    "load_sync_config",
]
