"""
Order Sync Configuration
Handles environment variables, validation, and mailbox search settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load from .env in the backend directory (Docker env vars take precedence)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path, override=False)


DEFAULT_SEARCH_QUERIES = [
    'from:"TikTok Shop"',
    "from:tiktokshop",
    "from:noreply@tiktok",
]


@dataclass
class SyncConfig:
    """Order sync configuration object"""
    platform_name: str = "tiktok"
    search_queries: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_QUERIES))
    max_results_per_query: int = 50
    max_messages_per_sync: int = 20
    sync_workers: int = 5
    default_category: str = "Fashion"

    def __post_init__(self):
        """Validate configuration after initialization"""
        self.validate()

    def validate(self):
        """Validate sync configuration"""
        if not self.platform_name or not self.platform_name.strip():
            raise ValueError("PLATFORM_NAME is required")

        if not self.search_queries:
            raise ValueError("At least one mailbox search query is required")

        if self.max_results_per_query <= 0:
            raise ValueError("MAILBOX_MAX_RESULTS must be greater than 0")

        if self.max_messages_per_sync <= 0:
            raise ValueError("MAX_MESSAGES_PER_SYNC must be greater than 0")

        if self.sync_workers <= 0:
            raise ValueError("SYNC_WORKERS must be greater than 0")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")


def load_sync_config() -> SyncConfig:
    """
    Load order sync configuration from environment variables.

    Environment Variables:
    - PLATFORM_NAME: Shop platform name matched against sender/subject (default: tiktok)
    - MAILBOX_SEARCH_QUERIES: '||'-separated mailbox search expressions
    - MAILBOX_MAX_RESULTS: Max messages returned per search query (default: 50)
    - MAX_MESSAGES_PER_SYNC: Max messages fetched and parsed per sync (default: 20)
    - SYNC_WORKERS: Parallel message fetches (default: 5)
    - DEFAULT_CATEGORY: Category assigned to email-derived orders (default: Fashion)

    Returns:
        SyncConfig object

    Raises:
        ValueError: If any value is invalid
    """
    queries_str = os.getenv("MAILBOX_SEARCH_QUERIES", "").strip()
    if queries_str:
        search_queries = [q.strip() for q in queries_str.split("||") if q.strip()]
    else:
        search_queries = list(DEFAULT_SEARCH_QUERIES)

    return SyncConfig(
        platform_name=os.getenv("PLATFORM_NAME", "tiktok").strip().lower(),
        search_queries=search_queries,
        max_results_per_query=_int_env("MAILBOX_MAX_RESULTS", 50),
        max_messages_per_sync=_int_env("MAX_MESSAGES_PER_SYNC", 20),
        sync_workers=_int_env("SYNC_WORKERS", 5),
        default_category=os.getenv("DEFAULT_CATEGORY", "Fashion").strip() or "Fashion",
    )
