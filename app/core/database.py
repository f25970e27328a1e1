"""
Supabase client for the ingestion service.

The async client is created lazily on first use and shared by the sources
repository and the storage collaborator.
"""

import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from app.core.config import settings, StorageConfig
from app.shared.errors import ConfigurationError

logger = logging.getLogger("Memora.Database")

_client: Optional[AsyncClient] = None


async def get_supabase(config: StorageConfig = settings.storage) -> AsyncClient:
    """Return the shared async Supabase client, creating it on first call."""
    global _client
    if _client is None:
        if not config.supabase_url or not config.supabase_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")
        _client = await acreate_client(config.supabase_url, config.supabase_key)
        logger.info("Supabase client initialized")
    return _client
