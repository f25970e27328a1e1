"""
Shared OpenAI client for the ingestion service.

Used for embeddings only; one client per API key, reused across calls.
"""

import logging
from functools import lru_cache
from typing import Optional

from openai import AsyncOpenAI

from app.shared.errors import ConfigurationError

logger = logging.getLogger("Memora.Services.OpenAI")


@lru_cache(maxsize=4)
def get_openai_client(api_key: Optional[str]) -> AsyncOpenAI:
    """
    Get the OpenAI async client for `api_key`.

    Raises:
        ConfigurationError: If no API key is configured
    """
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY is not set")

    client = AsyncOpenAI(api_key=api_key)
    logger.info("OpenAI client initialized")
    return client
