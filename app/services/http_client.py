"""
Pooled HTTP client for provider adapters.

Deepgram and Recall.ai calls go through one httpx.AsyncClient owned by
`http_client_manager`. Adapters take the client in their constructor, so
tests hand them one backed by httpx.MockTransport instead.

Lifecycle (see main.lifespan):
    await http_client_manager.startup()
    ...
    await http_client_manager.shutdown()
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger("Memora.HTTP.Client")

USER_AGENT = "memora-ingestion-service/1.0"


class HTTPClientManager:
    """
    Owns the shared httpx.AsyncClient.

    The default timeout covers short REST calls (bot status, signed URLs);
    transcription requests override it per call.
    """

    def __init__(
        self,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        default_timeout: float = 30.0,
    ):
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self.timeout = httpx.Timeout(default_timeout)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def startup(self) -> None:
        if self.is_initialized:
            logger.warning("HTTP client manager already initialized")
            return
        self._client = httpx.AsyncClient(
            limits=self.limits,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        logger.info(f"HTTP client ready (max_connections={self.limits.max_connections})")

    async def shutdown(self) -> None:
        if not self.is_initialized:
            return
        await self._client.aclose()
        self._client = None
        logger.info("HTTP client closed")

    async def get_client(self) -> httpx.AsyncClient:
        """Return the shared client, starting it if the lifespan has not."""
        if not self.is_initialized:
            logger.warning("HTTP client used before startup, starting it now")
            await self.startup()
        return self._client


http_client_manager = HTTPClientManager()
