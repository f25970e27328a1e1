"""
Recall.ai meeting-bot REST client.

Returns provider JSON as-is; mapping onto Memora's bot states lives in
app.features.capture.bot.
"""

import logging
from typing import Any, Dict, List

import httpx

from app.core.config import RecallConfig
from app.shared.errors import ConfigurationError, NotFound, ProviderUnavailable

logger = logging.getLogger("Memora.Services.Recall")

PROVIDER = "recall"


class RecallClient:

    def __init__(self, config: RecallConfig, http_client: httpx.AsyncClient):
        self.config = config
        self.http = http_client

    def _headers(self) -> Dict[str, str]:
        if not self.config.api_key:
            raise ConfigurationError("RECALL_API_KEY is not set")
        return {"Authorization": f"Token {self.config.api_key}"}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.config.api_url}{path}"
        try:
            response = await self.http.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise NotFound(f"Recall.ai resource not found: {path}", resource_type="bot") from e
            logger.warning(f"Recall.ai {method} {path} returned {status}: {e.response.text[:200]}")
            raise ProviderUnavailable(PROVIDER, f"HTTP {status} on {path}", details={"status_code": status}) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(PROVIDER, f"{method} {path} failed: {e}") from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(PROVIDER, f"invalid JSON from {path}") from e

    async def create_bot(self, meeting_url: str, bot_name: str) -> Dict[str, Any]:
        """Send a bot into the meeting. It leaves on its own per the automatic_leave timeouts."""
        payload = {
            "meeting_url": meeting_url,
            "bot_name": bot_name,
            "automatic_leave": {
                "waiting_room_timeout": self.config.waiting_room_timeout,
                "noone_joined_timeout": self.config.noone_joined_timeout,
                "everyone_left_timeout": self.config.everyone_left_timeout,
            },
        }
        bot = await self._request("POST", "/bot", json=payload)
        logger.info(f"Recall.ai bot created: {bot.get('id')}")
        return bot

    async def get_bot(self, bot_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/bot/{bot_id}")

    async def get_transcript(self, bot_id: str) -> List[Dict[str, Any]]:
        transcript = await self._request("GET", f"/bot/{bot_id}/transcript")
        return transcript if isinstance(transcript, list) else []

    async def leave_call(self, bot_id: str) -> Dict[str, Any]:
        result = await self._request("POST", f"/bot/{bot_id}/leave_call")
        logger.info(f"Recall.ai bot {bot_id} asked to leave the call")
        return result
