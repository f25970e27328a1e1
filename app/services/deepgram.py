"""
Deepgram speech-to-text adapter (pre-recorded audio).

Sends either a URL (JSON body) or raw bytes to /listen and maps the answer to
the provider-neutral TranscriptionResult.
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from app.core.config import DeepgramConfig
from app.features.transcription.base import SpeechToTextProvider
from app.features.transcription.normalizer import TranscriptionResult, Utterance
from app.shared.errors import ConfigurationError, ProviderUnavailable

logger = logging.getLogger("Memora.Services.Deepgram")

PROVIDER = "deepgram"


def parse_response(payload: Dict[str, Any], language: Optional[str] = None) -> TranscriptionResult:
    """
    Map a Deepgram /listen response to a TranscriptionResult.

    Duration is the end of the last recognised word, falling back to
    metadata.duration when there are no words.
    """
    results = payload.get("results") or {}
    channels = results.get("channels") or [{}]
    channel = channels[0] or {}
    alternatives = channel.get("alternatives") or [{}]
    alternative = alternatives[0] or {}

    utterances = [
        Utterance(
            speaker=u.get("speaker"),
            text=u.get("transcript", ""),
            start=float(u.get("start", 0.0)),
            end=float(u.get("end", 0.0)),
        )
        for u in results.get("utterances") or []
    ]

    words = alternative.get("words") or []
    if words:
        duration = float(words[-1].get("end", 0.0))
    else:
        duration = (payload.get("metadata") or {}).get("duration")

    return TranscriptionResult(
        utterances=utterances,
        duration_seconds=round(duration) if duration is not None else None,
        detected_language=channel.get("detected_language") or language,
        transcript=alternative.get("transcript", "") or "",
    )


class DeepgramClient(SpeechToTextProvider):
    """Thin async client for Deepgram's pre-recorded transcription endpoint."""

    def __init__(self, config: DeepgramConfig, http_client: httpx.AsyncClient):
        self.config = config
        self.http = http_client

    @property
    def name(self) -> str:
        return PROVIDER

    async def transcribe(
        self,
        media: Union[str, bytes],
        language: Optional[str] = None,
        diarize: bool = True,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> TranscriptionResult:
        """
        Transcribe media given as a readable URL or raw bytes.

        Args:
            media: URL the provider can fetch, or the file content
            language: BCP-47 code; None lets the provider detect it
            diarize: Label utterances by speaker
            mime_type: Content type for raw bytes
            timeout: Per-request timeout in seconds

        Raises:
            ConfigurationError: DEEPGRAM_API_KEY missing
            ProviderUnavailable: HTTP error, timeout or unreadable answer
        """
        if not self.config.api_key:
            raise ConfigurationError("DEEPGRAM_API_KEY is not set")

        params = {
            "model": self.config.model,
            "punctuate": "true",
            "smart_format": "true",
            "diarize": "true" if diarize else "false",
            "utterances": "true",
        }
        if language:
            params["language"] = language
        else:
            params["detect_language"] = "true"

        headers = {"Authorization": f"Token {self.config.api_key}"}
        if isinstance(media, bytes):
            headers["Content-Type"] = mime_type or "application/octet-stream"
            request_kwargs = {"content": media}
        else:
            request_kwargs = {"json": {"url": media}}

        logger.info(f"Deepgram: transcribing {'bytes' if isinstance(media, bytes) else media[:50]}...")
        try:
            response = await self.http.post(
                f"{self.config.api_url}/listen",
                params=params,
                headers=headers,
                timeout=httpx.Timeout(timeout, connect=10.0) if timeout else httpx.USE_CLIENT_DEFAULT,
                **request_kwargs,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(PROVIDER, "transcription request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Deepgram returned {e.response.status_code}: {e.response.text[:200]}")
            raise ProviderUnavailable(
                PROVIDER,
                f"HTTP {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(PROVIDER, str(e) or type(e).__name__) from e

        return parse_response(payload, language)
