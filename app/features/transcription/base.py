"""
Speech-to-text provider interface.

Adapters return a TranscriptionResult; the pipeline never sees provider JSON.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from app.features.transcription.normalizer import TranscriptionResult


class SpeechToTextProvider(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier stored as the Source's transcription provider."""
        pass

    @abstractmethod
    async def transcribe(
        self,
        media: Union[str, bytes],
        language: Optional[str] = None,
        diarize: bool = True,
        mime_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> TranscriptionResult:
        """
        Transcribe a readable URL or raw bytes.

        Raises:
            ProviderUnavailable: on any provider-side failure or timeout
        """
        pass
