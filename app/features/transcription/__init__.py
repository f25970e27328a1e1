"""
Transcription - speech-to-text for audio and video Sources.

Provider adapters implement SpeechToTextProvider and return a
TranscriptionResult; the pipeline persists the normalized text and hands it
to the indexing coordinator.
"""

from app.features.transcription.base import SpeechToTextProvider
from app.features.transcription.normalizer import TranscriptionResult, Utterance
from app.features.transcription.pipeline import TranscriptionPipeline

__all__ = [
    "SpeechToTextProvider",
    "TranscriptionResult",
    "Utterance",
    "TranscriptionPipeline",
]
