"""
Provider-neutral transcript model and its plain-text rendering.

Every speech-to-text adapter maps its response onto TranscriptionResult; the
pipeline and the indexer only ever see this shape and the rendered text, so
the provider can change without touching anything downstream.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Utterance:
    speaker: Optional[int]
    text: str
    start: float
    end: float


@dataclass(frozen=True)
class TranscriptionResult:
    utterances: List[Utterance] = field(default_factory=list)
    duration_seconds: Optional[float] = None
    detected_language: Optional[str] = None
    # Provider's flat transcript, used when there are no utterances
    transcript: str = ""


def format_timestamp(seconds: float) -> str:
    """`mm:ss`; minutes keep counting past 59."""
    total = int(max(seconds, 0))
    return f"{total // 60:02d}:{total % 60:02d}"


def speaker_label(speaker: Optional[int]) -> str:
    return f"Speaker {speaker}" if speaker is not None else "Speaker ?"


def to_text(result: TranscriptionResult) -> str:
    """
    Render as `[mm:ss] Speaker N: utterance` paragraphs separated by a blank line.

    Falls back to the flat transcript when the provider returned no utterances.
    """
    lines = [
        f"[{format_timestamp(u.start)}] {speaker_label(u.speaker)}: {u.text.strip()}"
        for u in result.utterances
        if u.text and u.text.strip()
    ]
    if lines:
        return "\n\n".join(lines)
    return (result.transcript or "").strip()


def speakers(result: TranscriptionResult) -> List[str]:
    """Distinct speaker labels in speaker-number order."""
    numbers = sorted({u.speaker for u in result.utterances if u.speaker is not None})
    return [speaker_label(n) for n in numbers]


def word_count(result: TranscriptionResult) -> int:
    if result.utterances:
        return sum(len(u.text.split()) for u in result.utterances)
    return len((result.transcript or "").split())
