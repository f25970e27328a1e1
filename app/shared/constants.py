"""
Shared constants for the ingestion core.

Source kinds and status values mirror the columns of the `sources` table.
"""

from enum import Enum


class SourceKind(str, Enum):
    """What a Source was ingested from."""

    TEXT = "text"
    MEETING = "meeting"
    VOICE_NOTE = "voice_note"
    DOCUMENT = "document"
    UPLOAD = "upload"


class TranscriptionStatus(str, Enum):
    """Lifecycle of an audio/video Source's transcription."""

    NONE = "none"
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


class IndexStatus(str, Enum):
    """Outcome of the most recent indexing run recorded on a Source."""

    NONE = "none"
    INDEXED = "indexed"
    FAILED = "failed"


# Point IDs are sourceId * PARTITION_SIZE + position, so a single Source can
# never hold more than PARTITION_SIZE fragments (positions 0..PARTITION_SIZE-1).
PARTITION_SIZE = 10_000

COLLECTION_PREFIX = "memora-space-"

# Metadata keys stored on meeting Sources created by a capture bot
BOT_ID_KEY = "recallBotId"
BOT_MEETING_URL_KEY = "meetingUrl"
BOT_PLATFORM_KEY = "platform"
BOT_STATE_KEY = "botState"
