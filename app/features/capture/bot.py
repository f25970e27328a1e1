"""
Capture bot lifecycle - observing a remote meeting bot.

The bot is owned by the provider; Memora only maps the provider's status
codes onto its own states and extracts the recording once it exists:

    created -> joining -> waiting -> recording -> ended
            -> recording_available | failed
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from app.services.recall import RecallClient
from app.shared.errors import RecordingNotAvailable, ValidationError

logger = logging.getLogger("Memora.Capture.Bot")


class BotState(str, Enum):
    CREATED = "created"
    JOINING = "joining"
    WAITING = "waiting"
    RECORDING = "recording"
    ENDED = "ended"
    RECORDING_AVAILABLE = "recording_available"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (BotState.RECORDING_AVAILABLE, BotState.FAILED)


STATUS_CODES = {
    "ready": BotState.CREATED,
    "joining_call": BotState.JOINING,
    "in_waiting_room": BotState.WAITING,
    "in_call_not_recording": BotState.WAITING,
    "in_call_recording": BotState.RECORDING,
    "call_ended": BotState.ENDED,
    "done": BotState.RECORDING_AVAILABLE,
    "analysis_done": BotState.RECORDING_AVAILABLE,
    "fatal": BotState.FAILED,
    "recording_permission_denied": BotState.FAILED,
    "media_expired": BotState.FAILED,
}

PLATFORMS = [
    ("zoom", ("zoom.us",)),
    ("teams", ("teams.microsoft.com", "teams.live.com")),
    ("meet", ("meet.google.com",)),
    ("webex", ("webex.com",)),
]


@dataclass(frozen=True)
class BotStatus:
    bot_id: str
    state: BotState
    code: Optional[str] = None
    message: Optional[str] = None


def map_status(code: Optional[str]) -> BotState:
    return STATUS_CODES.get(code or "", BotState.UNKNOWN)


def detect_platform(meeting_url: str) -> str:
    """Label a meeting URL with its conferencing product. Labeling only."""
    url = (meeting_url or "").lower()
    for platform, hosts in PLATFORMS:
        if any(host in url for host in hosts):
            return platform
    return "unknown"


def latest_status(bot: Dict[str, Any]) -> Dict[str, Any]:
    """The bot's current status entry, from `status` or the last of `status_changes`."""
    status = bot.get("status")
    if isinstance(status, dict) and status.get("code"):
        return status
    changes = bot.get("status_changes") or []
    return changes[-1] if changes else {}


def recording_url(bot: Dict[str, Any]) -> Optional[str]:
    """Mixed audio download URL if any recording has one, else mixed video."""
    recordings = bot.get("recordings") or []
    for shortcut in ("audio_mixed", "video_mixed"):
        for recording in recordings:
            media = (recording.get("media_shortcuts") or {}).get(shortcut) or {}
            url = (media.get("data") or {}).get("download_url")
            if url:
                return url
    return None


def format_bot_transcript(transcript: List[Dict[str, Any]]) -> str:
    """Flatten the provider's transcript to `Speaker: words` paragraphs."""
    lines = []
    for entry in transcript or []:
        speaker = entry.get("speaker") or (entry.get("participant") or {}).get("name") or "Unknown"
        words = entry.get("words") or []
        text = " ".join(w.get("text", "") for w in words).strip() or entry.get("text", "")
        lines.append(f"{speaker}: {text}")
    return "\n\n".join(lines)


class CaptureBotService:
    """createBot / pollStatus / stop / fetchRecordingUrl over the Recall.ai client."""

    def __init__(self, client: RecallClient, default_name: str = "Memora Notetaker"):
        self.client = client
        self.default_name = default_name

    async def create_bot(self, meeting_url: str, display_name: Optional[str] = None) -> str:
        """
        Send a bot to `meeting_url` and return its ID.

        Raises:
            ValidationError: empty or non-http(s) meeting URL
        """
        meeting_url = (meeting_url or "").strip()
        if not meeting_url:
            raise ValidationError("Meeting URL is required")
        if not meeting_url.startswith(("http://", "https://")):
            raise ValidationError(f"Meeting URL must be an http(s) link: {meeting_url}")

        bot = await self.client.create_bot(meeting_url, display_name or self.default_name)
        return bot["id"]

    async def poll_status(self, bot_id: str) -> BotStatus:
        bot = await self.client.get_bot(bot_id)
        status = latest_status(bot)
        code = status.get("code")
        state = map_status(code)
        if state is BotState.UNKNOWN and code:
            logger.debug(f"Bot {bot_id}: unmapped status code {code}")
        return BotStatus(bot_id=bot_id, state=state, code=code, message=status.get("message"))

    async def stop(self, bot_id: str) -> None:
        await self.client.leave_call(bot_id)

    async def fetch_recording_url(self, bot_id: str) -> str:
        """
        Download URL of the bot's recording, audio preferred over video.

        Raises:
            RecordingNotAvailable: the bot has neither
        """
        bot = await self.client.get_bot(bot_id)
        url = recording_url(bot)
        if not url:
            raise RecordingNotAvailable(bot_id)
        return url

    async def fetch_transcript(self, bot_id: str) -> str:
        return format_bot_transcript(await self.client.get_transcript(bot_id))
