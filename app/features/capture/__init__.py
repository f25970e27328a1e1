"""Capture - live-meeting bots and the watcher that turns their recordings into Sources."""

from app.features.capture.bot import (
    BotState,
    BotStatus,
    CaptureBotService,
    detect_platform,
    format_bot_transcript,
)
from app.features.capture.watcher import CaptureWatcher

__all__ = [
    "BotState",
    "BotStatus",
    "CaptureBotService",
    "CaptureWatcher",
    "detect_platform",
    "format_bot_transcript",
]
