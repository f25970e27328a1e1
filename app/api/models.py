from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


# =========================================================================
# INGESTION MODELS
# =========================================================================

class IngestTextRequest(BaseModel):
    text: str

class IngestMediaRequest(BaseModel):
    file_ref: Optional[str] = None  # Defaults to the file stored on the source
    language: Optional[str] = None

class AcceptedResponse(BaseModel):
    status: str = "accepted"
    source_id: int
    operation: str

class DocumentIngestResponse(AcceptedResponse):
    metadata: Dict[str, Any] = {}


# =========================================================================
# CAPTURE MODELS
# =========================================================================

class CaptureRequest(BaseModel):
    meeting_url: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    title: Optional[str] = None

class CaptureSessionResponse(BaseModel):
    bot_id: str
    source_id: int
    platform: str

class CaptureStatusResponse(BaseModel):
    bot_id: str
    state: str
    is_terminal: bool
    code: Optional[str] = None
    message: Optional[str] = None
    source_id: Optional[int] = None
    transcription_status: Optional[str] = None

class BotTranscriptResponse(BaseModel):
    bot_id: str
    transcript: str


# =========================================================================
# SEARCH MODELS
# =========================================================================

class SearchRequest(BaseModel):
    query: str = Field(..., description="Search query text")
    top_k: int = Field(5, ge=1, le=50, description="Max fragments to return")

class SearchHitModel(BaseModel):
    source_id: int
    kind: Optional[str] = None
    name: Optional[str] = None
    position: int
    text: str
    score: float

class SearchResponseModel(BaseModel):
    """`available=False` means search is degraded; the error says why."""
    query: str
    available: bool
    results: List[SearchHitModel]
    total: int
    error: Optional[str] = None
