import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class EmbeddingConfig:
    """OpenAI embeddings. `dimensions` is fixed for the lifetime of a collection."""

    api_key: Optional[str] = None
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    batch_size: int = 100
    max_input_chars: int = 8000

    @classmethod
    def from_env(cls) -> "EmbeddingConfig":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("EMBEDDING_MODEL", cls.model),
            dimensions=_env_int("EMBEDDING_DIMENSIONS", cls.dimensions),
        )


@dataclass(frozen=True)
class QdrantConfig:
    url: str = "http://localhost:6333"
    api_key: Optional[str] = None
    dimensions: int = 1536
    score_threshold: float = 0.3
    upsert_batch_size: int = 100
    timeout: int = 30

    @classmethod
    def from_env(cls) -> "QdrantConfig":
        return cls(
            url=os.getenv("QDRANT_URL", cls.url),
            api_key=os.getenv("QDRANT_API_KEY") or None,
            dimensions=_env_int("EMBEDDING_DIMENSIONS", cls.dimensions),
            score_threshold=_env_float("SEARCH_SCORE_THRESHOLD", cls.score_threshold),
        )


@dataclass(frozen=True)
class DeepgramConfig:
    api_key: Optional[str] = None
    api_url: str = "https://api.deepgram.com/v1"
    model: str = "nova-2"

    @classmethod
    def from_env(cls) -> "DeepgramConfig":
        return cls(
            api_key=os.getenv("DEEPGRAM_API_KEY"),
            api_url=os.getenv("DEEPGRAM_API_URL", cls.api_url),
            model=os.getenv("DEEPGRAM_MODEL", cls.model),
        )


@dataclass(frozen=True)
class RecallConfig:
    api_key: Optional[str] = None
    api_url: str = "https://us-west-2.recall.ai/api/v1"
    bot_name: str = "Memora Notetaker"
    # Provider-side automatic leave, in seconds
    waiting_room_timeout: int = 600
    noone_joined_timeout: int = 600
    everyone_left_timeout: int = 300

    @classmethod
    def from_env(cls) -> "RecallConfig":
        return cls(
            api_key=os.getenv("RECALL_API_KEY"),
            api_url=os.getenv("RECALL_API_URL", cls.api_url).rstrip("/"),
            bot_name=os.getenv("RECALL_BOT_NAME", cls.bot_name),
        )


@dataclass(frozen=True)
class StorageConfig:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    bucket: str = "memora-files"
    signed_url_ttl: int = 3600

    @classmethod
    def from_env(cls) -> "StorageConfig":
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            bucket=os.getenv("STORAGE_BUCKET", cls.bucket),
        )


@dataclass(frozen=True)
class ChunkingConfig:
    target_size: int = 500
    overlap: int = 50
    # How far either side of the target a sentence boundary may be
    boundary_window: int = 100

    @classmethod
    def from_env(cls) -> "ChunkingConfig":
        return cls(
            target_size=_env_int("CHUNK_SIZE", cls.target_size),
            overlap=_env_int("CHUNK_OVERLAP", cls.overlap),
        )


@dataclass(frozen=True)
class TranscriptionConfig:
    """
    Speech-to-text call budget.

    timeout = base_timeout + size_in_mb * seconds_per_mb, capped at max_timeout.
    When the media size is unknown, default_timeout is used.
    """

    language: str = "fr"
    base_timeout: float = 120.0
    seconds_per_mb: float = 6.0
    max_timeout: float = 3600.0
    default_timeout: float = 900.0

    @classmethod
    def from_env(cls) -> "TranscriptionConfig":
        return cls(
            language=os.getenv("TRANSCRIPTION_LANGUAGE", cls.language),
            max_timeout=_env_float("TRANSCRIPTION_MAX_TIMEOUT", cls.max_timeout),
        )

    def timeout_for(self, size_bytes: Optional[int]) -> float:
        if not size_bytes:
            return self.default_timeout
        size_mb = size_bytes / (1024 * 1024)
        return min(self.base_timeout + size_mb * self.seconds_per_mb, self.max_timeout)


@dataclass(frozen=True)
class DispatchConfig:
    max_concurrency: int = 4
    shutdown_grace: float = 30.0
    bot_poll_interval: float = 5.0
    bot_max_wait: float = 4 * 60 * 60

    @classmethod
    def from_env(cls) -> "DispatchConfig":
        return cls(
            max_concurrency=_env_int("INGESTION_MAX_CONCURRENCY", cls.max_concurrency),
            bot_poll_interval=_env_float("BOT_POLL_INTERVAL", cls.bot_poll_interval),
            bot_max_wait=_env_float("BOT_MAX_WAIT", cls.bot_max_wait),
        )


@dataclass(frozen=True)
class Config:
    """Central configuration for the ingestion service."""

    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    qdrant: QdrantConfig = field(default_factory=QdrantConfig)
    deepgram: DeepgramConfig = field(default_factory=DeepgramConfig)
    recall: RecallConfig = field(default_factory=RecallConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    environment: str = "production"

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            embedding=EmbeddingConfig.from_env(),
            qdrant=QdrantConfig.from_env(),
            deepgram=DeepgramConfig.from_env(),
            recall=RecallConfig.from_env(),
            storage=StorageConfig.from_env(),
            chunking=ChunkingConfig.from_env(),
            transcription=TranscriptionConfig.from_env(),
            dispatch=DispatchConfig.from_env(),
            environment=os.getenv("ENVIRONMENT", "production").lower(),
        )


settings = Config.from_env()
