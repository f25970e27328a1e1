# Shared constants, errors and utilities
from .constants import (
    PARTITION_SIZE,
    COLLECTION_PREFIX,
    SourceKind,
    TranscriptionStatus,
    IndexStatus,
)
from .errors import (
    MemoraError,
    ValidationError,
    NotFound,
    ProviderUnavailable,
    ConfigurationError,
)
from .result import Result

__all__ = [
    "PARTITION_SIZE",
    "COLLECTION_PREFIX",
    "SourceKind",
    "TranscriptionStatus",
    "IndexStatus",
    "MemoraError",
    "ValidationError",
    "NotFound",
    "ProviderUnavailable",
    "ConfigurationError",
    "Result",
]
