"""
Typed success/failure values for calls into optional-availability dependencies.

The vector index returns a Result instead of raising so that one unreachable
database never unwinds past the indexing coordinator. Errors are only
swallowed at the outermost dispatch boundary; everywhere else a failed Result
carries the original MemoraError up the stack.

Usage:
    result = await vector_index.ensure_collection(container_id)
    if not result.ok:
        logger.warning(f"Collection unavailable: {result.error}")
        return ...
    value = result.unwrap()
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from app.shared.errors import MemoraError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the MemoraError that prevented producing one."""

    value: Optional[T] = None
    error: Optional[MemoraError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: MemoraError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value, re-raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value
