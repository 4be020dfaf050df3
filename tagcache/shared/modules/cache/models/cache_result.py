from typing import Any, Optional
from pydantic import BaseModel

from ..enums.cache_error_kind_enum import CacheErrorKind


class CacheResult(BaseModel):
    """
    Outcome of a single store operation.

    Unlike the boolean facade contract, this tells "not found" apart from
    "the store failed". bool(result) gives the facade-compatible answer.
    """
    ok: bool
    value: Any = None
    error_kind: Optional[CacheErrorKind] = None
    error_message: Optional[str] = None

    @classmethod
    def success(cls, value: Any = True) -> "CacheResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error_kind: CacheErrorKind, error_message: Optional[str] = None) -> "CacheResult":
        return cls(ok=False, error_kind=error_kind, error_message=error_message)

    @classmethod
    def not_found(cls) -> "CacheResult":
        return cls.failure(CacheErrorKind.NOT_FOUND)

    @property
    def is_not_found(self) -> bool:
        return self.error_kind == CacheErrorKind.NOT_FOUND

    def value_or(self, default: Any = None) -> Any:
        return self.value if self.ok else default

    def __bool__(self) -> bool:
        return self.ok
