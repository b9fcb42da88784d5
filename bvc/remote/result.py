"""
Result type returned by every remote operation.

Remote calls never raise on expected failures; callers decide whether a
failure is a warning (commit --remote) or fatal (checkpoint) via unwrap().
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ..core.errors import BvcError

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    """
    Outcome of one remote call.

    Fields:
        ok: Call succeeded
        value: Payload when ok
        error: Typed error when not ok
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[BvcError] = None

    @classmethod
    def success(cls, value: T) -> "RemoteResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BvcError) -> "RemoteResult[T]":
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """
        Get the value or raise the carried error.

        Raises:
            BvcError: The failure's typed error
        """
        if not self.ok:
            if self.error is None:
                raise BvcError("Remote call failed without an error")
            raise self.error
        return self.value  # type: ignore[return-value]
