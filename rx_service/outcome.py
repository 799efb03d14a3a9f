"""Result of a best-effort step: the value to use plus why it degraded, if it did."""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T
    ok: bool = True
    reason: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value=value, ok=False, reason=reason)

    @property
    def degraded(self) -> bool:
        return not self.ok
