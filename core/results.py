"""Fallible-with-warnings result used at page, part and file granularity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Either a value or an error, plus non-fatal warnings collected on the way."""

    value: Optional[T] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None) -> "Outcome[T]":
        return cls(value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: str, warnings: Optional[List[str]] = None) -> "Outcome[T]":
        return cls(error=error, warnings=list(warnings or []))
