"""Explicit per-stage outcome type."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """
    Value produced by a stage plus whether it degraded to a default.

    ``degraded`` is True when the stage could not use the service output
    (unparseable model response, unreadable transcript artifact) and returned
    its documented default payload instead. ``reason`` says why.
    """

    stage: str
    value: T
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, stage: str, value: T) -> "StageResult[T]":
        return cls(stage=stage, value=value)

    @classmethod
    def fallback(cls, stage: str, value: T, reason: str) -> "StageResult[T]":
        return cls(stage=stage, value=value, degraded=True, reason=reason)
