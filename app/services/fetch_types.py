"""
Shared dataclasses used across the scheduling pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from app.schemas import Broadcast


class LibraryKind(Enum):
    """Target collection a recording is filed under"""
    FILM = "film"
    TV = "tv"


@dataclass(frozen=True, slots=True)
class LibraryIds:
    """Resolved library ids; built once at startup and never changed."""
    tv: str
    film: str

    def for_kind(self, kind: LibraryKind) -> str:
        return self.film if kind is LibraryKind.FILM else self.tv


@dataclass(slots=True)
class ScheduleDecision:
    """Outcome of folding a scan's candidates."""
    due: list[Broadcast]
    next_wake: datetime
    next_broadcast: Broadcast | None = None
    due_channels: list[str] = field(default_factory=list)  # parallel to due


@dataclass(slots=True)
class CycleFailure:
    guid: str
    channel: str | None
    operation: str
    error: str

    def to_dict(self) -> dict:
        return {
            "guid": self.guid,
            "channel": self.channel,
            "operation": self.operation,
            "error": self.error,
        }


@dataclass(slots=True)
class CycleResult:
    started_at: datetime
    wake_at: datetime
    next_wake: datetime | None = None
    status: Literal["success", "partial", "failed"] = "success"
    channels_scanned: int = 0
    candidates: int = 0
    scheduled: list[str] = field(default_factory=list)
    failures: list[CycleFailure] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        payload = {
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "next_wake": self.next_wake.isoformat() if self.next_wake else None,
            "wake_at": self.wake_at.isoformat(),
            "channels_scanned": self.channels_scanned,
            "candidates": self.candidates,
            "scheduled": list(self.scheduled),
            "failures": [failure.to_dict() for failure in self.failures],
        }
        if self.error:
            payload["error"] = self.error
        return payload


__all__ = [
    "LibraryKind",
    "LibraryIds",
    "ScheduleDecision",
    "CycleFailure",
    "CycleResult",
]
