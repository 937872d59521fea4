"""Structured decision trace returned alongside pricing results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceEvent:
    stage: str
    event: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "event": self.event, "details": dict(self.details)}


class PricingTrace:
    """Ordered record of the decisions taken while pricing one request.

    Each engine appends events (which tier matched, which tax applied, which
    selection was skipped) so tests and audit tooling can inspect the path
    without parsing log text. Every event is also logged at DEBUG.
    """

    def __init__(self) -> None:
        self._events: List[TraceEvent] = []

    def record(self, stage: str, event: str, **details: Any) -> TraceEvent:
        entry = TraceEvent(stage=stage, event=event, details=details)
        self._events.append(entry)
        logger.debug(f"[{stage}] {event} {details}")
        return entry

    @property
    def events(self) -> Tuple[TraceEvent, ...]:
        return tuple(self._events)

    def find(self, stage: str, event: Optional[str] = None) -> List[TraceEvent]:
        """Return events for a stage, optionally filtered by event name."""
        return [
            e for e in self._events
            if e.stage == stage and (event is None or e.event == event)
        ]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def __len__(self) -> int:
        return len(self._events)


def record(trace: Optional[PricingTrace], stage: str, event: str, **details: Any) -> None:
    """Append to ``trace`` when one was supplied, otherwise just log."""
    if trace is not None:
        trace.record(stage, event, **details)
    else:
        logger.debug(f"[{stage}] {event} {details}")
