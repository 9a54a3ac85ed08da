"""Structured per-attempt events.

Adapters never log their outcome themselves; ``run_attempt`` reports one
``StrategyEvent`` per invocation to whichever sink the orchestrator was given.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass

from ingest_service.ingestion.types import ErrorReason, MimeClass, StrategyName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyEvent:
    strategy: StrategyName
    mime_class: MimeClass
    succeeded: bool
    duration_ms: float
    text_length: int
    error_reason: ErrorReason | None = None
    error_message: str | None = None

    def as_log_fields(self) -> dict[str, object]:
        fields = asdict(self)
        fields["strategy"] = str(self.strategy)
        fields["mime_class"] = str(self.mime_class)
        fields["error_reason"] = str(self.error_reason) if self.error_reason else None
        fields["duration_ms"] = round(self.duration_ms, 1)
        return fields


EventSink = Callable[[StrategyEvent], None]


def log_strategy_event(event: StrategyEvent) -> None:
    """Default sink: one log record per attempt, fields passed as ``extra``."""
    level = logging.WARNING if event.error_reason is not None else logging.INFO
    logger.log(
        level,
        "strategy=%s succeeded=%s text_length=%d duration_ms=%.1f error_reason=%s",
        event.strategy,
        event.succeeded,
        event.text_length,
        event.duration_ms,
        event.error_reason or "-",
        extra={"event": event.as_log_fields()},
    )


class CollectingSink:
    """Keeps every event in memory, optionally forwarding to another sink."""

    def __init__(self, forward: EventSink | None = log_strategy_event) -> None:
        self.events: list[StrategyEvent] = []
        self._forward = forward

    def __call__(self, event: StrategyEvent) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward(event)
