"""Human-readable rendering of chain lifecycle events."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import assert_never

from forge_chain.schemas import (
    AgentCompletedEvent,
    AgentSpawnedEvent,
    ChainEndEvent,
    ChainEvent,
    ChainStartEvent,
    ErrorEvent,
    StageDescriptor,
    StageEndEvent,
    StageIterationEvent,
    StageStartEvent,
)

logger = logging.getLogger("forge_chain.events")


def format_duration(seconds: float) -> str:
    """Format a duration as ``850ms``, ``42s``, ``3m`` or ``3m 5s``."""
    millis = int(round(max(0.0, seconds) * 1000))
    if millis < 1000:
        return f"{millis}ms"
    whole = millis // 1000
    if whole < 60:
        return f"{whole}s"
    minutes, remainder = divmod(whole, 60)
    if remainder:
        return f"{minutes}m {remainder}s"
    return f"{minutes}m"


def format_pipeline(stages: Sequence[StageDescriptor]) -> str:
    return " -> ".join(stage.name for stage in stages)


def format_chain_event(event: ChainEvent) -> str:
    """Return a one-line terminal rendering of *event*."""
    match event:
        case ChainStartEvent():
            return f"[chain] Starting: {format_pipeline(event.stages)}"
        case ChainEndEvent():
            status = "Complete" if event.result.success else "Failed"
            return f"[chain] {status} ({format_duration(event.result.total_duration_seconds)})"
        case StageStartEvent():
            return f"[{event.stage.name}] Starting..."
        case StageEndEvent():
            status = "Completed" if event.result.success else "Failed"
            duration = format_duration(event.result.duration_seconds)
            error = f": {event.result.error}" if event.result.error else ""
            return f"[{event.stage.name}] {status} ({duration}){error}"
        case StageIterationEvent():
            return f"[{event.stage.name}] Starting iteration {event.iteration}..."
        case AgentSpawnedEvent():
            return f"[{event.role}] Spawned agent ({event.session_id})"
        case AgentCompletedEvent():
            return f"[{event.role}] Agent completed ({event.session_id})"
        case ErrorEvent():
            prefix = f"[{event.stage.name}] " if event.stage is not None else ""
            return f"{prefix}Error: {event.message}"
        case _:
            assert_never(event)


def _level_for(event: ChainEvent) -> int:
    if isinstance(event, ErrorEvent):
        return logging.ERROR
    if isinstance(event, StageEndEvent | ChainEndEvent) and not event.result.success:
        return logging.WARNING
    return logging.INFO


def make_logging_sink(target: logging.Logger | None = None) -> Callable[[ChainEvent], None]:
    """Return an event sink that writes formatted events to *target*."""
    log = target or logger

    def sink(event: ChainEvent) -> None:
        log.log(_level_for(event), "%s", format_chain_event(event))

    return sink
