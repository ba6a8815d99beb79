"""Pydantic models for chain stages, results, and lifecycle events."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_TOTAL_ITERATIONS: int = 50
"""Global cap on loop-stage attempts across a whole chain run."""

DEFAULT_TIMEOUT_SECONDS: float = 30 * 60
"""Global wall-clock allowance for a chain run (30 minutes)."""

CancellationSignal = threading.Event | asyncio.Event
CompletionCheck = Callable[[Path], bool | Awaitable[bool]]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class StopReason(str, Enum):
    """Reason a stage or a whole chain stopped."""

    SINGLE_PASS = "single_pass"
    GOAL_MET = "goal_met"
    BUDGET_EXHAUSTED = "budget_exhausted"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    STAGE_FAILED = "stage_failed"
    COMPLETED = "completed"


class TaskStatus(str, Enum):
    """Workflow states of a task record held by the task store."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BLOCKED = "Blocked"


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

class StageDescriptor(BaseModel):
    """A single named step in a chain, bound to an agent role.

    Descriptors are immutable. Per-run data such as an injected prompt is
    attached with :meth:`with_prompt`, which returns a copy.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    loop: bool = False
    completion_check: CompletionCheck | None = None
    prompt: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, value: Any) -> Any:
        """Role names are stripped and lower-cased however the stage is built."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def with_prompt(self, prompt: str) -> StageDescriptor:
        """Return a copy of this stage carrying *prompt* for the next run."""
        return self.model_copy(update={"prompt": prompt})


class ModelConfig(BaseModel):
    """Model assignment per agent role."""

    planner: str | None = None
    task_manager: str | None = None
    coordinator: str | None = None
    worker: str | None = None
    # Fallback for roles without an explicit or built-in model.
    default: str | None = None


# ---------------------------------------------------------------------------
# Agent executor payloads
# ---------------------------------------------------------------------------

class SpawnRequest(BaseModel):
    """Everything an agent executor needs for one stage attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    role: str
    cwd: Path
    model: str | None = None
    prompt: str
    signal: CancellationSignal | None = None


class SpawnResult(BaseModel):
    """Outcome of one agent executor call."""

    success: bool = False
    session_id: str = ""
    messages: list[Any] = Field(default_factory=list)
    error: str | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class StageResult(BaseModel):
    """Recorded result of executing one stage."""

    stage: StageDescriptor
    success: bool = False
    iterations: int = 0
    duration_seconds: float = 0.0
    error: str | None = None
    stop_reason: StopReason | None = None


class ChainResult(BaseModel):
    """Aggregate result of a full chain run."""

    success: bool = False
    stage_results: list[StageResult] = Field(default_factory=list)
    total_duration_seconds: float = 0.0
    errors: list[str] = Field(default_factory=list)
    stop_reason: StopReason | None = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class ChainStartEvent(BaseModel):
    type: Literal["chain_start"] = "chain_start"
    stages: list[StageDescriptor]


class ChainEndEvent(BaseModel):
    type: Literal["chain_end"] = "chain_end"
    result: ChainResult


class StageStartEvent(BaseModel):
    type: Literal["stage_start"] = "stage_start"
    stage: StageDescriptor
    stage_index: int


class StageEndEvent(BaseModel):
    type: Literal["stage_end"] = "stage_end"
    stage: StageDescriptor
    result: StageResult


class StageIterationEvent(BaseModel):
    type: Literal["stage_iteration"] = "stage_iteration"
    stage: StageDescriptor
    iteration: int


class AgentSpawnedEvent(BaseModel):
    type: Literal["agent_spawned"] = "agent_spawned"
    role: str
    session_id: str


class AgentCompletedEvent(BaseModel):
    type: Literal["agent_completed"] = "agent_completed"
    role: str
    session_id: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
    stage: StageDescriptor | None = None


ChainEvent = Annotated[
    ChainStartEvent
    | ChainEndEvent
    | StageStartEvent
    | StageEndEvent
    | StageIterationEvent
    | AgentSpawnedEvent
    | AgentCompletedEvent
    | ErrorEvent,
    Field(discriminator="type"),
]
"""Closed set of lifecycle events emitted by the chain runner."""

EventSink = Callable[[Any], Any]


# ---------------------------------------------------------------------------
# Chain configuration
# ---------------------------------------------------------------------------

class ChainConfig(BaseModel):
    """Full configuration for one chain run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stages: list[StageDescriptor] = Field(default_factory=list)
    project_root: Path
    models: ModelConfig | None = None
    signal: CancellationSignal | None = None
    on_event: EventSink | None = None
    max_total_iterations: int = Field(default=DEFAULT_MAX_TOTAL_ITERATIONS, ge=1)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
