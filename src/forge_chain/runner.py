"""Chain runner: executes a chain of agent stages in order.

One-shot stages call the agent executor once. Loop stages repeat until
their completion check passes, bounded by chain-wide safety caps: a shared
iteration budget, a wall-clock deadline, and a cancellation handle.

Usage::

    from forge_chain import ChainConfig, parse_chain, run_chain

    config = ChainConfig(
        stages=parse_chain("planner -> task-manager -> coordinator"),
        project_root="/path/to/project",
    )
    result = await run_chain(config, executor, task_store=store)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from forge_chain.completion import (
    TaskStore,
    make_default_completion_check,
    resolve_maybe_awaitable,
)
from forge_chain.executor import AgentExecutor
from forge_chain.roles import get_model_for_role, get_prompt_for_role
from forge_chain.schemas import (
    AgentCompletedEvent,
    AgentSpawnedEvent,
    CancellationSignal,
    ChainConfig,
    ChainEndEvent,
    ChainResult,
    ChainStartEvent,
    CompletionCheck,
    ErrorEvent,
    EventSink,
    SpawnRequest,
    SpawnResult,
    StageDescriptor,
    StageEndEvent,
    StageIterationEvent,
    StageResult,
    StageStartEvent,
    StopReason,
)

logger = logging.getLogger(__name__)


class ChainConfigError(RuntimeError):
    """Raised inside a stage whose configuration cannot be executed."""


# ---------------------------------------------------------------------------
# Budget / stop helpers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageConstraints:
    """Snapshot of the chain-level caps handed to one stage.

    ``deadline`` is an absolute value on the runner's clock.
    """

    remaining_iterations: int
    deadline: float

    def after(self, result: StageResult) -> StageConstraints:
        """Return the constraints left for the next stage.

        Only loop stages draw from the shared budget; a one-shot stage
        reports ``iterations=1`` but consumes nothing.
        """
        if not result.stage.loop:
            return self
        remaining = max(0, self.remaining_iterations - result.iterations)
        return replace(self, remaining_iterations=remaining)


def is_cancelled(signal: CancellationSignal | None) -> bool:
    return signal is not None and signal.is_set()


def should_stop(
    signal: CancellationSignal | None,
    deadline: float,
    now: float,
) -> StopReason | None:
    """Return why execution must halt at this boundary, or ``None`` to go on."""
    if is_cancelled(signal):
        return StopReason.CANCELLED
    if now >= deadline:
        return StopReason.TIMEOUT
    return None


def _final_stop_reason(stage_results: list[StageResult], cancelled: bool) -> StopReason:
    """Stop reason for a chain that ran past its last stage boundary.

    A final loop stage cut short by the deadline or a cancellation passes
    its reason up to the chain.
    """
    if cancelled:
        return StopReason.CANCELLED
    if stage_results and stage_results[-1].stop_reason in (
        StopReason.TIMEOUT,
        StopReason.CANCELLED,
    ):
        return stage_results[-1].stop_reason
    return StopReason.COMPLETED


def emit(sink: EventSink | None, event: Any) -> None:
    """Deliver *event* to *sink*. Sink errors never reach the runner."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception as exc:
        logger.debug("Event sink raised on %s event: %s", event.type, exc)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class ChainRunner:
    """Runs chains of stages against an agent executor.

    Parameters
    ----------
    executor:
        The :class:`AgentExecutor` performing each stage attempt. It is
        disposed when :meth:`run` finishes.
    task_store:
        Source of the default completion check for loop stages that do not
        carry their own.
    clock:
        Monotonic time source in seconds, used for deadlines and durations.
    """

    def __init__(
        self,
        executor: AgentExecutor,
        *,
        task_store: TaskStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.executor = executor
        self.task_store = task_store
        self._clock = clock

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def run(self, config: ChainConfig) -> ChainResult:
        """Execute every stage of *config* in order and return the aggregate."""
        chain_start = self._clock()
        constraints = StageConstraints(
            remaining_iterations=config.max_total_iterations,
            deadline=chain_start + config.timeout_seconds,
        )
        stage_results: list[StageResult] = []
        errors: list[str] = []
        stop_reason: StopReason | None = None

        logger.info(
            "Starting chain: %s (budget=%d iterations, timeout=%.0fs)",
            " -> ".join(stage.name for stage in config.stages) or "<empty>",
            config.max_total_iterations,
            config.timeout_seconds,
        )
        emit(config.on_event, ChainStartEvent(stages=list(config.stages)))

        try:
            for index, stage in enumerate(config.stages):
                stop_reason = should_stop(config.signal, constraints.deadline, self._clock())
                if stop_reason is not None:
                    logger.info("Stopping before stage %r: %s", stage.name, stop_reason.value)
                    break

                emit(config.on_event, StageStartEvent(stage=stage, stage_index=index))
                result = await self.run_stage(stage, config, constraints)
                constraints = constraints.after(result)
                stage_results.append(result)
                emit(config.on_event, StageEndEvent(stage=stage, result=result))

                if not result.success:
                    errors.append(result.error or f"Stage '{stage.name}' failed")
                    stop_reason = StopReason.STAGE_FAILED
                    break
        finally:
            self._dispose_executor()

        cancelled = is_cancelled(config.signal)
        if stop_reason is None:
            stop_reason = _final_stop_reason(stage_results, cancelled)

        chain_result = ChainResult(
            success=not cancelled and all(r.success for r in stage_results),
            stage_results=stage_results,
            total_duration_seconds=self._clock() - chain_start,
            errors=errors,
            stop_reason=stop_reason,
        )
        logger.info(
            "Chain finished: success=%s, stop=%s (%d stage(s), %.1fs)",
            chain_result.success,
            stop_reason.value,
            len(stage_results),
            chain_result.total_duration_seconds,
        )
        emit(config.on_event, ChainEndEvent(result=chain_result))
        return chain_result

    async def run_stage(
        self,
        stage: StageDescriptor,
        config: ChainConfig,
        constraints: StageConstraints | None = None,
    ) -> StageResult:
        """Execute a single stage within *constraints*.

        When *constraints* is omitted the stage gets the full chain budget
        and timeout starting now. Exceptions raised by collaborators are
        contained here and reported as a failed result plus an error event.
        """
        stage_start = self._clock()
        if constraints is None:
            constraints = StageConstraints(
                remaining_iterations=config.max_total_iterations,
                deadline=stage_start + config.timeout_seconds,
            )
        iterations = 0

        try:
            model = get_model_for_role(stage.name, config.models)
            prompt = stage.prompt or get_prompt_for_role(stage.name)

            if not stage.loop:
                iterations = 1
                spawn_result = await self._spawn(stage, config, model, prompt)
                return self._stage_result(
                    stage,
                    stage_start,
                    iterations,
                    success=spawn_result.success,
                    error=spawn_result.error,
                    stop_reason=(
                        StopReason.SINGLE_PASS if spawn_result.success else StopReason.STAGE_FAILED
                    ),
                )

            completion_check = self._completion_check_for(stage)
            stop_reason = StopReason.BUDGET_EXHAUSTED
            while iterations < constraints.remaining_iterations:
                halt = should_stop(config.signal, constraints.deadline, self._clock())
                if halt is not None:
                    stop_reason = halt
                    break

                iterations += 1
                emit(config.on_event, StageIterationEvent(stage=stage, iteration=iterations))
                logger.info("[%s] iteration %d", stage.name, iterations)

                spawn_result = await self._spawn(stage, config, model, prompt)
                if not spawn_result.success:
                    return self._stage_result(
                        stage,
                        stage_start,
                        iterations,
                        success=False,
                        error=spawn_result.error,
                        stop_reason=StopReason.STAGE_FAILED,
                    )

                if await resolve_maybe_awaitable(completion_check(config.project_root)):
                    stop_reason = StopReason.GOAL_MET
                    break

            logger.info(
                "[%s] loop ended after %d iteration(s): %s",
                stage.name,
                iterations,
                stop_reason.value,
            )
            return self._stage_result(
                stage, stage_start, iterations, success=True, stop_reason=stop_reason
            )
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("[%s] stage raised: %s", stage.name, message)
            emit(config.on_event, ErrorEvent(message=message, stage=stage))
            return self._stage_result(
                stage,
                stage_start,
                iterations,
                success=False,
                error=message,
                stop_reason=StopReason.STAGE_FAILED,
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _spawn(
        self,
        stage: StageDescriptor,
        config: ChainConfig,
        model: str,
        prompt: str,
    ) -> SpawnResult:
        request = SpawnRequest(
            role=stage.name,
            cwd=config.project_root,
            model=model,
            prompt=prompt,
            signal=config.signal,
        )
        result = await self.executor.spawn(request)
        if result.success:
            emit(config.on_event, AgentSpawnedEvent(role=stage.name, session_id=result.session_id))
            emit(config.on_event, AgentCompletedEvent(role=stage.name, session_id=result.session_id))
        else:
            logger.info("[%s] agent failed: %s", stage.name, result.error or "<no error message>")
        return result

    def _completion_check_for(self, stage: StageDescriptor) -> CompletionCheck:
        if stage.completion_check is not None:
            return stage.completion_check
        if self.task_store is None:
            raise ChainConfigError(
                f"Loop stage '{stage.name}' has no completion check and no task store is configured"
            )
        return make_default_completion_check(self.task_store)

    def _stage_result(
        self,
        stage: StageDescriptor,
        stage_start: float,
        iterations: int,
        *,
        success: bool,
        error: str | None = None,
        stop_reason: StopReason | None = None,
    ) -> StageResult:
        return StageResult(
            stage=stage,
            success=success,
            iterations=iterations,
            duration_seconds=self._clock() - stage_start,
            error=error,
            stop_reason=stop_reason,
        )

    def _dispose_executor(self) -> None:
        try:
            self.executor.dispose()
        except Exception as exc:
            logger.warning("Agent executor %r failed to dispose: %s", self.executor.name, exc)


# ---------------------------------------------------------------------------
# Convenience wrappers
# ---------------------------------------------------------------------------

async def run_chain(
    config: ChainConfig,
    executor: AgentExecutor,
    *,
    task_store: TaskStore | None = None,
) -> ChainResult:
    """Run *config* with a fresh :class:`ChainRunner`."""
    return await ChainRunner(executor, task_store=task_store).run(config)


def run_chain_sync(
    config: ChainConfig,
    executor: AgentExecutor,
    *,
    task_store: TaskStore | None = None,
) -> ChainResult:
    """Synchronous wrapper for :func:`run_chain`."""
    return asyncio.run(run_chain(config, executor, task_store=task_store))
