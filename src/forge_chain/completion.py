"""Completion checks for loop stages."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

from forge_chain.schemas import TaskStatus


class TaskRecord(Protocol):
    status: Any


class TaskStore(Protocol):
    """Read access to the persisted tasks of a project."""

    def list_tasks(
        self, project_root: Path
    ) -> Sequence[TaskRecord] | Awaitable[Sequence[TaskRecord]]: ...


async def resolve_maybe_awaitable(value: Any) -> Any:
    """Await *value* when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def make_default_completion_check(
    task_store: TaskStore,
) -> Callable[[Path], Awaitable[bool]]:
    """Build a check that passes once every task of the project is Done.

    An empty task list is not done: a loop stage must not succeed before
    any work has been recorded.
    """

    async def check(project_root: Path) -> bool:
        tasks = await resolve_maybe_awaitable(task_store.list_tasks(project_root))
        tasks = list(tasks or [])
        if not tasks:
            return False
        return all(_status_value(task.status) == TaskStatus.DONE.value for task in tasks)

    return check


def _status_value(status: Any) -> str:
    if isinstance(status, TaskStatus):
        return status.value
    return str(status)
