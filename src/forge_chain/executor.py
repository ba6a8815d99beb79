"""Abstract base class for agent executors.

The chain runner never talks to a model directly. Every stage attempt is
handed to an :class:`AgentExecutor`, which owns sessions, model calls and
tool use, and reports back a :class:`SpawnResult`.
"""

from __future__ import annotations

import abc

from forge_chain.schemas import SpawnRequest, SpawnResult


class AgentExecutor(abc.ABC):
    """Common interface for agent backends driven by the chain runner.

    Subclasses must implement :meth:`spawn`. Failures should be reported as
    ``SpawnResult(success=False, error=...)`` rather than raised; anything
    raised is still contained by the runner and fails the stage.
    """

    #: Human-readable backend name used in log lines.
    name: str = "base"

    @abc.abstractmethod
    async def spawn(self, request: SpawnRequest) -> SpawnResult:
        """Run one agent session for a stage attempt and return its outcome.

        Parameters
        ----------
        request:
            Role, working directory, resolved model, prompt and the
            cancellation handle. Implementations should honor
            ``request.signal`` internally.
        """

    def dispose(self) -> None:
        """Release backend resources once the chain run is over."""
