#!/usr/bin/env python3
"""Example: run a chain against a scripted in-process executor.

Usage:
    python examples/run_chain.py "planner -> task-manager -> coordinator" --budget 5
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from types import SimpleNamespace

# Allow running from the repo root without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from forge_chain import (
    AgentExecutor,
    ChainConfig,
    SpawnRequest,
    SpawnResult,
    parse_chain,
    run_chain_sync,
)
from forge_chain.event_log import make_logging_sink
from forge_chain.roles import get_role_prompt_prefix


class EchoExecutor(AgentExecutor):
    """Pretends every agent session succeeds immediately.

    The role identity prefix is prepended to the prompt the way a real
    executor would before starting a session.
    """

    name = "echo"

    def __init__(self) -> None:
        self.calls = 0

    async def spawn(self, request: SpawnRequest) -> SpawnResult:
        self.calls += 1
        prompt = f"{get_role_prompt_prefix(request.role)}\n\n{request.prompt}"
        return SpawnResult(
            success=True,
            session_id=f"{request.role}-{self.calls}",
            messages=[{"role": "user", "content": prompt}],
        )


class ScriptedTaskStore:
    """Reports every task Done once the coordinator has run *rounds* times."""

    def __init__(self, executor: EchoExecutor, rounds: int) -> None:
        self.executor = executor
        self.rounds = rounds

    def list_tasks(self, project_root: Path) -> list[SimpleNamespace]:
        status = "Done" if self.executor.calls >= self.rounds else "In Progress"
        return [SimpleNamespace(status=status)]


def main() -> None:
    parser = argparse.ArgumentParser(description="Run an agent chain with a scripted executor.")
    parser.add_argument("expression", help='Chain DSL, e.g. "planner -> coordinator"')
    parser.add_argument("--root", default=".", help="Project root (default: cwd)")
    parser.add_argument("--budget", type=int, default=50, help="Max loop iterations (default 50)")
    parser.add_argument("--rounds", type=int, default=4, help="Executor calls until tasks are Done")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )

    executor = EchoExecutor()
    config = ChainConfig(
        stages=parse_chain(args.expression),
        project_root=Path(args.root).resolve(),
        max_total_iterations=args.budget,
        on_event=make_logging_sink(),
    )
    result = run_chain_sync(config, executor, task_store=ScriptedTaskStore(executor, args.rounds))

    print(f"\nSuccess:  {result.success}")
    print(f"Stop:     {result.stop_reason.value if result.stop_reason else '-'}")
    for stage_result in result.stage_results:
        print(f"  {stage_result.stage.name:<14} iterations={stage_result.iterations}")
    if result.errors:
        print(f"Errors:   {result.errors}")


if __name__ == "__main__":
    main()
