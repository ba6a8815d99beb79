"""Forge Chain - run multi-stage AI-agent pipelines described by a small DSL."""

from importlib.metadata import PackageNotFoundError, version

from forge_chain.executor import AgentExecutor
from forge_chain.parser import ChainSpecError, parse_chain
from forge_chain.runner import ChainRunner, run_chain, run_chain_sync
from forge_chain.schemas import (
    ChainConfig,
    ChainResult,
    ModelConfig,
    SpawnRequest,
    SpawnResult,
    StageDescriptor,
    StageResult,
    StopReason,
)

__all__ = [
    "AgentExecutor",
    "ChainConfig",
    "ChainResult",
    "ChainRunner",
    "ChainSpecError",
    "ModelConfig",
    "SpawnRequest",
    "SpawnResult",
    "StageDescriptor",
    "StageResult",
    "StopReason",
    "parse_chain",
    "run_chain",
    "run_chain_sync",
]

try:
    __version__ = version("forge-chain")
except PackageNotFoundError:
    __version__ = "0.0.0"
