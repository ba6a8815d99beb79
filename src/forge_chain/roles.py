"""Agent role definitions: lifecycle, default prompts, and model assignment.

Each built-in role has:
- A lifecycle flag (loop until done, or run once)
- A default instruction sent when a stage carries no injected prompt
- An identity prefix executors prepend to every prompt
- A default model, overridable per run through :class:`ModelConfig`
"""

from __future__ import annotations

from enum import Enum

from forge_chain.schemas import ModelConfig


class AgentRole(str, Enum):
    """The built-in agent roles."""

    PLANNER = "planner"
    TASK_MANAGER = "task-manager"
    COORDINATOR = "coordinator"
    WORKER = "worker"


# Whether a role loops until its completion check passes.
ROLE_LIFECYCLE: dict[AgentRole, bool] = {
    AgentRole.PLANNER: False,
    AgentRole.TASK_MANAGER: False,
    AgentRole.COORDINATOR: True,
    AgentRole.WORKER: False,
}

ROLE_PROMPTS: dict[AgentRole, str] = {
    AgentRole.PLANNER: "Analyze the project and design an implementation plan.",
    AgentRole.TASK_MANAGER: "Review the plan and create atomic implementation tasks.",
    AgentRole.COORDINATOR: "Check for ready tasks and delegate them to workers.",
    AgentRole.WORKER: "Pick up the next ready task and implement it.",
}
DEFAULT_ROLE_PROMPT = "Execute your assigned role."

ROLE_PROMPT_PREFIXES: dict[AgentRole, str] = {
    AgentRole.PLANNER: (
        "You are the Planner. Design solutions but never write code or create tasks."
    ),
    AgentRole.TASK_MANAGER: (
        "You are the Task Manager. Break plans into atomic, implementable tasks."
    ),
    AgentRole.COORDINATOR: (
        "You are the Coordinator. Delegate tasks to workers and verify completion."
    ),
    AgentRole.WORKER: (
        "You are the Worker. Implement the assigned task, check off acceptance criteria."
    ),
}
DEFAULT_ROLE_PROMPT_PREFIX = "You are an agent."

FALLBACK_MODEL = "anthropic/claude-sonnet-4-5"

ROLE_MODELS: dict[AgentRole, str] = {
    AgentRole.PLANNER: "anthropic/claude-opus-4-0",
    AgentRole.TASK_MANAGER: FALLBACK_MODEL,
    AgentRole.COORDINATOR: FALLBACK_MODEL,
    AgentRole.WORKER: FALLBACK_MODEL,
}

# ModelConfig attribute holding the override for each role
_MODEL_CONFIG_FIELDS: dict[AgentRole, str] = {
    AgentRole.PLANNER: "planner",
    AgentRole.TASK_MANAGER: "task_manager",
    AgentRole.COORDINATOR: "coordinator",
    AgentRole.WORKER: "worker",
}


def resolve_role(name: str) -> AgentRole | None:
    """Return the built-in role for *name*, or ``None`` for custom roles."""
    try:
        return AgentRole((name or "").strip().lower())
    except ValueError:
        return None


def is_loop_role(name: str) -> bool:
    """Return True if *name* is a loop role. Unknown roles run once."""
    role = resolve_role(name)
    if role is None:
        return False
    return ROLE_LIFECYCLE[role]


def get_prompt_for_role(name: str) -> str:
    """Return the default instruction for a role."""
    role = resolve_role(name)
    if role is None:
        return DEFAULT_ROLE_PROMPT
    return ROLE_PROMPTS[role]


def get_role_prompt_prefix(name: str) -> str:
    """Return the identity line an executor prepends to a role's prompt."""
    role = resolve_role(name)
    if role is None:
        return DEFAULT_ROLE_PROMPT_PREFIX
    return ROLE_PROMPT_PREFIXES[role]


def get_model_for_role(name: str, models: ModelConfig | None = None) -> str:
    """Return the model ID for a role.

    Resolution order:

    1. Explicit per-role override from *models*
    2. The role's built-in model
    3. ``models.default`` when provided
    4. :data:`FALLBACK_MODEL`
    """
    role = resolve_role(name)
    if role is not None:
        if models is not None:
            override = getattr(models, _MODEL_CONFIG_FIELDS[role])
            if override:
                return override
        return ROLE_MODELS[role]
    if models is not None and models.default:
        return models.default
    return FALLBACK_MODEL
