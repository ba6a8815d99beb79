"""Tests for role lifecycle, prompts, and model resolution."""

from __future__ import annotations

from forge_chain.roles import (
    DEFAULT_ROLE_PROMPT,
    DEFAULT_ROLE_PROMPT_PREFIX,
    FALLBACK_MODEL,
    AgentRole,
    get_model_for_role,
    get_prompt_for_role,
    get_role_prompt_prefix,
    is_loop_role,
    resolve_role,
)
from forge_chain.schemas import ModelConfig


def test_only_coordinator_loops():
    assert is_loop_role("coordinator") is True
    assert is_loop_role("planner") is False
    assert is_loop_role("task-manager") is False
    assert is_loop_role("worker") is False


def test_unknown_role_is_one_shot():
    assert resolve_role("reviewer") is None
    assert is_loop_role("reviewer") is False


def test_resolve_role_normalizes_case():
    assert resolve_role(" Task-Manager ") is AgentRole.TASK_MANAGER


def test_prompts_fall_back_for_custom_roles():
    assert "implementation plan" in get_prompt_for_role("planner")
    assert get_prompt_for_role("reviewer") == DEFAULT_ROLE_PROMPT
    assert get_role_prompt_prefix("worker").startswith("You are the Worker.")
    assert get_role_prompt_prefix("reviewer") == DEFAULT_ROLE_PROMPT_PREFIX


class TestGetModelForRole:
    def test_builtin_defaults(self):
        assert get_model_for_role("planner") == "anthropic/claude-opus-4-0"
        assert get_model_for_role("coordinator") == FALLBACK_MODEL

    def test_explicit_override_wins(self):
        models = ModelConfig(task_manager="openai/gpt-5", default="x/y")
        assert get_model_for_role("task-manager", models) == "openai/gpt-5"

    def test_builtin_beats_default_for_known_roles(self):
        models = ModelConfig(default="x/y")
        assert get_model_for_role("planner", models) == "anthropic/claude-opus-4-0"

    def test_default_used_for_unknown_roles(self):
        assert get_model_for_role("reviewer", ModelConfig(default="x/y")) == "x/y"

    def test_fallback_for_unknown_roles(self):
        assert get_model_for_role("reviewer") == FALLBACK_MODEL
        assert get_model_for_role("reviewer", ModelConfig()) == FALLBACK_MODEL
