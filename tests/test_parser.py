"""Unit tests for the chain DSL parser."""

from __future__ import annotations

import logging

import pytest

from forge_chain.parser import ChainSpecError, parse_chain


class TestParseChain:
    def test_single_stage(self):
        stages = parse_chain("planner")
        assert len(stages) == 1
        assert stages[0].name == "planner"
        assert stages[0].loop is False

    def test_pipeline_preserves_order(self):
        stages = parse_chain("planner -> task-manager -> coordinator -> worker")
        assert [s.name for s in stages] == ["planner", "task-manager", "coordinator", "worker"]

    def test_loop_flag_comes_from_role_table(self):
        stages = parse_chain("planner -> task-manager -> coordinator -> worker")
        assert [s.loop for s in stages] == [False, False, True, False]

    def test_names_are_lower_cased(self):
        stages = parse_chain("PLANNER -> Coordinator")
        assert [s.name for s in stages] == ["planner", "coordinator"]
        assert stages[1].loop is True

    def test_whitespace_is_tolerated(self):
        stages = parse_chain("  planner->task-manager   ->\tcoordinator  ")
        assert [s.name for s in stages] == ["planner", "task-manager", "coordinator"]

    def test_unknown_role_defaults_to_one_shot(self, caplog):
        with caplog.at_level(logging.WARNING, logger="forge_chain.parser"):
            stages = parse_chain("planner -> cordinator")
        assert stages[1].name == "cordinator"
        assert stages[1].loop is False
        assert "cordinator" in caplog.text

    def test_no_completion_check_or_prompt_attached(self):
        stage = parse_chain("coordinator")[0]
        assert stage.completion_check is None
        assert stage.prompt is None

    def test_parsing_is_deterministic(self):
        expression = "planner -> coordinator"
        assert parse_chain(expression) == parse_chain(expression)


class TestParseChainRejects:
    @pytest.mark.parametrize("expression", ["", "   ", "\t\n"])
    def test_empty_expression(self, expression):
        with pytest.raises(ChainSpecError, match="cannot be empty"):
            parse_chain(expression)

    def test_leading_arrow(self):
        with pytest.raises(ChainSpecError, match="start with"):
            parse_chain("-> planner")

    def test_trailing_arrow(self):
        with pytest.raises(ChainSpecError, match="end with"):
            parse_chain("planner ->")

    def test_interior_empty_segment(self):
        with pytest.raises(ChainSpecError, match="Empty stage name"):
            parse_chain("planner -> -> coordinator")

    @pytest.mark.parametrize(
        "expression",
        ["coordinator:20", "planner -> coordinator:5", "worker : 3 -> planner"],
    )
    def test_deprecated_colon_count(self, expression):
        with pytest.raises(ChainSpecError, match="no longer supported"):
            parse_chain(expression)

    def test_colon_count_error_suggests_bare_role(self):
        with pytest.raises(ChainSpecError, match="use 'coordinator' instead"):
            parse_chain("Coordinator:20")

    def test_spec_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_chain("->")
