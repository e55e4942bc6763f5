# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for orchestrator event payload models.

Validates:
- Coercion of task identifiers, token counts, tool names and errors
- camelCase aliases and snake_case field names
- Required fields raising ValidationError
- Immutability of payloads
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentpanel.events import (
    EVENT_MODELS,
    EnumOrchestratorEvent,
    ModelAgentError,
    ModelAgentThinking,
    ModelAgentToolUse,
    ModelAgentTransition,
    ModelAgentTurn,
    ModelParallelStarted,
    ModelTaskFailed,
    ModelTaskStarted,
    ModelUsageUpdated,
    ProtocolEventSource,
)
from tests.conftest import FakeOrchestrator


class Task:
    def __init__(self, task_id: object) -> None:
        self.id = task_id


# =============================================================================
# Task Identifiers
# =============================================================================


class TestTaskIdentifier:
    """Tests for task_id coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("task-1", "task-1"),
            (None, None),
            (Task("task-2"), "task-2"),
            (Task(7), "7"),
            (Task(None), None),
            ({"id": "task-3", "name": "build"}, "task-3"),
            ({"name": "no id"}, None),
            (object(), None),
        ],
    )
    def test_task_id_sources(self, value: object, expected: str | None) -> None:
        assert ModelTaskStarted(task_id=value).task_id == expected  # type: ignore[arg-type]

    def test_camel_case_alias(self) -> None:
        assert ModelTaskStarted.model_validate({"taskId": "task-1"}).task_id == "task-1"

    def test_task_id_defaults_to_none(self) -> None:
        assert ModelTaskStarted().task_id is None


# =============================================================================
# Token Counts
# =============================================================================


class TestTokenCounts:
    """Tests for usage payload coercion."""

    def test_wire_payload(self) -> None:
        usage = ModelUsageUpdated.model_validate(
            {
                "taskId": "task-1",
                "inputTokens": 100,
                "outputTokens": 50,
                "totalTokens": 150,
                "estimatedCost": 0.001,
            }
        )

        assert usage.input_tokens == 100
        assert usage.output_tokens == 50
        assert usage.total_tokens == 150
        assert usage.estimated_cost == pytest.approx(0.001)

    @pytest.mark.parametrize("value", [None, "100", "n/a", True, float("nan"), [1], {"n": 1}])
    def test_invalid_values_become_zero(self, value: object) -> None:
        assert ModelUsageUpdated(input_tokens=value).input_tokens == 0  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [-50, 0, 10**12, 12.5, float("inf")])
    def test_numeric_values_are_kept(self, value: float) -> None:
        assert ModelUsageUpdated(output_tokens=value).output_tokens == value

    def test_missing_values_default_to_zero(self) -> None:
        usage = ModelUsageUpdated.model_validate({"taskId": "task-1"})
        assert (usage.input_tokens, usage.output_tokens, usage.total_tokens) == (0, 0, 0)


# =============================================================================
# Agent Payloads
# =============================================================================


class TestAgentPayloads:
    """Tests for agent event payloads."""

    def test_transition_requires_target(self) -> None:
        with pytest.raises(ValidationError):
            ModelAgentTransition.model_validate({"taskId": "task-1", "fromAgent": "planner"})

    def test_transition_source_is_optional(self) -> None:
        event = ModelAgentTransition.model_validate({"taskId": "task-1", "toAgent": "planner"})
        assert event.from_agent is None
        assert event.to_agent == "planner"

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [({"toolName": None}, "null"), ({}, "undefined"), ({"toolName": "Read"}, "Read")],
    )
    def test_tool_names(self, payload: dict[str, object], expected: str) -> None:
        assert ModelAgentToolUse.model_validate(payload).tool_name == expected

    def test_tool_input_is_opaque(self) -> None:
        tool_input = {"command": ["ls", "-la"]}
        event = ModelAgentToolUse(tool_name="Bash", tool_input=tool_input)
        assert event.tool_input == tool_input

    def test_turn_requires_agent_and_number(self) -> None:
        with pytest.raises(ValidationError):
            ModelAgentTurn.model_validate({"agentName": "planner"})
        event = ModelAgentTurn.model_validate({"agentName": "planner", "turnNumber": 3})
        assert event.turn_number == 3

    def test_thinking_requires_text(self) -> None:
        with pytest.raises(ValidationError):
            ModelAgentThinking.model_validate({"agentName": "planner"})

    def test_errors_are_stringified(self) -> None:
        assert ModelTaskFailed(error=RuntimeError("boom")).error == "boom"  # type: ignore[arg-type]
        assert ModelAgentError(error="plain").error == "plain"
        assert ModelAgentError().error is None

    def test_parallel_name_lists(self) -> None:
        event = ModelParallelStarted.model_validate(
            {"stageNames": ["testing", None], "agentNames": ["tester", "reviewer"]}
        )
        assert event.stage_names == ["testing", None]
        assert event.agent_names == ["tester", "reviewer"]

        empty = ModelParallelStarted.model_validate({"stageNames": None, "agentNames": None})
        assert (empty.stage_names, empty.agent_names) == ([], [])

    def test_payloads_are_frozen(self) -> None:
        event = ModelAgentTransition(to_agent="planner")
        with pytest.raises(ValidationError):
            event.to_agent = "architect"  # type: ignore[misc]


# =============================================================================
# Lookup and Protocol
# =============================================================================


class TestEventLookup:
    """Tests for EVENT_MODELS and the event source protocol."""

    def test_every_event_name_has_a_model(self) -> None:
        assert set(EVENT_MODELS) == set(EnumOrchestratorEvent)

    def test_models_carry_their_event_type(self) -> None:
        for event_type, model in EVENT_MODELS.items():
            payload = {"agentName": "a", "turnNumber": 1, "thinking": "t", "toAgent": "b"}
            assert model.model_validate(payload).event_type == event_type

    def test_wire_names(self) -> None:
        assert EnumOrchestratorEvent.AGENT_TOOL_USE == "agent:tool-use"
        assert EnumOrchestratorEvent.PARALLEL_STARTED == "stage:parallel-started"
        assert len(EnumOrchestratorEvent) == 16

    def test_event_source_protocol(self) -> None:
        assert isinstance(FakeOrchestrator(), ProtocolEventSource)
        assert not isinstance(object(), ProtocolEventSource)
