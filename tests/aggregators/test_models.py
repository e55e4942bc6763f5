# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for snapshot models."""

from __future__ import annotations

import dataclasses

import pytest

from agentpanel.aggregators import (
    AgentDebugInfo,
    AgentRecord,
    AgentTokenUsage,
    EnumAgentStatus,
    PanelSnapshot,
    ParallelAgentInfo,
    SubtaskProgress,
    TokensUsed,
    VerboseDebugData,
)
from tests.conftest import BASE_TIME


def make_snapshot(**overrides: object) -> PanelSnapshot:
    agents = (
        AgentRecord(
            name="planner",
            status=EnumAgentStatus.COMPLETED,
            stage="planning",
            debug_info=AgentDebugInfo(
                tokens_used=TokensUsed(input=10, output=5),
                last_tool_call="Read",
                stage_started_at=BASE_TIME,
            ),
        ),
        AgentRecord(name="developer", status=EnumAgentStatus.ACTIVE, stage="implementation"),
    )
    verbose = VerboseDebugData.initial(BASE_TIME)
    verbose = dataclasses.replace(
        verbose, agent_tokens={"planner": AgentTokenUsage(10, 5, 0.002)}
    )
    fields: dict[str, object] = {
        "agents": agents,
        "verbose_data": verbose,
        "current_agent": "developer",
        "previous_agent": "planner",
        "parallel_agents": (ParallelAgentInfo(name="tester", stage="testing"),),
        "current_task_id": "task-1",
    }
    fields.update(overrides)
    return PanelSnapshot(**fields)  # type: ignore[arg-type]


class TestPanelSnapshot:
    """Tests for PanelSnapshot accessors and serialization."""

    def test_defaults(self) -> None:
        snapshot = PanelSnapshot(agents=(), verbose_data=VerboseDebugData.initial(BASE_TIME))

        assert snapshot.current_agent is None
        assert snapshot.previous_agent is None
        assert snapshot.parallel_agents == ()
        assert snapshot.show_parallel_panel is False
        assert snapshot.subtask_progress == SubtaskProgress(completed=0, total=0)
        assert snapshot.current_task_id is None

    def test_snapshot_is_frozen(self) -> None:
        snapshot = make_snapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.current_agent = "tester"  # type: ignore[misc]

    def test_get_agent(self) -> None:
        snapshot = make_snapshot()

        assert snapshot.get_agent("developer").status == EnumAgentStatus.ACTIVE
        assert snapshot.get_agent("ghost") is None

    def test_to_dict(self) -> None:
        data = make_snapshot().to_dict()

        assert data["current_agent"] == "developer"
        assert data["previous_agent"] == "planner"
        assert data["current_task_id"] == "task-1"
        assert data["subtask_progress"] == {"completed": 0, "total": 0}
        assert data["parallel_agents"] == [
            {"name": "tester", "status": "parallel", "stage": "testing"}
        ]
        assert data["agents"][0] == {
            "name": "planner",
            "status": "completed",
            "stage": "planning",
            "debug_info": {
                "tokens_used": {"input": 10, "output": 5},
                "last_tool_call": "Read",
                "turn_count": None,
                "thinking": None,
                "stage_started_at": BASE_TIME.isoformat(),
            },
        }
        assert data["agents"][1]["debug_info"] is None
        verbose = data["verbose_data"]
        assert verbose["agent_tokens"] == {
            "planner": {"input_tokens": 10, "output_tokens": 5, "estimated_cost": 0.002}
        }
        assert verbose["timing"]["stage_start_time"] == BASE_TIME.isoformat()
        assert verbose["timing"]["stage_end_time"] is None

    def test_to_dict_without_subtask_progress(self) -> None:
        data = make_snapshot(subtask_progress=None).to_dict()
        assert data["subtask_progress"] is None
