# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for workflow to roster derivation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentpanel.aggregators import (
    AgentDebugInfo,
    AgentRecord,
    EnumAgentStatus,
    ModelWorkflow,
    derive_agents,
    merge_agents_with_workflow,
)
from agentpanel.aggregators.workflow import agent_for_stage, coerce_workflow, stage_for_agent
from tests.conftest import WORKFLOW


class TestDeriveAgents:
    """Tests for derive_agents."""

    def test_one_idle_agent_per_stage_in_order(self) -> None:
        agents = derive_agents(ModelWorkflow.model_validate(WORKFLOW))

        assert [(a.name, a.stage) for a in agents] == [
            ("planner", "planning"),
            ("architect", "architecture"),
            ("developer", "implementation"),
            ("tester", "testing"),
            ("reviewer", "review"),
            ("devops", "deployment"),
        ]
        assert all(a.status == EnumAgentStatus.IDLE for a in agents)
        assert all(a.debug_info is None for a in agents)

    def test_missing_or_empty_workflow_gives_empty_roster(self) -> None:
        assert derive_agents(None) == ()
        assert derive_agents(ModelWorkflow()) == ()

    def test_same_workflow_derives_equal_roster(self) -> None:
        workflow = ModelWorkflow.model_validate(WORKFLOW)
        assert derive_agents(workflow) == derive_agents(workflow)


class TestCoerceWorkflow:
    """Tests for workflow input normalization."""

    def test_accepts_model_mapping_and_none(self) -> None:
        model = ModelWorkflow.model_validate(WORKFLOW)

        assert coerce_workflow(model) is model
        assert coerce_workflow(None) is None
        assert coerce_workflow(WORKFLOW) == model

    def test_extra_keys_are_ignored(self) -> None:
        workflow = coerce_workflow(
            {"name": "default", "stages": [{"name": "plan", "agent": "planner", "timeout": 30}]}
        )
        assert workflow is not None
        assert workflow.stages[0].agent == "planner"

    def test_stage_without_agent_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            coerce_workflow({"stages": [{"name": "plan"}]})


class TestMergeAgentsWithWorkflow:
    """Tests for merging a new roster into the current one."""

    def test_known_agents_keep_status_and_debug_info(self) -> None:
        debug = AgentDebugInfo(turn_count=3)
        current = (
            AgentRecord(name="planner", status=EnumAgentStatus.COMPLETED, stage="planning"),
            AgentRecord(
                name="developer",
                status=EnumAgentStatus.ACTIVE,
                stage="implementation",
                debug_info=debug,
            ),
        )
        derived = (
            AgentRecord(name="developer", stage="build"),
            AgentRecord(name="tester", stage="testing"),
        )

        merged = merge_agents_with_workflow(current, derived)

        assert merged == (
            AgentRecord(
                name="developer",
                status=EnumAgentStatus.ACTIVE,
                stage="build",
                debug_info=debug,
            ),
            AgentRecord(name="tester", status=EnumAgentStatus.IDLE, stage="testing"),
        )


class TestRosterLookups:
    """Tests for stage/agent lookups."""

    def test_lookups(self) -> None:
        roster = derive_agents(ModelWorkflow.model_validate(WORKFLOW))

        assert stage_for_agent(roster, "tester") == "testing"
        assert stage_for_agent(roster, "ghost") is None
        assert agent_for_stage(roster, "review") == "reviewer"
        assert agent_for_stage(roster, "nowhere") is None
