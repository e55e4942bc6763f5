# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Workflow derivation for the agent panel roster.

A workflow is an ordered list of stages, each run by one agent. The
roster shown by the panel is derived from it: one idle AgentRecord per
stage, in stage order.

Example:
    >>> workflow = ModelWorkflow.model_validate(
    ...     {"stages": [{"name": "planning", "agent": "planner"}]}
    ... )
    >>> [(a.name, a.status.value, a.stage) for a in derive_agents(workflow)]
    [('planner', 'idle', 'planning')]
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from agentpanel.aggregators.enums import EnumAgentStatus
from agentpanel.aggregators.models import AgentRecord


class ModelWorkflowStage(BaseModel):
    """One workflow stage and the agent that runs it."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="Stage name")
    agent: str = Field(..., description="Agent that runs the stage")


class ModelWorkflow(BaseModel):
    """Static workflow description supplied by the caller."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    stages: tuple[ModelWorkflowStage, ...] = Field(default=())


def coerce_workflow(
    workflow: ModelWorkflow | Mapping[str, object] | None,
) -> ModelWorkflow | None:
    """Accept a workflow model, a plain mapping, or None.

    Raises:
        pydantic.ValidationError: If a mapping does not describe a workflow.
    """
    if workflow is None or isinstance(workflow, ModelWorkflow):
        return workflow
    return ModelWorkflow.model_validate(workflow)


def derive_agents(workflow: ModelWorkflow | None) -> tuple[AgentRecord, ...]:
    """Build the initial roster: one idle record per stage.

    An absent or empty workflow yields an empty roster.
    """
    if workflow is None:
        return ()
    return tuple(
        AgentRecord(name=stage.agent, status=EnumAgentStatus.IDLE, stage=stage.name)
        for stage in workflow.stages
    )


def merge_agents_with_workflow(
    current: tuple[AgentRecord, ...],
    derived: tuple[AgentRecord, ...],
) -> tuple[AgentRecord, ...]:
    """Replace the roster with ``derived`` while keeping known agents' state.

    Agents present in both keep their status and debug info but take the
    stage from the new workflow. Agents only in ``current`` are dropped
    from the roster; their verbose debug data is left alone by the caller.
    """
    existing = {agent.name: agent for agent in current}
    merged = []
    for agent in derived:
        previous = existing.get(agent.name)
        if previous is None:
            merged.append(agent)
        else:
            merged.append(
                AgentRecord(
                    name=agent.name,
                    status=previous.status,
                    stage=agent.stage,
                    debug_info=previous.debug_info,
                )
            )
    return tuple(merged)


def stage_for_agent(roster: tuple[AgentRecord, ...], agent_name: str) -> str | None:
    for agent in roster:
        if agent.name == agent_name:
            return agent.stage
    return None


def agent_for_stage(roster: tuple[AgentRecord, ...], stage_name: str) -> str | None:
    for agent in roster:
        if agent.stage == stage_name:
            return agent.name
    return None


__all__ = [
    "ModelWorkflow",
    "ModelWorkflowStage",
    "agent_for_stage",
    "coerce_workflow",
    "derive_agents",
    "merge_agents_with_workflow",
    "stage_for_agent",
]
