# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Wire names of the orchestrator events consumed by the agent panel."""

from __future__ import annotations

from enum import StrEnum


class EnumOrchestratorEvent(StrEnum):
    """Event names emitted by the orchestrator.

    Values are the exact names passed to ``orchestrator.on()``.
    """

    TASK_STARTED = "task:started"
    TASK_COMPLETED = "task:completed"
    TASK_FAILED = "task:failed"
    AGENT_TRANSITION = "agent:transition"
    STAGE_CHANGED = "stage:changed"
    STAGE_COMPLETED = "stage:completed"
    USAGE_UPDATED = "usage:updated"
    AGENT_TOOL_USE = "agent:tool-use"
    AGENT_TURN = "agent:turn"
    AGENT_THINKING = "agent:thinking"
    AGENT_MESSAGE = "agent:message"
    AGENT_ERROR = "agent:error"
    PARALLEL_STARTED = "stage:parallel-started"
    PARALLEL_COMPLETED = "stage:parallel-completed"
    SUBTASK_CREATED = "subtask:created"
    SUBTASK_COMPLETED = "subtask:completed"


__all__ = [
    "EnumOrchestratorEvent",
]
