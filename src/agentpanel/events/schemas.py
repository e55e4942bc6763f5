# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Payload models for orchestrator events.

The orchestrator invokes listeners with positional arguments. The
aggregator folds those arguments into a mapping keyed by field name and
validates it into one of the models below, so every reducer works on a
typed, immutable event instead of raw arguments.

Coercion Rules:
    Orchestrator payloads are not trusted to be well formed. Instead of
    rejecting them, the models coerce recoverable values:

    - Task identifiers accept a bare string, a task object with an ``id``
      attribute, or a mapping with an ``"id"`` key.
    - Token counts that are missing, non-numeric, boolean, or NaN become 0.
      Negative and very large values are kept as reported.
    - A ``None`` tool name is stored as ``"null"`` and a missing one as
      ``"undefined"``, so tool histograms never drop a call.
    - Error payloads (exceptions or arbitrary objects) become their string form.

    Payloads that still fail validation (for example an ``agent:transition``
    without a target agent) raise ``pydantic.ValidationError``; the
    aggregator logs and skips those.

Field names are snake_case; the camelCase forms used on the wire
(``taskId``, ``inputTokens``, ``turnNumber``) are accepted as aliases.

Example:
    >>> usage = ModelUsageUpdated.model_validate(
    ...     {"taskId": "task-1", "inputTokens": 100, "outputTokens": "n/a"}
    ... )
    >>> (usage.input_tokens, usage.output_tokens)
    (100, 0)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic.functional_validators import BeforeValidator

from agentpanel.events.names import EnumOrchestratorEvent

# =============================================================================
# Coercion Helpers
# =============================================================================


def _coerce_task_id(v: object) -> str | None:
    """Extract a task identifier from a string, task object, or mapping.

    Example:
        >>> class Task:
        ...     id = "task-9"
        >>> _coerce_task_id(Task())
        'task-9'
        >>> _coerce_task_id({"id": "task-1"})
        'task-1'
        >>> _coerce_task_id(None) is None
        True
    """
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, Mapping):
        inner = v.get("id")
    else:
        inner = getattr(v, "id", None)
    if inner is None:
        return None
    return inner if isinstance(inner, str) else str(inner)


def _coerce_token_count(v: object) -> int | float:
    """Coerce a token count, mapping invalid values to 0.

    Example:
        >>> _coerce_token_count(float("nan"))
        0
        >>> _coerce_token_count(-5)
        -5
        >>> _coerce_token_count("100")
        0
    """
    if isinstance(v, bool) or not isinstance(v, int | float):
        return 0
    if isinstance(v, float) and math.isnan(v):
        return 0
    return v


def _coerce_tool_name(v: object) -> str:
    if v is None:
        return "null"
    return v if isinstance(v, str) else str(v)


def _coerce_error(v: object) -> str | None:
    if v is None or isinstance(v, str):
        return v
    return str(v)


def _coerce_name_list(v: object) -> object:
    return [] if v is None else v


TaskIdentifier = Annotated[str | None, BeforeValidator(_coerce_task_id)]
TokenCount = Annotated[int | float, BeforeValidator(_coerce_token_count)]
ToolName = Annotated[str, BeforeValidator(_coerce_tool_name)]
ErrorMessage = Annotated[str | None, BeforeValidator(_coerce_error)]


# =============================================================================
# Base Model
# =============================================================================


class _ModelEventBase(BaseModel):
    """Common configuration for orchestrator event payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    task_id: TaskIdentifier = Field(
        default=None,
        description="Task the event belongs to (used by the task filter)",
    )


# =============================================================================
# Task Lifecycle Events
# =============================================================================


class ModelTaskStarted(_ModelEventBase):
    """A task began executing; initializes per-task panel state."""

    event_type: Literal[EnumOrchestratorEvent.TASK_STARTED] = (
        EnumOrchestratorEvent.TASK_STARTED
    )


class ModelTaskCompleted(_ModelEventBase):
    """A task finished; clears per-task panel state."""

    event_type: Literal[EnumOrchestratorEvent.TASK_COMPLETED] = (
        EnumOrchestratorEvent.TASK_COMPLETED
    )


class ModelTaskFailed(_ModelEventBase):
    """A task failed; clears per-task panel state like completion does."""

    event_type: Literal[EnumOrchestratorEvent.TASK_FAILED] = (
        EnumOrchestratorEvent.TASK_FAILED
    )
    error: ErrorMessage = Field(default=None, description="Failure reason")


# =============================================================================
# Agent and Stage Events
# =============================================================================


class ModelAgentTransition(_ModelEventBase):
    """Handoff of the sequential execution slot between agents.

    Attributes:
        from_agent: Agent giving up the slot, None for the first activation.
        to_agent: Agent taking the slot.
    """

    event_type: Literal[EnumOrchestratorEvent.AGENT_TRANSITION] = (
        EnumOrchestratorEvent.AGENT_TRANSITION
    )
    from_agent: str | None = Field(default=None)
    to_agent: str = Field(..., description="Agent becoming active")


class ModelStageChanged(_ModelEventBase):
    """The orchestrator announced a new workflow stage.

    ``agent_name`` may be omitted; the agent is then looked up from the
    workflow by stage name.
    """

    event_type: Literal[EnumOrchestratorEvent.STAGE_CHANGED] = (
        EnumOrchestratorEvent.STAGE_CHANGED
    )
    stage_name: str | None = Field(default=None)
    agent_name: str | None = Field(default=None)


class ModelStageCompleted(_ModelEventBase):
    """The current workflow stage finished; closes the stage timing window."""

    event_type: Literal[EnumOrchestratorEvent.STAGE_COMPLETED] = (
        EnumOrchestratorEvent.STAGE_COMPLETED
    )
    stage_name: str | None = Field(default=None)
    agent_name: str | None = Field(default=None)


class ModelUsageUpdated(_ModelEventBase):
    """Token usage reported for the current agent's latest model call."""

    event_type: Literal[EnumOrchestratorEvent.USAGE_UPDATED] = (
        EnumOrchestratorEvent.USAGE_UPDATED
    )
    input_tokens: TokenCount = Field(default=0)
    output_tokens: TokenCount = Field(default=0)
    total_tokens: TokenCount = Field(default=0)
    estimated_cost: TokenCount = Field(default=0)


class ModelAgentToolUse(_ModelEventBase):
    """The current agent invoked a tool."""

    event_type: Literal[EnumOrchestratorEvent.AGENT_TOOL_USE] = (
        EnumOrchestratorEvent.AGENT_TOOL_USE
    )
    tool_name: ToolName = Field(default="undefined")
    tool_input: Any = Field(default=None)


class ModelAgentTurn(_ModelEventBase):
    """Absolute turn index reported for an agent."""

    event_type: Literal[EnumOrchestratorEvent.AGENT_TURN] = (
        EnumOrchestratorEvent.AGENT_TURN
    )
    agent_name: str = Field(...)
    turn_number: int = Field(...)


class ModelAgentThinking(_ModelEventBase):
    """Latest reasoning trace of an agent."""

    event_type: Literal[EnumOrchestratorEvent.AGENT_THINKING] = (
        EnumOrchestratorEvent.AGENT_THINKING
    )
    agent_name: str = Field(...)
    thinking: str = Field(...)


class ModelAgentMessage(_ModelEventBase):
    """A conversation message produced by the current agent."""

    event_type: Literal[EnumOrchestratorEvent.AGENT_MESSAGE] = (
        EnumOrchestratorEvent.AGENT_MESSAGE
    )
    message: Any = Field(default=None)


class ModelAgentError(_ModelEventBase):
    """An agent reported an error; defaults to the current agent."""

    event_type: Literal[EnumOrchestratorEvent.AGENT_ERROR] = (
        EnumOrchestratorEvent.AGENT_ERROR
    )
    agent_name: str | None = Field(default=None)
    error: ErrorMessage = Field(default=None)


# =============================================================================
# Parallel and Subtask Events
# =============================================================================


class ModelParallelStarted(_ModelEventBase):
    """Fan-out of several stages that run concurrently.

    ``stage_names`` and ``agent_names`` are paired positionally.
    """

    event_type: Literal[EnumOrchestratorEvent.PARALLEL_STARTED] = (
        EnumOrchestratorEvent.PARALLEL_STARTED
    )
    stage_names: Annotated[list[str | None], BeforeValidator(_coerce_name_list)] = (
        Field(default_factory=list)
    )
    agent_names: Annotated[list[str], BeforeValidator(_coerce_name_list)] = Field(
        default_factory=list
    )


class ModelParallelCompleted(_ModelEventBase):
    """End of the parallel fan-out window."""

    event_type: Literal[EnumOrchestratorEvent.PARALLEL_COMPLETED] = (
        EnumOrchestratorEvent.PARALLEL_COMPLETED
    )


class ModelSubtaskCreated(_ModelEventBase):
    """A subtask was created under the task in ``task_id``."""

    event_type: Literal[EnumOrchestratorEvent.SUBTASK_CREATED] = (
        EnumOrchestratorEvent.SUBTASK_CREATED
    )
    subtask: Any = Field(default=None)


class ModelSubtaskCompleted(_ModelEventBase):
    """A subtask of the task in ``task_id`` finished."""

    event_type: Literal[EnumOrchestratorEvent.SUBTASK_COMPLETED] = (
        EnumOrchestratorEvent.SUBTASK_COMPLETED
    )
    subtask: Any = Field(default=None)


# Union of all orchestrator event payloads, discriminated by event_type
OrchestratorEvent = Annotated[
    ModelTaskStarted
    | ModelTaskCompleted
    | ModelTaskFailed
    | ModelAgentTransition
    | ModelStageChanged
    | ModelStageCompleted
    | ModelUsageUpdated
    | ModelAgentToolUse
    | ModelAgentTurn
    | ModelAgentThinking
    | ModelAgentMessage
    | ModelAgentError
    | ModelParallelStarted
    | ModelParallelCompleted
    | ModelSubtaskCreated
    | ModelSubtaskCompleted,
    Field(discriminator="event_type"),
]

# Payload model for each wire event name
EVENT_MODELS: dict[EnumOrchestratorEvent, type[_ModelEventBase]] = {
    EnumOrchestratorEvent.TASK_STARTED: ModelTaskStarted,
    EnumOrchestratorEvent.TASK_COMPLETED: ModelTaskCompleted,
    EnumOrchestratorEvent.TASK_FAILED: ModelTaskFailed,
    EnumOrchestratorEvent.AGENT_TRANSITION: ModelAgentTransition,
    EnumOrchestratorEvent.STAGE_CHANGED: ModelStageChanged,
    EnumOrchestratorEvent.STAGE_COMPLETED: ModelStageCompleted,
    EnumOrchestratorEvent.USAGE_UPDATED: ModelUsageUpdated,
    EnumOrchestratorEvent.AGENT_TOOL_USE: ModelAgentToolUse,
    EnumOrchestratorEvent.AGENT_TURN: ModelAgentTurn,
    EnumOrchestratorEvent.AGENT_THINKING: ModelAgentThinking,
    EnumOrchestratorEvent.AGENT_MESSAGE: ModelAgentMessage,
    EnumOrchestratorEvent.AGENT_ERROR: ModelAgentError,
    EnumOrchestratorEvent.PARALLEL_STARTED: ModelParallelStarted,
    EnumOrchestratorEvent.PARALLEL_COMPLETED: ModelParallelCompleted,
    EnumOrchestratorEvent.SUBTASK_CREATED: ModelSubtaskCreated,
    EnumOrchestratorEvent.SUBTASK_COMPLETED: ModelSubtaskCompleted,
}


__all__ = [
    # Annotated types
    "TaskIdentifier",
    "TokenCount",
    "ToolName",
    "ErrorMessage",
    # Payload models
    "ModelTaskStarted",
    "ModelTaskCompleted",
    "ModelTaskFailed",
    "ModelAgentTransition",
    "ModelStageChanged",
    "ModelStageCompleted",
    "ModelUsageUpdated",
    "ModelAgentToolUse",
    "ModelAgentTurn",
    "ModelAgentThinking",
    "ModelAgentMessage",
    "ModelAgentError",
    "ModelParallelStarted",
    "ModelParallelCompleted",
    "ModelSubtaskCreated",
    "ModelSubtaskCompleted",
    # Union and lookup
    "OrchestratorEvent",
    "EVENT_MODELS",
]
