# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Snapshot models for the agent panel.

Every model here is a frozen dataclass. Reducers never mutate a model
or any of its dicts in place; they build a replacement with
``dataclasses.replace`` and fresh dicts for whatever changed. Unchanged
sub-objects are carried over by reference, so a renderer can detect
change with an identity check (``old.verbose_data.timing is new.verbose_data.timing``).

Model Hierarchy:
    PanelSnapshot
    ├── agents: tuple[AgentRecord, ...]
    │   └── debug_info: AgentDebugInfo | None
    ├── parallel_agents: tuple[ParallelAgentInfo, ...]
    ├── subtask_progress: SubtaskProgress | None
    └── verbose_data: VerboseDebugData
        ├── agent_tokens: dict[str, AgentTokenUsage]
        ├── timing: TimingData
        ├── agent_debug: AgentDebugData
        └── metrics: MetricsData

``debug_info`` stays None until the agent receives its first relevant
event, so "never touched" is distinguishable from "touched with empty values".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TypedDict

from agentpanel.aggregators.enums import EnumAgentStatus

# =============================================================================
# Roster Models
# =============================================================================


@dataclass(frozen=True)
class TokensUsed:
    """Running token totals mirrored into an agent's debug info."""

    input: int | float = 0
    output: int | float = 0


@dataclass(frozen=True)
class AgentDebugInfo:
    """Per-agent diagnostic fields shown next to the agent in the panel.

    Attributes:
        tokens_used: Running input/output token totals.
        last_tool_call: Name of the most recent tool the agent invoked.
        turn_count: Absolute turn index reported by the orchestrator.
        thinking: Latest reasoning trace (stored untruncated).
        stage_started_at: When the agent last became active.
    """

    tokens_used: TokensUsed | None = None
    last_tool_call: str | None = None
    turn_count: int | None = None
    thinking: str | None = None
    stage_started_at: datetime | None = None


@dataclass(frozen=True)
class AgentRecord:
    """One agent of the workflow roster."""

    name: str
    status: EnumAgentStatus = EnumAgentStatus.IDLE
    stage: str | None = None
    debug_info: AgentDebugInfo | None = None


@dataclass(frozen=True)
class ParallelAgentInfo:
    """An agent running inside a parallel fan-out window."""

    name: str
    stage: str | None = None
    status: EnumAgentStatus = EnumAgentStatus.PARALLEL


@dataclass(frozen=True)
class SubtaskProgress:
    """Completed/total counter for subtasks of the current task."""

    completed: int = 0
    total: int = 0


# =============================================================================
# Verbose Debug Models
# =============================================================================


@dataclass(frozen=True)
class AgentTokenUsage:
    """Accumulated token usage for one agent.

    ``estimated_cost`` is the latest value reported, not a sum.
    """

    input_tokens: int | float = 0
    output_tokens: int | float = 0
    estimated_cost: int | float = 0


@dataclass(frozen=True)
class TimingData:
    """Stage window and accumulated durations, in milliseconds."""

    stage_start_time: datetime
    agent_response_times: dict[str, float] = field(default_factory=dict)
    tool_usage_times: dict[str, float] = field(default_factory=dict)
    stage_end_time: datetime | None = None
    stage_duration: float | None = None


@dataclass(frozen=True)
class AgentDebugData:
    """Per-agent counters.

    ``tool_call_counts`` maps agent name to a tool name histogram.
    """

    conversation_length: dict[str, int] = field(default_factory=dict)
    tool_call_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    error_counts: dict[str, int] = field(default_factory=dict)
    retry_attempts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricsData:
    """Rates derived from the accumulated data."""

    tokens_per_second: float = 0.0
    average_response_time: float = 0.0
    tool_efficiency: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class VerboseDebugData:
    """Aggregate metrics for the diagnostic display."""

    timing: TimingData
    agent_tokens: dict[str, AgentTokenUsage] = field(default_factory=dict)
    agent_debug: AgentDebugData = field(default_factory=AgentDebugData)
    metrics: MetricsData = field(default_factory=MetricsData)

    @classmethod
    def initial(cls, now: datetime) -> VerboseDebugData:
        """Create empty verbose data whose stage window starts at ``now``."""
        return cls(timing=TimingData(stage_start_time=now))


# =============================================================================
# Snapshot
# =============================================================================


class AgentSnapshotDict(TypedDict):
    """Dictionary form of an AgentRecord."""

    name: str
    status: str
    stage: str | None
    debug_info: dict[str, object] | None


class PanelSnapshotDict(TypedDict):
    """Dictionary form of a PanelSnapshot, as returned by to_dict()."""

    agents: list[AgentSnapshotDict]
    current_agent: str | None
    previous_agent: str | None
    parallel_agents: list[dict[str, object]]
    show_parallel_panel: bool
    subtask_progress: dict[str, int] | None
    verbose_data: dict[str, object]
    current_task_id: str | None


@dataclass(frozen=True)
class PanelSnapshot:
    """Complete derived state handed to the rendering layer.

    Attributes:
        agents: Workflow roster in stage order.
        verbose_data: Aggregate metrics; survives task boundaries.
        current_agent: Agent holding the sequential execution slot.
        previous_agent: Agent that held the slot before the current one.
        parallel_agents: Agents of the open parallel fan-out window.
        show_parallel_panel: Whether the parallel roster has 2+ agents.
        subtask_progress: Subtask counter; None outside a task.
        current_task_id: Task the snapshot currently reflects.
    """

    agents: tuple[AgentRecord, ...]
    verbose_data: VerboseDebugData
    current_agent: str | None = None
    previous_agent: str | None = None
    parallel_agents: tuple[ParallelAgentInfo, ...] = ()
    show_parallel_panel: bool = False
    subtask_progress: SubtaskProgress | None = field(default_factory=SubtaskProgress)
    current_task_id: str | None = None

    def get_agent(self, name: str) -> AgentRecord | None:
        """Return the roster entry for ``name``, or None."""
        for agent in self.agents:
            if agent.name == name:
                return agent
        return None

    def to_dict(self) -> PanelSnapshotDict:
        """Convert the snapshot to plain dicts and lists.

        Datetimes become ISO 8601 strings and statuses their string values.
        """
        verbose = self.verbose_data
        timing = verbose.timing
        return {
            "agents": [_agent_to_dict(agent) for agent in self.agents],
            "current_agent": self.current_agent,
            "previous_agent": self.previous_agent,
            "parallel_agents": [
                {"name": agent.name, "status": agent.status.value, "stage": agent.stage}
                for agent in self.parallel_agents
            ],
            "show_parallel_panel": self.show_parallel_panel,
            "subtask_progress": (
                {
                    "completed": self.subtask_progress.completed,
                    "total": self.subtask_progress.total,
                }
                if self.subtask_progress is not None
                else None
            ),
            "verbose_data": {
                "agent_tokens": {
                    name: {
                        "input_tokens": usage.input_tokens,
                        "output_tokens": usage.output_tokens,
                        "estimated_cost": usage.estimated_cost,
                    }
                    for name, usage in verbose.agent_tokens.items()
                },
                "timing": {
                    "stage_start_time": timing.stage_start_time.isoformat(),
                    "stage_end_time": _isoformat(timing.stage_end_time),
                    "stage_duration": timing.stage_duration,
                    "agent_response_times": dict(timing.agent_response_times),
                    "tool_usage_times": dict(timing.tool_usage_times),
                },
                "agent_debug": {
                    "conversation_length": dict(verbose.agent_debug.conversation_length),
                    "tool_call_counts": {
                        agent: dict(counts)
                        for agent, counts in verbose.agent_debug.tool_call_counts.items()
                    },
                    "error_counts": dict(verbose.agent_debug.error_counts),
                    "retry_attempts": dict(verbose.agent_debug.retry_attempts),
                },
                "metrics": {
                    "tokens_per_second": verbose.metrics.tokens_per_second,
                    "average_response_time": verbose.metrics.average_response_time,
                    "tool_efficiency": dict(verbose.metrics.tool_efficiency),
                },
            },
            "current_task_id": self.current_task_id,
        }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _agent_to_dict(agent: AgentRecord) -> AgentSnapshotDict:
    debug = agent.debug_info
    debug_dict: dict[str, object] | None = None
    if debug is not None:
        debug_dict = {
            "tokens_used": (
                {"input": debug.tokens_used.input, "output": debug.tokens_used.output}
                if debug.tokens_used is not None
                else None
            ),
            "last_tool_call": debug.last_tool_call,
            "turn_count": debug.turn_count,
            "thinking": debug.thinking,
            "stage_started_at": _isoformat(debug.stage_started_at),
        }
    return {
        "name": agent.name,
        "status": agent.status.value,
        "stage": agent.stage,
        "debug_info": debug_dict,
    }


__all__ = [
    "AgentDebugData",
    "AgentDebugInfo",
    "AgentRecord",
    "AgentSnapshotDict",
    "AgentTokenUsage",
    "MetricsData",
    "PanelSnapshot",
    "PanelSnapshotDict",
    "ParallelAgentInfo",
    "SubtaskProgress",
    "TimingData",
    "TokensUsed",
    "VerboseDebugData",
]
