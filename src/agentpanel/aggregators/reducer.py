# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pure reducers from orchestrator events to panel state.

``reduce_event(state, event, now=..., task_filter=...)`` returns the
next PanelState and never mutates its input. Reducers receive the
current time explicitly and never read a clock, so a sequence of
events with fixed timestamps always produces the same snapshot.

Key Semantics:
    - Task Filter: When a task filter is configured, events for any other
      task return the input state object itself (a complete no-op).
    - Replace, Never Mutate: Changed sub-objects are rebuilt; unchanged
      sub-objects keep their identity for cheap change detection.
    - Accumulation: Token totals, tool call counts, conversation lengths
      and response times only ever grow (negative token reports included).
    - Per-Task Reset: task:completed and task:failed clear the per-task
      fields but keep the roster and all verbose debug data.

Agent State Machine:
    IDLE ---(transition to agent)---> ACTIVE
    ACTIVE ---(transition away)---> COMPLETED
    COMPLETED ---(transition to agent)---> ACTIVE

    At most one roster agent is ACTIVE after any transition. Agents of a
    parallel fan-out live in a separate roster and are not part of this machine.

Timing:
    The reducer state keeps the activation time of every active agent and
    the last invocation time of every tool. Leaving an agent adds the
    elapsed milliseconds to ``agent_response_times`` for that agent, so
    non-contiguous activations accumulate. Invoking a tool again adds the
    time since its previous invocation (by any agent) to ``tool_usage_times``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from agentpanel.aggregators.enums import EnumAgentStatus
from agentpanel.aggregators.models import (
    AgentDebugInfo,
    AgentRecord,
    AgentTokenUsage,
    PanelSnapshot,
    ParallelAgentInfo,
    SubtaskProgress,
    TokensUsed,
    VerboseDebugData,
)
from agentpanel.aggregators.workflow import (
    agent_for_stage,
    merge_agents_with_workflow,
    stage_for_agent,
)
from agentpanel.events.schemas import (
    ModelAgentError,
    ModelAgentMessage,
    ModelAgentThinking,
    ModelAgentToolUse,
    ModelAgentTransition,
    ModelAgentTurn,
    ModelParallelCompleted,
    ModelParallelStarted,
    ModelStageChanged,
    ModelStageCompleted,
    ModelSubtaskCompleted,
    ModelSubtaskCreated,
    ModelTaskCompleted,
    ModelTaskFailed,
    ModelTaskStarted,
    ModelUsageUpdated,
    OrchestratorEvent,
)
from agentpanel.lib.errors import EnumPanelErrorCode, PanelError

# =============================================================================
# Reducer State
# =============================================================================


@dataclass(frozen=True)
class PanelState:
    """Snapshot plus the bookkeeping the reducers need between events.

    Attributes:
        snapshot: The state exposed to the rendering layer.
        workflow_agents: Idle roster derived from the configured workflow;
            task:started resets the snapshot roster to it.
        agent_started_at: Activation time of each agent with an open timer.
        tool_last_used_at: Most recent invocation time of each tool.
        agent_total_tokens: Running sum of reported total tokens per agent.
    """

    snapshot: PanelSnapshot
    workflow_agents: tuple[AgentRecord, ...] = ()
    agent_started_at: dict[str, datetime] = field(default_factory=dict)
    tool_last_used_at: dict[str, datetime] = field(default_factory=dict)
    agent_total_tokens: dict[str, int | float] = field(default_factory=dict)

    @classmethod
    def initial(cls, workflow_agents: tuple[AgentRecord, ...], now: datetime) -> PanelState:
        """Create the state of a freshly mounted panel."""
        return cls(
            snapshot=PanelSnapshot(
                agents=workflow_agents,
                verbose_data=VerboseDebugData.initial(now),
            ),
            workflow_agents=workflow_agents,
        )


def matches_task(event_task_id: str | None, task_filter: str | None) -> bool:
    """Return True if an event for ``event_task_id`` passes the filter.

    An unset (or empty) filter accepts every event.

    Example:
        >>> matches_task("task-1", None)
        True
        >>> matches_task("task-2", "task-1")
        False
    """
    return not task_filter or event_task_id == task_filter


def reduce_event(
    state: PanelState,
    event: OrchestratorEvent,
    *,
    now: datetime,
    task_filter: str | None = None,
) -> PanelState:
    """Apply one event and return the next state.

    Args:
        state: Current reducer state.
        event: Validated event payload.
        now: Time at which the event is processed.
        task_filter: Only events for this task are applied, if set.

    Returns:
        The next state, or ``state`` itself when the event is filtered out
        or is a no-op (e.g. usage reported with no current agent).

    Raises:
        PanelError: If ``event`` is not an orchestrator event model.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise PanelError(
            EnumPanelErrorCode.INVALID_INPUT,
            f"Unsupported event type: {type(event).__name__}",
            {"event": repr(event)},
        )
    if not matches_task(event.task_id, task_filter):
        return state
    return handler(state, event, now)


def apply_workflow(state: PanelState, workflow_agents: tuple[AgentRecord, ...]) -> PanelState:
    """Install a new workflow roster, keeping the state of known agents.

    Verbose debug data of agents that left the workflow is kept.
    """
    agents = state.snapshot.agents
    if not agents:
        merged = workflow_agents
    elif [a.name for a in agents] == [a.name for a in workflow_agents]:
        merged = agents
    else:
        merged = merge_agents_with_workflow(agents, workflow_agents)
    if merged is agents:
        return replace(state, workflow_agents=workflow_agents)
    return replace(
        state,
        workflow_agents=workflow_agents,
        snapshot=replace(state.snapshot, agents=merged),
    )


# =============================================================================
# Helpers
# =============================================================================


def _elapsed_ms(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000.0


def _mean(values: Iterable[float]) -> float:
    items = list(values)
    return sum(items) / len(items) if items else 0.0


def _has_agent(agents: tuple[AgentRecord, ...], name: str) -> bool:
    return any(agent.name == name for agent in agents)


def _update_debug_info(
    agents: tuple[AgentRecord, ...],
    name: str,
    updater: Callable[[AgentDebugInfo], AgentDebugInfo],
) -> tuple[AgentRecord, ...]:
    """Rebuild the roster with ``updater`` applied to one agent's debug info.

    Agents that are not in the roster are left out; the roster is returned as is.
    """
    if not _has_agent(agents, name):
        return agents
    return tuple(
        replace(agent, debug_info=updater(agent.debug_info or AgentDebugInfo()))
        if agent.name == name
        else agent
        for agent in agents
    )


def _with_snapshot(state: PanelState, **changes: Any) -> PanelState:
    return replace(state, snapshot=replace(state.snapshot, **changes))


def _with_verbose(state: PanelState, verbose: VerboseDebugData, **changes: Any) -> PanelState:
    return replace(state, snapshot=replace(state.snapshot, verbose_data=verbose), **changes)


# =============================================================================
# Agent Lifecycle
# =============================================================================


def _activate(
    state: PanelState,
    from_agent: str | None,
    to_agent: str,
    task_id: str | None,
    now: datetime,
) -> PanelState:
    """Move the sequential slot from ``from_agent`` to ``to_agent``."""
    snapshot = state.snapshot
    verbose = snapshot.verbose_data
    started_at = dict(state.agent_started_at)

    if from_agent is not None and from_agent in started_at:
        elapsed = _elapsed_ms(started_at.pop(from_agent), now)
        timing = verbose.timing
        response_times = {
            **timing.agent_response_times,
            from_agent: timing.agent_response_times.get(from_agent, 0.0) + elapsed,
        }
        verbose = replace(verbose, timing=replace(timing, agent_response_times=response_times))

    average = _mean(verbose.timing.agent_response_times.values())
    if average != verbose.metrics.average_response_time:
        verbose = replace(
            verbose, metrics=replace(verbose.metrics, average_response_time=average)
        )

    started_at[to_agent] = now

    agents = []
    for agent in snapshot.agents:
        if agent.name == to_agent:
            debug = agent.debug_info or AgentDebugInfo()
            agent = replace(
                agent,
                status=EnumAgentStatus.ACTIVE,
                debug_info=replace(debug, stage_started_at=now),
            )
        elif agent.name == from_agent or agent.status == EnumAgentStatus.ACTIVE:
            agent = replace(agent, status=EnumAgentStatus.COMPLETED)
        agents.append(agent)

    # Agents outside the workflow still get a roster entry
    if not _has_agent(snapshot.agents, to_agent):
        agents.append(
            AgentRecord(
                name=to_agent,
                status=EnumAgentStatus.ACTIVE,
                stage=stage_for_agent(state.workflow_agents, to_agent),
                debug_info=AgentDebugInfo(stage_started_at=now),
            )
        )
    if from_agent is not None and not _has_agent(snapshot.agents, from_agent):
        agents.append(
            AgentRecord(
                name=from_agent,
                status=EnumAgentStatus.COMPLETED,
                stage=stage_for_agent(state.workflow_agents, from_agent),
            )
        )

    return replace(
        state,
        agent_started_at=started_at,
        snapshot=replace(
            snapshot,
            agents=tuple(agents),
            current_agent=to_agent,
            previous_agent=from_agent if from_agent is not None else snapshot.previous_agent,
            current_task_id=task_id if task_id is not None else snapshot.current_task_id,
            verbose_data=verbose,
        ),
    )


def _reduce_transition(state: PanelState, event: ModelAgentTransition, now: datetime) -> PanelState:
    return _activate(state, event.from_agent, event.to_agent, event.task_id, now)


def _reduce_stage_changed(state: PanelState, event: ModelStageChanged, now: datetime) -> PanelState:
    """Reset the stage window and hand the slot to the stage's agent.

    The fallback is a handoff from the current agent rather than a
    transition with no source: the current agent becomes ``previous_agent``
    and its response time is recorded, so exactly one agent stays active.
    """
    verbose = state.snapshot.verbose_data
    timing = replace(
        verbose.timing,
        stage_start_time=now,
        stage_end_time=None,
        stage_duration=None,
    )
    state = _with_verbose(state, replace(verbose, timing=timing))

    agent = event.agent_name
    if agent is None and event.stage_name is not None:
        agent = agent_for_stage(state.workflow_agents, event.stage_name) or agent_for_stage(
            state.snapshot.agents, event.stage_name
        )
    current = state.snapshot.current_agent
    if agent is None or agent == current:
        # The paired agent:transition already moved the slot
        return state
    return _activate(state, current, agent, event.task_id, now)


def _reduce_stage_completed(
    state: PanelState, event: ModelStageCompleted, now: datetime
) -> PanelState:
    verbose = state.snapshot.verbose_data
    timing = replace(
        verbose.timing,
        stage_end_time=now,
        stage_duration=_elapsed_ms(verbose.timing.stage_start_time, now),
    )
    return _with_verbose(state, replace(verbose, timing=timing))


# =============================================================================
# Verbose Metrics
# =============================================================================


def _reduce_usage(state: PanelState, event: ModelUsageUpdated, now: datetime) -> PanelState:
    current = state.snapshot.current_agent
    if current is None:
        return state

    verbose = state.snapshot.verbose_data
    previous = verbose.agent_tokens.get(current) or AgentTokenUsage()
    usage = AgentTokenUsage(
        input_tokens=previous.input_tokens + event.input_tokens,
        output_tokens=previous.output_tokens + event.output_tokens,
        estimated_cost=event.estimated_cost,
    )

    totals = {
        **state.agent_total_tokens,
        current: state.agent_total_tokens.get(current, 0) + event.total_tokens,
    }
    elapsed_seconds = (now - verbose.timing.stage_start_time).total_seconds()
    tokens_per_second = totals[current] / elapsed_seconds if elapsed_seconds > 0 else 0.0

    verbose = replace(
        verbose,
        agent_tokens={**verbose.agent_tokens, current: usage},
        metrics=replace(verbose.metrics, tokens_per_second=tokens_per_second),
    )

    def add_tokens(debug: AgentDebugInfo) -> AgentDebugInfo:
        tokens = debug.tokens_used or TokensUsed()
        return replace(
            debug,
            tokens_used=TokensUsed(
                input=tokens.input + event.input_tokens,
                output=tokens.output + event.output_tokens,
            ),
        )

    agents = _update_debug_info(state.snapshot.agents, current, add_tokens)
    return replace(
        state,
        agent_total_tokens=totals,
        snapshot=replace(state.snapshot, agents=agents, verbose_data=verbose),
    )


def _reduce_tool_use(state: PanelState, event: ModelAgentToolUse, now: datetime) -> PanelState:
    current = state.snapshot.current_agent
    if current is None:
        return state

    tool = event.tool_name
    verbose = state.snapshot.verbose_data

    counts = verbose.agent_debug.tool_call_counts
    agent_counts = counts.get(current, {})
    counts = {**counts, current: {**agent_counts, tool: agent_counts.get(tool, 0) + 1}}
    efficiency = {name: 1.0 for per_agent in counts.values() for name in per_agent}

    timing = verbose.timing
    last_used = state.tool_last_used_at.get(tool)
    if last_used is not None:
        timing = replace(
            timing,
            tool_usage_times={
                **timing.tool_usage_times,
                tool: timing.tool_usage_times.get(tool, 0.0) + _elapsed_ms(last_used, now),
            },
        )

    verbose = replace(
        verbose,
        timing=timing,
        agent_debug=replace(verbose.agent_debug, tool_call_counts=counts),
        metrics=replace(verbose.metrics, tool_efficiency=efficiency),
    )
    agents = _update_debug_info(
        state.snapshot.agents,
        current,
        lambda debug: replace(debug, last_tool_call=tool),
    )
    return replace(
        state,
        tool_last_used_at={**state.tool_last_used_at, tool: now},
        snapshot=replace(state.snapshot, agents=agents, verbose_data=verbose),
    )


def _reduce_turn(state: PanelState, event: ModelAgentTurn, now: datetime) -> PanelState:
    if not _has_agent(state.snapshot.agents, event.agent_name):
        return state
    agents = _update_debug_info(
        state.snapshot.agents,
        event.agent_name,
        lambda debug: replace(debug, turn_count=event.turn_number),
    )
    return _with_snapshot(state, agents=agents)


def _reduce_thinking(state: PanelState, event: ModelAgentThinking, now: datetime) -> PanelState:
    if not _has_agent(state.snapshot.agents, event.agent_name):
        return state
    agents = _update_debug_info(
        state.snapshot.agents,
        event.agent_name,
        lambda debug: replace(debug, thinking=event.thinking),
    )
    return _with_snapshot(state, agents=agents)


def _reduce_message(state: PanelState, event: ModelAgentMessage, now: datetime) -> PanelState:
    current = state.snapshot.current_agent
    if current is None:
        return state
    verbose = state.snapshot.verbose_data
    lengths = verbose.agent_debug.conversation_length
    agent_debug = replace(
        verbose.agent_debug,
        conversation_length={**lengths, current: lengths.get(current, 0) + 1},
    )
    return _with_verbose(state, replace(verbose, agent_debug=agent_debug))


def _reduce_agent_error(state: PanelState, event: ModelAgentError, now: datetime) -> PanelState:
    agent = event.agent_name or state.snapshot.current_agent
    if agent is None:
        return state
    verbose = state.snapshot.verbose_data
    errors = verbose.agent_debug.error_counts
    agent_debug = replace(
        verbose.agent_debug,
        error_counts={**errors, agent: errors.get(agent, 0) + 1},
    )
    return _with_verbose(state, replace(verbose, agent_debug=agent_debug))


# =============================================================================
# Parallel Stages and Subtasks
# =============================================================================


def _reduce_parallel_started(
    state: PanelState, event: ModelParallelStarted, now: datetime
) -> PanelState:
    stages = event.stage_names
    parallel = tuple(
        ParallelAgentInfo(name=name, stage=stages[index] if index < len(stages) else None)
        for index, name in enumerate(event.agent_names)
    )
    return _with_snapshot(
        state,
        parallel_agents=parallel,
        show_parallel_panel=len(parallel) >= 2,
        current_task_id=(
            event.task_id if event.task_id is not None else state.snapshot.current_task_id
        ),
    )


def _reduce_parallel_completed(
    state: PanelState, event: ModelParallelCompleted, now: datetime
) -> PanelState:
    return _with_snapshot(state, parallel_agents=(), show_parallel_panel=False)


def _reduce_subtask_created(
    state: PanelState, event: ModelSubtaskCreated, now: datetime
) -> PanelState:
    progress = state.snapshot.subtask_progress or SubtaskProgress()
    return _with_snapshot(
        state,
        subtask_progress=SubtaskProgress(completed=progress.completed, total=progress.total + 1),
    )


def _reduce_subtask_completed(
    state: PanelState, event: ModelSubtaskCompleted, now: datetime
) -> PanelState:
    progress = state.snapshot.subtask_progress
    if progress is None:
        # Completion reported before any creation
        return _with_snapshot(state, subtask_progress=SubtaskProgress(completed=1, total=1))
    return _with_snapshot(
        state,
        subtask_progress=SubtaskProgress(completed=progress.completed + 1, total=progress.total),
    )


# =============================================================================
# Task Lifecycle
# =============================================================================


def _reduce_task_started(state: PanelState, event: ModelTaskStarted, now: datetime) -> PanelState:
    return _with_snapshot(
        state,
        current_task_id=event.task_id,
        agents=state.workflow_agents,
        subtask_progress=SubtaskProgress(),
    )


def _reduce_task_ended(
    state: PanelState, event: ModelTaskCompleted | ModelTaskFailed, now: datetime
) -> PanelState:
    return _with_snapshot(
        state,
        current_agent=None,
        previous_agent=None,
        current_task_id=None,
        parallel_agents=(),
        show_parallel_panel=False,
        subtask_progress=None,
    )


_HANDLERS: dict[type, Callable[[PanelState, Any, datetime], PanelState]] = {
    ModelTaskStarted: _reduce_task_started,
    ModelTaskCompleted: _reduce_task_ended,
    ModelTaskFailed: _reduce_task_ended,
    ModelAgentTransition: _reduce_transition,
    ModelStageChanged: _reduce_stage_changed,
    ModelStageCompleted: _reduce_stage_completed,
    ModelUsageUpdated: _reduce_usage,
    ModelAgentToolUse: _reduce_tool_use,
    ModelAgentTurn: _reduce_turn,
    ModelAgentThinking: _reduce_thinking,
    ModelAgentMessage: _reduce_message,
    ModelAgentError: _reduce_agent_error,
    ModelParallelStarted: _reduce_parallel_started,
    ModelParallelCompleted: _reduce_parallel_completed,
    ModelSubtaskCreated: _reduce_subtask_created,
    ModelSubtaskCompleted: _reduce_subtask_completed,
}


__all__ = [
    "PanelState",
    "apply_workflow",
    "matches_task",
    "reduce_event",
]
