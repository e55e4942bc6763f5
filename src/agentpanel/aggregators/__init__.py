# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Agent panel aggregation.

This package turns orchestrator events into immutable panel snapshots.
Each event is validated into a payload model and folded into the
previous snapshot by a pure reducer; the aggregator owns the
orchestrator subscription and hands every new snapshot to its listeners.

Key Components:
    - AgentPanelAggregator: Subscription owner and snapshot holder
    - reduce_event, PanelState: The pure reducer and its state
    - PanelSnapshot and its parts: The derived state shown by the UI
    - EnumAgentStatus: Roster status values
    - ConfigAgentPanel: Configuration for aggregation behavior
    - ModelWorkflow, derive_agents: Workflow to roster derivation

Architecture:
    ```
    orchestrator.emit(...) -> listener -> payload model
        -> reduce_event(state, event) -> PanelSnapshot -> listeners
    ```

Example:
    >>> from agentpanel.aggregators import AgentPanelAggregator, EnumAgentStatus
    >>>
    >>> aggregator = AgentPanelAggregator(
    ...     workflow={"stages": [{"name": "planning", "agent": "planner"}]},
    ... )
    >>> aggregator.snapshot.agents[0].status is EnumAgentStatus.IDLE
    True
"""

from __future__ import annotations

from agentpanel.aggregators.config import ConfigAgentPanel
from agentpanel.aggregators.enums import EnumAgentStatus
from agentpanel.aggregators.models import (
    AgentDebugData,
    AgentDebugInfo,
    AgentRecord,
    AgentTokenUsage,
    MetricsData,
    PanelSnapshot,
    PanelSnapshotDict,
    ParallelAgentInfo,
    SubtaskProgress,
    TimingData,
    TokensUsed,
    VerboseDebugData,
)
from agentpanel.aggregators.panel_aggregator import AgentPanelAggregator, SnapshotListener
from agentpanel.aggregators.reducer import (
    PanelState,
    apply_workflow,
    matches_task,
    reduce_event,
)
from agentpanel.aggregators.workflow import (
    ModelWorkflow,
    ModelWorkflowStage,
    derive_agents,
    merge_agents_with_workflow,
)

__all__ = [
    # Implementation
    "AgentPanelAggregator",
    "SnapshotListener",
    # Reducer
    "PanelState",
    "apply_workflow",
    "matches_task",
    "reduce_event",
    # Enums
    "EnumAgentStatus",
    # Configuration
    "ConfigAgentPanel",
    # Workflow
    "ModelWorkflow",
    "ModelWorkflowStage",
    "derive_agents",
    "merge_agents_with_workflow",
    # Snapshot models
    "AgentDebugData",
    "AgentDebugInfo",
    "AgentRecord",
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
