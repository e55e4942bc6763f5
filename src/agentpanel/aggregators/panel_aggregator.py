# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Agent panel aggregator.

Subscribes to an orchestrator, validates each event into a payload
model, and folds it into the panel snapshot through the pure reducers
in ``agentpanel.aggregators.reducer``.

Architecture:
    ```
    Orchestrator (external)
           |
           | emit("agent:transition", task_id, from_agent, to_agent)
           v
    AgentPanelAggregator listener
           |
           | EVENT_MODELS[...] .model_validate(payload)
           v
    reduce_event(state, event, now=clock(), task_filter=task_id)
           |
           v
    PanelSnapshot ---> snapshot listeners (rendering layer)
    ```

Subscription Lifecycle:
    ``attach()`` registers exactly one listener per event name and keeps
    the listener objects; ``detach()`` passes the same objects back to
    ``off()``. Attaching to another orchestrator detaches first, so the
    orchestrator's listener count returns to its previous value after
    every attach/detach cycle. The aggregator is also a context manager
    that detaches on exit.

Concurrency:
    Listeners run synchronously inside the orchestrator's emit call and
    have no suspension points. Events are applied strictly in emission
    order with no batching. Each aggregator owns its own state; several
    aggregators on one orchestrator do not share anything.

Example:
    >>> aggregator = AgentPanelAggregator(
    ...     workflow={"stages": [{"name": "planning", "agent": "planner"}]},
    ... )
    >>> [agent.name for agent in aggregator.snapshot.agents]
    ['planner']
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from agentpanel.aggregators.config import ConfigAgentPanel
from agentpanel.aggregators.models import PanelSnapshot
from agentpanel.aggregators.reducer import (
    PanelState,
    apply_workflow,
    matches_task,
    reduce_event,
)
from agentpanel.aggregators.workflow import ModelWorkflow, coerce_workflow, derive_agents
from agentpanel.events.names import EnumOrchestratorEvent
from agentpanel.events.protocol_event_source import EventListener, ProtocolEventSource
from agentpanel.events.schemas import EVENT_MODELS, ModelAgentThinking, OrchestratorEvent
from agentpanel.lib.errors import EnumPanelErrorCode, PanelError

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[PanelSnapshot], Any]

# Marks a positional argument whose mapping is merged into the payload
_MERGE = "*"

# Positional arguments of each event, in emission order
_EVENT_ARGUMENTS: dict[EnumOrchestratorEvent, tuple[str, ...]] = {
    EnumOrchestratorEvent.TASK_STARTED: ("task_id",),
    EnumOrchestratorEvent.TASK_COMPLETED: ("task_id",),
    EnumOrchestratorEvent.TASK_FAILED: ("task_id", "error"),
    EnumOrchestratorEvent.AGENT_TRANSITION: ("task_id", "from_agent", "to_agent"),
    EnumOrchestratorEvent.STAGE_CHANGED: ("task_id", "stage_name", "agent_name"),
    EnumOrchestratorEvent.STAGE_COMPLETED: ("task_id", "stage_name", "agent_name"),
    EnumOrchestratorEvent.USAGE_UPDATED: ("task_id", _MERGE),
    EnumOrchestratorEvent.AGENT_TOOL_USE: ("task_id", "tool_name", "tool_input"),
    EnumOrchestratorEvent.AGENT_TURN: (_MERGE,),
    EnumOrchestratorEvent.AGENT_THINKING: ("task_id", "agent_name", "thinking"),
    EnumOrchestratorEvent.AGENT_MESSAGE: ("task_id", "message"),
    EnumOrchestratorEvent.AGENT_ERROR: ("task_id", "agent_name", "error"),
    EnumOrchestratorEvent.PARALLEL_STARTED: ("task_id", "stage_names", "agent_names"),
    EnumOrchestratorEvent.PARALLEL_COMPLETED: ("task_id",),
    EnumOrchestratorEvent.SUBTASK_CREATED: ("subtask", "task_id"),
    EnumOrchestratorEvent.SUBTASK_COMPLETED: ("subtask", "task_id"),
}

_LOG_MESSAGES: dict[EnumOrchestratorEvent, str] = {
    EnumOrchestratorEvent.TASK_STARTED: "Task started",
    EnumOrchestratorEvent.TASK_COMPLETED: "Task completed",
    EnumOrchestratorEvent.TASK_FAILED: "Task failed",
    EnumOrchestratorEvent.AGENT_TRANSITION: "Agent transition",
    EnumOrchestratorEvent.STAGE_CHANGED: "Stage change",
    EnumOrchestratorEvent.STAGE_COMPLETED: "Stage completed",
    EnumOrchestratorEvent.USAGE_UPDATED: "Usage updated",
    EnumOrchestratorEvent.AGENT_TOOL_USE: "Tool use",
    EnumOrchestratorEvent.AGENT_TURN: "Agent turn",
    EnumOrchestratorEvent.AGENT_THINKING: "Agent thinking",
    EnumOrchestratorEvent.AGENT_MESSAGE: "Agent message",
    EnumOrchestratorEvent.AGENT_ERROR: "Agent error",
    EnumOrchestratorEvent.PARALLEL_STARTED: "Parallel execution started",
    EnumOrchestratorEvent.PARALLEL_COMPLETED: "Parallel execution completed",
    EnumOrchestratorEvent.SUBTASK_CREATED: "Subtask created",
    EnumOrchestratorEvent.SUBTASK_COMPLETED: "Subtask completed",
}

# Payload fields left out of debug log lines (large or opaque values)
_UNLOGGED_FIELDS = {"event_type", "thinking", "tool_input", "message", "subtask"}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _build_payload(
    event_type: EnumOrchestratorEvent, args: tuple[Any, ...]
) -> dict[str, Any]:
    """Fold positional listener arguments into a payload mapping.

    Arguments the orchestrator did not pass are left out so that model
    defaults apply (a missing tool name becomes ``"undefined"``). A merged
    argument may be a mapping or an object carrying the payload fields as
    attributes (a dataclass, for example).
    """
    payload: dict[str, Any] = {}
    for name, value in zip(_EVENT_ARGUMENTS[event_type], args, strict=False):
        if name == _MERGE:
            if isinstance(value, Mapping):
                payload.update(value)
            elif value is not None:
                payload.update(_attribute_fields(EVENT_MODELS[event_type], value))
        else:
            payload[name] = value
    return payload


def _attribute_fields(model: type[BaseModel], value: object) -> dict[str, Any]:
    """Read the model's fields from attributes of ``value``.

    Both the snake_case field name and its camelCase alias are looked up.
    """
    fields: dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        if field_name == "event_type":
            continue
        for attribute in (field_name, info.alias):
            if attribute and hasattr(value, attribute):
                fields[field_name] = getattr(value, attribute)
                break
    return fields


def _preview(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class AgentPanelAggregator:
    """Maintains the agent panel snapshot for one consumer.

    Attributes:
        aggregator_id: Unique identifier for this aggregator instance.
        snapshot: Latest derived panel snapshot.
        is_attached: Whether listeners are registered on an orchestrator.

    Example:
        >>> aggregator = AgentPanelAggregator(orchestrator=orchestrator, task_id="task-1")
        >>> aggregator.add_listener(render)
        >>> ...
        >>> aggregator.detach()
    """

    def __init__(
        self,
        config: ConfigAgentPanel | None = None,
        *,
        orchestrator: ProtocolEventSource | None = None,
        workflow: ModelWorkflow | Mapping[str, Any] | None = None,
        task_id: str | None = None,
        debug: bool | None = None,
        clock: Callable[[], datetime] | None = None,
        aggregator_id: str | None = None,
    ) -> None:
        """Initialize the aggregator and attach to ``orchestrator`` if given.

        Args:
            config: Settings; loaded from AGENTPANEL_* variables if omitted.
            orchestrator: Event source to subscribe to. Without one the
                snapshot only holds the idle roster.
            workflow: Stage/agent list the roster is derived from.
            task_id: Only process events for this task (overrides config).
            debug: Log every processed event (overrides config).
            clock: Source of timezone-aware timestamps.
            aggregator_id: Optional identifier. If not provided,
                generates one with format "panel-{random_hex}".
        """
        self._config = config or ConfigAgentPanel()
        self._aggregator_id = aggregator_id or f"panel-{uuid4().hex[:8]}"
        self._task_id = task_id if task_id is not None else self._config.task_id
        self._debug = debug if debug is not None else self._config.debug
        self._clock = clock or _utc_now
        self._workflow = coerce_workflow(workflow)
        self._state = PanelState.initial(derive_agents(self._workflow), self._clock())
        self._orchestrator: ProtocolEventSource | None = None
        self._listeners: dict[EnumOrchestratorEvent, EventListener] = {}
        self._snapshot_listeners: list[SnapshotListener] = []

        logger.debug(
            "AgentPanelAggregator initialized",
            extra={
                "aggregator_id": self._aggregator_id,
                "task_filter": self._task_id,
                "agent_count": len(self._state.snapshot.agents),
            },
        )

        if orchestrator is not None:
            self.attach(orchestrator)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def aggregator_id(self) -> str:
        return self._aggregator_id

    @property
    def snapshot(self) -> PanelSnapshot:
        return self._state.snapshot

    @property
    def state(self) -> PanelState:
        """Full reducer state, including timers."""
        return self._state

    @property
    def task_id(self) -> str | None:
        return self._task_id

    @property
    def workflow(self) -> ModelWorkflow | None:
        return self._workflow

    @property
    def orchestrator(self) -> ProtocolEventSource | None:
        return self._orchestrator

    @property
    def is_attached(self) -> bool:
        return self._orchestrator is not None

    # =========================================================================
    # Subscription Lifecycle
    # =========================================================================

    def attach(self, orchestrator: ProtocolEventSource) -> None:
        """Register one listener per event name on ``orchestrator``.

        Attaching to the orchestrator already in use is a no-op. Attaching
        to a different one detaches from the current one first.

        Raises:
            PanelError: If ``orchestrator`` has no ``on``/``off`` methods.
        """
        if not isinstance(orchestrator, ProtocolEventSource):
            raise PanelError(
                EnumPanelErrorCode.CONFIGURATION_ERROR,
                f"Orchestrator must provide on() and off(), got {type(orchestrator).__name__}",
                {"aggregator_id": self._aggregator_id},
            )
        if orchestrator is self._orchestrator:
            logger.debug(
                "Already attached to orchestrator",
                extra={"aggregator_id": self._aggregator_id},
            )
            return

        self.detach()

        registered: dict[EnumOrchestratorEvent, EventListener] = {}
        try:
            for event_type in EnumOrchestratorEvent:
                listener = self._make_listener(event_type)
                orchestrator.on(event_type.value, listener)
                registered[event_type] = listener
        except Exception:
            logger.exception(
                "Failed to register event listeners",
                extra={"aggregator_id": self._aggregator_id},
            )
            for event_type, listener in registered.items():
                self._remove_listener(orchestrator, event_type, listener)
            raise

        self._orchestrator = orchestrator
        self._listeners = registered
        logger.debug(
            "Event listeners registered",
            extra={
                "aggregator_id": self._aggregator_id,
                "listener_count": len(registered),
            },
        )

    def detach(self) -> None:
        """Deregister every listener registered by ``attach()``.

        Safe to call multiple times. Failures from ``off()`` are logged
        and do not stop the remaining listeners from being removed.
        """
        orchestrator = self._orchestrator
        if orchestrator is None:
            return

        for event_type, listener in self._listeners.items():
            self._remove_listener(orchestrator, event_type, listener)

        self._orchestrator = None
        self._listeners = {}
        logger.debug(
            "Event listeners cleaned up",
            extra={"aggregator_id": self._aggregator_id},
        )

    def set_orchestrator(self, orchestrator: ProtocolEventSource | None) -> None:
        """Switch to another orchestrator, or detach when given None."""
        if orchestrator is None:
            self.detach()
        else:
            self.attach(orchestrator)

    def __enter__(self) -> AgentPanelAggregator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.detach()

    def _remove_listener(
        self,
        orchestrator: ProtocolEventSource,
        event_type: EnumOrchestratorEvent,
        listener: EventListener,
    ) -> None:
        try:
            orchestrator.off(event_type.value, listener)
        except Exception as e:
            logger.warning(
                "Failed to remove event listener",
                extra={
                    "aggregator_id": self._aggregator_id,
                    "event_type": event_type.value,
                    "error": str(e),
                },
            )

    def _make_listener(self, event_type: EnumOrchestratorEvent) -> EventListener:
        def listener(*args: Any) -> None:
            self._handle_raw_event(event_type, args)

        return listener

    # =========================================================================
    # Configuration Changes
    # =========================================================================

    def set_workflow(self, workflow: ModelWorkflow | Mapping[str, Any] | None) -> None:
        """Replace the workflow and merge its roster into the snapshot.

        Agents present in both workflows keep their status and debug info.
        Verbose debug data of agents that left the workflow stays readable.
        """
        self._workflow = coerce_workflow(workflow)
        self._commit(apply_workflow(self._state, derive_agents(self._workflow)))

    def set_task_id(self, task_id: str | None) -> None:
        """Change the task filter for subsequent events."""
        self._task_id = task_id

    # =========================================================================
    # Snapshot Listeners
    # =========================================================================

    def add_listener(self, listener: SnapshotListener) -> None:
        """Call ``listener`` with the new snapshot after every state change."""
        if listener not in self._snapshot_listeners:
            self._snapshot_listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._snapshot_listeners:
            self._snapshot_listeners.remove(listener)

    # =========================================================================
    # Event Processing
    # =========================================================================

    def process_event(self, event: OrchestratorEvent) -> bool:
        """Apply a validated event to the snapshot.

        Args:
            event: Orchestrator event payload model.

        Returns:
            True if the snapshot changed, False if the event was filtered
            out or had no effect.

        Raises:
            PanelError: If ``event`` is not an orchestrator event model.
        """
        next_state = reduce_event(
            self._state, event, now=self._clock(), task_filter=self._task_id
        )
        if self._debug and matches_task(event.task_id, self._task_id):
            self._log_event(event)
        return self._commit(next_state)

    def _handle_raw_event(self, event_type: EnumOrchestratorEvent, args: tuple[Any, ...]) -> None:
        payload = _build_payload(event_type, args)
        try:
            event = EVENT_MODELS[event_type].model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "Skipping malformed orchestrator event",
                extra={
                    "aggregator_id": self._aggregator_id,
                    "event_type": event_type.value,
                    "error_count": e.error_count(),
                    "error": str(e),
                },
            )
            return
        self.process_event(event)  # type: ignore[arg-type]

    def _commit(self, next_state: PanelState) -> bool:
        if next_state is self._state:
            return False
        unchanged = next_state.snapshot is self._state.snapshot
        self._state = next_state
        if unchanged:
            # Bookkeeping only (e.g. the same workflow set again)
            return False
        snapshot = next_state.snapshot
        for listener in list(self._snapshot_listeners):
            listener(snapshot)
        return True

    def _log_event(self, event: OrchestratorEvent) -> None:
        fields = event.model_dump(exclude=_UNLOGGED_FIELDS)
        if isinstance(event, ModelAgentThinking):
            fields["thinking"] = _preview(event.thinking, self._config.thinking_log_preview_chars)
        logger.debug(
            _LOG_MESSAGES[event.event_type],
            extra={
                "aggregator_id": self._aggregator_id,
                "event_type": event.event_type.value,
                **fields,
            },
        )


__all__ = [
    "AgentPanelAggregator",
    "SnapshotListener",
]
