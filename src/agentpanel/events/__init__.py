# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Orchestrator event names, payload models, and the event source contract.

Key Components:
    - EnumOrchestratorEvent: Wire names of every consumed event
    - ProtocolEventSource: The on/off contract of the orchestrator
    - Model*: Typed, immutable payloads, one per event
    - EVENT_MODELS: Payload model lookup by event name
"""

from __future__ import annotations

from agentpanel.events.names import EnumOrchestratorEvent
from agentpanel.events.protocol_event_source import EventListener, ProtocolEventSource
from agentpanel.events.schemas import (
    EVENT_MODELS,
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

__all__ = [
    "EnumOrchestratorEvent",
    "EventListener",
    "ProtocolEventSource",
    "EVENT_MODELS",
    "OrchestratorEvent",
    "ModelAgentError",
    "ModelAgentMessage",
    "ModelAgentThinking",
    "ModelAgentToolUse",
    "ModelAgentTransition",
    "ModelAgentTurn",
    "ModelParallelCompleted",
    "ModelParallelStarted",
    "ModelStageChanged",
    "ModelStageCompleted",
    "ModelSubtaskCompleted",
    "ModelSubtaskCreated",
    "ModelTaskCompleted",
    "ModelTaskFailed",
    "ModelTaskStarted",
    "ModelUsageUpdated",
]
