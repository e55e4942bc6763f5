# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enums for agent panel aggregation."""

from __future__ import annotations

from enum import StrEnum


class EnumAgentStatus(StrEnum):
    """Status of an agent in the panel roster.

    State Transitions:
        IDLE -> ACTIVE:       agent:transition (or stage:changed) targets the agent
        ACTIVE -> COMPLETED:  agent:transition away from the agent

    PARALLEL is not part of the sequential machine. It marks entries of
    the parallel roster built from stage:parallel-started and can coexist
    with the single ACTIVE sequential agent.

    Example:
        >>> EnumAgentStatus("active") is EnumAgentStatus.ACTIVE
        True
        >>> EnumAgentStatus.IDLE == "idle"
        True
    """

    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    PARALLEL = "parallel"


__all__ = [
    "EnumAgentStatus",
]
