# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared fixtures for agentpanel tests.

Provides:
    - FakeOrchestrator: In-process event source with on/off/emit
    - ManualClock: Clock that only moves when advanced
    - A six-stage workflow used across the suite
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from agentpanel.aggregators import AgentPanelAggregator, ConfigAgentPanel

BASE_TIME = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)

WORKFLOW: dict[str, Any] = {
    "stages": [
        {"name": "planning", "agent": "planner"},
        {"name": "architecture", "agent": "architect"},
        {"name": "implementation", "agent": "developer"},
        {"name": "testing", "agent": "tester"},
        {"name": "review", "agent": "reviewer"},
        {"name": "deployment", "agent": "devops"},
    ]
}


class FakeOrchestrator:
    """Minimal orchestrator event source for tests."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, listener: Callable[..., Any]) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Callable[..., Any]) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, *args: Any) -> bool:
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def total_listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())


class ManualClock:
    """Clock returning a fixed time until advanced."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, milliseconds: float) -> None:
        self.now = self.now + timedelta(milliseconds=milliseconds)


@pytest.fixture
def orchestrator() -> FakeOrchestrator:
    """Create a fresh fake orchestrator."""
    return FakeOrchestrator()


@pytest.fixture
def clock() -> ManualClock:
    """Create a manual clock starting at BASE_TIME."""
    return ManualClock()


@pytest.fixture
def config() -> ConfigAgentPanel:
    """Create configuration independent of AGENTPANEL_* variables."""
    return ConfigAgentPanel(debug=False, task_id=None)


@pytest.fixture
def aggregator(
    orchestrator: FakeOrchestrator, clock: ManualClock, config: ConfigAgentPanel
) -> Iterator[AgentPanelAggregator]:
    """Create an aggregator attached to the fake orchestrator."""
    panel = AgentPanelAggregator(
        config,
        orchestrator=orchestrator,
        workflow=WORKFLOW,
        clock=clock,
        aggregator_id="test-panel",
    )
    yield panel
    panel.detach()
