# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""AgentPanel - orchestrator event aggregation for the agent panel UI.

This package turns the event stream of a multi-agent orchestrator into
immutable snapshots of task progress and diagnostic metrics that a
terminal UI can render.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("agentpanel")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
