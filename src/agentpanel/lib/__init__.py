# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared library code for agentpanel."""

from __future__ import annotations

from agentpanel.lib.errors import EnumPanelErrorCode, PanelError

__all__ = [
    "EnumPanelErrorCode",
    "PanelError",
]
